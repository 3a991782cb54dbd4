from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

FieldIssues = dict[str, list[str]]


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    INVALID_TRANSITION = "InvalidTransition"
    MISSING_COMMENT = "MissingComment"
    VALIDATION_ERROR = "ValidationError"
    NETWORK_ERROR = "NetworkError"
    NOT_FOUND = "NotFound"


@dataclass(frozen=True)
class ApiError:
    """Uniform error shape returned by every backend call.

    Attributes:
        error: Human readable message (shown to the user as is).
        kind: Error category.
        issues: Per-field validation messages, if the backend sent any.
        status: HTTP status code, or None when no request was sent.
    """

    error: str
    kind: ErrorKind
    issues: Optional[FieldIssues] = None
    status: Optional[int] = None

    @property
    def reached_backend(self) -> bool:
        return self.status is not None


@dataclass(frozen=True)
class BackendResponse(Generic[T]):
    """Result wrapper returned from the backend client.

    Exactly one of `data` / `error` is meaningful: `ok` tells which.

    Attributes:
        status: HTTP status code (None when the call was short-circuited).
        data: Decoded response body on success.
        error: Normalized error on failure.
    """

    status: Optional[int] = None
    data: Optional[T] = None
    error: Optional[ApiError] = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T, *, status: int = 200, headers: dict[str, str] | None = None) -> "BackendResponse[T]":
        return cls(status=status, data=data, headers=headers or {})

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        *,
        issues: FieldIssues | None = None,
        status: int | None = None,
    ) -> "BackendResponse[T]":
        return cls(status=status, error=ApiError(error=message, kind=kind, issues=issues, status=status))
