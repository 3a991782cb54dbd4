from __future__ import annotations

from enum import Enum


class TranslationStatus(int, Enum):
    """Translation request status.

    Values match the backend enum, which is serialized as an integer.
    """

    PENDING = 0
    APPROVED = 1
    COMPLETED = 2
    REJECTED = 3
    RESUBMITTED = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: object) -> "TranslationStatus":
        """Accept either the numeric wire value or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and not value.isdigit():
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown translation status: {value!r}") from None
        return cls(int(value))  # type: ignore[arg-type]


class ActorRole(str, Enum):
    OWNER = "Owner"
    ADMIN = "Admin"


class RequestAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    COMPLETE = "complete"
    MODIFY = "modify"
    RESUBMIT = "resubmit"
    DELETE = "delete"


class ViewAction(str, Enum):
    """User-facing affordances, a superset of the state-changing actions."""

    APPROVE = "approve"
    REJECT = "reject"
    COMPLETE = "complete"
    MODIFY = "modify"
    RESUBMIT = "resubmit"
    DELETE = "delete"
    DOWNLOAD_ORIGINAL = "download_original"
    DOWNLOAD_TRANSLATED = "download_translated"
