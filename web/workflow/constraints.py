"""Field constraints mirroring the backend validation rules.

Each rule set is evaluated before a payload is sent so obviously invalid
submissions never cost a round trip. Keys are the backend field names, which
is also how the backend reports validation issues.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from web.config import settings
from web.domain.errors import FieldIssues
from web.domain.models import UploadedFile

_EMAIL = TypeAdapter(EmailStr)

TITLE_MAX = 100
DESCRIPTION_MAX = 500
LANGUAGE_MAX = 50
COMMENT_MAX = 500
NAME_MIN, NAME_MAX = 2, 50
PASSWORD_MIN, PASSWORD_MAX = 6, 100


@dataclass(frozen=True)
class FieldConstraint:
    """Constraint on a single submitted field.

    Attributes:
        name: Backend field name.
        label: Name used in messages.
        required: Whether a value must be present.
        min_length: Minimum text length (after stripping).
        max_length: Maximum text length.
        kind: "text", "email" or "file".
    """

    name: str
    label: str
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    kind: str = "text"

    def check(self, value: Any) -> list[str]:
        if self.kind == "file":
            return _check_file(self, value)

        text = "" if value is None else str(value).strip()
        if not text:
            return [f"{self.label} is required."] if self.required else []

        problems: list[str] = []
        if self.min_length is not None and len(text) < self.min_length:
            problems.append(f"{self.label} must be at least {self.min_length} characters.")
        if self.max_length is not None and len(text) > self.max_length:
            problems.append(f"{self.label} must be at most {self.max_length} characters.")
        if self.kind == "email" and not is_valid_email(text):
            problems.append(f"{self.label} is not a valid email address.")
        return problems


def is_valid_email(value: str) -> bool:
    """Check an address the same way the outgoing payload models do (`EmailStr`)."""
    try:
        _EMAIL.validate_python(value)
    except ValidationError:
        return False
    return True


def _check_file(rule: FieldConstraint, value: Any) -> list[str]:
    if value is None or (isinstance(value, UploadedFile) and value.size == 0):
        return [f"{rule.label} is required."] if rule.required else []

    problems: list[str] = []
    if value.extension not in settings.allowed_extensions:
        allowed = ", ".join(e.lstrip(".") for e in settings.allowed_extensions)
        problems.append(f"File type not supported. Allowed types: {allowed}")
    if value.size > settings.max_upload_mb * 1024 * 1024:
        problems.append(f"{rule.label} exceeds {settings.max_upload_mb} MB.")
    return problems


def validate(rules: tuple[FieldConstraint, ...], values: Mapping[str, Any]) -> FieldIssues:
    """Evaluate rules against submitted values.

    Returns:
        FieldIssues: Mapping {field: [messages]}; empty when everything passes.
    """
    issues: FieldIssues = {}
    for rule in rules:
        problems = rule.check(values.get(rule.name))
        if problems:
            issues[rule.name] = problems
    return issues


def summarize(issues: FieldIssues) -> str:
    return "; ".join(f"{name}: {', '.join(msgs)}" for name, msgs in issues.items())


_REQUEST_METADATA: tuple[FieldConstraint, ...] = (
    FieldConstraint("Title", "Title", required=True, max_length=TITLE_MAX),
    FieldConstraint("Description", "Description", max_length=DESCRIPTION_MAX),
    FieldConstraint("SourceLanguage", "Source language", required=True, max_length=LANGUAGE_MAX),
    FieldConstraint("TargetLanguage", "Target language", required=True, max_length=LANGUAGE_MAX),
    FieldConstraint("UserComment", "Comment", max_length=COMMENT_MAX),
)

CREATE_REQUEST = _REQUEST_METADATA + (FieldConstraint("File", "File", required=True, kind="file"),)
UPDATE_REQUEST = _REQUEST_METADATA
RESUBMIT_REQUEST = (
    FieldConstraint("UserComment", "Comment", max_length=COMMENT_MAX),
    FieldConstraint("File", "File", kind="file"),
)
ADMIN_COMMENT = (FieldConstraint("Comment", "Comment", max_length=COMMENT_MAX),)
COMPLETE_REQUEST = (
    FieldConstraint("File", "Translated file", required=True, kind="file"),
    FieldConstraint("AdminComment", "Comment", max_length=COMMENT_MAX),
)

_PERSON = (
    FieldConstraint("FirstName", "First name", required=True, min_length=NAME_MIN, max_length=NAME_MAX),
    FieldConstraint("LastName", "Last name", required=True, min_length=NAME_MIN, max_length=NAME_MAX),
    FieldConstraint("Email", "Email", required=True, kind="email"),
)

REGISTER = _PERSON + (
    FieldConstraint("Password", "Password", required=True, min_length=PASSWORD_MIN, max_length=PASSWORD_MAX),
)
PROFILE = _PERSON
LOGIN = (
    FieldConstraint("Email", "Email", required=True, kind="email"),
    FieldConstraint("Password", "Password", required=True),
)
