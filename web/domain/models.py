from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from web.domain.enums import TranslationStatus


class _BackendModel(BaseModel):
    """Base for payloads exchanged with the backend (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class TranslationRequest(_BackendModel):
    """Translation request as returned by the backend.

    Attributes:
        id: Request GUID.
        title: Short title.
        description: Optional description.
        source_language: Language of the uploaded document.
        target_language: Requested language.
        original_file_name: Name of the uploaded file.
        stored_file_name: Name under which the backend stores the file.
        translated_file_name: Stored name of the translation (Completed only).
        status: Lifecycle status.
        admin_comment: Comment left by an administrator.
        user_comment: Comment left by the owner.
        created_at: Creation timestamp.
        updated_at: Last mutation timestamp.
        completed_at: Set once, at the Completed transition.
        user_id: Owner id.
    """

    id: str
    title: str
    description: Optional[str] = None
    source_language: str
    target_language: str
    original_file_name: str = ""
    stored_file_name: str = ""
    translated_file_name: Optional[str] = None
    status: TranslationStatus = TranslationStatus.PENDING
    admin_comment: Optional[str] = None
    user_comment: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    user_id: str

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: object) -> TranslationStatus:
        return TranslationStatus.parse(value)

    @property
    def has_translation(self) -> bool:
        return self.status == TranslationStatus.COMPLETED and bool(self.translated_file_name)

    @property
    def last_modified(self) -> datetime:
        return self.updated_at or self.created_at

    def is_owned_by(self, user_id: str) -> bool:
        return str(self.user_id) == str(user_id)


class UserProfile(_BackendModel):
    """User profile returned by `/Auth/profile` and `/Auth/users`.

    The e-mail is kept as the backend stores it; only outgoing payloads
    validate addresses.
    """

    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    user_name: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or self.user_name


class AuthResponse(_BackendModel):
    """Successful login response."""

    token: str = Field(min_length=1)
    expiration: Optional[datetime] = None
    user_id: str
    email: str = ""
    roles: list[str] = Field(default_factory=list)


class ProfileUpdate(_BackendModel):
    first_name: str
    last_name: str
    email: EmailStr
    current_password: Optional[str] = None


class AdminUserUpdate(ProfileUpdate):
    user_id: str


class RegisterPayload(_BackendModel):
    first_name: str
    last_name: str
    email: EmailStr
    password: str
    confirm_password: str


class RequestUpdate(_BackendModel):
    """Metadata accepted by `PUT /TranslationRequest/{id}`."""

    id: str
    title: str
    description: Optional[str] = None
    source_language: str
    target_language: str
    user_comment: Optional[str] = None


class UploadedFile(BaseModel):
    """File content carried in a multipart upload."""

    file_name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        dot = self.file_name.rfind(".")
        return self.file_name[dot:].lower() if dot >= 0 else ""


class FileDownload(BaseModel):
    """Downloaded file bytes and the name suggested by the backend."""

    file_name: str
    content: bytes
    content_type: str = "application/octet-stream"
