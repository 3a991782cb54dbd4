from __future__ import annotations

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class PortalSettings(BaseSettings):
    """Portal configuration loaded from environment variables.

    Values can be provided via environment variables prefixed with
    ``PORTAL_`` or a local `.env` file.

    Attributes:
        api_base_url: Base URL of the translation backend (including `/api`).
        request_timeout_seconds: Timeout for JSON calls.
        upload_timeout_seconds: Timeout for multipart uploads and downloads.
        max_upload_mb: Maximum upload size in megabytes.
        allowed_extensions: File extensions accepted by the backend.
        languages: Languages offered in the request form.
        session_token_key: Django session key holding the bearer token.
        session_user_key: Django session key holding the signed-in user.
    """

    model_config = SettingsConfigDict(env_prefix="PORTAL_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Backend
    api_base_url: str = "http://localhost:5000/api"
    request_timeout_seconds: float = 10
    upload_timeout_seconds: float = 30

    # Uploads
    max_upload_mb: int = 10
    allowed_extensions: Annotated[tuple[str, ...], NoDecode] = (".txt", ".doc", ".docx", ".pdf")

    # Request form
    languages: Annotated[tuple[str, ...], NoDecode] = (
        "English",
        "Spanish",
        "French",
        "German",
        "Japanese",
        "Chinese",
        "Arabic",
    )

    # Session
    session_token_key: str = "access_token"
    session_user_key: str = "user"

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def _split_extensions(cls, value: object) -> object:
        if isinstance(value, str):
            return tuple(e.strip().lower() for e in value.split(",") if e.strip())
        return value

    @field_validator("languages", mode="before")
    @classmethod
    def _split_languages(cls, value: object) -> object:
        if isinstance(value, str):
            return tuple(v.strip() for v in value.split(",") if v.strip())
        return value


settings = PortalSettings()
