from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from uuid import uuid4

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "portal.settings")
django.setup()

from web.domain.enums import TranslationStatus  # noqa: E402
from web.domain.models import TranslationRequest, UploadedFile  # noqa: E402
from web.session import Session  # noqa: E402

OWNER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_ID = "22222222-2222-2222-2222-222222222222"
ADMIN_ID = "99999999-9999-9999-9999-999999999999"


def _future() -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=1)


@pytest.fixture
def owner_session() -> Session:
    return Session(token="owner-token", user_id=OWNER_ID, roles=("User",), email="owner@example.com", expires_at=_future())


@pytest.fixture
def admin_session() -> Session:
    return Session(token="admin-token", user_id=ADMIN_ID, roles=("Admin",), email="admin@example.com", expires_at=_future())


@pytest.fixture
def expired_session() -> Session:
    return Session(
        token="old-token",
        user_id=OWNER_ID,
        roles=("User",),
        expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
    )


def request_payload(status: TranslationStatus = TranslationStatus.PENDING, **overrides: Any) -> dict[str, Any]:
    """Backend-shaped (camelCase) translation request body."""
    body: dict[str, Any] = {
        "id": str(uuid4()),
        "title": "Contract",
        "description": "Rental contract",
        "sourceLanguage": "English",
        "targetLanguage": "German",
        "originalFileName": "contract.pdf",
        "storedFileName": "a1b2c3.pdf",
        "translatedFileName": None,
        "status": int(status),
        "adminComment": None,
        "userComment": None,
        "createdAt": "2026-01-05T10:00:00Z",
        "updatedAt": None,
        "completedAt": None,
        "userId": OWNER_ID,
    }
    body.update(overrides)
    return body


@pytest.fixture
def make_request() -> Callable[..., TranslationRequest]:
    """Factory building TranslationRequest snapshots from backend-shaped bodies."""

    def _make(status: TranslationStatus = TranslationStatus.PENDING, **overrides: Any) -> TranslationRequest:
        return TranslationRequest.model_validate(request_payload(status, **overrides))

    return _make


@pytest.fixture
def pdf_file() -> UploadedFile:
    return UploadedFile(file_name="contract.pdf", content=b"%PDF-1.4 test", content_type="application/pdf")
