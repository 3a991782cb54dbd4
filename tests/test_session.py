from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from web.config import settings
from web.domain.enums import ActorRole
from web.domain.models import AuthResponse
from web.session import Session, clear_session, load_session, save_session, token_expiry


def _token(exp: datetime | None) -> str:
    claims: dict = {"sub": "user-1"}
    if exp is not None:
        claims["exp"] = int(exp.timestamp())
    return jwt.encode(claims, "backend-secret", algorithm="HS256")


def test_token_expiry_reads_exp_claim() -> None:
    exp = datetime(2030, 1, 1, tzinfo=timezone.utc)

    assert token_expiry(_token(exp)) == exp


def test_token_expiry_without_claim_or_garbage() -> None:
    assert token_expiry(_token(None)) is None
    assert token_expiry("not-a-jwt") is None


def test_session_from_auth_response_prefers_expiration_field() -> None:
    auth = AuthResponse.model_validate(
        {
            "token": _token(datetime(2031, 1, 1, tzinfo=timezone.utc)),
            "expiration": "2030-06-01T12:00:00",
            "userId": "u-1",
            "email": "admin@example.com",
            "roles": ["Admin"],
        }
    )

    session = Session.from_auth_response(auth)

    assert session.expires_at == datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert session.is_admin
    assert session.role == ActorRole.ADMIN


def test_session_from_auth_response_falls_back_to_token_claim() -> None:
    exp = datetime(2030, 1, 1, tzinfo=timezone.utc)
    auth = AuthResponse.model_validate({"token": _token(exp), "userId": "u-1", "roles": ["User"]})

    session = Session.from_auth_response(auth)

    assert session.expires_at == exp
    assert session.role == ActorRole.OWNER


def test_expired_session_is_invalid() -> None:
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    session = Session(token="t", user_id="u", expires_at=now)

    assert session.is_expired(now)
    assert not session.is_valid(now)
    assert session.is_valid(now - timedelta(seconds=1))


def test_session_round_trips_through_store(owner_session) -> None:
    store: dict = {}

    save_session(store, owner_session)

    assert store[settings.session_token_key] == owner_session.token
    assert load_session(store) == owner_session

    clear_session(store)
    assert store == {}
    assert load_session(store) is None


def test_load_session_drops_expired(expired_session) -> None:
    store: dict = {}
    save_session(store, expired_session)

    assert load_session(store) is None


def test_load_session_drops_malformed() -> None:
    store = {settings.session_user_key: {"token": "t", "user_id": "u", "expires_at": "yesterday"}}

    assert load_session(store) is None
