from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import jwt

from web.config import settings
from web.domain.enums import ActorRole
from web.domain.models import AuthResponse

logger = logging.getLogger(__name__)

ADMIN_ROLE = "Admin"


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def token_expiry(token: str) -> Optional[datetime]:
    """Read the `exp` claim of a bearer token.

    The portal cannot verify the backend's signature; the claim is only used
    to stop sending tokens that are already expired.

    Args:
        token: Encoded JWT.

    Returns:
        datetime | None: Expiry in UTC, or None if the token has no readable claim.
    """
    try:
        payload: dict[str, Any] = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.PyJWTError:
        return None
    exp = payload.get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass(frozen=True)
class Session:
    """Authenticated caller passed explicitly into every backend call.

    Attributes:
        token: Bearer token issued by the backend.
        user_id: Id of the signed-in user.
        roles: Backend role names.
        email: E-mail used to sign in.
        expires_at: Token expiry (UTC), if known.
    """

    token: str
    user_id: str
    roles: tuple[str, ...] = field(default_factory=tuple)
    email: str = ""
    expires_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles

    @property
    def role(self) -> ActorRole:
        return ActorRole.ADMIN if self.is_admin else ActorRole.OWNER

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utc_now()) >= self.expires_at

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        return bool(self.token) and bool(self.user_id) and not self.is_expired(now)

    @classmethod
    def from_auth_response(cls, auth: AuthResponse) -> "Session":
        expires_at = auth.expiration
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return cls(
            token=auth.token,
            user_id=auth.user_id,
            roles=tuple(auth.roles),
            email=auth.email,
            expires_at=expires_at or token_expiry(auth.token),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "user_id": self.user_id,
            "roles": list(self.roles),
            "email": self.email,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        expires_raw = data.get("expires_at")
        return cls(
            token=str(data.get("token") or ""),
            user_id=str(data.get("user_id") or ""),
            roles=tuple(data.get("roles") or ()),
            email=str(data.get("email") or ""),
            expires_at=datetime.fromisoformat(expires_raw) if expires_raw else None,
        )


def load_session(store: Any) -> Optional[Session]:
    """Read the signed-in session from a Django session store.

    Args:
        store: `request.session` (any mapping).

    Returns:
        Session | None: The session, or None if missing or expired.
    """
    raw = store.get(settings.session_user_key)
    if not raw:
        return None
    try:
        session = Session.from_dict(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding malformed portal session")
        return None
    if not session.is_valid():
        return None
    return session


def save_session(store: Any, session: Session) -> None:
    store[settings.session_user_key] = session.to_dict()
    store[settings.session_token_key] = session.token


def clear_session(store: Any) -> None:
    store.pop(settings.session_user_key, None)
    store.pop(settings.session_token_key, None)
