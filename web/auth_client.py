from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from web import backend_client
from web.domain.errors import BackendResponse, ErrorKind
from web.domain.models import AdminUserUpdate, AuthResponse, ProfileUpdate, RegisterPayload, UserProfile
from web.session import Session
from web.workflow import constraints

logger = logging.getLogger(__name__)


def _unauthenticated(session: Optional[Session], *, admin: bool = False) -> Optional[BackendResponse[Any]]:
    if session is None or not session.is_valid():
        return BackendResponse.failure(ErrorKind.UNAUTHENTICATED, "User is not authenticated.")
    if admin and not session.is_admin:
        return BackendResponse.failure(ErrorKind.UNAUTHENTICATED, "Administrator role required.")
    return None


def _invalid(rules: tuple[constraints.FieldConstraint, ...], values: dict[str, Any]) -> Optional[BackendResponse[Any]]:
    issues = constraints.validate(rules, values)
    if issues:
        return BackendResponse.failure(ErrorKind.VALIDATION_ERROR, "Invalid fields provided.", issues=issues)
    return None


def _parse(model: type, resp: BackendResponse[Any], *, key: str | None = None) -> BackendResponse[Any]:
    """Validate a success body into `model` (optionally nested under `key`)."""
    if not resp.ok:
        return resp
    body = resp.data
    if key is not None and isinstance(body, dict):
        body = body.get(key, body)
    try:
        if isinstance(body, list):
            parsed: Any = [model.model_validate(item) for item in body]
        else:
            parsed = model.model_validate(body)
    except ValidationError as e:
        logger.error("Unexpected auth payload", extra={"model": model.__name__, "error": str(e)})
        return BackendResponse.failure(ErrorKind.NETWORK_ERROR, "Unexpected response from backend.", status=resp.status)
    return BackendResponse.success(parsed, status=resp.status or 200)


def login(*, email: str, password: str) -> BackendResponse[Session]:
    """Log in with e-mail and password and build a Session from the token."""
    err = _invalid(constraints.LOGIN, {"Email": email, "Password": password})
    if err is not None:
        return err

    resp = backend_client.request_json(
        method="POST",
        path="/Auth/login",
        payload={"email": email, "password": password},
        fallback_error="Login failed",
    )
    parsed = _parse(AuthResponse, resp)
    if not parsed.ok:
        logger.info("Login rejected", extra={"status": resp.status})
        return parsed

    session = Session.from_auth_response(parsed.data)
    logger.info("User logged in", extra={"user_id": session.user_id, "admin": session.is_admin})
    return BackendResponse.success(session, status=parsed.status or 200)


def register(payload: RegisterPayload) -> BackendResponse[dict[str, Any]]:
    """Register a new account.

    Args:
        payload: Registration data (password confirmation included).

    Returns:
        BackendResponse: Backend message on success.
    """
    err = _invalid(
        constraints.REGISTER,
        {
            "FirstName": payload.first_name,
            "LastName": payload.last_name,
            "Email": payload.email,
            "Password": payload.password,
        },
    )
    if err is not None:
        return err
    if payload.password != payload.confirm_password:
        return BackendResponse.failure(
            ErrorKind.VALIDATION_ERROR,
            "Passwords don't match",
            issues={"ConfirmPassword": ["Passwords don't match"]},
        )

    return backend_client.request_json(
        method="POST",
        path="/Auth/register",
        payload=payload.model_dump(by_alias=True, mode="json"),
        fallback_error="Registration failed",
    )


def get_profile(session: Optional[Session]) -> BackendResponse[UserProfile]:
    err = _unauthenticated(session)
    if err is not None:
        return err
    return _parse(UserProfile, backend_client.request_json(method="GET", path="/Auth/profile", token=session.token))  # type: ignore[union-attr]


def update_profile(session: Optional[Session], update: ProfileUpdate) -> BackendResponse[UserProfile]:
    """Update the signed-in user's profile; returns the updated profile."""
    err = _unauthenticated(session)
    if err is not None:
        return err
    err = _invalid(constraints.PROFILE, {"FirstName": update.first_name, "LastName": update.last_name, "Email": update.email})
    if err is not None:
        return err

    resp = backend_client.request_json(
        method="PUT",
        path="/Auth/profile",
        token=session.token,  # type: ignore[union-attr]
        payload=update.model_dump(by_alias=True, mode="json", exclude_none=True),
        fallback_error="Failed to update profile",
    )
    return _parse(UserProfile, resp, key="user")


def list_users(session: Optional[Session]) -> BackendResponse[list[UserProfile]]:
    """List all users (administrators only)."""
    err = _unauthenticated(session, admin=True)
    if err is not None:
        return err
    return _parse(UserProfile, backend_client.request_json(method="GET", path="/Auth/users", token=session.token))  # type: ignore[union-attr]


def get_user(session: Optional[Session], user_id: str) -> BackendResponse[UserProfile]:
    err = _unauthenticated(session, admin=True)
    if err is not None:
        return err
    return _parse(
        UserProfile,
        backend_client.request_json(
            method="GET",
            path=f"/Auth/users/{user_id}",
            token=session.token,  # type: ignore[union-attr]
            fallback_error="User not found.",
        ),
    )


def update_user(session: Optional[Session], update: AdminUserUpdate) -> BackendResponse[UserProfile]:
    """Update any user's profile (administrators only).

    The backend takes the target id in the body, not the path.
    """
    err = _unauthenticated(session, admin=True)
    if err is not None:
        return err
    err = _invalid(constraints.PROFILE, {"FirstName": update.first_name, "LastName": update.last_name, "Email": update.email})
    if err is not None:
        return err

    resp = backend_client.request_json(
        method="PUT",
        path="/Auth/users",
        token=session.token,  # type: ignore[union-attr]
        payload=update.model_dump(by_alias=True, mode="json", exclude_none=True),
        fallback_error="Failed to update user",
    )
    return _parse(UserProfile, resp, key="user")
