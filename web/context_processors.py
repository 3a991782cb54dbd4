from __future__ import annotations

from typing import Any

from django.http import HttpRequest

from web.session import load_session


def portal_session(request: HttpRequest) -> dict[str, Any]:
    """Expose the signed-in portal session to templates (navigation)."""
    store = getattr(request, "session", None)
    session = load_session(store) if store is not None else None
    return {
        "portal_session": session,
        "is_admin": bool(session and session.is_admin),
    }
