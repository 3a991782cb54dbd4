"""Translation request lifecycle: transition table and guard.

The table is the single source of truth for who may move a request between
states. The guard is a pure function over it, used both to decide which
actions the UI offers and as a pre-flight check before any backend call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from web.domain.enums import ActorRole, RequestAction, TranslationStatus
from web.domain.errors import ErrorKind

S = TranslationStatus
A = RequestAction


@dataclass(frozen=True)
class Transition:
    """One legal row of the transition table.

    Attributes:
        current: Status the request must be in.
        role: Actor allowed to perform the action.
        action: The action.
        target: Nominal resulting status (None when the request is removed).
    """

    current: TranslationStatus
    role: ActorRole
    action: RequestAction
    target: Optional[TranslationStatus]


# Order matters: the view projection renders actions in table order.
TRANSITIONS: tuple[Transition, ...] = (
    Transition(S.PENDING, ActorRole.ADMIN, A.APPROVE, S.APPROVED),
    Transition(S.PENDING, ActorRole.ADMIN, A.REJECT, S.REJECTED),
    Transition(S.PENDING, ActorRole.OWNER, A.MODIFY, S.PENDING),
    Transition(S.PENDING, ActorRole.OWNER, A.DELETE, None),
    Transition(S.REJECTED, ActorRole.OWNER, A.RESUBMIT, S.RESUBMITTED),
    Transition(S.REJECTED, ActorRole.OWNER, A.MODIFY, S.RESUBMITTED),
    Transition(S.APPROVED, ActorRole.ADMIN, A.COMPLETE, S.COMPLETED),
    Transition(S.RESUBMITTED, ActorRole.ADMIN, A.APPROVE, S.APPROVED),
    Transition(S.RESUBMITTED, ActorRole.ADMIN, A.REJECT, S.REJECTED),
)

_INDEX: dict[tuple[TranslationStatus, ActorRole, RequestAction], Transition] = {
    (t.current, t.role, t.action): t for t in TRANSITIONS
}

TERMINAL_STATES: frozenset[TranslationStatus] = frozenset(
    s for s in TranslationStatus if not any(t.current == s for t in TRANSITIONS)
)


@dataclass(frozen=True)
class TransitionDecision:
    """Outcome of a guard evaluation.

    Attributes:
        allowed: Whether the action may be sent to the backend.
        reason: Message explaining a denial.
        error: Error category of a denial.
        target: Nominal resulting status for allowed actions.
    """

    allowed: bool
    reason: Optional[str] = None
    error: Optional[ErrorKind] = None
    target: Optional[TranslationStatus] = None


def requires_comment(action: RequestAction) -> bool:
    return action == RequestAction.REJECT


def can_transition(
    current: TranslationStatus,
    role: ActorRole,
    action: RequestAction,
    *,
    comment: Optional[str] = None,
) -> TransitionDecision:
    """Decide whether `role` may perform `action` on a request in `current`.

    Args:
        current: Last known status of the request.
        role: Actor role.
        action: Requested action.
        comment: Comment the caller intends to send. When given for a
            `reject`, a blank value is denied with MissingComment before the
            table is consulted. None skips the comment check.

    Returns:
        TransitionDecision: allowed/denied with reason and error category.
    """
    if requires_comment(action) and comment is not None and not comment.strip():
        return TransitionDecision(
            allowed=False,
            reason="Comment is required when rejecting a request.",
            error=ErrorKind.MISSING_COMMENT,
        )

    row = _INDEX.get((current, role, action))
    if row is None:
        return TransitionDecision(
            allowed=False,
            reason=f"Cannot {action.value} a request with status {current.label} as {role.value.lower()}.",
            error=ErrorKind.INVALID_TRANSITION,
        )

    return TransitionDecision(allowed=True, target=row.target)


def allowed_actions(current: TranslationStatus, role: ActorRole) -> list[RequestAction]:
    """Return the legal actions for (status, role) in table order."""
    return [t.action for t in TRANSITIONS if t.current == current and t.role == role]


def is_terminal(status: TranslationStatus) -> bool:
    return status in TERMINAL_STATES
