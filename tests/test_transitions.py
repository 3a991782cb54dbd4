from __future__ import annotations

import itertools

import pytest

from web.domain.enums import ActorRole, RequestAction, TranslationStatus
from web.domain.errors import ErrorKind
from web.workflow.transitions import (
    TERMINAL_STATES,
    TRANSITIONS,
    allowed_actions,
    can_transition,
    is_terminal,
)

S = TranslationStatus
A = RequestAction

_LEGAL = {
    (S.PENDING, ActorRole.ADMIN, A.APPROVE): S.APPROVED,
    (S.PENDING, ActorRole.ADMIN, A.REJECT): S.REJECTED,
    (S.PENDING, ActorRole.OWNER, A.MODIFY): S.PENDING,
    (S.PENDING, ActorRole.OWNER, A.DELETE): None,
    (S.REJECTED, ActorRole.OWNER, A.RESUBMIT): S.RESUBMITTED,
    (S.REJECTED, ActorRole.OWNER, A.MODIFY): S.RESUBMITTED,
    (S.APPROVED, ActorRole.ADMIN, A.COMPLETE): S.COMPLETED,
    (S.RESUBMITTED, ActorRole.ADMIN, A.APPROVE): S.APPROVED,
    (S.RESUBMITTED, ActorRole.ADMIN, A.REJECT): S.REJECTED,
}


@pytest.mark.parametrize(
    "status, role, action",
    list(itertools.product(TranslationStatus, ActorRole, RequestAction)),
)
def test_guard_matches_transition_table(status, role, action) -> None:
    """Every (status, role, action) triple is allowed iff it is a table row.

    Rejections are evaluated with a non-empty comment so only the table
    decides the outcome.
    """
    decision = can_transition(status, role, action, comment="Looks wrong")

    key = (status, role, action)
    if key in _LEGAL:
        assert decision.allowed
        assert decision.target == _LEGAL[key]
        assert decision.error is None
    else:
        assert not decision.allowed
        assert decision.error == ErrorKind.INVALID_TRANSITION
        assert decision.reason


def test_table_has_exactly_the_legal_rows() -> None:
    assert {(t.current, t.role, t.action): t.target for t in TRANSITIONS} == _LEGAL


def test_no_transition_reenters_pending() -> None:
    """Only an owner modify of a Pending request stays Pending."""
    for t in TRANSITIONS:
        if t.target == S.PENDING:
            assert t.current == S.PENDING and t.action == A.MODIFY


@pytest.mark.parametrize("comment", ["", "   ", "\n\t"])
def test_reject_requires_non_blank_comment(comment) -> None:
    decision = can_transition(S.PENDING, ActorRole.ADMIN, A.REJECT, comment=comment)

    assert not decision.allowed
    assert decision.error == ErrorKind.MISSING_COMMENT
    assert decision.reason == "Comment is required when rejecting a request."


def test_reject_without_comment_argument_checks_table_only() -> None:
    assert can_transition(S.RESUBMITTED, ActorRole.ADMIN, A.REJECT).allowed


def test_approve_comment_is_optional() -> None:
    assert can_transition(S.PENDING, ActorRole.ADMIN, A.APPROVE, comment="").allowed
    assert can_transition(S.PENDING, ActorRole.ADMIN, A.APPROVE).allowed


def test_guard_is_pure() -> None:
    """Repeated evaluation with the same inputs gives equal decisions."""
    first = can_transition(S.APPROVED, ActorRole.OWNER, A.DELETE)
    second = can_transition(S.APPROVED, ActorRole.OWNER, A.DELETE)

    assert first == second


def test_denial_reason_names_action_status_and_role() -> None:
    decision = can_transition(S.APPROVED, ActorRole.OWNER, A.DELETE)

    assert decision.reason == "Cannot delete a request with status Approved as owner."


def test_completed_is_the_only_terminal_state() -> None:
    assert TERMINAL_STATES == frozenset({S.COMPLETED})
    assert is_terminal(S.COMPLETED)
    assert not is_terminal(S.APPROVED)

    for role, action in itertools.product(ActorRole, RequestAction):
        assert not can_transition(S.COMPLETED, role, action, comment="x").allowed


def test_admin_cannot_reject_approved_request() -> None:
    """Scenario: an approved request awaits completion and cannot be rejected."""
    decision = can_transition(S.APPROVED, ActorRole.ADMIN, A.REJECT, comment="too late")

    assert not decision.allowed
    assert decision.error == ErrorKind.INVALID_TRANSITION


def test_allowed_actions_follow_table_order() -> None:
    assert allowed_actions(S.PENDING, ActorRole.ADMIN) == [A.APPROVE, A.REJECT]
    assert allowed_actions(S.PENDING, ActorRole.OWNER) == [A.MODIFY, A.DELETE]
    assert allowed_actions(S.REJECTED, ActorRole.OWNER) == [A.RESUBMIT, A.MODIFY]
    assert allowed_actions(S.REJECTED, ActorRole.ADMIN) == []
    assert allowed_actions(S.COMPLETED, ActorRole.OWNER) == []


@pytest.mark.parametrize(
    "raw, expected",
    [(0, S.PENDING), ("2", S.COMPLETED), ("Rejected", S.REJECTED), ("resubmitted", S.RESUBMITTED), (S.APPROVED, S.APPROVED)],
)
def test_status_parse_accepts_numbers_and_names(raw, expected) -> None:
    assert TranslationStatus.parse(raw) == expected


def test_status_parse_rejects_unknown_name() -> None:
    with pytest.raises(ValueError):
        TranslationStatus.parse("archived")
