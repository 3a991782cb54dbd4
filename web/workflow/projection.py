from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from web.domain.enums import ActorRole, RequestAction, TranslationStatus, ViewAction
from web.workflow.transitions import allowed_actions, requires_comment


@dataclass(frozen=True)
class UiAction:
    """A user-facing action a template can render as a button or link.

    Attributes:
        action: Affordance identifier.
        label: Button text.
        url_name: Django URL name taking `request_id`.
        method: "get" for links, "post" for form submissions.
        requires_comment: The target form must collect a non-empty comment.
        requires_file: The target form must collect a file.
        style: Visual variant ("primary", "secondary", "danger").
    """

    action: ViewAction
    label: str
    url_name: str
    method: str = "get"
    requires_comment: bool = False
    requires_file: bool = False
    style: str = "secondary"

    def with_style(self, style: str) -> "UiAction":
        return replace(self, style=style)


@dataclass(frozen=True)
class ActionSet:
    primary: Optional[UiAction] = None
    secondary: tuple[UiAction, ...] = field(default_factory=tuple)

    def __iter__(self):
        if self.primary is not None:
            yield self.primary
        yield from self.secondary

    def __contains__(self, action: object) -> bool:
        return any(a.action == action for a in self)


_DESTRUCTIVE = frozenset({ViewAction.DELETE})
_TRANSITION_VALUES = frozenset(a.value for a in RequestAction)

_OWNER_URLS: dict[ViewAction, str] = {
    ViewAction.MODIFY: "request_modify",
    ViewAction.RESUBMIT: "request_resubmit",
    ViewAction.DELETE: "request_delete",
    ViewAction.DOWNLOAD_ORIGINAL: "request_download_original",
    ViewAction.DOWNLOAD_TRANSLATED: "request_download_translated",
}

_ADMIN_URLS: dict[ViewAction, str] = {
    ViewAction.APPROVE: "admin_request_approve",
    ViewAction.REJECT: "admin_request_reject",
    ViewAction.COMPLETE: "admin_request_complete",
    ViewAction.DOWNLOAD_ORIGINAL: "admin_download_original",
    ViewAction.DOWNLOAD_TRANSLATED: "admin_download_translated",
}

_LABELS: dict[ViewAction, str] = {
    ViewAction.APPROVE: "Approve",
    ViewAction.REJECT: "Reject",
    ViewAction.COMPLETE: "Complete",
    ViewAction.MODIFY: "Modify",
    ViewAction.RESUBMIT: "Resubmit",
    ViewAction.DELETE: "Delete",
    ViewAction.DOWNLOAD_ORIGINAL: "Download original",
    ViewAction.DOWNLOAD_TRANSLATED: "Download translation",
}

_BADGES: dict[TranslationStatus, str] = {
    TranslationStatus.PENDING: "warning",
    TranslationStatus.APPROVED: "info",
    TranslationStatus.COMPLETED: "success",
    TranslationStatus.REJECTED: "danger",
    TranslationStatus.RESUBMITTED: "secondary",
}


def _ui_action(action: ViewAction, role: ActorRole) -> UiAction:
    urls = _ADMIN_URLS if role == ActorRole.ADMIN else _OWNER_URLS
    transition = RequestAction(action.value) if action.value in _TRANSITION_VALUES else None
    return UiAction(
        action=action,
        label=_LABELS[action],
        url_name=urls[action],
        method="post" if action == ViewAction.DELETE else "get",
        requires_comment=transition is not None and requires_comment(transition),
        requires_file=action == ViewAction.COMPLETE,
        style="danger" if action in _DESTRUCTIVE else "secondary",
    )


def project_actions(current: TranslationStatus, role: ActorRole) -> ActionSet:
    """Map (status, role) to the ordered actions a page should render.

    The first legal transition becomes the primary action. Downloads follow
    the remaining transitions and destructive actions always come last.
    Completed requests lead with the translated download.
    """
    transitions = [ViewAction(a.value) for a in allowed_actions(current, role)]
    downloads = [ViewAction.DOWNLOAD_ORIGINAL]
    if current == TranslationStatus.COMPLETED:
        downloads.insert(0, ViewAction.DOWNLOAD_TRANSLATED)

    ordered = [a for a in transitions if a not in _DESTRUCTIVE] + downloads + [a for a in transitions if a in _DESTRUCTIVE]

    if transitions or current == TranslationStatus.COMPLETED:
        head, rest = ordered[0], ordered[1:]
        primary: Optional[UiAction] = _ui_action(head, role).with_style("primary")
    else:
        primary, rest = None, ordered

    return ActionSet(primary=primary, secondary=tuple(_ui_action(a, role) for a in rest))


def status_badge(status: TranslationStatus) -> tuple[str, str]:
    """Return (label, badge variant) used by request tables."""
    return status.label, _BADGES[status]
