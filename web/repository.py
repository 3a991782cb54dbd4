from __future__ import annotations

import logging
from types import ModuleType
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError

from web import backend_client
from web.domain.enums import ActorRole, RequestAction
from web.domain.errors import BackendResponse, ErrorKind
from web.domain.models import FileDownload, RequestUpdate, TranslationRequest, UploadedFile
from web.session import Session
from web.workflow import constraints
from web.workflow.transitions import can_transition

logger = logging.getLogger(__name__)

USER_BASE = "/TranslationRequest"
ADMIN_BASE = "/admin/Translation"


def _parse_request(resp: BackendResponse[Any]) -> BackendResponse[TranslationRequest]:
    if not resp.ok:
        return resp  # type: ignore[return-value]
    try:
        item = TranslationRequest.model_validate(resp.data)
    except ValidationError as e:
        logger.error("Unexpected translation request payload", extra={"status": resp.status, "error": str(e)})
        return BackendResponse.failure(ErrorKind.NETWORK_ERROR, "Unexpected response from backend.", status=resp.status)
    return BackendResponse.success(item, status=resp.status or 200, headers=resp.headers)


def _parse_request_list(resp: BackendResponse[Any]) -> BackendResponse[list[TranslationRequest]]:
    if not resp.ok:
        return resp  # type: ignore[return-value]
    try:
        items = [TranslationRequest.model_validate(r) for r in (resp.data or [])]
    except (ValidationError, TypeError) as e:
        logger.error("Unexpected translation request list payload", extra={"status": resp.status, "error": str(e)})
        return BackendResponse.failure(ErrorKind.NETWORK_ERROR, "Unexpected response from backend.", status=resp.status)
    return BackendResponse.success(items, status=resp.status or 200)


class TranslationRequestRepository:
    """Client for translation requests on the backend.

    Every state-changing call is checked locally first: a missing or expired
    session, an illegal transition for the request's last known status, a
    missing rejection comment or a field constraint violation is returned as
    an error result without any network traffic. Otherwise exactly one HTTP
    request is sent and the backend's copy of the request is returned; the
    new status is never computed locally.

    Args:
        session: Signed-in caller (None when signed out).
        client: Transport module, `web.backend_client` by default.
    """

    def __init__(self, session: Optional[Session], client: ModuleType | Any = backend_client) -> None:
        self._session = session
        self._client = client

    # -- pre-flight -------------------------------------------------------

    def _auth_error(self) -> Optional[BackendResponse[Any]]:
        if self._session is None or not self._session.is_valid():
            return BackendResponse.failure(ErrorKind.UNAUTHENTICATED, "User is not authenticated.")
        return None

    def _admin_error(self) -> Optional[BackendResponse[Any]]:
        err = self._auth_error()
        if err is not None:
            return err
        if not self._session.is_admin:  # type: ignore[union-attr]
            return BackendResponse.failure(ErrorKind.UNAUTHENTICATED, "Administrator role required.")
        return None

    def _guard(
        self,
        request: TranslationRequest,
        action: RequestAction,
        *,
        comment: Optional[str] = None,
    ) -> Optional[BackendResponse[Any]]:
        err = self._auth_error()
        if err is not None:
            return err

        session: Session = self._session  # type: ignore[assignment]
        role = session.role
        decision = can_transition(request.status, role, action, comment=comment)
        # A blank rejection comment is reported before ownership.
        if decision.error != ErrorKind.MISSING_COMMENT and role == ActorRole.OWNER and not request.is_owned_by(session.user_id):
            return BackendResponse.failure(ErrorKind.INVALID_TRANSITION, "You can only act on your own requests.")

        if not decision.allowed:
            logger.info(
                "Transition denied locally",
                extra={"request_id": request.id, "action": action.value, "reason": decision.error},
            )
            return BackendResponse.failure(decision.error or ErrorKind.INVALID_TRANSITION, decision.reason or "")
        return None

    @staticmethod
    def _validate(rules: tuple[constraints.FieldConstraint, ...], values: Mapping[str, Any]) -> Optional[BackendResponse[Any]]:
        issues = constraints.validate(rules, values)
        if issues:
            return BackendResponse.failure(ErrorKind.VALIDATION_ERROR, constraints.summarize(issues), issues=issues)
        return None

    @property
    def _token(self) -> str:
        return self._session.token  # type: ignore[union-attr]

    def _base(self) -> str:
        return ADMIN_BASE if self._session is not None and self._session.is_admin else USER_BASE

    # -- owner operations -------------------------------------------------

    def create(
        self,
        *,
        title: str,
        source_language: str,
        target_language: str,
        file: Optional[UploadedFile],
        description: Optional[str] = None,
        user_comment: Optional[str] = None,
    ) -> BackendResponse[TranslationRequest]:
        """Submit a new document for translation (status Pending)."""
        err = self._auth_error()
        if err is not None:
            return err

        fields = {
            "Title": title,
            "Description": description,
            "SourceLanguage": source_language,
            "TargetLanguage": target_language,
            "UserComment": user_comment,
        }
        err = self._validate(constraints.CREATE_REQUEST, {**fields, "File": file})
        if err is not None:
            return err

        resp = self._client.request_multipart(
            method="POST",
            path=USER_BASE,
            token=self._token,
            fields=fields,
            files={"File": file},
            fallback_error="Failed to create translation request",
        )
        result = _parse_request(resp)
        if result.ok:
            logger.info("Translation request created", extra={"request_id": result.data.id})  # type: ignore[union-attr]
        return result

    def list_mine(self) -> BackendResponse[list[TranslationRequest]]:
        err = self._auth_error()
        if err is not None:
            return err
        return _parse_request_list(self._client.request_json(method="GET", path=USER_BASE, token=self._token))

    def get(self, request_id: str) -> BackendResponse[TranslationRequest]:
        """Fetch one request; admins use the unscoped admin endpoint."""
        err = self._auth_error()
        if err is not None:
            return err
        return _parse_request(
            self._client.request_json(
                method="GET",
                path=f"{self._base()}/{request_id}",
                token=self._token,
                fallback_error="Translation request not found",
            )
        )

    def modify(
        self,
        request: TranslationRequest,
        *,
        title: str,
        source_language: str,
        target_language: str,
        description: Optional[str] = None,
        user_comment: Optional[str] = None,
    ) -> BackendResponse[TranslationRequest]:
        """Update request metadata (the file cannot be changed here)."""
        err = self._guard(request, RequestAction.MODIFY)
        if err is not None:
            return err

        update = RequestUpdate(
            id=request.id,
            title=title,
            description=description,
            source_language=source_language,
            target_language=target_language,
            user_comment=user_comment,
        )
        err = self._validate(
            constraints.UPDATE_REQUEST,
            {
                "Title": update.title,
                "Description": update.description,
                "SourceLanguage": update.source_language,
                "TargetLanguage": update.target_language,
                "UserComment": update.user_comment,
            },
        )
        if err is not None:
            return err

        return self._transition(
            request,
            RequestAction.MODIFY,
            lambda: self._client.request_json(
                method="PUT",
                path=f"{USER_BASE}/{request.id}",
                token=self._token,
                payload=update.model_dump(by_alias=True, mode="json"),
                fallback_error="Failed to update translation request",
            ),
        )

    def delete(self, request: TranslationRequest) -> BackendResponse[None]:
        err = self._guard(request, RequestAction.DELETE)
        if err is not None:
            return err

        resp = self._client.request_json(
            method="DELETE",
            path=f"{USER_BASE}/{request.id}",
            token=self._token,
            fallback_error="Failed to delete translation request",
        )
        if resp.ok:
            logger.info("Translation request deleted", extra={"request_id": request.id})
            return BackendResponse.success(None, status=resp.status or 204)
        return resp

    def resubmit(
        self,
        request: TranslationRequest,
        *,
        file: Optional[UploadedFile] = None,
        user_comment: Optional[str] = None,
    ) -> BackendResponse[TranslationRequest]:
        """Resubmit a rejected request, optionally with a replacement file."""
        err = self._guard(request, RequestAction.RESUBMIT)
        if err is not None:
            return err
        err = self._validate(constraints.RESUBMIT_REQUEST, {"UserComment": user_comment, "File": file})
        if err is not None:
            return err

        return self._transition(
            request,
            RequestAction.RESUBMIT,
            lambda: self._client.request_multipart(
                method="POST",
                path=f"{USER_BASE}/{request.id}/resubmit",
                token=self._token,
                fields={"UserComment": user_comment or ""},
                files={"File": file} if file is not None else {},
                fallback_error="Failed to resubmit translation request",
            ),
        )

    # -- admin operations -------------------------------------------------

    def list_all(self) -> BackendResponse[list[TranslationRequest]]:
        err = self._admin_error()
        if err is not None:
            return err
        return _parse_request_list(self._client.request_json(method="GET", path=ADMIN_BASE, token=self._token))

    def approve(self, request: TranslationRequest, comment: Optional[str] = None) -> BackendResponse[TranslationRequest]:
        err = self._guard(request, RequestAction.APPROVE)
        if err is not None:
            return err
        err = self._validate(constraints.ADMIN_COMMENT, {"Comment": comment})
        if err is not None:
            return err

        return self._transition(
            request,
            RequestAction.APPROVE,
            lambda: self._client.request_json(
                method="POST",
                path=f"{ADMIN_BASE}/{request.id}/approve",
                token=self._token,
                payload={"comment": comment or None},
                fallback_error="Failed to approve translation request",
            ),
        )

    def reject(self, request: TranslationRequest, comment: Optional[str]) -> BackendResponse[TranslationRequest]:
        err = self._guard(request, RequestAction.REJECT, comment=comment or "")
        if err is not None:
            return err
        err = self._validate(constraints.ADMIN_COMMENT, {"Comment": comment})
        if err is not None:
            return err

        return self._transition(
            request,
            RequestAction.REJECT,
            lambda: self._client.request_json(
                method="POST",
                path=f"{ADMIN_BASE}/{request.id}/reject",
                token=self._token,
                payload={"comment": (comment or "").strip()},
                fallback_error="Failed to reject translation request",
            ),
        )

    def complete(
        self,
        request: TranslationRequest,
        *,
        file: Optional[UploadedFile],
        admin_comment: Optional[str] = None,
    ) -> BackendResponse[TranslationRequest]:
        """Attach the translated file and mark the request Completed."""
        err = self._guard(request, RequestAction.COMPLETE)
        if err is not None:
            return err
        err = self._validate(constraints.COMPLETE_REQUEST, {"File": file, "AdminComment": admin_comment})
        if err is not None:
            return err

        return self._transition(
            request,
            RequestAction.COMPLETE,
            lambda: self._client.request_multipart(
                method="POST",
                path=f"{ADMIN_BASE}/{request.id}/complete",
                token=self._token,
                fields={"AdminComment": admin_comment},
                files={"File": file},
                fallback_error="Failed to complete translation request",
            ),
        )

    # -- shared -----------------------------------------------------------

    def _transition(
        self,
        request: TranslationRequest,
        action: RequestAction,
        send: Callable[[], BackendResponse[Any]],
    ) -> BackendResponse[TranslationRequest]:
        result = _parse_request(send())
        if result.ok:
            logger.info(
                "Translation request transitioned",
                extra={
                    "request_id": request.id,
                    "action": action.value,
                    "from_status": request.status.label,
                    "to_status": result.data.status.label,  # type: ignore[union-attr]
                },
            )
        else:
            logger.warning(
                "Translation request transition failed",
                extra={"request_id": request.id, "action": action.value, "kind": result.error.kind.value},  # type: ignore[union-attr]
            )
        return result

    def perform(
        self,
        action: RequestAction,
        request: TranslationRequest,
        payload: Mapping[str, Any] | None = None,
    ) -> BackendResponse[Any]:
        """Run a lifecycle action by name.

        Args:
            action: Action to perform.
            request: Last known snapshot of the request.
            payload: Action data: `comment`, `file`, `title`, `description`,
                `source_language`, `target_language`, `user_comment`.

        Returns:
            BackendResponse: Updated request (None for delete) or an error.
        """
        data = dict(payload or {})
        if action == RequestAction.APPROVE:
            return self.approve(request, data.get("comment"))
        if action == RequestAction.REJECT:
            return self.reject(request, data.get("comment"))
        if action == RequestAction.COMPLETE:
            return self.complete(request, file=data.get("file"), admin_comment=data.get("comment"))
        if action == RequestAction.RESUBMIT:
            return self.resubmit(request, file=data.get("file"), user_comment=data.get("user_comment"))
        if action == RequestAction.DELETE:
            return self.delete(request)
        return self.modify(
            request,
            title=data.get("title", request.title),
            source_language=data.get("source_language", request.source_language),
            target_language=data.get("target_language", request.target_language),
            description=data.get("description", request.description),
            user_comment=data.get("user_comment", request.user_comment),
        )

    def download_original(self, request_id: str) -> BackendResponse[FileDownload]:
        err = self._auth_error()
        if err is not None:
            return err
        return self._client.download(
            path=f"{self._base()}/{request_id}/download-original",
            token=self._token,
            default_name="downloaded-file",
        )

    def download_translated(self, request_id: str) -> BackendResponse[FileDownload]:
        err = self._auth_error()
        if err is not None:
            return err
        return self._client.download(
            path=f"{self._base()}/{request_id}/download-translated",
            token=self._token,
            default_name="translated-file",
        )
