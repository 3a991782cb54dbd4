from __future__ import annotations

from typing import Any

import pytest

from tests.conftest import OTHER_ID, request_payload
from web.domain.enums import RequestAction, TranslationStatus
from web.domain.errors import BackendResponse, ErrorKind
from web.domain.models import FileDownload, UploadedFile
from web.repository import ADMIN_BASE, USER_BASE, TranslationRequestRepository

S = TranslationStatus


class _ClientFake:
    """In-memory fake of the `web.backend_client` transport.

    Records every call and answers with a queued BackendResponse, or with a
    default success echoing nothing.
    """

    def __init__(self, *responses: BackendResponse[Any]) -> None:
        self.calls: list[dict[str, Any]] = []
        self._responses = list(responses)

    def _next(self) -> BackendResponse[Any]:
        if self._responses:
            return self._responses.pop(0)
        return BackendResponse.success(None, status=204)

    def request_json(self, *, method, path, token=None, payload=None, fallback_error=None):
        self.calls.append({"kind": "json", "method": method, "path": path, "token": token, "payload": payload})
        return self._next()

    def request_multipart(self, *, method, path, token, fields, files, fallback_error=None):
        self.calls.append({"kind": "multipart", "method": method, "path": path, "token": token, "fields": dict(fields), "files": dict(files)})
        return self._next()

    def download(self, *, path, token, default_name):
        self.calls.append({"kind": "download", "path": path, "token": token, "default_name": default_name})
        return self._next()


def test_create_posts_multipart_and_returns_pending(owner_session, pdf_file) -> None:
    created = request_payload(S.PENDING)
    client = _ClientFake(BackendResponse.success(created, status=201))
    repo = TranslationRequestRepository(owner_session, client)

    resp = repo.create(title="Contract", source_language="English", target_language="German", file=pdf_file)

    assert resp.ok
    assert resp.data.status == S.PENDING
    assert resp.data.id == created["id"]
    call = client.calls[0]
    assert call["method"] == "POST"
    assert call["path"] == USER_BASE
    assert call["token"] == owner_session.token
    assert call["fields"]["Title"] == "Contract"
    assert call["files"] == {"File": pdf_file}


def test_create_with_unsupported_file_never_calls_backend(owner_session) -> None:
    client = _ClientFake()
    repo = TranslationRequestRepository(owner_session, client)

    resp = repo.create(
        title="Contract",
        source_language="English",
        target_language="German",
        file=UploadedFile(file_name="virus.exe", content=b"MZ"),
    )

    assert resp.error.kind == ErrorKind.VALIDATION_ERROR
    assert "File" in resp.error.issues
    assert client.calls == []


@pytest.mark.parametrize("session_fixture", [None, "expired_session"])
def test_unauthenticated_calls_never_reach_backend(request, session_fixture, make_request) -> None:
    session = request.getfixturevalue(session_fixture) if session_fixture else None
    client = _ClientFake()
    repo = TranslationRequestRepository(session, client)

    results = [
        repo.list_mine(),
        repo.get("abc"),
        repo.approve(make_request(S.PENDING)),
        repo.delete(make_request(S.PENDING)),
        repo.download_original("abc"),
    ]

    for resp in results:
        assert resp.error.kind == ErrorKind.UNAUTHENTICATED
        assert resp.error.error == "User is not authenticated."
    assert client.calls == []


def test_approve_round_trip_returns_backend_copy(admin_session, make_request) -> None:
    """Scenario: admin approves a Pending request; backend status wins."""
    item = make_request(S.PENDING, updatedAt="2026-01-05T12:00:00Z")
    approved = request_payload(
        S.APPROVED,
        id=item.id,
        adminComment="ok",
        updatedAt="2026-01-06T09:00:00Z",
    )
    client = _ClientFake(BackendResponse.success(approved))
    repo = TranslationRequestRepository(admin_session, client)

    resp = repo.approve(item, "ok")

    assert resp.ok
    assert resp.data.status == S.APPROVED
    assert resp.data.id == item.id
    assert item.updated_at is not None
    assert resp.data.updated_at > item.updated_at
    assert client.calls == [
        {
            "kind": "json",
            "method": "POST",
            "path": f"{ADMIN_BASE}/{item.id}/approve",
            "token": admin_session.token,
            "payload": {"comment": "ok"},
        }
    ]


def test_approve_sends_null_comment_when_blank(admin_session, make_request) -> None:
    item = make_request(S.RESUBMITTED)
    client = _ClientFake(BackendResponse.success(request_payload(S.APPROVED, id=item.id)))

    TranslationRequestRepository(admin_session, client).approve(item, "")

    assert client.calls[0]["payload"] == {"comment": None}


@pytest.mark.parametrize("comment", [None, "", "   "])
def test_reject_without_comment_is_missing_comment(admin_session, make_request, comment) -> None:
    """Scenario: rejecting with a blank comment fails locally."""
    client = _ClientFake()
    repo = TranslationRequestRepository(admin_session, client)

    resp = repo.reject(make_request(S.PENDING), comment)

    assert resp.error.kind == ErrorKind.MISSING_COMMENT
    assert client.calls == []


def test_reject_sends_stripped_comment(admin_session, make_request) -> None:
    item = make_request(S.PENDING)
    client = _ClientFake(BackendResponse.success(request_payload(S.REJECTED, id=item.id, adminComment="Wrong file")))

    resp = TranslationRequestRepository(admin_session, client).reject(item, "  Wrong file ")

    assert resp.data.status == S.REJECTED
    assert resp.data.admin_comment == "Wrong file"
    assert client.calls[0]["path"] == f"{ADMIN_BASE}/{item.id}/reject"
    assert client.calls[0]["payload"] == {"comment": "Wrong file"}


def test_owner_cannot_delete_approved_request(owner_session, make_request) -> None:
    """Scenario: deleting an approved request is refused before any call."""
    client = _ClientFake()

    resp = TranslationRequestRepository(owner_session, client).delete(make_request(S.APPROVED))

    assert resp.error.kind == ErrorKind.INVALID_TRANSITION
    assert client.calls == []


def test_owner_deletes_pending_request(owner_session, make_request) -> None:
    item = make_request(S.PENDING)
    client = _ClientFake(BackendResponse.success(None, status=204))

    resp = TranslationRequestRepository(owner_session, client).delete(item)

    assert resp.ok
    assert resp.data is None
    assert client.calls[0]["method"] == "DELETE"
    assert client.calls[0]["path"] == f"{USER_BASE}/{item.id}"


def test_owner_cannot_act_on_foreign_request(owner_session, make_request) -> None:
    client = _ClientFake()

    resp = TranslationRequestRepository(owner_session, client).delete(make_request(S.PENDING, userId=OTHER_ID))

    assert resp.error.kind == ErrorKind.INVALID_TRANSITION
    assert resp.error.error == "You can only act on your own requests."
    assert client.calls == []


def test_blank_rejection_on_foreign_request_is_missing_comment(owner_session, make_request) -> None:
    """Scenario: the comment check comes before the ownership check."""
    client = _ClientFake()

    resp = TranslationRequestRepository(owner_session, client).reject(make_request(S.PENDING, userId=OTHER_ID), "  ")

    assert resp.error.kind == ErrorKind.MISSING_COMMENT
    assert client.calls == []


def test_complete_requires_translated_file(admin_session, make_request) -> None:
    client = _ClientFake()

    resp = TranslationRequestRepository(admin_session, client).complete(make_request(S.APPROVED), file=None)

    assert resp.error.kind == ErrorKind.VALIDATION_ERROR
    assert resp.error.issues == {"File": ["Translated file is required."]}
    assert client.calls == []


def test_complete_uploads_translation(admin_session, make_request, pdf_file) -> None:
    item = make_request(S.APPROVED)
    done = request_payload(
        S.COMPLETED,
        id=item.id,
        translatedFileName="t.pdf",
        completedAt="2026-01-07T10:00:00Z",
    )
    client = _ClientFake(BackendResponse.success(done))

    resp = TranslationRequestRepository(admin_session, client).complete(item, file=pdf_file, admin_comment="Done")

    assert resp.data.status == S.COMPLETED
    assert resp.data.has_translation
    call = client.calls[0]
    assert call["path"] == f"{ADMIN_BASE}/{item.id}/complete"
    assert call["fields"] == {"AdminComment": "Done"}
    assert call["files"] == {"File": pdf_file}


def test_admin_cannot_complete_pending_request(admin_session, make_request, pdf_file) -> None:
    client = _ClientFake()

    resp = TranslationRequestRepository(admin_session, client).complete(make_request(S.PENDING), file=pdf_file)

    assert resp.error.kind == ErrorKind.INVALID_TRANSITION
    assert client.calls == []


def test_resubmit_rejected_request(owner_session, make_request) -> None:
    item = make_request(S.REJECTED, adminComment="Wrong file")
    client = _ClientFake(BackendResponse.success(request_payload(S.RESUBMITTED, id=item.id)))

    resp = TranslationRequestRepository(owner_session, client).resubmit(item, user_comment="New file attached")

    assert resp.data.status == S.RESUBMITTED
    call = client.calls[0]
    assert call["kind"] == "multipart"
    assert call["path"] == f"{USER_BASE}/{item.id}/resubmit"
    assert call["fields"] == {"UserComment": "New file attached"}
    assert call["files"] == {}


def test_modify_puts_camel_case_metadata(owner_session, make_request) -> None:
    item = make_request(S.PENDING)
    client = _ClientFake(BackendResponse.success(request_payload(S.PENDING, id=item.id, title="Lease")))

    resp = TranslationRequestRepository(owner_session, client).modify(
        item, title="Lease", source_language="English", target_language="Czech"
    )

    assert resp.data.title == "Lease"
    call = client.calls[0]
    assert call["method"] == "PUT"
    assert call["payload"] == {
        "id": item.id,
        "title": "Lease",
        "description": None,
        "sourceLanguage": "English",
        "targetLanguage": "Czech",
        "userComment": None,
    }


def test_backend_error_is_passed_through(admin_session, make_request) -> None:
    """A concurrent change on the backend surfaces its error unchanged."""
    error = BackendResponse.failure(ErrorKind.VALIDATION_ERROR, "Only pending requests can be approved", status=400)
    client = _ClientFake(error)

    resp = TranslationRequestRepository(admin_session, client).approve(make_request(S.PENDING))

    assert resp is error


def test_unexpected_payload_is_network_error(owner_session) -> None:
    client = _ClientFake(BackendResponse.success({"unexpected": True}))

    resp = TranslationRequestRepository(owner_session, client).get("abc")

    assert resp.error.kind == ErrorKind.NETWORK_ERROR


def test_get_uses_admin_endpoint_for_admins(admin_session, owner_session) -> None:
    admin_client = _ClientFake(BackendResponse.success(request_payload()))
    owner_client = _ClientFake(BackendResponse.success(request_payload()))

    TranslationRequestRepository(admin_session, admin_client).get("abc")
    TranslationRequestRepository(owner_session, owner_client).get("abc")

    assert admin_client.calls[0]["path"] == f"{ADMIN_BASE}/abc"
    assert owner_client.calls[0]["path"] == f"{USER_BASE}/abc"


def test_list_all_requires_admin(owner_session) -> None:
    client = _ClientFake()

    resp = TranslationRequestRepository(owner_session, client).list_all()

    assert resp.error.kind == ErrorKind.UNAUTHENTICATED
    assert client.calls == []


def test_list_mine_parses_items(owner_session) -> None:
    client = _ClientFake(BackendResponse.success([request_payload(S.PENDING), request_payload(S.COMPLETED)]))

    resp = TranslationRequestRepository(owner_session, client).list_mine()

    assert [r.status for r in resp.data] == [S.PENDING, S.COMPLETED]


def test_perform_dispatches_by_action(admin_session, make_request) -> None:
    item = make_request(S.PENDING)
    client = _ClientFake(BackendResponse.success(request_payload(S.REJECTED, id=item.id)))

    resp = TranslationRequestRepository(admin_session, client).perform(RequestAction.REJECT, item, {"comment": "No"})

    assert resp.data.status == S.REJECTED
    assert client.calls[0]["path"].endswith("/reject")


def test_download_translated_uses_default_name(owner_session) -> None:
    file = FileDownload(file_name="translated-file", content=b"x")
    client = _ClientFake(BackendResponse.success(file))

    resp = TranslationRequestRepository(owner_session, client).download_translated("abc")

    assert resp.data is file
    assert client.calls[0] == {
        "kind": "download",
        "path": f"{USER_BASE}/abc/download-translated",
        "token": owner_session.token,
        "default_name": "translated-file",
    }
