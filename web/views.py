from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Optional, TypeVar, cast

from django.contrib import messages
from django.contrib.sessions.backends.base import SessionBase
from django.core.files.uploadedfile import UploadedFile as DjangoUploadedFile
from django.forms import Form
from django.http import FileResponse, HttpRequest, HttpResponse
from django.http.response import HttpResponseBase
from django.shortcuts import redirect, render
from django.utils.translation import gettext as _
from django.views.decorators.http import require_POST
from pydantic import BaseModel, ValidationError

from web import auth_client
from web.domain.enums import ActorRole, ViewAction
from web.domain.errors import BackendResponse, ErrorKind, FieldIssues
from web.domain.models import AdminUserUpdate, FileDownload, ProfileUpdate, RegisterPayload, TranslationRequest, UploadedFile
from web.forms import AdminUserForm, LoginForm, ProfileForm, RegisterForm
from web.repository import TranslationRequestRepository
from web.request_forms import (
    AdminCommentForm,
    CompleteForm,
    RejectForm,
    ResubmitForm,
    TranslationRequestCreateForm,
    TranslationRequestModifyForm,
)
from web.session import Session, clear_session, load_session, save_session
from web.tables import request_table, user_table
from web.workflow.projection import project_actions, status_badge

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Query parameter prefix of the users table on the admin dashboard.
USERS_PREFIX = "u_"


def _session(request: HttpRequest) -> SessionBase:
    """Return request.session as a SessionBase for typing purposes."""
    return cast(SessionBase, getattr(request, "session"))


def _require_session(request: HttpRequest, *, admin: bool = False) -> Session:
    """Ensure the user is signed in (and an administrator when `admin`).

    Raises:
        PermissionError: If there is no valid session or the role is not allowed.
    """
    session = load_session(_session(request))
    if session is None:
        raise PermissionError("Not authenticated")
    if admin and not session.is_admin:
        raise PermissionError("Forbidden")
    return session


def _denied(request: HttpRequest, exc: PermissionError) -> HttpResponse:
    if str(exc) == "Forbidden":
        messages.error(request, _("Not allowed"))
        return redirect("home")
    clear_session(_session(request))
    messages.error(request, _("Please log in to continue."))
    return redirect("login")


def _upload(f: Optional[DjangoUploadedFile]) -> Optional[UploadedFile]:
    """Read a Django upload into the transport's file model."""
    if f is None:
        return None
    return UploadedFile(
        file_name=getattr(f, "name", None) or "upload.bin",
        content=f.read(),
        content_type=getattr(f, "content_type", None) or "application/octet-stream",
    )


def _normalize_field(name: str) -> str:
    return name.replace("_", "").lower()


def _attach_issues(form: Form, issues: Optional[FieldIssues]) -> None:
    """Attach backend/pre-flight field issues to matching form fields."""
    if not issues:
        return
    by_key = {_normalize_field(name): name for name in form.fields}
    for field, msgs in issues.items():
        target = by_key.get(_normalize_field(field))
        for msg in msgs:
            form.add_error(target, msg)


def _payload(form: Form, model: type[M], **values: Any) -> Optional[M]:
    """Build an outgoing payload model; validation problems become form errors."""
    try:
        return model(**values)
    except ValidationError as e:
        issues: FieldIssues = {}
        for err in e.errors():
            loc = err.get("loc") or ("",)
            issues.setdefault(str(loc[0]), []).append(str(err.get("msg")))
        _attach_issues(form, issues)
        return None


def _report(request: HttpRequest, resp: BackendResponse[Any], form: Optional[Form] = None) -> None:
    """Surface a failed call as a message (and field errors when possible)."""
    error = resp.error
    if error is None:
        return
    if form is not None and error.issues:
        _attach_issues(form, error.issues)
    messages.error(request, error.error)


def _after_error(request: HttpRequest, resp: BackendResponse[Any], fallback: str) -> HttpResponse:
    _report(request, resp)
    if resp.error is not None and resp.error.kind == ErrorKind.UNAUTHENTICATED:
        clear_session(_session(request))
        return redirect("login")
    return redirect(fallback)


def _file_response(download: FileDownload) -> FileResponse:
    return FileResponse(
        BytesIO(download.content),
        as_attachment=True,
        filename=download.file_name,
        content_type=download.content_type,
    )


def _row(item: TranslationRequest, role: ActorRole) -> dict[str, Any]:
    label, variant = status_badge(item.status)
    return {
        "request": item,
        "status_label": label,
        "status_variant": variant,
        "actions": project_actions(item.status, role),
    }


def _dashboard_for(session: Session) -> str:
    return "admin_dashboard" if session.is_admin else "user_dashboard"


def _offered(item: TranslationRequest, role: ActorRole, action: ViewAction) -> bool:
    return action in project_actions(item.status, role)


def home(request: HttpRequest) -> HttpResponse:
    """Render the landing page, or send signed-in users to their dashboard."""
    session = load_session(_session(request))
    if session is not None:
        return redirect(_dashboard_for(session))
    return render(request, "web/home.html")


# -- authentication ---------------------------------------------------------


def login_view(request: HttpRequest) -> HttpResponse:
    """Password login against the backend; stores the Session on success."""
    if request.method == "POST":
        form: LoginForm = LoginForm(request.POST)
        if form.is_valid():
            resp: BackendResponse[Session] = auth_client.login(
                email=form.cleaned_data["email"],
                password=form.cleaned_data["password"],
            )
            if resp.ok and resp.data is not None:
                _session(request).cycle_key()
                save_session(_session(request), resp.data)
                messages.success(request, _("Logged in"))
                return redirect(_dashboard_for(resp.data))

            _report(request, resp, form)
        else:
            messages.error(request, _("Please fix the form errors."))
    else:
        form = LoginForm()

    return render(request, "web/login.html", {"form": form})


def register_view(request: HttpRequest) -> HttpResponse:
    """Create a new account using the backend API."""
    if request.method == "POST":
        form: RegisterForm = RegisterForm(request.POST)
        payload = None
        if form.is_valid():
            payload = _payload(
                form,
                RegisterPayload,
                first_name=form.cleaned_data["first_name"],
                last_name=form.cleaned_data["last_name"],
                email=form.cleaned_data["email"],
                password=form.cleaned_data["password"],
                confirm_password=form.cleaned_data["confirm_password"],
            )
        if payload is not None:
            resp = auth_client.register(payload)
            if resp.ok:
                messages.success(request, _("Account created. You can log in now."))
                return redirect("login")

            _report(request, resp, form)
        else:
            messages.error(request, _("Please fix the form errors."))
    else:
        form = RegisterForm()

    return render(request, "web/register.html", {"form": form})


def logout_view(request: HttpRequest) -> HttpResponse:
    """Log out by clearing session keys."""
    clear_session(_session(request))
    messages.info(request, _("Logged out"))
    return redirect("home")


def profile_view(request: HttpRequest) -> HttpResponse:
    """Show and edit the signed-in user's profile."""
    try:
        session = _require_session(request)
    except PermissionError as e:
        return _denied(request, e)

    resp = auth_client.get_profile(session)
    if not resp.ok:
        return _after_error(request, resp, _dashboard_for(session))
    profile = resp.data

    if request.method == "POST":
        form: ProfileForm = ProfileForm(request.POST)
        update = None
        if form.is_valid():
            update = _payload(
                form,
                ProfileUpdate,
                first_name=form.cleaned_data["first_name"],
                last_name=form.cleaned_data["last_name"],
                email=form.cleaned_data["email"],
                current_password=form.cleaned_data.get("current_password") or None,
            )
        if update is not None:
            updated = auth_client.update_profile(session, update)
            if updated.ok:
                messages.success(request, _("Profile updated"))
                return redirect("profile")
            _report(request, updated, form)
        else:
            messages.error(request, _("Please fix the form errors."))
    else:
        form = ProfileForm(
            initial={"first_name": profile.first_name, "last_name": profile.last_name, "email": profile.email}
        )

    return render(request, "web/profile.html", {"form": form, "profile": profile})


# -- owner surface ----------------------------------------------------------


def user_dashboard_view(request: HttpRequest) -> HttpResponse:
    """List the signed-in user's translation requests."""
    try:
        session = _require_session(request)
    except PermissionError as e:
        return _denied(request, e)

    if session.is_admin:
        return redirect("admin_dashboard")

    resp = TranslationRequestRepository(session).list_mine()
    if not resp.ok:
        _report(request, resp)
    table = request_table(resp.data or [], request.GET)
    rows = [_row(item, session.role) for item in table.items]

    return render(request, "web/user_dashboard.html", {"rows": rows, "table": table})


def request_create_view(request: HttpRequest) -> HttpResponse:
    """Submit a new document for translation."""
    try:
        session = _require_session(request)
    except PermissionError as e:
        return _denied(request, e)

    if request.method == "POST":
        form: TranslationRequestCreateForm = TranslationRequestCreateForm(request.POST, request.FILES)
        if form.is_valid():
            resp = TranslationRequestRepository(session).create(
                title=form.cleaned_data["title"],
                description=form.cleaned_data.get("description") or None,
                source_language=form.cleaned_data["source_language"],
                target_language=form.cleaned_data["target_language"],
                user_comment=form.cleaned_data.get("user_comment") or None,
                file=_upload(form.cleaned_data.get("file")),
            )
            if resp.ok and resp.data is not None:
                messages.success(request, _("Translation request submitted"))
                return redirect("request_detail", request_id=resp.data.id)

            _report(request, resp, form)
        else:
            messages.error(request, _("Please fix the form errors."))
    else:
        form = TranslationRequestCreateForm()

    return render(request, "web/request_form.html", {"form": form, "heading": _("New translation request")})


def _load_request(request: HttpRequest, session: Session, request_id: str) -> BackendResponse[TranslationRequest]:
    return TranslationRequestRepository(session).get(str(request_id))


def request_detail_view(request: HttpRequest, request_id: str) -> HttpResponse:
    """Owner detail view with the actions valid for the current status."""
    try:
        session = _require_session(request)
    except PermissionError as e:
        return _denied(request, e)

    if session.is_admin:
        return redirect("admin_request_detail", request_id=request_id)

    resp = _load_request(request, session, request_id)
    if not resp.ok:
        return _after_error(request, resp, "user_dashboard")

    return render(request, "web/request_detail.html", {"row": _row(resp.data, session.role)})


def request_modify_view(request: HttpRequest, request_id: str) -> HttpResponse:
    """Edit request metadata while Pending or Rejected."""
    try:
        session = _require_session(request)
    except PermissionError as e:
        return _denied(request, e)

    resp = _load_request(request, session, request_id)
    if not resp.ok:
        return _after_error(request, resp, "user_dashboard")
    item: TranslationRequest = resp.data  # type: ignore[assignment]
    if not _offered(item, session.role, ViewAction.MODIFY):
        messages.error(request, _("This request can no longer be modified."))
        return redirect("request_detail", request_id=item.id)

    initial = {
        "title": item.title,
        "description": item.description,
        "source_language": item.source_language,
        "target_language": item.target_language,
        "user_comment": item.user_comment,
    }
    if request.method == "POST":
        form: TranslationRequestModifyForm = TranslationRequestModifyForm(request.POST, initial=initial)
        if form.is_valid():
            result = TranslationRequestRepository(session).modify(
                item,
                title=form.cleaned_data["title"],
                description=form.cleaned_data.get("description") or None,
                source_language=form.cleaned_data["source_language"],
                target_language=form.cleaned_data["target_language"],
                user_comment=form.cleaned_data.get("user_comment") or None,
            )
            if result.ok:
                messages.success(request, _("Translation request updated"))
                return redirect("request_detail", request_id=item.id)

            _report(request, result, form)
        else:
            messages.error(request, _("Please fix the form errors."))
    else:
        form = TranslationRequestModifyForm(initial=initial)

    return render(
        request,
        "web/request_form.html",
        {"form": form, "heading": _("Modify translation request"), "item": item},
    )


@require_POST
def request_delete_view(request: HttpRequest, request_id: str) -> HttpResponse:
    """Delete a Pending request."""
    try:
        session = _require_session(request)
    except PermissionError as e:
        return _denied(request, e)

    resp = _load_request(request, session, request_id)
    if not resp.ok:
        return _after_error(request, resp, "user_dashboard")

    result = TranslationRequestRepository(session).delete(resp.data)  # type: ignore[arg-type]
    if result.ok:
        messages.success(request, _("Translation request deleted"))
        return redirect("user_dashboard")

    _report(request, result)
    return redirect("request_detail", request_id=request_id)


def request_resubmit_view(request: HttpRequest, request_id: str) -> HttpResponse:
    """Resubmit a rejected request with an optional replacement file."""
    try:
        session = _require_session(request)
    except PermissionError as e:
        return _denied(request, e)

    resp = _load_request(request, session, request_id)
    if not resp.ok:
        return _after_error(request, resp, "user_dashboard")
    item: TranslationRequest = resp.data  # type: ignore[assignment]
    if not _offered(item, session.role, ViewAction.RESUBMIT):
        messages.error(request, _("Only rejected requests can be resubmitted."))
        return redirect("request_detail", request_id=item.id)

    if request.method == "POST":
        form: ResubmitForm = ResubmitForm(request.POST, request.FILES)
        if form.is_valid():
            result = TranslationRequestRepository(session).resubmit(
                item,
                file=_upload(form.cleaned_data.get("file")),
                user_comment=form.cleaned_data.get("user_comment") or None,
            )
            if result.ok:
                messages.success(request, _("Translation request resubmitted"))
                return redirect("request_detail", request_id=item.id)

            _report(request, result, form)
        else:
            messages.error(request, _("Please fix the form errors."))
    else:
        form = ResubmitForm()

    return render(
        request,
        "web/action_form.html",
        {"form": form, "item": item, "heading": _("Resubmit translation request"), "submit_label": _("Resubmit")},
    )


def _download(request: HttpRequest, request_id: str, *, translated: bool, admin: bool) -> HttpResponseBase:
    """Proxy a file download from the backend through Django."""
    try:
        session = _require_session(request, admin=admin)
    except PermissionError as e:
        return _denied(request, e)

    repo = TranslationRequestRepository(session)
    resp = repo.download_translated(str(request_id)) if translated else repo.download_original(str(request_id))
    if not resp.ok or resp.data is None:
        return _after_error(request, resp, "admin_dashboard" if admin else "user_dashboard")
    return _file_response(resp.data)


def request_download_original_view(request: HttpRequest, request_id: str) -> HttpResponseBase:
    return _download(request, request_id, translated=False, admin=False)


def request_download_translated_view(request: HttpRequest, request_id: str) -> HttpResponseBase:
    return _download(request, request_id, translated=True, admin=False)


# -- admin surface ----------------------------------------------------------


def admin_dashboard_view(request: HttpRequest) -> HttpResponse:
    """Administrator overview: all translation requests and all users."""
    try:
        session = _require_session(request, admin=True)
    except PermissionError as e:
        return _denied(request, e)

    resp = TranslationRequestRepository(session).list_all()
    if not resp.ok:
        _report(request, resp)
    table = request_table(resp.data or [], request.GET)
    rows = [_row(item, ActorRole.ADMIN) for item in table.items]

    users_resp = auth_client.list_users(session)
    if not users_resp.ok:
        _report(request, users_resp)
    user_tbl = user_table(users_resp.data or [], request.GET, prefix=USERS_PREFIX)

    return render(
        request,
        "web/admin_dashboard.html",
        {"rows": rows, "table": table, "users": user_tbl.items, "user_table": user_tbl},
    )


def admin_request_detail_view(request: HttpRequest, request_id: str) -> HttpResponse:
    try:
        session = _require_session(request, admin=True)
    except PermissionError as e:
        return _denied(request, e)

    resp = _load_request(request, session, request_id)
    if not resp.ok:
        return _after_error(request, resp, "admin_dashboard")

    return render(request, "web/request_detail.html", {"row": _row(resp.data, ActorRole.ADMIN), "admin": True})


def _admin_action(
    request: HttpRequest,
    request_id: str,
    *,
    action: ViewAction,
    form_class: type[Form],
    heading: str,
    submit_label: str,
    success_message: str,
    run: Any,
) -> HttpResponse:
    """Shared GET/POST flow for approve, reject and complete.

    `run(repo, item, form)` performs the action and returns a BackendResponse.
    """
    try:
        session = _require_session(request, admin=True)
    except PermissionError as e:
        return _denied(request, e)

    resp = _load_request(request, session, request_id)
    if not resp.ok:
        return _after_error(request, resp, "admin_dashboard")
    item: TranslationRequest = resp.data  # type: ignore[assignment]
    if not _offered(item, ActorRole.ADMIN, action):
        messages.error(request, _("This action is not available for the current status."))
        return redirect("admin_request_detail", request_id=item.id)

    if request.method == "POST":
        form = form_class(request.POST, request.FILES)
        if form.is_valid():
            result = run(TranslationRequestRepository(session), item, form)
            if result.ok:
                messages.success(request, success_message)
                return redirect("admin_request_detail", request_id=item.id)
            _report(request, result, form)
        else:
            messages.error(request, _("Please fix the form errors."))
    else:
        form = form_class()

    return render(
        request,
        "web/action_form.html",
        {"form": form, "item": item, "heading": heading, "submit_label": submit_label, "admin": True},
    )


def admin_approve_view(request: HttpRequest, request_id: str) -> HttpResponse:
    return _admin_action(
        request,
        request_id,
        action=ViewAction.APPROVE,
        form_class=AdminCommentForm,
        heading=_("Approve translation request"),
        submit_label=_("Approve"),
        success_message=_("Translation request approved"),
        run=lambda repo, item, form: repo.approve(item, form.cleaned_data.get("comment") or None),
    )


def admin_reject_view(request: HttpRequest, request_id: str) -> HttpResponse:
    return _admin_action(
        request,
        request_id,
        action=ViewAction.REJECT,
        form_class=RejectForm,
        heading=_("Reject translation request"),
        submit_label=_("Reject"),
        success_message=_("Translation request rejected"),
        run=lambda repo, item, form: repo.reject(item, form.cleaned_data.get("comment")),
    )


def admin_complete_view(request: HttpRequest, request_id: str) -> HttpResponse:
    return _admin_action(
        request,
        request_id,
        action=ViewAction.COMPLETE,
        form_class=CompleteForm,
        heading=_("Complete translation request"),
        submit_label=_("Complete"),
        success_message=_("Translation request completed"),
        run=lambda repo, item, form: repo.complete(
            item,
            file=_upload(form.cleaned_data.get("file")),
            admin_comment=form.cleaned_data.get("admin_comment") or None,
        ),
    )


def admin_download_original_view(request: HttpRequest, request_id: str) -> HttpResponseBase:
    return _download(request, request_id, translated=False, admin=True)


def admin_download_translated_view(request: HttpRequest, request_id: str) -> HttpResponseBase:
    return _download(request, request_id, translated=True, admin=True)


def admin_users_view(request: HttpRequest) -> HttpResponse:
    try:
        session = _require_session(request, admin=True)
    except PermissionError as e:
        return _denied(request, e)

    resp = auth_client.list_users(session)
    if not resp.ok:
        _report(request, resp)
    table = user_table(resp.data or [], request.GET)
    return render(request, "web/admin_users.html", {"users": table.items, "user_table": table})


def admin_user_detail_view(request: HttpRequest, user_id: str) -> HttpResponse:
    """Show and edit another user's profile (administrators only)."""
    try:
        session = _require_session(request, admin=True)
    except PermissionError as e:
        return _denied(request, e)

    resp = auth_client.get_user(session, str(user_id))
    if not resp.ok:
        return _after_error(request, resp, "admin_users")
    user = resp.data

    if request.method == "POST":
        form: AdminUserForm = AdminUserForm(request.POST)
        update = None
        if form.is_valid():
            update = _payload(
                form,
                AdminUserUpdate,
                user_id=str(user_id),
                first_name=form.cleaned_data["first_name"],
                last_name=form.cleaned_data["last_name"],
                email=form.cleaned_data["email"],
            )
        if update is not None:
            updated = auth_client.update_user(session, update)
            if updated.ok:
                messages.success(request, _("User updated"))
                return redirect("admin_user_detail", user_id=user_id)
            _report(request, updated, form)
        else:
            messages.error(request, _("Please fix the form errors."))
    else:
        form = AdminUserForm(initial={"first_name": user.first_name, "last_name": user.last_name, "email": user.email})

    return render(request, "web/admin_user_detail.html", {"form": form, "profile": user})
