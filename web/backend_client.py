from __future__ import annotations

import json
import logging
import re
import urllib.error
import urllib.parse
import urllib.request
import uuid
from typing import Any, Mapping, Optional

from web.config import settings
from web.domain.errors import BackendResponse, ErrorKind, FieldIssues
from web.domain.models import FileDownload, UploadedFile

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "An unexpected error occurred."

_FILENAME_EXT_RE = re.compile(r"filename\*\s*=\s*(?:[\w-]+'[^']*')?\"?([^\";]+)\"?", re.IGNORECASE)
_FILENAME_RE = re.compile(r"filename\s*=\s*\"?([^\";]+)\"?", re.IGNORECASE)


def _url(path: str) -> str:
    return f"{settings.api_base_url.rstrip('/')}{path}"


def _headers(token: Optional[str], extra: Mapping[str, str] | None = None) -> dict[str, str]:
    headers: dict[str, str] = dict(extra or {})
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _decode_body(raw: bytes) -> Any:
    """Decode a response body as JSON, falling back to plain text."""
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def _flatten_issues(errors: Mapping[str, Any]) -> FieldIssues:
    issues: FieldIssues = {}
    for name, msgs in errors.items():
        if isinstance(msgs, (list, tuple)):
            issues[str(name)] = [str(m) for m in msgs]
        else:
            issues[str(name)] = [str(msgs)]
    return issues


def normalize_error(status: Optional[int], body: Any, fallback: str | None = None) -> BackendResponse[Any]:
    """Normalize a failed backend response into the uniform error shape.

    Handles validation ProblemDetails (`title` + `errors`), `{message}`
    bodies, plain strings and empty bodies.

    Args:
        status: HTTP status code (None for transport failures).
        body: Decoded response body.
        fallback: Message used when the body carries none.

    Returns:
        BackendResponse: Failure result with a populated ApiError.
    """
    structured = isinstance(body, dict)
    message: Optional[str] = None
    issues: Optional[FieldIssues] = None

    if structured:
        message = body.get("message") or body.get("Message") or body.get("title") or body.get("detail")
        errors = body.get("errors")
        if isinstance(errors, dict) and errors:
            issues = _flatten_issues(errors)
    elif isinstance(body, str) and body.strip():
        message = body.strip().strip('"')

    message = message or fallback or DEFAULT_ERROR
    if issues:
        formatted = "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in issues.items())
        message = f"{message} Validation Errors: {formatted}"

    if status == 404:
        kind = ErrorKind.NOT_FOUND
    elif status in (401, 403):
        kind = ErrorKind.UNAUTHENTICATED
    elif issues or (structured and status in (400, 422)):
        kind = ErrorKind.VALIDATION_ERROR
    else:
        kind = ErrorKind.NETWORK_ERROR

    return BackendResponse.failure(kind, str(message), issues=issues, status=status)


def _encode_multipart(fields: Mapping[str, Optional[str]], files: Mapping[str, UploadedFile]) -> tuple[bytes, str]:
    """Encode form fields and files as multipart/form-data.

    Fields with a None value are omitted.

    Returns:
        tuple[bytes, str]: (body, content type header value)
    """
    boundary = f"----PortalFormBoundary{uuid.uuid4().hex}"

    def _part(name: str, value: str) -> bytes:
        return (
            f"--{boundary}\r\n"
            f"Content-Disposition: form-data; name=\"{name}\"\r\n\r\n"
            f"{value}\r\n"
        ).encode("utf-8")

    def _file_part(name: str, upload: UploadedFile) -> bytes:
        return (
            f"--{boundary}\r\n"
            f"Content-Disposition: form-data; name=\"{name}\"; filename=\"{upload.file_name}\"\r\n"
            f"Content-Type: {upload.content_type}\r\n\r\n"
        ).encode("utf-8") + upload.content + b"\r\n"

    parts = [_part(name, value) for name, value in fields.items() if value is not None]
    parts += [_file_part(name, upload) for name, upload in files.items()]
    parts.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(parts), f"multipart/form-data; boundary={boundary}"


def _send(req: urllib.request.Request, timeout: float) -> tuple[int, bytes, dict[str, str]]:
    """Send a request; HTTP errors are returned, transport errors raise OSError."""
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status, resp.read(), {k: v for (k, v) in resp.headers.items()}
    except urllib.error.HTTPError as e:
        data = e.read() if e.fp else b""
        headers = {k: v for (k, v) in e.headers.items()} if e.headers else {}
        return e.code, data, headers


def request_json(
    *,
    method: str,
    path: str,
    token: Optional[str] = None,
    payload: Any = None,
    fallback_error: str | None = None,
) -> BackendResponse[Any]:
    """Send a JSON request to the backend and decode the response.

    Args:
        method: HTTP method.
        path: Backend path (starting with '/').
        token: Bearer token.
        payload: JSON-serializable body.
        fallback_error: Message used when a failure body carries none.

    Returns:
        BackendResponse: Decoded body on 2xx, normalized error otherwise.
    """
    headers = _headers(token, {"Accept": "application/json"})
    data = None
    if payload is not None:
        headers["Content-Type"] = "application/json"
        data = json.dumps(payload).encode("utf-8")

    req = urllib.request.Request(url=_url(path), data=data, headers=headers, method=method)
    return _dispatch(req, settings.request_timeout_seconds, fallback_error)


def request_multipart(
    *,
    method: str,
    path: str,
    token: Optional[str],
    fields: Mapping[str, Optional[str]],
    files: Mapping[str, UploadedFile],
    fallback_error: str | None = None,
) -> BackendResponse[Any]:
    """Send a multipart/form-data request (file uploads)."""
    body, content_type = _encode_multipart(fields, files)
    headers = _headers(token, {"Content-Type": content_type, "Accept": "application/json"})
    req = urllib.request.Request(url=_url(path), data=body, headers=headers, method=method)
    return _dispatch(req, settings.upload_timeout_seconds, fallback_error)


def _dispatch(req: urllib.request.Request, timeout: float, fallback_error: str | None) -> BackendResponse[Any]:
    try:
        status, raw, headers = _send(req, timeout)
    except OSError as e:
        logger.warning("Backend unreachable", extra={"method": req.get_method(), "url": req.full_url, "error": str(e)})
        reason = getattr(e, "reason", None) or e
        return BackendResponse.failure(ErrorKind.NETWORK_ERROR, f"Backend unavailable: {reason}")

    body = _decode_body(raw)
    if 200 <= status < 300:
        logger.info("Backend call succeeded", extra={"method": req.get_method(), "url": req.full_url, "status": status})
        return BackendResponse.success(body, status=status, headers=headers)

    logger.warning("Backend call failed", extra={"method": req.get_method(), "url": req.full_url, "status": status})
    return normalize_error(status, body, fallback_error)


def filename_from_content_disposition(value: Optional[str]) -> Optional[str]:
    """Extract the file name from a Content-Disposition header.

    `filename*=UTF-8''...` wins over the plain `filename=` parameter.
    """
    if not value:
        return None
    match = _FILENAME_EXT_RE.search(value)
    if match:
        return urllib.parse.unquote(match.group(1).strip())
    match = _FILENAME_RE.search(value)
    if match:
        return match.group(1).strip()
    return None


def download(*, path: str, token: str, default_name: str) -> BackendResponse[FileDownload]:
    """Download file bytes from the backend.

    Args:
        path: Backend path of the download endpoint.
        token: Bearer token.
        default_name: File name used when the backend does not send one.

    Returns:
        BackendResponse[FileDownload]: File bytes and name on success.
    """
    req = urllib.request.Request(
        url=_url(path),
        method="GET",
        headers=_headers(token, {"Accept": "application/octet-stream"}),
    )
    try:
        status, raw, headers = _send(req, settings.upload_timeout_seconds)
    except OSError as e:
        logger.warning("Backend unreachable", extra={"url": req.full_url, "error": str(e)})
        reason = getattr(e, "reason", None) or e
        return BackendResponse.failure(ErrorKind.NETWORK_ERROR, f"Backend unavailable: {reason}")

    if status != 200:
        return normalize_error(status, _decode_body(raw), "Failed to download file")

    lowered = {k.lower(): v for k, v in headers.items()}
    name = filename_from_content_disposition(lowered.get("content-disposition")) or default_name
    return BackendResponse.success(
        FileDownload(
            file_name=name,
            content=raw,
            content_type=lowered.get("content-type") or "application/octet-stream",
        ),
        status=status,
        headers=headers,
    )
