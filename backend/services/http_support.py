"""
Small helpers shared by the places, basemap and symbol-style clients.

Not a general HTTP layer: one GET, one JSON body, and the service error
envelope (`{"error": {"code": ..., "details": ...}}`) mapped onto the
failure taxonomy in domain.outcomes.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

import requests

from domain.models import ApiErrorInfo
from domain.outcomes import ApiError, DecodeError, TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "places-service-pipeline/0.1"
DEFAULT_HEADERS = {"User-Agent": USER_AGENT}

_TOKEN_PARAM_RE = re.compile(r"(?i)([?&](?:token|apikey|api_key)=)[^&#\s]+")


def redact_token(text: str) -> str:
    """Strip credential query parameters from a URL before it is logged."""
    return _TOKEN_PARAM_RE.sub(r"\1<redacted>", text)


def new_session() -> requests.Session:
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    return session


def http_get(
    session: requests.Session,
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    timeout: float,
) -> requests.Response:
    """Perform one GET; connection-level failures become TransportError."""
    try:
        resp = session.get(url, params=params, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        raise TransportError(f"request timed out after {timeout:.1f}s") from exc
    except requests.exceptions.RequestException as exc:
        raise TransportError(redact_token(f"request failed: {exc}")) from exc
    logger.debug("GET %s -> %s", redact_token(getattr(resp, "url", url) or url), resp.status_code)
    return resp


def _details_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, (list, tuple)):
        return "; ".join(str(item).strip() for item in raw if str(item).strip())
    return str(raw).strip()


def extract_api_error(payload: Any) -> Optional[ApiErrorInfo]:
    """Return ApiErrorInfo when the body carries a top-level `error` field."""
    if not isinstance(payload, dict) or "error" not in payload:
        return None
    error = payload["error"]
    if not isinstance(error, dict):
        return ApiErrorInfo(status_code="unknown", details=_details_text(error))
    code = error.get("code")
    if code is None:
        code = "unknown"
    details = _details_text(error.get("details"))
    if not details:
        details = _details_text(error.get("message"))
    return ApiErrorInfo(status_code=code, details=details)


def read_json_response(resp: requests.Response) -> Any:
    """
    Decode a response body, raising the matching FetchError.

    - `error` object in the body -> ApiError (whatever the status)
    - non-200 status otherwise -> ApiError built from the status line
    - 200 with an unparseable body -> DecodeError
    """
    try:
        payload = resp.json()
    except ValueError as exc:
        if resp.status_code != 200:
            raise ApiError(ApiErrorInfo(resp.status_code, (resp.reason or "").strip())) from exc
        raise DecodeError(f"invalid JSON body: {exc}") from exc

    info = extract_api_error(payload)
    if info is not None:
        raise ApiError(info)
    if resp.status_code != 200:
        raise ApiError(ApiErrorInfo(resp.status_code, (resp.reason or "").strip()))
    return payload
