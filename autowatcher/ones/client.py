"""
autowatcher/ones/client.py
Authenticated JSON calls against the ONES OpenAPI for one installation.
Exports: OpenApiError, call_openapi
"""

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from autowatcher.shared import DEFAULT_OPENAPI_TIMEOUT_SECONDS
from autowatcher.storage.types import InstallationContext

logger = logging.getLogger(__name__)

MAX_ERROR_BODY_CHARS = 280


class OpenApiError(RuntimeError):
    """Raised when an OpenAPI call fails at the network or HTTP level."""

    def __init__(self, message: str, *, path: str, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.path = path
        self.status = status
        self.body = body


def _truncate(text: str, max_chars: int = MAX_ERROR_BODY_CHARS) -> str:
    return text if len(text) <= max_chars else f"{text[: max_chars - 3]}..."


def _build_request(
    installation: InstallationContext,
    acting_user_id: str,
    path: str,
    method: str,
    body: dict[str, Any] | None,
) -> urllib.request.Request:
    if not installation.ones_base_url:
        raise OpenApiError(
            f"Installation {installation.installation_id} has no ONES base URL.", path=path
        )
    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=True).encode("utf-8")
    request = urllib.request.Request(
        f"{installation.ones_base_url}{path}",
        data=data,
        method=method.upper(),
        headers={"Accept": "application/json", "Content-Type": "application/json"},
    )
    if installation.access_token:
        request.add_header("Authorization", f"Bearer {installation.access_token}")
    if acting_user_id:
        request.add_header("X-User-ID", acting_user_id)
    return request


def call_openapi(
    installation: InstallationContext,
    acting_user_id: str,
    path: str,
    method: str,
    body: dict[str, Any] | None = None,
    *,
    timeout: int = DEFAULT_OPENAPI_TIMEOUT_SECONDS,
) -> Any:
    """
    Send one OpenAPI request and decode its JSON response.

    Args:
        installation: Tenant credentials and base URL.
        acting_user_id: ONES user the call acts as; empty for the app itself.
        path: API path including query string.
        method: HTTP method.
        body: Optional JSON body.
        timeout: Socket timeout in seconds.
    Returns:
        Decoded JSON value, or an empty dict for empty bodies.
    Raises:
        OpenApiError: Non-2xx status, network failure, or non-JSON body.
    """
    request = _build_request(installation, acting_user_id, path, method, body)
    logger.debug("OpenAPI %s %s (installation=%s)", request.get_method(), path, installation.installation_id)
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:  # noqa: S310 - base URL from installation
            raw = response.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
        raise OpenApiError(
            f"{request.get_method()} {path} failed with HTTP {exc.code}: {_truncate(detail)}",
            path=path,
            status=exc.code,
            body=_truncate(detail),
        ) from exc
    except (urllib.error.URLError, TimeoutError, OSError) as exc:
        raise OpenApiError(f"{request.get_method()} {path} failed: {exc}", path=path) from exc
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise OpenApiError(
            f"{request.get_method()} {path} returned non-JSON body: {_truncate(raw)}",
            path=path,
            body=_truncate(raw),
        ) from exc
