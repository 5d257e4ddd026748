# =============================================================================
# core/http.py  -  Shared HTTP plumbing
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   1. Builds the one httpx.AsyncClient that TokenManager and QueryDispatcher
#      share for the life of the process.
#   2. Turns a failed HTTP exchange into a DownstreamFailure: a status code
#      plus whatever human-readable text we can dig out of the body.
#
# WHY "BEST EFFORT"?
#   Neither the token issuer nor the chat service promises a schema for
#   their error bodies.  Some send {"detail": ...}, some send OAuth-style
#   {"error": ..., "error_description": ...}, some send HTML.  We look for
#   the usual suspects and fall back to the raw text.
# =============================================================================

import json
from typing import Any, Optional

import httpx

from core.models import DownstreamFailure

# Keys checked, in order, when an error body is a JSON object.
_MESSAGE_KEYS = ("detail", "message", "error_description", "error")


def create_http_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Create the shared async HTTP client.

    Args:
        timeout: Per-request timeout in seconds.  None keeps httpx's default.
    """
    if timeout is None:
        return httpx.AsyncClient()
    return httpx.AsyncClient(timeout=timeout)


def _extract_text(payload: Any) -> str:
    """Pull a message out of an arbitrary decoded JSON value."""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        for key in _MESSAGE_KEYS:
            value = payload.get(key)
            if value:
                return _extract_text(value)
    return json.dumps(payload, ensure_ascii=False, default=str)


def body_text(response: httpx.Response) -> str:
    """Best-effort textual form of a response body ("" when empty)."""
    try:
        payload = response.json()
    except (ValueError, UnicodeDecodeError):
        return response.text.strip()
    return _extract_text(payload).strip()


def status_text(response: httpx.Response) -> str:
    """e.g. "500 Internal Server Error"."""
    return f"{response.status_code} {response.reason_phrase}".strip()


def describe_response(response: httpx.Response) -> DownstreamFailure:
    """Summarize an unsuccessful response as a DownstreamFailure."""
    message = status_text(response)
    detail = body_text(response)
    if detail:
        message = f"{message}: {detail}"
    return DownstreamFailure(status=response.status_code, message=message)


def describe_transport_error(exc: httpx.HTTPError) -> DownstreamFailure:
    """Summarize a network-level failure (no response was received)."""
    return DownstreamFailure(status=None, message=str(exc) or type(exc).__name__)
