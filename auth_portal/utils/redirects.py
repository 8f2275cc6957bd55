"""
Redirect-message protocol

Carries a one-shot status message across a full-page redirect using a single
query parameter (`success`, `error` or `message`) on the target URL.
"""

import logging
from typing import Mapping, Optional, Union
from urllib.parse import parse_qsl, quote

from fastapi import status
from fastapi.responses import RedirectResponse

from auth_portal.models.messages import (
    AuthActionResult, MessageKind, MESSAGE_PRIORITY, StatusMessage
)

logger = logging.getLogger(__name__)


def encode_redirect(kind: Union[MessageKind, str], path: str, text: str) -> AuthActionResult:
    """
    Build a redirect to `path` carrying `text` under the `kind` parameter.

    Raises:
        ValueError: if `kind` is not success, error or message
    """
    kind = MessageKind(kind)
    separator = '&' if '?' in path else '?'
    location = f"{path}{separator}{kind.value}={quote(text, safe='')}"
    return AuthActionResult(
        path=path,
        location=location,
        message=StatusMessage(kind=kind, text=text),
    )


def redirect_to(path: str) -> AuthActionResult:
    """Build a terminal redirect with no message"""
    return AuthActionResult(path=path, location=path)


def decode_message(params: Mapping[str, str]) -> Optional[StatusMessage]:
    """
    Read the status message out of request query parameters.

    The first present parameter in success > error > message order wins.
    A parameter counts as present even when its value is empty. When a
    multi-dict such as `request.query_params` repeats a key, the first value
    is used.
    """
    for kind in MESSAGE_PRIORITY:
        if kind.value not in params:
            continue
        if hasattr(params, "getlist"):
            text = params.getlist(kind.value)[0]
        else:
            text = params[kind.value]
        return StatusMessage(kind=kind, text=text)
    return None


def decode_query_string(query_string: str) -> Optional[StatusMessage]:
    """Decode a raw query string (without the leading '?')"""
    params = {}
    for key, value in parse_qsl(query_string.lstrip('?'), keep_blank_values=True):
        # first occurrence of a repeated key wins
        params.setdefault(key, value)
    return decode_message(params)


def to_redirect_response(result: AuthActionResult) -> RedirectResponse:
    """Turn an action result into the HTTP redirect sent to the browser"""
    if result.message is not None:
        logger.debug(f"Redirecting to {result.path} with {result.message.kind.value} message")
    return RedirectResponse(url=result.location, status_code=status.HTTP_303_SEE_OTHER)
