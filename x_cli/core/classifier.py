"""
Maps a raw HTTP outcome (status, headers, body text) onto the error taxonomy.
"""

import json
import math
import time
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import (
    DEFAULT_RETRY_AFTER_SECONDS,
    ApiError,
    AuthFailed,
    HttpError,
    ProtocolError,
    RateLimited,
)

RATE_LIMIT_RESET_HEADER = "x-rate-limit-reset"

ModelT = TypeVar("ModelT", bound=BaseModel)


def retry_after_seconds(headers: Mapping[str, str], now: Optional[float] = None) -> int:
    """Seconds until the rate-limit window resets, or the default backoff."""
    lowered = {str(k).lower(): v for k, v in headers.items()}
    reset = lowered.get(RATE_LIMIT_RESET_HEADER)
    if not reset:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        reset_epoch = int(reset)
    except ValueError:
        return DEFAULT_RETRY_AFTER_SECONDS
    now = time.time() if now is None else now
    wait = math.ceil(reset_epoch - now)
    return wait if wait > 0 else DEFAULT_RETRY_AFTER_SECONDS


def error_messages(errors: List[Any]) -> List[str]:
    messages = []
    for err in errors:
        if not isinstance(err, dict):
            messages.append(str(err))
            continue
        message = err.get("message") or err.get("detail")
        if not message:
            message = f"Error code: {err.get('code') or err.get('type') or 'unknown'}"
        messages.append(str(message))
    return messages


def parse_body(text: str) -> Dict[str, Any]:
    """Decode a 2xx body; an empty body is an empty object."""
    if not text or not text.strip():
        return {}
    try:
        body = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Response body is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(body).__name__}")
    return body


def classify_response(
    status: int,
    headers: Mapping[str, str],
    text: str,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Classify a response.

    Args:
        status: HTTP status code
        headers: Response headers (any case)
        text: Response body as text
        now: Current epoch time, injectable for tests

    Returns:
        The parsed JSON body for a successful response

    Raises:
        RateLimited, AuthFailed, HttpError, ApiError, ProtocolError
    """
    if status == 429:
        raise RateLimited(retry_after_seconds(headers, now))
    if status in (401, 403):
        raise AuthFailed(status)
    if not 200 <= status < 300:
        raise HttpError(status, text or "")

    body = parse_body(text)
    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        raise ApiError(error_messages(errors))
    return body


def decode_body(model: Type[ModelT], body: Dict[str, Any], what: str) -> ModelT:
    """Validate a parsed body against a response model; a mismatch is a ProtocolError."""
    try:
        return model.model_validate(body)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors())
        raise ProtocolError(f"Unexpected {what} response shape ({fields})") from e
