"""
Error taxonomy shared by the transport, the upload engine and the thread poster.

Every failure the core can produce is one of these exception types. Nothing in
the core retries automatically; callers decide what to do with each kind.
"""

from typing import Any, Dict, List, Optional

DEFAULT_RETRY_AFTER_SECONDS = 60


class XCliError(Exception):
    """Base class for all x-cli errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> Optional[Dict[str, Any]]:
        """Structured detail for the machine-readable output envelope."""
        return None


class ConfigurationError(XCliError):
    """Required configuration values are missing."""

    kind = "configuration"

    def __init__(self, missing: List[str], hint: str = "Copy .env.example to .env and fill in your credentials."):
        self.missing = list(missing)
        super().__init__(
            f"Missing required environment variables: {', '.join(self.missing)}. {hint}"
        )

    def details(self) -> Optional[Dict[str, Any]]:
        return {"missing": self.missing}


class UsageError(XCliError):
    """Invalid input detected before any network call."""

    kind = "usage"


class RateLimited(XCliError):
    kind = "rate_limited"

    def __init__(self, retry_after_seconds: int = DEFAULT_RETRY_AFTER_SECONDS):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Try again in {retry_after_seconds} seconds.")

    def details(self) -> Optional[Dict[str, Any]]:
        return {"retry_after_seconds": self.retry_after_seconds}


class AuthFailed(XCliError):
    """The stored credentials were rejected (HTTP 401/403)."""

    kind = "auth_failed"

    def __init__(self, status: int = 401):
        self.status = status
        super().__init__("Authentication failed. Run 'x-cli auth' to re-authenticate.")

    def details(self) -> Optional[Dict[str, Any]]:
        return {"status": self.status}


class HttpError(XCliError):
    kind = "http_error"

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"API request failed ({status}): {body}")

    def details(self) -> Optional[Dict[str, Any]]:
        return {"status": self.status, "body": self.body}


class ApiError(XCliError):
    """One or more semantic errors reported inside the response envelope."""

    kind = "api_error"

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))

    def details(self) -> Optional[Dict[str, Any]]:
        return {"messages": self.messages}


class NetworkError(XCliError):
    kind = "network_error"

    def __init__(self, reason: str = ""):
        self.reason = reason
        message = "Network error: Unable to connect to X API. Check your internet connection."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnsupportedMediaType(XCliError):
    kind = "unsupported_media_type"

    def __init__(self, extension: str, supported: List[str]):
        self.extension = extension
        self.supported = list(supported)
        super().__init__(
            f"Unsupported file extension: {extension or '(none)'}. Supported: {', '.join(self.supported)}"
        )

    def details(self) -> Optional[Dict[str, Any]]:
        return {"extension": self.extension, "supported": self.supported}


class ProtocolError(XCliError):
    """The server answered with something the protocol does not allow."""

    kind = "protocol_error"


class MediaProcessingFailed(XCliError):
    kind = "media_processing_failed"

    def __init__(self, media_id: str, detail: Any):
        self.media_id = media_id
        self.detail = detail
        super().__init__(f"Video processing failed: {detail}")

    def details(self) -> Optional[Dict[str, Any]]:
        return {"media_id": self.media_id, "error": self.detail}


class MediaProcessingTimeout(XCliError):
    kind = "media_processing_timeout"

    def __init__(self, media_id: str, waited_seconds: float):
        self.media_id = media_id
        self.waited_seconds = waited_seconds
        super().__init__(
            f"Video processing for media {media_id} did not finish after {waited_seconds:g}s"
        )

    def details(self) -> Optional[Dict[str, Any]]:
        return {"media_id": self.media_id, "waited_seconds": self.waited_seconds}


class SequenceError(XCliError):
    """A thread stopped part-way; earlier posts are live on the server."""

    kind = "sequence_error"

    def __init__(self, posted_so_far: List[Any], failed_at_index: int, cause: XCliError):
        self.posted_so_far = list(posted_so_far)
        self.failed_at_index = failed_at_index
        self.cause = cause
        super().__init__(f"Thread posting failed at tweet {failed_at_index}: {cause.message}")

    def details(self) -> Optional[Dict[str, Any]]:
        return {
            "posted": [
                item.model_dump() if hasattr(item, "model_dump") else item
                for item in self.posted_so_far
            ],
            "failed_at": self.failed_at_index,
            "cause": self.cause.kind,
        }


class AuthorizationError(XCliError):
    """The interactive authorization handshake did not complete."""

    kind = "authorization_error"

    def __init__(self, message: str, cause: Optional[str] = None):
        self.cause = cause
        super().__init__(message)

    def details(self) -> Optional[Dict[str, Any]]:
        return {"error": self.cause} if self.cause else None
