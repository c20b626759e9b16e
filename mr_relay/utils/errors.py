"""
Relay error taxonomy.

Every error carries the HTTP status the relay answers with and renders to
the ``{"error": "..."}`` body the headset client expects.
"""
from typing import Any, Dict, Optional

from fastapi import status


class RelayError(Exception):
    """Base class for errors that end a single request."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(RelayError):
    """Malformed or missing client input. Never reaches upstream."""

    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamError(RelayError):
    """The provider answered with a non-success status."""

    def __init__(
        self,
        endpoint: str,
        upstream_status: int,
        body: bytes = b"",
        content_type: Optional[str] = None,
    ):
        self.endpoint = endpoint
        self.upstream_status = upstream_status
        self.body = body
        self.content_type = content_type
        text = body.decode("utf-8", errors="replace")
        super().__init__(f"Upstream {endpoint} {upstream_status}: {text}")


class TransportError(RelayError):
    """The provider could not be reached (connection failure or timeout)."""

    def __init__(self, endpoint: str, cause: Exception):
        self.endpoint = endpoint
        super().__init__(f"Upstream {endpoint} unreachable: {cause}")


class RateLimitError(RelayError):
    """Client exceeded its request quota for the current window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after: float):
        self.retry_after = retry_after
        super().__init__("Too many requests, please try again later.")


class OriginNotAllowedError(RelayError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, origin: str):
        self.origin = origin
        super().__init__(f"Origin not allowed: {origin}")


class PayloadTooLargeError(RelayError):
    # Content Too Large; the Starlette constant was renamed between releases
    status_code = 413

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Request body exceeds {limit} bytes")
