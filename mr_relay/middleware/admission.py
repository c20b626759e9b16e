"""
Request admission middleware.

Origin allow-list, per-client rate limiting and body size ceilings. Each
check rejects locally, before any upstream call is made.
"""
import logging
from typing import Callable, Sequence, Tuple

from fastapi import Request, Response
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from mr_relay.middleware.error_handling import relay_error_response
from mr_relay.utils.client_ip import get_client_ip
from mr_relay.utils.errors import (
    OriginNotAllowedError,
    PayloadTooLargeError,
    RateLimitError,
    RelayError,
    ValidationError,
)
from mr_relay.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Room for multipart boundaries and the non-file form fields
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


class OriginAllowListMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Origin header is not allow-listed.

    An empty allow-list admits every origin. Requests without an Origin
    header (native clients such as the headset) are always admitted.
    """

    def __init__(self, app, allowed_origins: Sequence[str] = ()):
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        origin = request.headers.get("origin")
        if origin and self.allowed_origins and origin not in self.allowed_origins:
            logger.warning(f"Rejected request from origin {origin} to {request.url.path}")
            return relay_error_response(OriginNotAllowedError(origin))
        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Admit at most the limiter's quota per client and window."""

    def __init__(
        self,
        app,
        limiter: RateLimiter,
        trust_proxy_headers: bool = False,
        exempt_paths: tuple = ("/health",),
    ):
        super().__init__(app)
        self.limiter = limiter
        self.trust_proxy_headers = trust_proxy_headers
        self.exempt_paths = exempt_paths

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        client_key = get_client_ip(request, trust_proxy_headers=self.trust_proxy_headers)
        retry_after = await self.limiter.hit(client_key)
        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {client_key} on {request.url.path}")
            return relay_error_response(RateLimitError(retry_after))
        return await call_next(request)




class BodySizeLimitMiddleware:
    """Reject bodies larger than the ceiling for their type.

    Multipart uploads get the audio ceiling plus form overhead and fail as
    an oversized audio file (400); every other body gets the JSON ceiling
    (413). A declared Content-Length is checked up front. The bytes
    actually received are counted as well, so chunked bodies without a
    length are cut off at the ceiling instead of being buffered in full.
    """

    def __init__(self, app: ASGIApp, max_json_bytes: int, max_audio_bytes: int):
        self.app = app
        self.max_json_bytes = max_json_bytes
        self.max_audio_bytes = max_audio_bytes
        self.max_multipart_bytes = max_audio_bytes + MULTIPART_OVERHEAD_BYTES

    def _ceiling(self, headers: Headers) -> Tuple[int, RelayError]:
        if headers.get("content-type", "").startswith("multipart/"):
            error = ValidationError(
                f"audio file exceeds the {self.max_audio_bytes} byte limit"
            )
            return self.max_multipart_bytes, error
        return self.max_json_bytes, PayloadTooLargeError(self.max_json_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        limit, error = self._ceiling(headers)

        declared = headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > limit:
            logger.warning(f"Rejected {declared} byte body on {scope['path']} (limit {limit})")
            await relay_error_response(error)(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(f"Body on {scope['path']} passed {limit} bytes mid-stream")
                    raise error
            return message

        await self.app(scope, limited_receive, send)
