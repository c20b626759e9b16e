"""
Error handling.
Centralizes error response formatting for the relay.
"""
import logging
import math
import traceback
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from mr_relay.utils.errors import RateLimitError, RelayError

logger = logging.getLogger(__name__)


def relay_error_response(error: RelayError) -> JSONResponse:
    """Render a relay error as ``{"error": ...}`` with its status code."""
    headers = None
    if isinstance(error, RateLimitError):
        headers = {"Retry-After": str(max(1, math.ceil(error.retry_after)))}
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers=headers,
    )


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Exception handler registered for every RelayError raised by a route."""
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "error_type": type(exc).__name__,
            "error": exc.message,
        },
    )
    return relay_error_response(exc)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last line of defence: no single request may take the process down."""

    def __init__(self, app, is_production: bool = True):
        super().__init__(app)
        self.is_production = is_production

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except RelayError as e:
            return relay_error_response(e)

        except Exception as e:
            tb_str = traceback.format_exc()

            logger.error(
                "Unhandled error",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )

            # Don't expose internal errors in production
            if self.is_production:
                message = "An internal error occurred. Please try again later."
            else:
                message = f"{type(e).__name__}: {str(e)}"

            response_content = {
                "error": "Internal Server Error",
                "message": message,
            }
            if not self.is_production:
                response_content["traceback"] = tb_str

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=response_content,
            )
