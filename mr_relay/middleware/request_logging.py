"""
Request logging middleware.
Logs HTTP requests and responses for monitoring and debugging.
"""
import json
import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from mr_relay.utils.client_ip import get_client_ip

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses.

    Bodies are never logged: they carry conversation text and raw audio.
    """

    def __init__(self, app, ignore_paths: tuple = ()):
        super().__init__(app)
        self.ignore_paths = ignore_paths or (
            "/health",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/favicon.ico",
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip logging for ignored paths
        if request.url.path in self.ignore_paths:
            return await call_next(request)

        start_time = time.time()
        client_ip = get_client_ip(request)

        request_log = {
            "type": "request",
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client_ip": client_ip,
            "origin": request.headers.get("origin"),
            "user_agent": request.headers.get("user-agent"),
            "content_type": request.headers.get("content-type"),
            "content_length": request.headers.get("content-length"),
            "timestamp": start_time,
        }
        logger.info(json.dumps(request_log))

        response = await call_next(request)

        process_time = time.time() - start_time

        response_log = {
            "type": "response",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": round(process_time * 1000, 2),
            "client_ip": client_ip,
            "timestamp": time.time(),
        }

        # Log level based on status code
        if response.status_code >= 500:
            logger.error(json.dumps(response_log))
        elif response.status_code >= 400:
            logger.warning(json.dumps(response_log))
        else:
            logger.info(json.dumps(response_log))

        response.headers["X-Process-Time"] = str(process_time)

        return response
