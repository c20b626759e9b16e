"""
MR Relay
Stateless FastAPI relay between the headset client and the upstream AI provider.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mr_relay.api.routers import api_router
from mr_relay.config.settings import Settings, get_settings
from mr_relay.middleware.admission import (
    BodySizeLimitMiddleware,
    OriginAllowListMiddleware,
    RateLimitMiddleware,
)
from mr_relay.middleware.error_handling import ErrorHandlingMiddleware, relay_error_handler
from mr_relay.middleware.request_logging import RequestLoggingMiddleware
from mr_relay.services.upstream import UpstreamClient
from mr_relay.utils.errors import RelayError
from mr_relay.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW_SECONDS = 60.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name} on :{settings.port}")
    if settings.allowed_origin_list:
        logger.info(f"Origin allow-list: {', '.join(settings.allowed_origin_list)}")
    else:
        logger.warning("ALLOWED_ORIGINS is empty; requests from any origin are admitted")

    yield

    logger.info("Shutting down...")
    await app.state.upstream.close()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Create and configure the relay application.

    Args:
        settings: Explicit settings; read from the environment when omitted
        http_client: Transport for upstream calls, mainly for tests
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Relay for chat, realtime session, TTS and STT requests",
        version="1.0.0",
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.upstream = UpstreamClient(settings, http_client=http_client)
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.rate_limit_per_minute,
        window_seconds=RATE_LIMIT_WINDOW_SECONDS,
    )

    app.add_exception_handler(RelayError, relay_error_handler)

    # Added innermost first: body size, rate limit, CORS, origin, errors, logging
    app.add_middleware(
        BodySizeLimitMiddleware,
        max_json_bytes=settings.max_json_body_bytes,
        max_audio_bytes=settings.max_audio_bytes,
    )
    app.add_middleware(
        RateLimitMiddleware,
        limiter=app.state.rate_limiter,
        trust_proxy_headers=settings.trust_proxy_headers,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origin_list or ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(OriginAllowListMiddleware, allowed_origins=settings.allowed_origin_list)
    app.add_middleware(ErrorHandlingMiddleware, is_production=settings.is_production)
    if settings.enable_request_logging:
        app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router)

    return app


def run() -> None:
    """Console entry point: serve the relay with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "mr_relay.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
