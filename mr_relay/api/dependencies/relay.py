"""
Shared dependencies for relay endpoints.
"""
import json
import logging
from typing import Any

from fastapi import Depends, Request

from mr_relay.config.settings import Settings
from mr_relay.controllers.chat_controller import ChatController
from mr_relay.controllers.session_controller import SessionController
from mr_relay.controllers.speech_controller import SpeechController
from mr_relay.services.upstream import UpstreamClient
from mr_relay.utils.errors import PayloadTooLargeError

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings


def get_upstream(request: Request) -> UpstreamClient:
    """Process-wide upstream client."""
    return request.app.state.upstream


def get_chat_controller(
    upstream: UpstreamClient = Depends(get_upstream),
    settings: Settings = Depends(get_app_settings),
) -> ChatController:
    return ChatController(upstream, settings)


def get_session_controller(
    upstream: UpstreamClient = Depends(get_upstream),
    settings: Settings = Depends(get_app_settings),
) -> SessionController:
    return SessionController(upstream, settings)


def get_speech_controller(
    upstream: UpstreamClient = Depends(get_upstream),
    settings: Settings = Depends(get_app_settings),
) -> SpeechController:
    return SpeechController(upstream, settings)


async def read_json_body(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> Any:
    """
    Read the request body as JSON.

    An empty or unparsable body yields None so the controller answers with
    its own validation message instead of a framework 422.

    Raises:
        PayloadTooLargeError: If the body exceeds the JSON size ceiling
    """
    limit = settings.max_json_body_bytes
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise PayloadTooLargeError(limit)
        chunks.append(chunk)

    body = b"".join(chunks)
    if not body:
        return None

    try:
        return json.loads(body)
    except ValueError:
        logger.debug("Ignoring unparsable JSON body on %s", request.url.path)
        return None
