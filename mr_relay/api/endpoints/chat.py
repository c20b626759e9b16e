"""
Chat endpoint.

Relays a conversation to the upstream chat-completions API and returns the
first reply text alongside the raw upstream payload.
"""
from typing import Any

from fastapi import APIRouter, Depends, status

from mr_relay.api.dependencies.relay import get_chat_controller, read_json_body
from mr_relay.api.models import ChatResponse, ErrorResponse
from mr_relay.controllers.chat_controller import ChatController

router = APIRouter()


@router.post(
    "/chat",
    response_model=ChatResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ErrorResponse, "description": "messages missing or invalid"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Upstream failure"},
    },
)
async def chat(
    payload: Any = Depends(read_json_body),
    controller: ChatController = Depends(get_chat_controller),
) -> ChatResponse:
    """
    Body: ``{"messages": [{"role", "content"}], "model"?}``.

    Upstream failures are normalized to a 500 with the stringified cause.
    """
    return await controller.chat(payload)
