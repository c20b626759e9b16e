"""
Chat controller.

Validates conversation payloads and relays them to the upstream
chat-completions API.
"""
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from mr_relay.api.models.chat import ChatRequest, ChatResponse
from mr_relay.config.settings import Settings
from mr_relay.services.upstream import UpstreamClient
from mr_relay.utils.errors import ValidationError

logger = logging.getLogger(__name__)


def extract_reply_text(payload: Any) -> str:
    """
    Return the first choice's message content, or "" when it is absent.

    Never raises: upstream payloads are trusted for shape only as far as
    this path goes.
    """
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class ChatController:
    """Controller for chat relay operations."""

    def __init__(self, upstream: UpstreamClient, settings: Settings):
        self.upstream = upstream
        self.settings = settings

    def _validate_request(self, payload: Any) -> ChatRequest:
        """
        Validate a chat request body.

        Raises:
            ValidationError: If messages are missing, empty or malformed
        """
        messages = payload.get("messages") if isinstance(payload, dict) else None
        if not isinstance(messages, list) or not messages:
            raise ValidationError("messages[] required")

        try:
            return ChatRequest.model_validate(payload)
        except PydanticValidationError as e:
            logger.debug(f"Rejected chat payload: {e.errors()}")
            raise ValidationError(
                "messages[] must be {role, content} pairs with role system, user or assistant"
            ) from e

    async def chat(self, payload: Any) -> ChatResponse:
        request = self._validate_request(payload)
        model = request.model or self.settings.default_model

        data = await self.upstream.create_chat_completion(
            messages=[message.model_dump() for message in request.messages],
            model=model,
        )
        return ChatResponse(text=extract_reply_text(data), raw=data)
