"""
Request and response models for the chat endpoint.
"""
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One conversation turn. Order within a request is significant.

    Extra per-message keys such as ``name`` are forwarded upstream untouched.
    """

    model_config = ConfigDict(extra="allow")

    role: Literal["system", "user", "assistant"]
    content: str = Field(min_length=1)


class ChatRequest(BaseModel):
    """Payload for chat.

    - messages: conversation history, oldest first
    - model: optional override of the relay's default chat model
    """
    messages: List[ChatMessage] = Field(min_length=1)
    model: Optional[str] = None


class ChatResponse(BaseModel):
    """Reply text plus the untouched upstream payload."""

    text: str
    raw: Any
