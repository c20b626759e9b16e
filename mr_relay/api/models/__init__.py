from .chat import ChatMessage, ChatRequest, ChatResponse
from .error import ErrorResponse
from .speech import TranscriptionResponse, TtsRequest

__all__ = [
    "ErrorResponse",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "TtsRequest",
    "TranscriptionResponse",
]
