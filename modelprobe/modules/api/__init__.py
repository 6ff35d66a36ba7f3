"""
API Module - Black Box Interface

Purpose: Shapes of the upstream OpenAI-compatible requests and responses
Interface: ChatCompletionRequest.probe(), ModelListResponse
Hidden: Field validation
"""

from .models import (
    PROBE_PROMPT,
    ChatCompletionRequest,
    ChatMessage,
    ModelEntry,
    ModelListResponse,
)

__all__ = [
    "PROBE_PROMPT",
    "ChatCompletionRequest",
    "ChatMessage",
    "ModelEntry",
    "ModelListResponse",
]
