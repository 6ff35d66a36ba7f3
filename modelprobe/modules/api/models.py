"""
Wire models for the OpenAI-compatible endpoints the prober calls.

Only the fields the prober reads or sends are modelled; unknown fields in
responses are ignored.
"""

from typing import List

from pydantic import BaseModel, Field

PROBE_PROMPT = "Hello! Reply in short"


# Request Models (outbound)


class ChatMessage(BaseModel):
    """One chat message."""

    role: str = Field(..., description="Message author role")
    content: str = Field(..., description="Message text")


class ChatCompletionRequest(BaseModel):
    """Minimal completions request used as a health check."""

    model: str = Field(..., description="Model identifier to probe", min_length=1)
    messages: List[ChatMessage]

    @classmethod
    def probe(cls, model: str) -> "ChatCompletionRequest":
        """The fixed single-message probe for ``model``."""
        return cls(model=model, messages=[ChatMessage(role="user", content=PROBE_PROMPT)])


# Response Models (inbound)


class ModelEntry(BaseModel):
    """One entry of a GET /v1/models listing."""

    id: str


class ModelListResponse(BaseModel):
    """Response of GET /v1/models. A body without ``data`` lists nothing."""

    data: List[ModelEntry] = Field(default_factory=list)

    def model_ids(self) -> List[str]:
        return [entry.id for entry in self.data]
