"""
Payload models decoded from stream events.

This module provides:
- OpenAI-compatible chat completion chunk models (the default result type)
- The error payload shape servers send in place of a result
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class FinishReason(Enum):
    """OpenAI-compatible finish reasons."""
    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    FUNCTION_CALL = "function_call"


class ToolFunctionDelta(BaseModel):
    """Partial tool function carried by a streamed delta."""
    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(BaseModel):
    """Partial tool call; fragments share an index across chunks."""
    index: int = 0
    id: str | None = None
    type: Literal["function"] | None = None
    function: ToolFunctionDelta | None = None


class ChoiceDelta(BaseModel):
    role: Literal["system", "user", "assistant", "tool"] | None = None
    content: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class StreamChoice(BaseModel):
    index: int
    delta: ChoiceDelta = Field(default_factory=ChoiceDelta)
    finish_reason: FinishReason | None = None


class ChatStreamResult(BaseModel):
    """One chat completion chunk as sent in a single `data:` event."""
    id: str
    object: str
    created: int
    model: str
    choices: list[StreamChoice]
    system_fingerprint: str | None = None

    @property
    def content(self) -> str:
        """Concatenated delta content of every choice in this chunk."""
        return "".join(
            choice.delta.content or "" for choice in self.choices
        )


class APIError(BaseModel):
    """Error details reported by the server."""
    message: str
    type: str
    param: str | None = None
    code: str | int | None = None


class APIErrorResponse(BaseModel):
    """Error payload shape: `{"error": {...}}`."""
    error: APIError
