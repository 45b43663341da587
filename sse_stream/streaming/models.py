"""
Streaming-specific dataclasses shared by the reassembler and sessions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

ResultT = TypeVar("ResultT")


class StreamOutcomeType(Enum):
    """Types of notifications a stream produces."""
    CONTENT = "content"
    PROCESSING_ERROR = "processing_error"
    COMPLETE = "complete"


class ReassemblerState(Enum):
    """Whether a partial event is waiting for the next chunk."""
    IDLE = "idle"
    BUFFERING_PARTIAL = "buffering_partial"


@dataclass(frozen=True)
class StreamOutcome(Generic[ResultT]):
    """One notification: decoded content, a processing error or completion."""
    outcome_type: StreamOutcomeType
    content: ResultT | None = None
    error: Exception | None = None
    timestamp: float = field(default_factory=lambda: __import__('time').time())

    @classmethod
    def of_content(cls, content: ResultT) -> StreamOutcome[ResultT]:
        return cls(StreamOutcomeType.CONTENT, content=content)

    @classmethod
    def of_error(cls, error: Exception) -> StreamOutcome[ResultT]:
        return cls(StreamOutcomeType.PROCESSING_ERROR, error=error)

    @classmethod
    def of_completion(cls, error: Exception | None) -> StreamOutcome[ResultT]:
        return cls(StreamOutcomeType.COMPLETE, error=error)

    @property
    def is_terminal(self) -> bool:
        return self.outcome_type is StreamOutcomeType.COMPLETE


@dataclass(frozen=True)
class ResponseMetadata:
    """Response details the transport exposes at completion time."""
    status_code: int
    content_type: str | None
    url: str | None

    @classmethod
    def from_response(cls, response: Any) -> ResponseMetadata:
        """Build metadata from an httpx response, keeping only the mime type."""
        raw_type = response.headers.get("content-type")
        content_type = raw_type.split(";", 1)[0].strip().lower() if raw_type else None
        return cls(
            status_code=response.status_code,
            content_type=content_type or None,
            url=str(response.url),
        )
