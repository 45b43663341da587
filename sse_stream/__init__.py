"""
Incremental decoding of server-sent-event HTTP responses.

This package provides:
- Chunk-to-event reassembly tolerant of arbitrary network chunk boundaries
- Typed payload decoding with server error payload fallback
- Callback and async-iterator streaming sessions over httpx
- YAML/.env configuration and structured logging
"""

from __future__ import annotations

from .client import StreamingClient
from .exceptions import (
    EventDecodeError,
    IncorrectContentTypeError,
    ServerReportedError,
    StreamCancelledError,
    StreamingError,
    UnknownContentError,
)
from .models import APIError, APIErrorResponse, ChatStreamResult
from .streaming import (
    EventDecoder,
    HttpxTransport,
    ReassemblerState,
    StreamingSession,
    StreamOutcome,
    StreamOutcomeType,
    StreamReassembler,
)

__all__ = [
    "APIError",
    "APIErrorResponse",
    "ChatStreamResult",
    "EventDecodeError",
    "EventDecoder",
    "HttpxTransport",
    "IncorrectContentTypeError",
    "ReassemblerState",
    "ServerReportedError",
    "StreamCancelledError",
    "StreamOutcome",
    "StreamOutcomeType",
    "StreamReassembler",
    "StreamingClient",
    "StreamingError",
    "StreamingSession",
    "UnknownContentError",
]
