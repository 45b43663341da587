"""
Streaming functionality for SSE responses.

This package contains:
- Chunk-to-event reassembly
- Event payload decoding with error payload fallback
- httpx transport driver
- Callback-based streaming sessions
"""

from __future__ import annotations

from .decoder import EventDecoder, EventDecodeResult
from .models import (
    ReassemblerState,
    ResponseMetadata,
    StreamOutcome,
    StreamOutcomeType,
)
from .reassembler import StreamReassembler
from .session import StreamingSession
from .transport import HttpxTransport, TransportDriver, TransportHandle

__all__ = [
    "EventDecodeResult",
    "EventDecoder",
    "HttpxTransport",
    "ReassemblerState",
    "ResponseMetadata",
    "StreamOutcome",
    "StreamOutcomeType",
    "StreamReassembler",
    "StreamingSession",
    "TransportDriver",
    "TransportHandle",
]
