"""
Incremental chunk-to-event reassembly for `data:` framed event streams.

Network chunks do not line up with event boundaries, so the reassembler keeps
the unconsumed tail of each batch and prepends it to the next chunk. It does
no I/O: `ingest` returns the outcomes for the caller to dispatch.

Known ambiguity: an event that fails to decode (both as the result type and
as the error payload) and is the last one in its batch is always treated as
a partial event and buffered. A genuinely malformed final event is therefore
never reported; it stays in the buffer and is retried with the next chunk.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

import structlog

from ..exceptions import UnknownContentError
from .decoder import EventDecoder
from .models import ReassemblerState, StreamOutcome

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_COMPLETION_MARKER = "[DONE]"
DEFAULT_EVENT_DELIMITER = "data:"


class StreamReassembler(Generic[T]):
    """
    Turns raw byte chunks into decoded results and processing errors.

    Not reentrant: chunks of one stream must be ingested sequentially, and
    each stream needs its own instance.
    """

    def __init__(
        self,
        decoder: EventDecoder[T],
        completion_marker: str = DEFAULT_COMPLETION_MARKER,
        event_delimiter: str = DEFAULT_EVENT_DELIMITER,
    ):
        self.decoder = decoder
        self.completion_marker = completion_marker
        self.event_delimiter = event_delimiter
        self.pending_buffer = ""
        self.stats = self._empty_stats()

    @property
    def state(self) -> ReassemblerState:
        if self.pending_buffer:
            return ReassemblerState.BUFFERING_PARTIAL
        return ReassemblerState.IDLE

    def ingest(self, chunk: bytes) -> list[StreamOutcome[T]]:
        """
        Consume one network chunk.

        Returns outcomes in arrival order. A chunk that is not valid UTF-8 is
        dropped with a single UnknownContentError and leaves the pending
        buffer untouched.
        """
        self.stats['total_chunks'] += 1

        try:
            text = chunk.decode("utf-8")
        except UnicodeDecodeError:
            self.stats['unknown_content'] += 1
            logger.warning("Dropping chunk that is not valid UTF-8", size=len(chunk))
            return [StreamOutcome.of_error(UnknownContentError(chunk))]

        if not text:
            return []

        return self._process_text(text)

    def _split_events(self, text: str) -> list[str]:
        combined = f"{self.pending_buffer}{text}".strip()
        pieces = (piece.strip() for piece in combined.split(self.event_delimiter))
        return [piece for piece in pieces if piece]

    def _process_text(self, text: str) -> list[StreamOutcome[T]]:
        events = self._split_events(text)
        self.pending_buffer = ""

        if not events or events[0] == self.completion_marker:
            if events:
                self.stats['sentinel_batches'] += 1
            return []

        outcomes: list[StreamOutcome[T]] = []
        last_index = len(events) - 1

        for index, event in enumerate(events):
            if event == self.completion_marker or not event:
                continue

            result = self.decoder.decode(event)

            if result.error is None:
                self.stats['content_events'] += 1
                outcomes.append(StreamOutcome.of_content(result.value))
            elif not result.undecodable:
                self.stats['error_events'] += 1
                outcomes.append(StreamOutcome.of_error(result.error))
            elif index == last_index:
                # Chunk ends in a partial event
                self.pending_buffer = f"{self.event_delimiter} {event}"
                self.stats['buffered_fragments'] += 1
                logger.debug(
                    "Buffering partial event", pending_size=len(self.pending_buffer)
                )
            else:
                self.stats['error_events'] += 1
                outcomes.append(StreamOutcome.of_error(result.error))

        return outcomes

    def reset(self) -> None:
        """Drop any buffered partial event."""
        self.pending_buffer = ""

    @staticmethod
    def _empty_stats() -> dict[str, int]:
        return {
            'total_chunks': 0,
            'content_events': 0,
            'error_events': 0,
            'buffered_fragments': 0,
            'unknown_content': 0,
            'sentinel_batches': 0,
        }

    def get_stats(self) -> dict[str, Any]:
        """Get reassembly statistics for monitoring."""
        stats: dict[str, Any] = self.stats.copy()
        stats['state'] = self.state.value
        return stats

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self.stats = self._empty_stats()
