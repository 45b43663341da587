"""
Streaming session: one HTTP exchange decoded into typed results.

A session owns its reassembler and forwards every outcome to the caller's
callbacks in arrival order:

    session = StreamingSession(request, transport, ChatStreamResult)
    session.on_receive_content = lambda s, result: print(result.content)
    session.perform()
    await session.wait()

Callbacks run inside the transport task without any lock held and may call
`session.cancel()`. An exception from a content or processing-error
callback ends the stream and becomes the completion error; an exception
from `on_complete` is logged and contained. Calling `ingest` after `finish`
violates the session contract; the reassembler does not guard against it.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Any, Generic, TypeVar

import httpx

from ..exceptions import (
    EVENT_STREAM_CONTENT_TYPE,
    IncorrectContentTypeError,
    StreamCancelledError,
)
from ..logging_utils import ContextualLogger, StreamErrorHandler
from .decoder import EventDecoder
from .models import ResponseMetadata, StreamOutcome, StreamOutcomeType
from .reassembler import (
    DEFAULT_COMPLETION_MARKER,
    DEFAULT_EVENT_DELIMITER,
    StreamReassembler,
)
from .transport import TransportDriver, TransportHandle

ResultT = TypeVar("ResultT")


class StreamingSession(Generic[ResultT]):
    """Decodes one streaming response and reports results through callbacks."""

    def __init__(
        self,
        request: httpx.Request,
        transport: TransportDriver,
        result_type: Any,
        *,
        expected_content_type: str = EVENT_STREAM_CONTENT_TYPE,
        completion_marker: str = DEFAULT_COMPLETION_MARKER,
        event_delimiter: str = DEFAULT_EVENT_DELIMITER,
    ):
        self.id = str(uuid.uuid4())
        self.request = request
        self.transport = transport
        self.expected_content_type = expected_content_type
        self.reassembler: StreamReassembler[ResultT] = StreamReassembler(
            EventDecoder(result_type),
            completion_marker=completion_marker,
            event_delimiter=event_delimiter,
        )

        self.on_receive_content: Callable[[StreamingSession, ResultT], None] | None = None
        self.on_processing_error: Callable[[StreamingSession, Exception], None] | None = None
        self.on_complete: Callable[[StreamingSession, Exception | None], None] | None = None

        self._handle: TransportHandle | None = None
        self._cancelled = False
        self._finished = False
        self._logger = ContextualLogger(
            {"session_id": self.id, "url": str(request.url)}
        )

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def perform(self) -> None:
        """Start the exchange. Must be called from a running event loop."""
        if self._handle is not None:
            raise RuntimeError("Streaming session already performed")

        if self._cancelled:
            self.finish(StreamCancelledError(str(self.request.url)))
            return

        self._logger.info("Streaming session started")
        self._handle = self.transport.perform(self.request, self)

    def cancel(self) -> None:
        """Request the transport to abort. Safe to call repeatedly."""
        if self._cancelled:
            return
        self._cancelled = True
        self._logger.info("Streaming session cancel requested")
        if self._handle is not None:
            self._handle.cancel()

    async def wait(self) -> None:
        """Wait until the transport has delivered its completion signal."""
        if self._handle is not None:
            await self._handle.wait()

    def ingest(self, chunk: bytes) -> None:
        """Feed one raw chunk through the reassembler and dispatch outcomes."""
        for outcome in self.reassembler.ingest(chunk):
            self._dispatch(outcome)

    def finish(self, error: Exception | None) -> None:
        """Deliver the terminal completion callback exactly once."""
        if self._finished:
            self._logger.warning("Streaming session finished twice; ignoring")
            return
        self._finished = True

        if error is None:
            self._logger.info(
                "Streaming session completed", **self.reassembler.get_stats()
            )
        else:
            self._logger.warning(
                "Streaming session completed with error",
                **StreamErrorHandler.describe(error),
            )

        if self.on_complete is None:
            return
        try:
            self.on_complete(self, error)
        except Exception as e:
            self._logger.error(
                "Completion callback failed", **StreamErrorHandler.describe(e)
            )

    # Transport delegate

    def handle_data(self, chunk: bytes) -> None:
        self.ingest(chunk)

    def handle_completion(
        self, error: Exception | None, metadata: ResponseMetadata | None
    ) -> None:
        if (
            error is None
            and metadata is not None
            and metadata.content_type is not None
            and metadata.content_type != self.expected_content_type
        ):
            error = IncorrectContentTypeError(
                metadata.content_type,
                url=metadata.url,
                expected=self.expected_content_type,
            )
        self.finish(error)

    def _dispatch(self, outcome: StreamOutcome[ResultT]) -> None:
        if outcome.outcome_type is StreamOutcomeType.CONTENT:
            if self.on_receive_content is not None:
                self.on_receive_content(self, outcome.content)
        elif outcome.outcome_type is StreamOutcomeType.PROCESSING_ERROR:
            self._logger.warning(
                "Stream processing error", **StreamErrorHandler.describe(outcome.error)
            )
            if self.on_processing_error is not None:
                self.on_processing_error(self, outcome.error)
