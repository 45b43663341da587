"""
httpx-backed transport driver delivering raw response chunks to a delegate.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import httpx
import structlog

from ..exceptions import StreamCancelledError
from ..logging_utils import StreamErrorHandler, operation_context
from .models import ResponseMetadata

logger = structlog.get_logger(__name__)


class TransportDelegate(Protocol):
    """Receiver of one exchange's data and completion signals."""

    def handle_data(self, chunk: bytes) -> None: ...

    def handle_completion(
        self, error: Exception | None, metadata: ResponseMetadata | None
    ) -> None: ...


class TransportHandle:
    """Cancellable handle for one in-flight exchange."""

    def __init__(self, task: asyncio.Task[None]):
        self._task = task

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """
        Wait for the exchange to finish, including after cancellation.

        Cancelling the waiter does not cancel the exchange.
        """
        await asyncio.wait({self._task})


class TransportDriver(Protocol):
    def perform(
        self, request: httpx.Request, delegate: TransportDelegate
    ) -> TransportHandle: ...


class _Exchange:
    """Per-request state guaranteeing a single completion signal."""

    def __init__(self, request: httpx.Request, delegate: TransportDelegate):
        self.request = request
        self.delegate = delegate
        self.url = str(request.url)
        self.metadata: ResponseMetadata | None = None
        self.completed = False

    def complete(self, error: Exception | None) -> None:
        if self.completed:
            return
        self.completed = True
        self.delegate.handle_completion(error, self.metadata)

    def on_task_done(self, task: asyncio.Task[None]) -> None:
        # Covers cancellation before the task body ever ran
        if task.cancelled():
            self.complete(StreamCancelledError(self.url))


class HttpxTransport:
    """
    Streams a request through an `httpx.AsyncClient`.

    `delegate.handle_data` is called once per received buffer, in order, and
    `delegate.handle_completion` exactly once: with None on success, with the
    transport error on failure, or with StreamCancelledError on cancel.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    def perform(
        self, request: httpx.Request, delegate: TransportDelegate
    ) -> TransportHandle:
        exchange = _Exchange(request, delegate)
        task = asyncio.create_task(self._run(exchange))
        task.add_done_callback(exchange.on_task_done)
        return TransportHandle(task)

    async def _run(self, exchange: _Exchange) -> None:
        try:
            async with operation_context("sse_stream", context={"url": exchange.url}):
                response = await self.client.send(exchange.request, stream=True)
                try:
                    exchange.metadata = ResponseMetadata.from_response(response)
                    async for chunk in response.aiter_bytes():
                        exchange.delegate.handle_data(chunk)
                finally:
                    await response.aclose()
        except asyncio.CancelledError:
            logger.info("Stream cancelled", url=exchange.url)
            exchange.complete(StreamCancelledError(exchange.url))
            raise
        except Exception as e:
            logger.warning(
                "Stream transport failed",
                url=exchange.url,
                **StreamErrorHandler.describe(e),
            )
            exchange.complete(e)
        else:
            exchange.complete(None)
