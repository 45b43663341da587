"""
HTTP client that opens streaming requests and decodes them with sessions.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx

from .config import Configuration
from .exceptions import EVENT_STREAM_CONTENT_TYPE
from .logging_utils import log_operation
from .models import ChatStreamResult
from .streaming.models import StreamOutcome, StreamOutcomeType
from .streaming.reassembler import DEFAULT_COMPLETION_MARKER, DEFAULT_EVENT_DELIMITER
from .streaming.session import StreamingSession
from .streaming.transport import HttpxTransport


class StreamingClient:
    """HTTP client for event-stream endpoints with typed result decoding."""

    def __init__(
        self,
        config: dict[str, Any],
        api_key: str,
        http_config: dict[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        # Validate required configuration parameters
        required_keys = ["base_url", "path", "model"]
        for key in required_keys:
            if key not in config:
                raise ValueError(
                    f"Required stream configuration parameter '{key}' not found. "
                    "All stream parameters must be explicitly configured."
                )

        http_config = http_config or {}
        self.config: dict[str, Any] = config
        self.api_key: str = api_key
        self.client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=config["base_url"],
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": config.get("expected_content_type", EVENT_STREAM_CONTENT_TYPE),
            },
            timeout=httpx.Timeout(
                connect=http_config.get("connect_timeout", 10.0),
                read=http_config.get("read_timeout", 60.0),
                write=http_config.get("write_timeout", 10.0),
                pool=http_config.get("pool_timeout", 10.0),
            ),
            transport=transport,
        )
        self.transport = HttpxTransport(self.client)

    @classmethod
    def from_configuration(
        cls,
        configuration: Configuration,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> StreamingClient:
        return cls(
            configuration.get_stream_config(),
            configuration.api_key,
            http_config=configuration.get_http_client_config(),
            transport=transport,
        )

    def build_request(
        self, payload: dict[str, Any], path: str | None = None
    ) -> httpx.Request:
        """Build a streaming POST request; the model defaults from config."""
        body = {"model": self.config["model"], **payload, "stream": True}
        return self.client.build_request(
            "POST", path or self.config["path"], json=body
        )

    def stream(
        self,
        payload: dict[str, Any],
        result_type: Any = ChatStreamResult,
        *,
        on_receive_content: Callable[[StreamingSession, Any], None] | None = None,
        on_processing_error: Callable[[StreamingSession, Exception], None] | None = None,
        on_complete: Callable[[StreamingSession, Exception | None], None] | None = None,
    ) -> StreamingSession:
        """Start a streaming session and return it; callbacks fire as data arrives."""
        session: StreamingSession = StreamingSession(
            self.build_request(payload),
            self.transport,
            result_type,
            expected_content_type=self.config.get(
                "expected_content_type", EVENT_STREAM_CONTENT_TYPE
            ),
            completion_marker=self.config.get(
                "completion_marker", DEFAULT_COMPLETION_MARKER
            ),
            event_delimiter=self.config.get("event_delimiter", DEFAULT_EVENT_DELIMITER),
        )
        session.on_receive_content = on_receive_content
        session.on_processing_error = on_processing_error
        session.on_complete = on_complete
        session.perform()
        return session

    async def iter_outcomes(
        self,
        payload: dict[str, Any],
        result_type: Any = ChatStreamResult,
    ) -> AsyncGenerator[StreamOutcome]:
        """
        Stream as an async iterator of outcomes.

        Yields content and processing-error outcomes in arrival order and a
        single terminal COMPLETE outcome last. Closing the generator before
        completion cancels the underlying request; to leave the loop early,
        wrap it in `contextlib.aclosing` so the cancel happens on exit rather
        than when the generator is garbage collected.
        """
        queue: asyncio.Queue[StreamOutcome] = asyncio.Queue()

        session = self.stream(
            payload,
            result_type,
            on_receive_content=lambda _s, content: queue.put_nowait(
                StreamOutcome.of_content(content)
            ),
            on_processing_error=lambda _s, error: queue.put_nowait(
                StreamOutcome.of_error(error)
            ),
            on_complete=lambda _s, error: queue.put_nowait(
                StreamOutcome.of_completion(error)
            ),
        )

        try:
            while True:
                outcome = await queue.get()
                yield outcome
                if outcome.is_terminal:
                    break
        finally:
            if not session.finished:
                session.cancel()
                await session.wait()

    @log_operation("collect_stream")
    async def collect(
        self,
        payload: dict[str, Any],
        result_type: Any = ChatStreamResult,
    ) -> list[Any]:
        """
        Stream to completion and return every decoded result.

        Processing errors are skipped; a completion error is raised.
        """
        results: list[Any] = []
        completion_error: Exception | None = None
        async for outcome in self.iter_outcomes(payload, result_type):
            if outcome.outcome_type is StreamOutcomeType.CONTENT:
                results.append(outcome.content)
            elif outcome.is_terminal:
                completion_error = outcome.error

        if completion_error is not None:
            raise completion_error
        return results

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
