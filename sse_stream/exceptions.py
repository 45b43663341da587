"""
Error types for SSE streaming sessions.

Every failure a session can observe is represented here so it can be handed
to callbacks as a value:
- Chunk-level decoding failures (invalid UTF-8)
- Event-level schema failures
- Errors reported by the server inside the event stream
- Completion-time content type mismatches and cancellation
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError

    from .models import APIErrorResponse

EVENT_STREAM_CONTENT_TYPE = "text/event-stream"


class StreamingError(Exception):
    """Base streaming error with rich context."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        raw_data: str | bytes | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.raw_data = raw_data


class UnknownContentError(StreamingError):
    """A chunk could not be interpreted as UTF-8 text."""

    def __init__(self, raw_data: bytes, **kwargs):
        super().__init__(
            f"Unable to decode {len(raw_data)} byte chunk as UTF-8",
            raw_data=raw_data,
            **kwargs,
        )


class EventDecodeError(StreamingError):
    """Event text did not match the target result schema."""

    def __init__(
        self,
        raw_data: str,
        validation_error: ValidationError,
        **kwargs,
    ):
        super().__init__(
            f"Failed to decode stream event: {validation_error.error_count()} "
            f"validation error(s)",
            raw_data=raw_data,
            **kwargs,
        )
        self.validation_error = validation_error


class ServerReportedError(StreamingError):
    """The server sent an error payload in place of a result."""

    def __init__(self, response: APIErrorResponse, raw_data: str, **kwargs):
        super().__init__(response.error.message, raw_data=raw_data, **kwargs)
        self.response = response

    @property
    def error_type(self) -> str:
        return self.response.error.type

    @property
    def code(self) -> str | int | None:
        return self.response.error.code


class IncorrectContentTypeError(StreamingError):
    """Response finished cleanly but was not an event stream."""

    def __init__(
        self,
        content_type: str,
        url: str | None = None,
        expected: str = EVENT_STREAM_CONTENT_TYPE,
    ):
        message = (
            f"Incorrect Content-Type: {content_type}, "
            f"acceptable type is {expected}."
        )
        # Usually a base URL was configured instead of the streaming endpoint
        if url:
            message += f" This may be caused by a wrong endpoint: {url}"
        super().__init__(message, url=url)
        self.content_type = content_type


class StreamCancelledError(StreamingError):
    """The session was cancelled before the transport finished."""

    def __init__(self, url: str | None = None):
        super().__init__("Streaming request was cancelled", url=url)
