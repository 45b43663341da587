"""
Event payload decoding with an ordered fallback to the error payload shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..exceptions import EventDecodeError, ServerReportedError
from ..models import APIErrorResponse

T = TypeVar("T")


@dataclass(frozen=True)
class DecodeAttempt(Generic[T]):
    """Result of one fallible conversion: a value or the validation error."""
    value: T | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def try_decode(adapter: TypeAdapter[T], text: str) -> DecodeAttempt[T]:
    """Validate `text` as JSON against `adapter` without raising."""
    try:
        return DecodeAttempt(value=adapter.validate_json(text))
    except ValidationError as e:
        return DecodeAttempt(error=e)


@dataclass(frozen=True)
class EventDecodeResult(Generic[T]):
    """
    Outcome of decoding one event.

    Exactly one of `value` / `error` is set, unless the event matched neither
    shape, in which case `error` holds the primary decode error and
    `undecodable` is True so the caller can decide whether it is partial.
    """
    value: T | None = None
    error: EventDecodeError | ServerReportedError | None = None
    undecodable: bool = False


class EventDecoder(Generic[T]):
    """Decodes event text as the result type, then as the error payload."""

    def __init__(
        self,
        result_type: Any,
        error_type: type[APIErrorResponse] = APIErrorResponse,
    ):
        self.result_type = result_type
        self._result_adapter: TypeAdapter[T] = TypeAdapter(result_type)
        self._error_adapter: TypeAdapter[APIErrorResponse] = TypeAdapter(error_type)

    def decode(self, text: str) -> EventDecodeResult[T]:
        primary = try_decode(self._result_adapter, text)
        if primary.ok:
            return EventDecodeResult(value=primary.value)

        secondary = try_decode(self._error_adapter, text)
        if secondary.ok:
            return EventDecodeResult(
                error=ServerReportedError(secondary.value, raw_data=text)
            )

        return EventDecodeResult(
            error=EventDecodeError(text, primary.error),
            undecodable=True,
        )
