#!/usr/bin/env python3
"""
Tests for the streaming client: request building, async iteration and
collection over a mocked transport.
"""

import asyncio
import contextlib
import json

import httpx
import pytest
from pydantic import BaseModel

from sse_stream.client import StreamingClient
from sse_stream.exceptions import IncorrectContentTypeError, ServerReportedError
from sse_stream.models import ChatStreamResult
from sse_stream.streaming.models import StreamOutcomeType

CONFIG = {
    "base_url": "https://api.example.com/v1",
    "path": "/chat/completions",
    "model": "gpt-4o-mini",
    "expected_content_type": "text/event-stream",
    "completion_marker": "[DONE]",
    "event_delimiter": "data:",
}


class Sample(BaseModel):
    a: int


def chat_chunk(text: str) -> bytes:
    payload = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [{"index": 0, "delta": {"content": text}, "finish_reason": None}],
    }
    return f"data: {json.dumps(payload)}\n\n".encode()


def sse_response(*chunks: bytes) -> httpx.Response:
    async def body():
        for chunk in chunks:
            yield chunk

    return httpx.Response(
        200, headers={"content-type": "text/event-stream"}, content=body()
    )


def test_requires_explicit_config():
    with pytest.raises(ValueError, match="'path' not found"):
        StreamingClient({"base_url": "https://x", "model": "m"}, "sk-test")


@pytest.mark.asyncio
async def test_build_request_sets_stream_and_auth():
    async with StreamingClient(CONFIG, "sk-test") as client:
        request = client.build_request({"messages": [{"role": "user", "content": "hi"}]})

    body = json.loads(request.content)
    assert body["stream"] is True
    assert body["model"] == "gpt-4o-mini"
    assert body["messages"][0]["content"] == "hi"
    assert str(request.url) == "https://api.example.com/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-test"
    assert request.headers["accept"] == "text/event-stream"


@pytest.mark.asyncio
async def test_iter_outcomes_yields_in_order_then_completes():
    chunks = (
        chat_chunk("Hel") + chat_chunk("lo")[:25],
        chat_chunk("lo")[25:] + b'data: {"error":{"message":"slow down","type":"rate_limit"}}\n\n',
        b"data: [DONE]\n\n",
    )
    transport = httpx.MockTransport(lambda request: sse_response(*chunks))

    async with StreamingClient(CONFIG, "sk-test", transport=transport) as client:
        outcomes = [o async for o in client.iter_outcomes({"messages": []})]

    assert [o.outcome_type for o in outcomes] == [
        StreamOutcomeType.CONTENT,
        StreamOutcomeType.CONTENT,
        StreamOutcomeType.PROCESSING_ERROR,
        StreamOutcomeType.COMPLETE,
    ]
    assert [o.content.content for o in outcomes[:2]] == ["Hel", "lo"]
    assert isinstance(outcomes[0].content, ChatStreamResult)
    assert isinstance(outcomes[2].error, ServerReportedError)
    assert outcomes[3].error is None


@pytest.mark.asyncio
async def test_closing_iterator_early_cancels_request():
    closed = []
    gate = asyncio.Event()

    def handler(request):
        async def body():
            try:
                yield b'data: {"a":1}\n\n'
                await gate.wait()
            finally:
                closed.append(True)

        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body())

    async with StreamingClient(CONFIG, "sk-test", transport=httpx.MockTransport(handler)) as client:
        stream = client.iter_outcomes({"messages": []}, Sample)
        async with contextlib.aclosing(stream):
            async for outcome in stream:
                assert outcome.content == Sample(a=1)
                break

    assert closed == [True]
    assert not gate.is_set()


@pytest.mark.asyncio
async def test_collect_returns_results():
    transport = httpx.MockTransport(
        lambda request: sse_response(b'data: {"a":1}\ndata: {bad}\ndata: {"a":2}\ndata: [DONE]')
    )

    async with StreamingClient(CONFIG, "sk-test", transport=transport) as client:
        results = await client.collect({"messages": []}, Sample)

    assert results == [Sample(a=1), Sample(a=2)]


@pytest.mark.asyncio
async def test_collect_raises_completion_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(
        200, headers={"content-type": "application/json"}, content=b'{"a": 1}'
    ))

    async with StreamingClient(CONFIG, "sk-test", transport=transport) as client:
        with pytest.raises(IncorrectContentTypeError, match="application/json"):
            await client.collect({"messages": []}, Sample)


@pytest.mark.asyncio
async def test_custom_delimiter_from_config():
    config = {**CONFIG, "completion_marker": "END", "event_delimiter": "event:"}
    transport = httpx.MockTransport(
        lambda request: sse_response(b'event: {"a":7}\nevent: END\n')
    )

    async with StreamingClient(config, "sk-test", transport=transport) as client:
        results = await client.collect({"messages": []}, Sample)

    assert results == [Sample(a=7)]
