#!/usr/bin/env python3
"""
Tests for the command line chat streamer.
"""

import io
import json
import os
import tempfile

import httpx
import pytest
import yaml

from sse_stream.client import StreamingClient
from sse_stream.main import main, run_chat

CONFIG = {
    "base_url": "https://api.example.com/v1",
    "path": "/chat/completions",
    "model": "gpt-4o-mini",
}


def chat_chunk(text: str) -> bytes:
    payload = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [{"index": 0, "delta": {"content": text}, "finish_reason": None}],
    }
    return f"data: {json.dumps(payload)}\n\n".encode()


@pytest.mark.asyncio
async def test_run_chat_writes_deltas():
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=chat_chunk("Hel") + chat_chunk("lo") + b"data: [DONE]\n\n",
        )

    out = io.StringIO()
    async with StreamingClient(CONFIG, "sk-test", transport=httpx.MockTransport(handler)) as client:
        exit_code = await run_chat(client, "Say hello", out)

    assert exit_code == 0
    assert out.getvalue() == "Hello\n"
    assert sent[0]["messages"] == [{"role": "user", "content": "Say hello"}]


@pytest.mark.asyncio
async def test_run_chat_reports_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(
        200, headers={"content-type": "application/json"}, content=b"{}"
    ))

    out = io.StringIO()
    async with StreamingClient(CONFIG, "sk-test", transport=transport) as client:
        exit_code = await run_chat(client, "hi", out)

    assert exit_code == 1
    assert out.getvalue() == "\n"


@pytest.mark.asyncio
async def test_main_requires_api_key(monkeypatch):
    config = {
        "stream": {
            "active": "local",
            "providers": {
                "local": {
                    **CONFIG,
                    "api_key_env": "SSE_STREAM_TEST_MISSING_KEY",
                    "expected_content_type": "text/event-stream",
                    "completion_marker": "[DONE]",
                    "event_delimiter": "data:",
                    "http_client": {
                        "connect_timeout": 1.0,
                        "read_timeout": 1.0,
                        "write_timeout": 1.0,
                        "pool_timeout": 1.0,
                    },
                }
            },
        },
        "logging": {"level": "WARNING"},
    }
    monkeypatch.delenv("SSE_STREAM_TEST_MISSING_KEY", raising=False)

    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(config, f)
        path = f.name

    try:
        with pytest.raises(ValueError, match="SSE_STREAM_TEST_MISSING_KEY"):
            await main(["hi", "--config", path])
    finally:
        os.unlink(path)
