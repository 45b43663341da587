"""
Command line entry point: stream one chat completion to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TextIO

from .client import StreamingClient
from .config import Configuration
from .logging_utils import ContextualLogger, StreamErrorHandler, configure_logging
from .models import ChatStreamResult
from .streaming.models import StreamOutcomeType


async def run_chat(client: StreamingClient, prompt: str, out: TextIO) -> int:
    """
    Stream a chat completion for `prompt` and write deltas as they arrive.

    Returns the process exit code: 0 on clean completion, 1 otherwise.
    """
    log = ContextualLogger({"operation": "run_chat"})
    payload = {"messages": [{"role": "user", "content": prompt}]}
    exit_code = 0

    async for outcome in client.iter_outcomes(payload, ChatStreamResult):
        if outcome.outcome_type is StreamOutcomeType.CONTENT:
            out.write(outcome.content.content)
            out.flush()
        elif outcome.outcome_type is StreamOutcomeType.PROCESSING_ERROR:
            log.warning("Skipping event", **StreamErrorHandler.describe(outcome.error))
        elif outcome.error is not None:
            log.error("Stream failed", **StreamErrorHandler.describe(outcome.error))
            exit_code = 1

    out.write("\n")
    return exit_code


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Stream a chat completion")
    parser.add_argument("prompt", help="User message to send")
    parser.add_argument("--config", help="Path to config.yaml", default=None)
    args = parser.parse_args(argv)

    config = Configuration(args.config)
    configure_logging(config.get_logging_config())

    async with StreamingClient.from_configuration(config) as client:
        return await run_chat(client, args.prompt, sys.stdout)


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
