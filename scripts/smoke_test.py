#!/usr/bin/env python
"""Smoke test a running memory server over stdio.

Usage:
    python -m scripts.smoke_test
    python -m scripts.smoke_test --roundtrip

Spawns the server as a subprocess with the current environment, lists the
tools and calls get_stats. With --roundtrip it also stores, searches, fetches
and deletes one memory. Requires OPENAI_API_KEY and a reachable Qdrant.
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Any

import mcp.types as mcp_types
from mcp.client.session import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client

from qdrant_memory.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

SAMPLE_CONTENT = "Smoke test: our API authenticates users with JWT bearer tokens."


class SmokeTestFailure(Exception):
    """A tool call came back error-tagged or with an unexpected body."""


def _body(result: mcp_types.CallToolResult) -> dict[str, Any]:
    """Decode the JSON body of the first text item."""
    for block in result.content:
        if isinstance(block, mcp_types.TextContent):
            return json.loads(block.text)
    raise SmokeTestFailure("Tool result carries no text content")


async def _call(
    session: ClientSession,
    name: str,
    arguments: dict[str, Any] | None = None,
) -> dict[str, Any]:
    result = await session.call_tool(name, arguments or {})
    body = _body(result)
    print(f"\n--- {name} ---")
    print(json.dumps(body, indent=2, ensure_ascii=False))
    if result.isError:
        raise SmokeTestFailure(f"{name} failed: {body.get('error')}")
    return body


async def run_smoke_test(roundtrip: bool) -> None:
    """Connect to a freshly spawned server and exercise the tools.

    Raises:
        SmokeTestFailure: If any call fails.
    """
    params = StdioServerParameters(
        command=sys.executable,
        args=["-m", "qdrant_memory"],
        env=dict(os.environ),
    )

    async with stdio_client(params) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()

            tools = await session.list_tools()
            names = sorted(tool.name for tool in tools.tools)
            print(f"Tools: {', '.join(names)}")

            await _call(session, "get_stats")

            if not roundtrip:
                return

            stored = await _call(
                session,
                "store_memory",
                {"content": SAMPLE_CONTENT, "metadata": {"tags": ["smoke-test"]}},
            )
            memory_id = stored["id"]

            try:
                found = await _call(
                    session,
                    "search_memory",
                    {"query": "how are users authenticated", "threshold": 0.0},
                )
                if memory_id not in {hit["id"] for hit in found["results"]}:
                    raise SmokeTestFailure("Stored memory not returned by search")

                fetched = await _call(session, "get_memory", {"id": memory_id})
                if fetched["memory"]["payload"]["content"] != SAMPLE_CONTENT:
                    raise SmokeTestFailure("Fetched content differs from stored content")
            finally:
                await _call(session, "delete_memory", {"id": memory_id})

            missing = await _call(session, "get_memory", {"id": memory_id})
            if missing["success"]:
                raise SmokeTestFailure("Memory still present after delete")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Smoke test the memory server over stdio",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--roundtrip",
        action="store_true",
        help="Also store, search, fetch and delete one memory",
    )
    args = parser.parse_args()

    setup_logging(level="INFO")

    if not os.environ.get("OPENAI_API_KEY"):
        logger.error("OPENAI_API_KEY is not set")
        sys.exit(1)

    try:
        asyncio.run(run_smoke_test(roundtrip=args.roundtrip))
    except SmokeTestFailure as e:
        print(f"\nRESULT: FAILED ({e})")
        sys.exit(1)

    print("\nRESULT: PASSED")


if __name__ == "__main__":
    main()
