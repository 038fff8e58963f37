"""MCP server exposing the semantic memory tools over stdio.

Startup order: configuration check, collection setup, then serving. A missing
provider key or a failed collection setup exits with status 1 before any
request is served.
"""

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool

from qdrant_memory import __version__
from qdrant_memory.config import Settings, get_settings
from qdrant_memory.embeddings.service import OpenAIEmbeddingService
from qdrant_memory.exceptions import ConfigurationError, MemoryServerError
from qdrant_memory.logging_config import get_logger, setup_logging
from qdrant_memory.observability.metrics import start_metrics_server
from qdrant_memory.tools.dispatcher import ToolDispatcher
from qdrant_memory.vectorstore.service import QdrantVectorStore

logger = get_logger(__name__)

SERVER_NAME = "qdrant-semantic-memory"

INSTRUCTIONS = (
    "Semantic memory backed by Qdrant. Use store_memory to save information, "
    "search_memory to find it again by meaning, and get_memory, list_memories, "
    "delete_memory, get_stats or clear_all_memories to manage the collection."
)


def create_server(dispatcher: ToolDispatcher) -> Server:
    """Create the protocol server and register the tool handlers.

    Args:
        dispatcher: Dispatcher answering list and call requests.

    Returns:
        Configured server, not yet running.
    """
    server: Server = Server(SERVER_NAME, version=__version__, instructions=INSTRUCTIONS)

    @server.list_tools()  # type: ignore[misc]
    async def list_tools() -> list[Tool]:
        return dispatcher.list_tools()

    # Arguments are validated by the dispatcher, which reports an omitted
    # confirm flag as a refusal rather than a schema error.
    @server.call_tool(validate_input=False)  # type: ignore[misc]
    async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
        return await dispatcher.call(name, arguments)

    return server


def require_api_key(settings: Settings) -> None:
    """Fail unless the embedding provider key is configured.

    Raises:
        ConfigurationError: If OPENAI_API_KEY is missing or empty.
    """
    api_key = settings.openai.api_key
    if api_key is None or not api_key.get_secret_value().strip():
        raise ConfigurationError(
            "OPENAI_API_KEY is required",
            details={"variable": "OPENAI_API_KEY"},
        )


def build_config_snapshot(settings: Settings) -> dict[str, Any]:
    """Configuration as printable data, with secrets masked."""
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "config": settings.model_dump(mode="json"),
    }


async def run_stdio_server(settings: Settings) -> None:
    """Set up the collection and serve requests over stdio until EOF.

    Raises:
        StoreError: If the collection cannot be checked or created.
    """
    embeddings = OpenAIEmbeddingService(
        settings=settings.embedding,
        provider=settings.openai,
    )
    store = QdrantVectorStore(settings=settings.qdrant)

    try:
        await store.ensure_collection(embeddings.dimensions)

        server = create_server(ToolDispatcher(embeddings, store))
        logger.info(
            "Memory server started",
            extra={
                "version": __version__,
                "collection": store.collection,
                "qdrant_url": settings.qdrant.url,
                "embedding_model": embeddings.model_name,
                "dimensions": embeddings.dimensions,
            },
        )

        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        await embeddings.close()
        await store.close()
        logger.info("Memory server stopped")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Semantic memory MCP server backed by Qdrant",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Expose Prometheus metrics on this port (default: METRICS_PORT)",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print current configuration and exit",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(level=args.log_level)

    if args.print_config:
        print(json.dumps(build_config_snapshot(settings), indent=2))
        return

    try:
        require_api_key(settings)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        sys.exit(1)

    metrics_port = args.metrics_port or settings.metrics_port
    if metrics_port:
        start_metrics_server(metrics_port)

    try:
        asyncio.run(run_stdio_server(settings))
    except MemoryServerError as e:
        logger.error(f"Error initializing memory server: {e.message}", extra=e.to_dict())
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
