"""Tool dispatcher.

Routes a (tool name, arguments) pair to its handler. Handlers compose calls
to the embedding service and the vector store and return a ToolOutcome.
``call`` is the protocol boundary: it never raises, and turns exceptions into
error-tagged results while ``success: false`` outcomes stay ordinary results.
"""

import json
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import pydantic
from mcp.types import CallToolResult, TextContent, Tool

from qdrant_memory.embeddings.service import EmbeddingService
from qdrant_memory.exceptions import MemoryServerError, UnknownToolError, ValidationError
from qdrant_memory.logging_config import get_logger
from qdrant_memory.observability.metrics import track_search_results, track_tool_call
from qdrant_memory.tools.catalogue import TOOL_SPECS, TOOLS_BY_NAME
from qdrant_memory.tools.models import (
    ClearAllArgs,
    ErrorOutcome,
    GetOutcome,
    ListedMemory,
    ListMemoriesArgs,
    ListOutcome,
    MemoryIdArgs,
    MemoryRecord,
    NoArgs,
    SearchHit,
    SearchMemoryArgs,
    SearchOutcome,
    StatsOutcome,
    StoredMemory,
    StoreMemoryArgs,
    ToolOutcome,
)
from qdrant_memory.vectorstore.service import VectorStore

logger = get_logger(__name__)

# Payload keys written by store_memory; caller metadata spread after them wins
RESERVED_PAYLOAD_KEYS = frozenset({"content", "timestamp"})

PREVIEW_LENGTH = 100

Handler = Callable[[Any], Awaitable[ToolOutcome]]


def preview(content: str, length: int = PREVIEW_LENGTH) -> str:
    """Truncate content for display, marking the cut with an ellipsis."""
    if len(content) > length:
        return content[:length] + "..."
    return content


def validate_arguments(
    model: type[pydantic.BaseModel],
    arguments: dict[str, Any],
) -> Any:
    """Validate raw arguments against a tool's argument model.

    Raises:
        ValidationError: If required arguments are missing or malformed.
    """
    try:
        return model.model_validate(arguments)
    except pydantic.ValidationError as e:
        missing = [
            ".".join(str(part) for part in err["loc"])
            for err in e.errors()
            if err["type"] == "missing"
        ]
        if missing:
            raise ValidationError(
                f"Missing required argument(s): {', '.join(missing)}",
                details={"missing": missing},
            ) from e

        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(
            f"Invalid argument '{field}': {first['msg']}",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def to_call_result(outcome: ToolOutcome, is_error: bool = False) -> CallToolResult:
    """Wrap an outcome in a protocol result with one pretty-printed JSON item."""
    body = outcome.model_dump(mode="json", exclude_unset=True)
    return CallToolResult(
        content=[
            TextContent(
                type="text",
                text=json.dumps(body, indent=2, ensure_ascii=False),
            )
        ],
        structuredContent=body,
        isError=is_error,
    )


class ToolDispatcher:
    """Dispatches tool calls against the embedding service and vector store."""

    def __init__(
        self,
        embeddings: EmbeddingService,
        store: VectorStore,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            embeddings: Service turning text into vectors.
            store: Vector store holding the memory collection.
        """
        self._embeddings = embeddings
        self._store = store
        self._handlers: dict[str, Handler] = {
            "store_memory": self._store_memory,
            "search_memory": self._search_memory,
            "delete_memory": self._delete_memory,
            "get_memory": self._get_memory,
            "list_memories": self._list_memories,
            "get_stats": self._get_stats,
            "clear_all_memories": self._clear_all_memories,
        }

    def list_tools(self) -> list[Tool]:
        """Return the static tool catalogue."""
        return [spec.to_tool() for spec in TOOL_SPECS]

    async def dispatch(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
    ) -> ToolOutcome:
        """Validate arguments and run the named tool.

        Args:
            name: Tool name.
            arguments: Raw argument object from the host.

        Returns:
            The handler's outcome.

        Raises:
            UnknownToolError: If the tool is not in the catalogue.
            ValidationError: If the arguments do not fit the tool's schema.
            MemoryServerError: If a downstream service fails.
        """
        spec = TOOLS_BY_NAME.get(name)
        if spec is None:
            raise UnknownToolError(name)

        args = validate_arguments(spec.arguments, arguments or {})
        return await self._handlers[name](args)

    async def call(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
    ) -> CallToolResult:
        """Run a tool and package the result for the protocol.

        Never raises: failures become results with ``isError`` set.
        """
        label = name if name in TOOLS_BY_NAME else "unknown"
        start = time.perf_counter()
        logger.info(f"Tool call: {name}")

        try:
            outcome = await self.dispatch(name, arguments)
        except MemoryServerError as e:
            track_tool_call(label, time.perf_counter() - start, "error")
            logger.warning(f"Tool {name} failed: {e.message}", extra=e.to_dict())
            return to_call_result(
                ErrorOutcome(success=False, error=e.message, code=e.code.value),
                is_error=True,
            )
        except Exception as e:
            track_tool_call(label, time.perf_counter() - start, "error")
            logger.exception(f"Tool {name} failed unexpectedly: {e}")
            return to_call_result(
                ErrorOutcome(success=False, error=str(e) or e.__class__.__name__),
                is_error=True,
            )

        outcome_label = "success" if outcome.success else "failure"
        track_tool_call(label, time.perf_counter() - start, outcome_label)
        return to_call_result(outcome)

    async def _store_memory(self, args: StoreMemoryArgs) -> StoredMemory:
        embedding = await self._embeddings.embed(args.content)
        memory_id = str(uuid4())

        overridden = RESERVED_PAYLOAD_KEYS & args.metadata.keys()
        if overridden:
            logger.warning(
                f"Metadata overrides reserved payload keys: {sorted(overridden)}",
                extra={"memory_id": memory_id},
            )

        payload = {
            "content": args.content,
            "timestamp": datetime.now(UTC).isoformat(),
            **args.metadata,
        }
        await self._store.put(memory_id, embedding.embedding, payload)

        return StoredMemory(
            success=True,
            message="Memory stored successfully",
            id=memory_id,
            content=preview(args.content),
            metadata=args.metadata,
        )

    async def _search_memory(self, args: SearchMemoryArgs) -> SearchOutcome:
        embedding = await self._embeddings.embed(args.query)
        matches = await self._store.query(
            embedding.embedding,
            limit=args.limit,
            score_threshold=args.threshold,
            filters=args.filter,
        )

        results = [
            SearchHit(
                id=match.id,
                score=match.score,
                content=match.payload.get("content"),
                metadata=match.payload,
            )
            for match in matches
        ]
        track_search_results(
            results_returned=len(results),
            top_score=results[0].score if results else 0.0,
        )

        return SearchOutcome(
            success=True,
            query=args.query,
            results_count=len(results),
            results=results,
        )

    async def _delete_memory(self, args: MemoryIdArgs) -> ToolOutcome:
        await self._store.delete_one(args.id)
        return ToolOutcome(success=True, message=f"Memory {args.id} deleted successfully")

    async def _get_memory(self, args: MemoryIdArgs) -> GetOutcome:
        point = await self._store.get_one(args.id)
        if point is None:
            return GetOutcome(success=False, message=f"Memory {args.id} not found")

        return GetOutcome(
            success=True,
            memory=MemoryRecord(id=point.id, payload=point.payload),
        )

    async def _list_memories(self, args: ListMemoriesArgs) -> ListOutcome:
        page = await self._store.list_page(limit=args.limit, offset=args.offset)

        memories = [
            ListedMemory(
                id=point.id,
                content=point.payload.get("content"),
                timestamp=point.payload.get("timestamp"),
                metadata=point.payload,
            )
            for point in page.points
        ]

        return ListOutcome(
            success=True,
            count=len(memories),
            memories=memories,
            next_offset=page.next_offset,
        )

    async def _get_stats(self, args: NoArgs) -> StatsOutcome:
        stats = await self._store.stats()
        return StatsOutcome(
            success=True,
            stats=stats,
            embedding_model=self._embeddings.model_name,
            embedding_dimensions=self._embeddings.dimensions,
        )

    async def _clear_all_memories(self, args: ClearAllArgs) -> ToolOutcome:
        if args.confirm is not True:
            return ToolOutcome(
                success=False,
                message="You must confirm with confirm=true to delete all memories",
            )

        await self._store.delete_all()
        return ToolOutcome(success=True, message="All memories have been deleted")
