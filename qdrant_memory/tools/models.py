"""Tool argument and result models.

Argument models double as the JSON schemas advertised to the host. Result
models are what handlers return; every one carries ``success`` so that
expected negative outcomes travel as data rather than as errors.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from qdrant_memory.vectorstore.models import CollectionStats

# Arguments


class StoreMemoryArgs(BaseModel):
    """Arguments for store_memory."""

    content: str = Field(
        description="Content to store (text, code, documentation, etc.)",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Optional metadata (tags, category, source, date, etc.)",
    )


class SearchMemoryArgs(BaseModel):
    """Arguments for search_memory."""

    query: str = Field(description="Natural language search query")
    limit: int = Field(
        default=5,
        description="Maximum number of results to return (default: 5)",
    )
    threshold: float = Field(
        default=0.7,
        description=(
            "Minimum similarity score between 0 and 1 (default: 0.7). "
            "Higher = stricter"
        ),
    )
    filter: dict[str, Any] | None = Field(
        default=None,
        description=(
            'Optional filter on metadata fields, e.g. {"category": "code"}, '
            "or a native Qdrant filter with must/should/must_not clauses"
        ),
    )


class MemoryIdArgs(BaseModel):
    """Arguments for tools addressing one memory."""

    id: str = Field(description="Unique identifier of the memory")


class ListMemoriesArgs(BaseModel):
    """Arguments for list_memories."""

    limit: int = Field(
        default=10,
        description="Number of memories to return (default: 10)",
    )
    offset: str | None = Field(
        default=None,
        description="Pagination cursor: the next_offset of the previous page",
    )


class NoArgs(BaseModel):
    """Tools without arguments."""


class ClearAllArgs(BaseModel):
    """Arguments for clear_all_memories.

    ``confirm`` is advertised as required but an omitted value reads as
    False, which refuses the deletion instead of failing the call.
    """

    model_config = ConfigDict(json_schema_extra={"required": ["confirm"]})

    confirm: bool = Field(
        default=False,
        description="Must be true to confirm deletion",
    )


# Results


class ToolOutcome(BaseModel):
    """Base result of a tool handler."""

    success: bool
    message: str | None = None


class StoredMemory(ToolOutcome):
    """Result of store_memory."""

    id: str
    content: str = Field(description="Stored content, truncated for display")
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchHit(BaseModel):
    """One search match."""

    id: str
    score: float
    content: Any = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchOutcome(ToolOutcome):
    """Result of search_memory."""

    query: str
    results_count: int
    results: list[SearchHit] = Field(default_factory=list)


class MemoryRecord(BaseModel):
    """A memory as returned by get_memory."""

    id: str
    payload: dict[str, Any] = Field(default_factory=dict)


class GetOutcome(ToolOutcome):
    """Result of get_memory."""

    memory: MemoryRecord | None = None


class ListedMemory(BaseModel):
    """One entry of list_memories."""

    id: str
    content: Any = None
    timestamp: Any = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ListOutcome(ToolOutcome):
    """Result of list_memories."""

    count: int
    memories: list[ListedMemory] = Field(default_factory=list)
    next_offset: str | None = None


class StatsOutcome(ToolOutcome):
    """Result of get_stats."""

    stats: CollectionStats
    embedding_model: str
    embedding_dimensions: int


class ErrorOutcome(ToolOutcome):
    """Body of an error-tagged response."""

    error: str
    code: str | None = None
