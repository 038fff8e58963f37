"""Vector store data models."""

from typing import Any

from pydantic import BaseModel, Field


class MemoryPoint(BaseModel):
    """A stored record read back without its vector.

    Attributes:
        id: Record identifier.
        payload: Stored metadata, including content and timestamp.
    """

    id: str = Field(description="Record identifier")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata",
    )


class SearchResult(BaseModel):
    """Result from a vector similarity search.

    Attributes:
        id: Record identifier.
        score: Cosine similarity (higher is more similar).
        payload: Stored metadata.
    """

    id: str = Field(description="Record identifier")
    score: float = Field(description="Similarity score")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata",
    )


class ScrollPage(BaseModel):
    """One page of a collection listing."""

    points: list[MemoryPoint] = Field(default_factory=list)
    next_offset: str | None = Field(
        default=None,
        description="Cursor for the next page, None after the last page",
    )


class CollectionStats(BaseModel):
    """Point-in-time collection metrics."""

    name: str
    points_count: int
    indexed_vectors_count: int
    segments_count: int
    status: str
