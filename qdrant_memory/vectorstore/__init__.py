"""Vector store module."""

from qdrant_memory.vectorstore.models import (
    CollectionStats,
    MemoryPoint,
    ScrollPage,
    SearchResult,
)
from qdrant_memory.vectorstore.service import QdrantVectorStore, VectorStore

__all__ = [
    "CollectionStats",
    "MemoryPoint",
    "QdrantVectorStore",
    "ScrollPage",
    "SearchResult",
    "VectorStore",
]
