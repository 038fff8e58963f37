"""Embedding service module."""

from qdrant_memory.embeddings.models import EmbeddingResult
from qdrant_memory.embeddings.service import EmbeddingService, OpenAIEmbeddingService

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "OpenAIEmbeddingService",
]
