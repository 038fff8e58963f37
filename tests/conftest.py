"""Pytest configuration and shared fixtures."""

import zlib
from collections.abc import AsyncGenerator

import pytest
from qdrant_client import AsyncQdrantClient

from qdrant_memory.config import QdrantSettings
from qdrant_memory.embeddings.models import EmbeddingResult
from qdrant_memory.embeddings.service import EmbeddingService
from qdrant_memory.tools.dispatcher import ToolDispatcher
from qdrant_memory.vectorstore.service import QdrantVectorStore


class HashingEmbeddingService(EmbeddingService):
    """Deterministic bag-of-words embeddings.

    Dimension 0 is a constant bias so any two texts have a positive cosine
    similarity; the remaining dimensions count hashed lowercase tokens.
    """

    def __init__(self, dimensions: int = 32) -> None:
        self._dimensions = dimensions
        self.calls: list[str] = []

    @property
    def model_name(self) -> str:
        return "hashing-test"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def vectorize(self, text: str) -> list[float]:
        vector = [0.0] * self._dimensions
        vector[0] = 1.0
        for token in text.lower().split():
            bucket = 1 + zlib.crc32(token.encode()) % (self._dimensions - 1)
            vector[bucket] += 1.0
        return vector

    async def embed(self, text: str) -> EmbeddingResult:
        self.calls.append(text)
        return EmbeddingResult(
            text=text,
            embedding=self.vectorize(text),
            model=self.model_name,
            dimensions=self._dimensions,
        )

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        return [await self.embed(text) for text in texts]


@pytest.fixture
def embeddings() -> HashingEmbeddingService:
    """Deterministic embedding service."""
    return HashingEmbeddingService()


@pytest.fixture
async def qdrant_client() -> AsyncGenerator[AsyncQdrantClient, None]:
    """In-process Qdrant client.

    Yields:
        AsyncQdrantClient backed by memory.
    """
    client = AsyncQdrantClient(location=":memory:")
    yield client
    await client.close()


@pytest.fixture
async def store(
    qdrant_client: AsyncQdrantClient,
    embeddings: HashingEmbeddingService,
) -> QdrantVectorStore:
    """Vector store with an empty collection sized for the test embeddings."""
    vector_store = QdrantVectorStore(
        settings=QdrantSettings(collection="test_memories"),
        client=qdrant_client,
    )
    await vector_store.ensure_collection(embeddings.dimensions)
    return vector_store


@pytest.fixture
def dispatcher(
    embeddings: HashingEmbeddingService,
    store: QdrantVectorStore,
) -> ToolDispatcher:
    """Dispatcher over the in-memory store."""
    return ToolDispatcher(embeddings, store)
