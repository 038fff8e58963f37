"""Vector store interface and Qdrant implementation."""

import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchAny,
    MatchValue,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from qdrant_memory.config import QdrantSettings, get_settings
from qdrant_memory.exceptions import ErrorCode, StoreError
from qdrant_memory.logging_config import get_logger
from qdrant_memory.observability.metrics import track_vectorstore_operation
from qdrant_memory.vectorstore.models import (
    CollectionStats,
    MemoryPoint,
    ScrollPage,
    SearchResult,
)

logger = get_logger(__name__)

# Top-level keys of a native Qdrant filter document
FILTER_CLAUSES = frozenset({"must", "should", "must_not", "min_should"})


def build_filter(filters: dict[str, Any] | None) -> Filter | None:
    """Translate a caller filter into a Qdrant Filter.

    A mapping with any of the native clause keys is validated as a Qdrant
    filter document. Any other mapping is read as ``{field: value}`` exact
    matches, all of which must hold; list values match any of their elements.

    Args:
        filters: Caller-supplied filter, or None.

    Returns:
        Qdrant Filter, or None when no filter was given.
    """
    if not filters:
        return None

    if FILTER_CLAUSES & filters.keys():
        return Filter.model_validate(filters)

    conditions = []
    for key, value in filters.items():
        if isinstance(value, list):
            conditions.append(FieldCondition(key=key, match=MatchAny(any=value)))
        else:
            conditions.append(FieldCondition(key=key, match=MatchValue(value=value)))
    return Filter(must=conditions)  # type: ignore[arg-type]


def to_point_id(value: str) -> int | str | None:
    """Convert a caller id to a Qdrant point id.

    Qdrant ids are unsigned integers (ASCII digits only) or UUIDs; anything
    else cannot name a stored point.

    Returns:
        The id in the form Qdrant expects, or None if it is not a point id.
    """
    if value.isascii() and value.isdigit():
        return int(value)
    try:
        return str(UUID(value))
    except ValueError:
        return None


class VectorStore(ABC):
    """Abstract base class for the memory collection.

    Every implementation is bound to a single collection.
    """

    @property
    @abstractmethod
    def collection(self) -> str:
        """Name of the collection."""
        ...

    @abstractmethod
    async def ensure_collection(self, dimensions: int) -> None:
        """Create the collection if it does not exist.

        Args:
            dimensions: Vector dimensions for a new collection.

        Raises:
            StoreError: If the check or creation fails.
        """
        ...

    @abstractmethod
    async def put(
        self,
        id: str,
        vector: list[float],
        payload: dict[str, Any],
    ) -> None:
        """Insert or replace one record, returning once it is durable.

        Raises:
            StoreError: If the upsert fails.
        """
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        limit: int = 5,
        score_threshold: float = 0.7,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors.

        Args:
            vector: Query vector.
            limit: Maximum results to return.
            score_threshold: Minimum similarity score.
            filters: Optional payload filter.

        Returns:
            Matches ordered by descending score.

        Raises:
            StoreError: If the search fails.
        """
        ...

    @abstractmethod
    async def delete_one(self, id: str) -> None:
        """Delete a record by id; unknown ids are not an error."""
        ...

    @abstractmethod
    async def get_one(self, id: str) -> MemoryPoint | None:
        """Fetch a record by id, or None when it does not exist."""
        ...

    @abstractmethod
    async def list_page(
        self,
        limit: int = 10,
        offset: str | None = None,
    ) -> ScrollPage:
        """List one page of records, resuming at ``offset`` when given."""
        ...

    @abstractmethod
    async def delete_all(self) -> None:
        """Delete every record in the collection."""
        ...

    @abstractmethod
    async def stats(self) -> CollectionStats:
        """Get collection metrics."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None


class QdrantVectorStore(VectorStore):
    """Qdrant vector store implementation."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    @property
    def collection(self) -> str:
        """Name of the collection."""
        return self._settings.collection

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=api_key,
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    @asynccontextmanager
    async def _operation(
        self,
        operation: str,
        code: ErrorCode = ErrorCode.STORE_ERROR,
    ) -> AsyncIterator[AsyncQdrantClient]:
        """Run one store call: time it and wrap failures in StoreError."""
        start = time.perf_counter()
        try:
            client = await self._get_client()
            yield client
        except Exception as e:
            track_vectorstore_operation(
                operation, time.perf_counter() - start, success=False
            )
            logger.error(
                f"Vector store {operation} failed: {e}",
                extra={"collection": self.collection},
            )
            raise StoreError(
                f"Vector store {operation} failed: {e}",
                code=code,
                details={
                    "collection": self.collection,
                    "operation": operation,
                    "error": str(e),
                },
            ) from e
        track_vectorstore_operation(operation, time.perf_counter() - start)

    async def ensure_collection(self, dimensions: int) -> None:
        """Create the collection with cosine distance if it is absent."""
        name = self.collection
        async with self._operation(
            "ensure_collection", ErrorCode.COLLECTION_SETUP_FAILED
        ) as client:
            if await client.collection_exists(name):
                logger.info(f"Collection already exists: {name}")
                return

            await client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(
                    size=dimensions,
                    distance=Distance.COSINE,
                ),
            )
            logger.info(f"Created collection: {name}", extra={"dimensions": dimensions})

    async def put(
        self,
        id: str,
        vector: list[float],
        payload: dict[str, Any],
    ) -> None:
        """Upsert one point and wait for the write to be applied."""
        async with self._operation("put") as client:
            await client.upsert(
                collection_name=self.collection,
                points=[PointStruct(id=id, vector=vector, payload=payload)],
                wait=True,
            )
        logger.debug(f"Stored point {id}", extra={"collection": self.collection})

    async def query(
        self,
        vector: list[float],
        limit: int = 5,
        score_threshold: float = 0.7,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors above the score threshold."""
        async with self._operation("query") as client:
            response = await client.query_points(
                collection_name=self.collection,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=build_filter(filters),
                with_payload=True,
            )

        return [
            SearchResult(
                id=str(point.id),
                score=point.score if point.score is not None else 0.0,
                payload=dict(point.payload) if point.payload else {},
            )
            for point in response.points
        ]

    async def delete_one(self, id: str) -> None:
        """Delete a point by id."""
        point_id = to_point_id(id)
        if point_id is None:
            logger.debug(f"Ignoring delete of invalid point id: {id!r}")
            return

        async with self._operation("delete_one") as client:
            await client.delete(
                collection_name=self.collection,
                points_selector=PointIdsList(points=[point_id]),
                wait=True,
            )

    async def get_one(self, id: str) -> MemoryPoint | None:
        """Retrieve a point by id without its vector."""
        point_id = to_point_id(id)
        if point_id is None:
            return None

        async with self._operation("get_one") as client:
            points = await client.retrieve(
                collection_name=self.collection,
                ids=[point_id],
                with_payload=True,
                with_vectors=False,
            )

        if not points:
            return None
        point = points[0]
        return MemoryPoint(id=str(point.id), payload=dict(point.payload or {}))

    async def list_page(
        self,
        limit: int = 10,
        offset: str | None = None,
    ) -> ScrollPage:
        """Scroll one page of points in store order."""
        start_from = to_point_id(offset) if offset else None
        if offset and start_from is None:
            raise StoreError(
                f"Invalid pagination offset: {offset}",
                details={"collection": self.collection, "offset": offset},
            )

        async with self._operation("list_page") as client:
            points, next_offset = await client.scroll(
                collection_name=self.collection,
                limit=limit,
                offset=start_from,
                with_payload=True,
                with_vectors=False,
            )

        return ScrollPage(
            points=[
                MemoryPoint(id=str(point.id), payload=dict(point.payload or {}))
                for point in points
            ],
            next_offset=str(next_offset) if next_offset is not None else None,
        )

    async def delete_all(self) -> None:
        """Delete every point through an empty filter."""
        async with self._operation("delete_all") as client:
            await client.delete(
                collection_name=self.collection,
                points_selector=FilterSelector(filter=Filter()),
                wait=True,
            )
        logger.warning(f"Deleted all points in collection: {self.collection}")

    async def stats(self) -> CollectionStats:
        """Read collection metrics."""
        async with self._operation("stats") as client:
            info = await client.get_collection(self.collection)

        status = getattr(info.status, "value", info.status)
        return CollectionStats(
            name=self.collection,
            points_count=info.points_count or 0,
            indexed_vectors_count=info.indexed_vectors_count or 0,
            segments_count=info.segments_count or 0,
            status=str(status),
        )
