"""Tests for vector store module."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from qdrant_client.models import (
    CollectionStatus,
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchAny,
    MatchValue,
    PointIdsList,
)

from qdrant_memory.config import QdrantSettings
from qdrant_memory.exceptions import ErrorCode, StoreError
from qdrant_memory.vectorstore.models import MemoryPoint, SearchResult
from qdrant_memory.vectorstore.service import (
    QdrantVectorStore,
    build_filter,
    to_point_id,
)

POINT_ID = "5c56c793-69f3-4fbf-87e6-c4bf54c28c26"


class TestSearchResult:
    """Tests for SearchResult model."""

    def test_create_result(self) -> None:
        """Result can be created."""
        result = SearchResult(
            id="test-id",
            score=0.95,
            payload={"content": "hello"},
        )
        assert result.id == "test-id"
        assert result.score == 0.95
        assert result.payload["content"] == "hello"


class TestBuildFilter:
    """Tests for caller filter translation."""

    def test_no_filter(self) -> None:
        """Missing or empty filters mean no filter."""
        assert build_filter(None) is None
        assert build_filter({}) is None

    def test_flat_mapping(self) -> None:
        """Flat mappings become exact-match conditions."""
        result = build_filter({"source": "chat", "priority": 2})

        assert result == Filter(
            must=[
                FieldCondition(key="source", match=MatchValue(value="chat")),
                FieldCondition(key="priority", match=MatchValue(value=2)),
            ]
        )

    def test_list_value_matches_any(self) -> None:
        """List values match any element."""
        result = build_filter({"tags": ["security", "auth"]})

        assert result == Filter(
            must=[FieldCondition(key="tags", match=MatchAny(any=["security", "auth"]))]
        )

    def test_native_filter(self) -> None:
        """Documents with clause keys pass through as Qdrant filters."""
        result = build_filter(
            {"must_not": [{"key": "source", "match": {"value": "spam"}}]}
        )

        assert result is not None
        assert result.must is None
        assert result.must_not == [
            FieldCondition(key="source", match=MatchValue(value="spam"))
        ]

    def test_malformed_native_filter(self) -> None:
        """Malformed clause documents are rejected."""
        with pytest.raises(ValueError):
            build_filter({"must": "not-a-list-of-conditions"})


class TestToPointId:
    """Tests for point id validation."""

    def test_uuid(self) -> None:
        """UUIDs are normalized to their canonical form."""
        assert to_point_id(POINT_ID.upper()) == POINT_ID

    def test_integer(self) -> None:
        """Digit strings become integers."""
        assert to_point_id("42") == 42

    @pytest.mark.parametrize(
        "value", ["", "abc", "-1", "not-a-uuid-at-all", "²", "١٢"]
    )
    def test_invalid(self, value: str) -> None:
        """Anything else is not a point id."""
        assert to_point_id(value) is None


class TestQdrantVectorStore:
    """Tests for QdrantVectorStore."""

    def _create_mock_client(self) -> AsyncMock:
        """Create a mock Qdrant client."""
        client = AsyncMock()
        client.collection_exists = AsyncMock(return_value=False)
        client.create_collection = AsyncMock()
        client.upsert = AsyncMock()
        # Mock query_points with proper response structure
        mock_response = MagicMock()
        mock_response.points = []
        client.query_points = AsyncMock(return_value=mock_response)
        client.retrieve = AsyncMock(return_value=[])
        client.scroll = AsyncMock(return_value=([], None))
        client.delete = AsyncMock()
        client.get_collection = AsyncMock()
        client.close = AsyncMock()
        return client

    def _store(self, mock_client: AsyncMock) -> QdrantVectorStore:
        settings = QdrantSettings(url="http://localhost:6333", collection="memories")
        return QdrantVectorStore(settings=settings, client=mock_client)

    def test_collection_name(self) -> None:
        """Store is bound to the configured collection."""
        assert self._store(self._create_mock_client()).collection == "memories"

    @pytest.mark.asyncio
    async def test_ensure_collection_creates(self) -> None:
        """Missing collection is created with cosine distance."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.ensure_collection(dimensions=1536)

        mock_client.create_collection.assert_called_once()
        call_kwargs = mock_client.create_collection.call_args.kwargs
        assert call_kwargs["collection_name"] == "memories"
        assert call_kwargs["vectors_config"].size == 1536
        assert call_kwargs["vectors_config"].distance == Distance.COSINE

    @pytest.mark.asyncio
    async def test_ensure_collection_skips_existing(self) -> None:
        """Existing collection is left untouched."""
        mock_client = self._create_mock_client()
        mock_client.collection_exists.return_value = True
        store = self._store(mock_client)

        await store.ensure_collection(dimensions=1536)

        mock_client.create_collection.assert_not_called()

    @pytest.mark.asyncio
    async def test_ensure_collection_failure(self) -> None:
        """Setup failures carry the collection setup code."""
        mock_client = self._create_mock_client()
        mock_client.collection_exists.side_effect = ConnectionError("refused")
        store = self._store(mock_client)

        with pytest.raises(StoreError) as exc_info:
            await store.ensure_collection(dimensions=1536)

        assert exc_info.value.code == ErrorCode.COLLECTION_SETUP_FAILED
        assert "refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_put_waits_for_write(self) -> None:
        """Points are upserted synchronously."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.put(POINT_ID, [0.1, 0.2], {"content": "hello"})

        call_kwargs = mock_client.upsert.call_args.kwargs
        assert call_kwargs["collection_name"] == "memories"
        assert call_kwargs["wait"] is True
        point = call_kwargs["points"][0]
        assert point.id == POINT_ID
        assert point.vector == [0.1, 0.2]
        assert point.payload == {"content": "hello"}

    @pytest.mark.asyncio
    async def test_query_arguments(self) -> None:
        """Search passes limit, threshold and filter through."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.query(
            [0.1, 0.2],
            limit=3,
            score_threshold=0.5,
            filters={"source": "chat"},
        )

        call_kwargs = mock_client.query_points.call_args.kwargs
        assert call_kwargs["query"] == [0.1, 0.2]
        assert call_kwargs["limit"] == 3
        assert call_kwargs["score_threshold"] == 0.5
        assert call_kwargs["query_filter"] == build_filter({"source": "chat"})
        assert call_kwargs["with_payload"] is True

    @pytest.mark.asyncio
    async def test_query_maps_points(self) -> None:
        """Scored points become search results."""
        mock_client = self._create_mock_client()
        point = MagicMock(id=POINT_ID, score=0.9, payload={"content": "hello"})
        mock_client.query_points.return_value.points = [point]
        store = self._store(mock_client)

        results = await store.query([0.1, 0.2])

        assert results == [
            SearchResult(id=POINT_ID, score=0.9, payload={"content": "hello"})
        ]

    @pytest.mark.asyncio
    async def test_delete_one(self) -> None:
        """Delete targets the single point id."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.delete_one(POINT_ID)

        call_kwargs = mock_client.delete.call_args.kwargs
        assert call_kwargs["points_selector"] == PointIdsList(points=[POINT_ID])
        assert call_kwargs["wait"] is True

    @pytest.mark.asyncio
    async def test_delete_one_invalid_id(self) -> None:
        """Invalid ids are a no-op."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.delete_one("not-an-id")

        mock_client.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_one_missing(self) -> None:
        """Unknown and invalid ids return None."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        assert await store.get_one(POINT_ID) is None
        assert await store.get_one("garbage") is None
        assert mock_client.retrieve.call_count == 1

    @pytest.mark.asyncio
    async def test_get_one_found(self) -> None:
        """Retrieved point is mapped without its vector."""
        mock_client = self._create_mock_client()
        mock_client.retrieve.return_value = [
            MagicMock(id=POINT_ID, payload={"content": "hello"})
        ]
        store = self._store(mock_client)

        point = await store.get_one(POINT_ID)

        assert point == MemoryPoint(id=POINT_ID, payload={"content": "hello"})
        assert mock_client.retrieve.call_args.kwargs["with_vectors"] is False

    @pytest.mark.asyncio
    async def test_list_page_next_offset(self) -> None:
        """Scroll cursor is returned as a string."""
        mock_client = self._create_mock_client()
        mock_client.scroll.return_value = (
            [MagicMock(id=1, payload={"content": "a"})],
            2,
        )
        store = self._store(mock_client)

        page = await store.list_page(limit=1, offset="1")

        assert page.points == [MemoryPoint(id="1", payload={"content": "a"})]
        assert page.next_offset == "2"
        call_kwargs = mock_client.scroll.call_args.kwargs
        assert call_kwargs["limit"] == 1
        assert call_kwargs["offset"] == 1

    @pytest.mark.asyncio
    async def test_list_page_invalid_offset(self) -> None:
        """Offsets that are not point ids are rejected."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        with pytest.raises(StoreError, match="Invalid pagination offset"):
            await store.list_page(offset="nope")

        mock_client.scroll.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_all(self) -> None:
        """Delete all uses an empty filter and keeps the collection."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.delete_all()

        call_kwargs = mock_client.delete.call_args.kwargs
        assert call_kwargs["collection_name"] == "memories"
        assert call_kwargs["points_selector"] == FilterSelector(filter=Filter())

    @pytest.mark.asyncio
    async def test_stats(self) -> None:
        """Collection info is mapped to stats."""
        mock_client = self._create_mock_client()
        mock_client.get_collection.return_value = MagicMock(
            points_count=7,
            indexed_vectors_count=None,
            segments_count=2,
            status=CollectionStatus.GREEN,
        )
        store = self._store(mock_client)

        stats = await store.stats()

        assert stats.name == "memories"
        assert stats.points_count == 7
        assert stats.indexed_vectors_count == 0
        assert stats.segments_count == 2
        assert stats.status == "green"

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self) -> None:
        """Client failures become StoreError with the cause attached."""
        mock_client = self._create_mock_client()
        original = RuntimeError("timeout")
        mock_client.upsert.side_effect = original
        store = self._store(mock_client)

        with pytest.raises(StoreError) as exc_info:
            await store.put(POINT_ID, [0.1], {})

        assert exc_info.value.code == ErrorCode.STORE_ERROR
        assert exc_info.value.details["operation"] == "put"
        assert exc_info.value.__cause__ is original

    @pytest.mark.asyncio
    async def test_client_construction_errors_are_wrapped(self) -> None:
        """Failing to build the client is reported as a StoreError."""
        store = QdrantVectorStore(settings=QdrantSettings(url="not a url"))

        with patch(
            "qdrant_memory.vectorstore.service.AsyncQdrantClient",
            side_effect=ValueError("Invalid URL"),
        ):
            with pytest.raises(StoreError) as exc_info:
                await store.ensure_collection(dimensions=8)

        assert exc_info.value.code == ErrorCode.COLLECTION_SETUP_FAILED
        assert "Invalid URL" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        """Store closes owned client."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)
        store._owns_client = True  # Simulate owning the client

        await store.close()

        mock_client.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_borrowed_client(self) -> None:
        """A client passed in is left open."""
        mock_client = self._create_mock_client()
        store = self._store(mock_client)

        await store.close()

        mock_client.close.assert_not_called()


class TestInMemoryStore:
    """Round trips against an in-process Qdrant."""

    @pytest.mark.asyncio
    async def test_put_get_delete(self, store: QdrantVectorStore) -> None:
        """A stored point can be read back and removed."""
        point_id = str(uuid.uuid4())
        vector = [1.0] + [0.0] * 31

        await store.put(point_id, vector, {"content": "hello"})
        point = await store.get_one(point_id)
        assert point is not None
        assert point.payload == {"content": "hello"}

        await store.delete_one(point_id)
        assert await store.get_one(point_id) is None

    @pytest.mark.asyncio
    async def test_ensure_collection_is_idempotent(
        self, store: QdrantVectorStore
    ) -> None:
        """A second ensure keeps existing points."""
        await store.put(str(uuid.uuid4()), [1.0] + [0.0] * 31, {"content": "x"})

        await store.ensure_collection(32)

        assert (await store.stats()).points_count == 1

    @pytest.mark.asyncio
    async def test_delete_all_keeps_collection(self, store: QdrantVectorStore) -> None:
        """Clearing empties the collection without dropping it."""
        for _ in range(3):
            await store.put(str(uuid.uuid4()), [1.0] + [0.0] * 31, {"content": "x"})

        await store.delete_all()

        stats = await store.stats()
        assert stats.name == "test_memories"
        assert stats.points_count == 0
