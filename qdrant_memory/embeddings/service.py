"""Embedding service interface and OpenAI implementation."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from qdrant_memory.config import EmbeddingSettings, OpenAISettings, get_settings
from qdrant_memory.embeddings.models import EmbeddingResult
from qdrant_memory.exceptions import ErrorCode, ProviderError
from qdrant_memory.logging_config import get_logger
from qdrant_memory.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Defines the interface for generating text embeddings.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            ProviderError: If embedding fails.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts in one request.

        Args:
            texts: List of texts to embed.

        Returns:
            List of EmbeddingResult objects, in input order.

        Raises:
            ProviderError: If embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding dimensions."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None


class OpenAIEmbeddingService(EmbeddingService):
    """Embedding service for the OpenAI embeddings API.

    Sends the configured model and target dimensions with every request.
    Nothing is cached and nothing is retried.
    """

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        provider: OpenAISettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the OpenAI embedding service.

        Args:
            settings: Model and dimensions. Uses defaults if not provided.
            provider: API key, base URL and timeout.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._provider = provider or get_settings().openai
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._provider.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions."""
        return self._settings.dimensions

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._provider.api_key is not None:
            headers["Authorization"] = (
                f"Bearer {self._provider.api_key.get_secret_value()}"
            )
        return headers

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            ProviderError: If embedding fails.
        """
        results = await self._request([text])
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts in one request.

        Args:
            texts: List of texts to embed.

        Returns:
            List of EmbeddingResult objects, in input order.

        Raises:
            ProviderError: If embedding fails.
        """
        if not texts:
            return []
        return await self._request(texts)

    async def _request(self, texts: list[str]) -> list[EmbeddingResult]:
        """Make one embeddings request and track it."""
        start = time.perf_counter()
        try:
            results = await self._post(texts)
        except ProviderError:
            track_embedding_request(
                model=self.model_name,
                duration=time.perf_counter() - start,
                batch_size=len(texts),
                success=False,
            )
            raise

        track_embedding_request(
            model=self.model_name,
            duration=time.perf_counter() - start,
            batch_size=len(texts),
        )
        return results

    async def _post(self, texts: list[str]) -> list[EmbeddingResult]:
        """Post texts to the embeddings endpoint.

        Args:
            texts: Texts to embed, at least one.

        Returns:
            List of EmbeddingResult objects, in input order.

        Raises:
            ProviderError: If the request fails or the body is unusable.
        """
        client = await self._get_client()
        url = f"{self._provider.base_url.rstrip('/')}/embeddings"

        payload: dict[str, Any] = {
            "model": self._settings.model,
            "input": texts[0] if len(texts) == 1 else texts,
            "dimensions": self._settings.dimensions,
        }

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = _provider_message(e.response)
            logger.error(
                f"Embedding request failed: {status} {message}",
                extra={"url": url, "status": status},
            )
            raise ProviderError(
                f"Embedding provider returned {status}: {message}",
                code=ErrorCode.PROVIDER_ERROR,
                details={"status_code": status},
            ) from e
        except httpx.RequestError as e:
            logger.error(
                f"Embedding request error: {e}",
                extra={"url": url},
            )
            raise ProviderError(
                f"Failed to connect to embedding provider: {e}",
                code=ErrorCode.PROVIDER_ERROR,
                details={"url": url},
            ) from e

        try:
            data = response.json()
            items = sorted(data.get("data", []), key=lambda item: item.get("index", 0))

            if not items:
                raise ProviderError(
                    "Embedding provider returned no embeddings",
                    code=ErrorCode.PROVIDER_EMPTY_RESPONSE,
                    details={"inputs": len(texts)},
                )
            if len(items) != len(texts):
                raise ProviderError(
                    f"Embedding provider returned {len(items)} embeddings "
                    f"for {len(texts)} inputs",
                    code=ErrorCode.PROVIDER_EMPTY_RESPONSE,
                    details={"inputs": len(texts), "embeddings": len(items)},
                )

            return [
                EmbeddingResult(
                    text=text,
                    embedding=item["embedding"],
                    model=self._settings.model,
                    dimensions=len(item["embedding"]),
                )
                for text, item in zip(texts, items, strict=True)
            ]

        except ProviderError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError(
                f"Invalid response from embedding provider: {e}",
                code=ErrorCode.PROVIDER_ERROR,
                details={"error": str(e)},
            ) from e


def _provider_message(response: httpx.Response) -> str:
    """Extract the provider's error message from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.text or response.reason_phrase
