"""Embedding service interface and Ollama implementation."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from magic_folder.config import EmbeddingSettings
from magic_folder.embeddings.models import EmbeddingResult
from magic_folder.exceptions import ErrorCode, UpstreamError
from magic_folder.logging_config import get_logger
from magic_folder.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Implementations are stateless and uncached: embedding the same text
    twice makes two requests.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate the embedding for a text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            UpstreamError: If the service fails or answers with garbage.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None


class OllamaEmbeddingService(EmbeddingService):
    """Embedding service backed by an Ollama-compatible HTTP API.

    Sends ``{"model": ..., "input": text}`` and reads the vector from the
    ``embeddings``, ``embedding`` or ``vector`` field of the response.
    """

    RESPONSE_FIELDS = ("embeddings", "embedding", "vector")

    def __init__(
        self,
        settings: EmbeddingSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the embedding service.

        Args:
            settings: Embedding configuration.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        return self._settings.model

    @property
    def url(self) -> str:
        return f"{self._settings.base_url.rstrip('/')}{self._settings.endpoint}"

    async def embed(self, text: str) -> EmbeddingResult:
        client = self._get_client()
        url = self.url
        payload = {"model": self._settings.model, "input": text}

        start = time.perf_counter()
        try:
            vector = await self._request(client, url, payload)
        except UpstreamError:
            track_embedding_request(
                self._settings.model, time.perf_counter() - start, success=False
            )
            raise

        track_embedding_request(self._settings.model, time.perf_counter() - start)
        return EmbeddingResult(
            text=text,
            embedding=vector,
            model=self._settings.model,
            dimensions=len(vector),
        )

    async def _request(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict[str, Any],
    ) -> list[float]:
        """Post one embedding request and parse the vector.

        Raises:
            UpstreamError: On transport failure, non-success status or a
                response without a usable vector.
        """
        try:
            response = await client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise UpstreamError(
                f"Embedding service returned {e.response.status_code}",
                code=ErrorCode.UPSTREAM_ERROR,
                details={"url": url, "status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error(
                f"Embedding request error: {e}",
                extra={"url": url},
            )
            raise UpstreamError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.UPSTREAM_ERROR,
                details={"url": url},
            ) from e

        try:
            return self._parse_vector(response.json())
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise UpstreamError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.UPSTREAM_ERROR,
                details={"url": url, "error": str(e)},
            ) from e

    def _parse_vector(self, data: Any) -> list[float]:
        if not isinstance(data, dict):
            raise TypeError("response body is not a JSON object")

        field = next((f for f in self.RESPONSE_FIELDS if f in data), None)
        if field is None:
            raise KeyError(f"none of {', '.join(self.RESPONSE_FIELDS)} in response")

        raw = data[field]
        # /api/embed answers with one vector per input
        if field == "embeddings":
            raw = raw[0]

        if not isinstance(raw, list) or not raw:
            raise ValueError("embedding vector is empty or not a list")
        if not all(
            isinstance(x, int | float) and not isinstance(x, bool) for x in raw
        ):
            raise ValueError("embedding vector contains non-numeric values")

        return [float(x) for x in raw]
