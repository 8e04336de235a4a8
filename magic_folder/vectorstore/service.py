"""Vector index interface and Qdrant implementation."""

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from uuid import uuid4

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointStruct,
    VectorParams,
)

from magic_folder.config import VectorIndexSettings
from magic_folder.exceptions import (
    DimensionMismatchError,
    ErrorCode,
    SchemaMismatchError,
    StorageError,
    ValidationError,
)
from magic_folder.logging_config import get_logger
from magic_folder.observability.metrics import track_vector_operation
from magic_folder.vectorstore.models import IndexEntry, VectorMatch

logger = get_logger(__name__)

KEY_FIELD = "path"


class VectorIndex(ABC):
    """Abstract base class for vector indexes.

    Stores ``(key, vector)`` rows of a fixed dimension and answers
    nearest-neighbor queries. Writes append; rows sharing a key are not
    deduplicated.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Vector dimension every row must have."""
        ...

    @abstractmethod
    async def initialize(self) -> None:
        """Create the backing collection if it does not exist.

        Raises:
            SchemaMismatchError: If the stored collection has another dimension.
            StorageError: If the engine fails.
        """
        ...

    @abstractmethod
    async def upsert(self, key: str, vector: Sequence[float]) -> None:
        """Append a row.

        Args:
            key: Correlation key.
            vector: Embedding vector.

        Raises:
            DimensionMismatchError: If the vector length is wrong.
            StorageError: If the write fails.
        """
        ...

    @abstractmethod
    async def search(self, vector: Sequence[float], top_k: int) -> list[VectorMatch]:
        """Find the rows closest to a vector.

        Args:
            vector: Query vector.
            top_k: Maximum number of matches.

        Returns:
            At most ``top_k`` matches, ascending by distance.

        Raises:
            DimensionMismatchError: If the vector length is wrong.
            StorageError: If the query fails.
        """
        ...

    @abstractmethod
    async def count(self, key: str | None = None) -> int:
        """Count rows, optionally only those with the given key."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None


class QdrantVectorIndex(VectorIndex):
    """Vector index stored in an embedded, directory-based Qdrant collection.

    Each row becomes a point with a fresh UUID and a ``path`` payload holding
    the key, so reprocessing a file adds a second point for the same path.
    """

    def __init__(
        self,
        settings: VectorIndexSettings,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize the vector index.

        Args:
            settings: Storage directory, collection name and dimension.
            client: Existing client (for testing).
        """
        self._settings = settings
        self._client = client
        self._owns_client = client is None
        self._initialized = False

    @property
    def dimension(self) -> int:
        return self._settings.dimension

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    def _get_client(self) -> AsyncQdrantClient:
        """Get or create the embedded Qdrant client."""
        if self._client is None:
            self._settings.path.mkdir(parents=True, exist_ok=True)
            self._client = AsyncQdrantClient(path=str(self._settings.path))
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None
        self._initialized = False

    async def initialize(self) -> None:
        start = time.perf_counter()
        try:
            client = self._get_client()
            if await client.collection_exists(self.collection):
                stored = await self._stored_dimension(client)
                if stored != self.dimension:
                    raise SchemaMismatchError(self.collection, stored, self.dimension)
                logger.debug(
                    f"Opened collection: {self.collection}",
                    extra={"dimension": stored},
                )
            else:
                await client.create_collection(
                    collection_name=self.collection,
                    vectors_config=VectorParams(
                        size=self.dimension,
                        distance=Distance.EUCLID,
                    ),
                )
                logger.info(
                    f"Created collection: {self.collection}",
                    extra={"dimension": self.dimension},
                )
        except StorageError:
            track_vector_operation("initialize", time.perf_counter() - start, success=False)
            raise
        except Exception as e:
            track_vector_operation("initialize", time.perf_counter() - start, success=False)
            raise StorageError(
                f"Failed to initialize collection: {e}",
                code=ErrorCode.STORAGE_ERROR,
                details={
                    "collection": self.collection,
                    "path": str(self._settings.path),
                    "error": str(e),
                },
            ) from e

        self._initialized = True
        track_vector_operation("initialize", time.perf_counter() - start)

    async def _stored_dimension(self, client: AsyncQdrantClient) -> int:
        info = await client.get_collection(self.collection)
        vectors = info.config.params.vectors
        if isinstance(vectors, VectorParams):
            return vectors.size
        raise StorageError(
            f"Collection {self.collection} does not hold a single unnamed vector",
            code=ErrorCode.SCHEMA_MISMATCH,
            details={"collection": self.collection},
        )

    def _require_initialized(self) -> AsyncQdrantClient:
        if not self._initialized or self._client is None:
            raise StorageError(
                "Vector index is not initialized",
                code=ErrorCode.STORAGE_ERROR,
                details={"collection": self.collection},
            )
        return self._client

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dimension:
            raise DimensionMismatchError(
                self.dimension, len(vector), {"collection": self.collection}
            )

    async def upsert(self, key: str, vector: Sequence[float]) -> None:
        self._check_dimension(vector)
        client = self._require_initialized()
        entry = IndexEntry(key=key, vector=list(vector))

        start = time.perf_counter()
        try:
            await client.upsert(
                collection_name=self.collection,
                points=[
                    PointStruct(
                        id=str(uuid4()),
                        vector=entry.vector,
                        payload={KEY_FIELD: entry.key},
                    )
                ],
            )
        except Exception as e:
            track_vector_operation("upsert", time.perf_counter() - start, success=False)
            raise StorageError(
                f"Failed to upsert vector: {e}",
                code=ErrorCode.STORAGE_ERROR,
                details={"collection": self.collection, "key": key, "error": str(e)},
            ) from e

        track_vector_operation("upsert", time.perf_counter() - start)
        logger.debug("Appended vector", extra={"collection": self.collection, "key": key})

    async def search(self, vector: Sequence[float], top_k: int) -> list[VectorMatch]:
        if top_k < 0:
            raise ValidationError("top_k must not be negative", details={"top_k": top_k})
        self._check_dimension(vector)
        client = self._require_initialized()
        if top_k == 0:
            return []

        start = time.perf_counter()
        try:
            response = await client.query_points(
                collection_name=self.collection,
                query=list(vector),
                limit=top_k,
                with_payload=[KEY_FIELD],
            )
            matches = [
                VectorMatch(
                    key=str((point.payload or {}).get(KEY_FIELD, point.id)),
                    # Euclidean distance is non-negative whatever sign the engine reports
                    distance=abs(point.score),
                )
                for point in response.points
            ]
        except Exception as e:
            track_vector_operation("search", time.perf_counter() - start, success=False)
            raise StorageError(
                f"Failed to search: {e}",
                code=ErrorCode.STORAGE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        track_vector_operation("search", time.perf_counter() - start)
        matches.sort(key=lambda m: m.distance)
        return matches

    async def count(self, key: str | None = None) -> int:
        client = self._require_initialized()

        count_filter = None
        if key is not None:
            count_filter = Filter(
                must=[FieldCondition(key=KEY_FIELD, match=MatchValue(value=key))]
            )

        start = time.perf_counter()
        try:
            result = await client.count(
                collection_name=self.collection,
                count_filter=count_filter,
                exact=True,
            )
        except Exception as e:
            track_vector_operation("count", time.perf_counter() - start, success=False)
            raise StorageError(
                f"Failed to count vectors: {e}",
                code=ErrorCode.STORAGE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        track_vector_operation("count", time.perf_counter() - start)
        return result.count
