"""Query pipeline: text to ranked file paths."""

from magic_folder.embeddings.service import EmbeddingService
from magic_folder.exceptions import (
    ErrorCode,
    StorageError,
    UpstreamError,
    ValidationError,
)
from magic_folder.logging_config import get_logger
from magic_folder.observability.metrics import track_search_request
from magic_folder.pipeline.models import SearchHit
from magic_folder.vectorstore.service import VectorIndex

logger = get_logger(__name__)

DEFAULT_TOP_K = 5


class QueryPipeline:
    """Semantic file search.

    Results keep the index order (ascending distance) and are neither
    re-ranked nor deduplicated, so a reprocessed file can appear twice.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
    ) -> None:
        self._embedding_service = embedding_service
        self._vector_index = vector_index

    async def search(self, query: str, top_k: int = DEFAULT_TOP_K) -> list[SearchHit]:
        """Find the files closest to a query.

        Args:
            query: Free text to search for.
            top_k: Maximum number of results.

        Returns:
            Hits ordered by ascending distance.

        Raises:
            ValidationError: If ``top_k`` is negative.
            UpstreamError: If embedding the query fails.
            StorageError: If the index query fails.
        """
        if top_k < 0:
            raise ValidationError("top_k must not be negative", details={"top_k": top_k})
        try:
            embedding = await self._embedding_service.embed(query)
        except UpstreamError:
            raise
        except Exception as e:
            raise UpstreamError(
                f"Query embedding failed: {e}",
                code=ErrorCode.UPSTREAM_ERROR,
                details={"query": query[:100], "error": str(e)},
            ) from e

        try:
            matches = await self._vector_index.search(embedding.embedding, top_k)
        except StorageError:
            logger.error("Vector search failed", extra={"top_k": top_k})
            raise
        except Exception as e:
            raise StorageError(
                f"Vector search failed: {e}",
                code=ErrorCode.STORAGE_ERROR,
                details={"top_k": top_k, "error": str(e)},
            ) from e

        hits = [SearchHit(path=m.key, score=m.distance) for m in matches]

        track_search_request(len(hits), hits[0].score if hits else None)
        logger.debug(
            f"Found {len(hits)} results for query",
            extra={"query_length": len(query), "top_k": top_k, "results_count": len(hits)},
        )
        return hits
