"""Indexing pipeline: file path to stored vector and catalog row."""

import asyncio
from pathlib import Path

from magic_folder.catalog.service import MetadataCatalog
from magic_folder.embeddings.service import EmbeddingService
from magic_folder.exceptions import (
    ErrorCode,
    MagicFolderError,
    PathNotFoundError,
    StorageError,
    UpstreamError,
)
from magic_folder.extraction.extractor import ContentExtractor
from magic_folder.logging_config import get_logger
from magic_folder.observability.metrics import track_process_outcome
from magic_folder.pipeline.models import ProcessOutcome
from magic_folder.vectorstore.service import VectorIndex

logger = get_logger(__name__)


class IndexingPipeline:
    """Orchestrates extraction, embedding and the two stores for one file.

    The vector index and the catalog are written in that order with no
    rollback between them: when the catalog write fails the vector row just
    written stays behind as an orphan, and the failure is reported as a
    ``StorageError`` whose details name the orphaned key.
    """

    def __init__(
        self,
        extractor: ContentExtractor,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
        catalog: MetadataCatalog,
    ) -> None:
        """Initialize the indexing pipeline.

        Args:
            extractor: Turns files into text.
            embedding_service: Turns text into vectors.
            vector_index: Stores vectors.
            catalog: Stores per-file bookkeeping.
        """
        self._extractor = extractor
        self._embedding_service = embedding_service
        self._vector_index = vector_index
        self._catalog = catalog

    async def process(self, file_path: str | Path) -> ProcessOutcome:
        """Index one file.

        Args:
            file_path: File to index. Its string form is the vector key.

        Returns:
            Processed outcome with catalog id and vector key, or a skipped
            outcome when the file has no extractable text.

        Raises:
            PathNotFoundError: If the file does not exist.
            ExtractionError: If a recognized file cannot be read.
            UpstreamError: If embedding fails. Nothing is stored.
            StorageError: If either store fails.
        """
        try:
            outcome = await self._process(str(file_path))
        except MagicFolderError:
            track_process_outcome("error")
            raise
        track_process_outcome(outcome.status.value)
        return outcome

    async def _process(self, path: str) -> ProcessOutcome:
        logger.info("Processing file", extra={"path": path})

        if not await asyncio.to_thread(Path(path).exists):
            logger.warning("File not found", extra={"path": path})
            raise PathNotFoundError(f"File not found: {path}", details={"path": path})

        text = await asyncio.to_thread(self._extractor.extract, path)
        if not text:
            logger.warning(
                "No text extracted or unsupported file", extra={"path": path}
            )
            return ProcessOutcome.skipped()

        try:
            embedding = await self._embedding_service.embed(text)
        except UpstreamError:
            raise
        except Exception as e:
            raise UpstreamError(
                f"Embedding failed: {e}",
                code=ErrorCode.UPSTREAM_ERROR,
                details={"path": path, "error": str(e)},
            ) from e

        vector_key = path
        try:
            await self._vector_index.upsert(vector_key, embedding.embedding)
        except StorageError:
            logger.error("Vector index write failed", extra={"path": path})
            raise
        except Exception as e:
            raise StorageError(
                f"Vector index write failed: {e}",
                code=ErrorCode.STORAGE_ERROR,
                details={"path": path, "error": str(e)},
            ) from e

        try:
            file_id = await self._catalog.record_processing(path, vector_key)
        except Exception as e:
            logger.error(
                "Catalog write failed, vector row left orphaned",
                extra={"path": path, "orphaned_vector_key": vector_key},
            )
            if isinstance(e, StorageError):
                e.details.setdefault("orphaned_vector_key", vector_key)
                raise
            raise StorageError(
                f"Catalog write failed: {e}",
                code=ErrorCode.CATALOG_ERROR,
                details={"path": path, "orphaned_vector_key": vector_key, "error": str(e)},
            ) from e

        logger.info(
            "File processed",
            extra={"path": path, "file_id": file_id, "dimensions": embedding.dimensions},
        )
        return ProcessOutcome.processed(file_id, vector_key)
