"""Wiring of the pipeline components from one Settings object."""

from types import TracebackType

from magic_folder.catalog.service import MetadataCatalog
from magic_folder.config import Settings
from magic_folder.embeddings.service import EmbeddingService, OllamaEmbeddingService
from magic_folder.extraction.extractor import ContentExtractor, TextContentExtractor
from magic_folder.logging_config import get_logger
from magic_folder.pipeline.indexing import IndexingPipeline
from magic_folder.pipeline.query import QueryPipeline
from magic_folder.vectorstore.service import QdrantVectorIndex, VectorIndex

logger = get_logger(__name__)


class MagicFolder:
    """Owns the components and the two pipelines built on them.

    Use as an async context manager, or call ``start``/``close``.
    """

    def __init__(
        self,
        extractor: ContentExtractor,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
        catalog: MetadataCatalog,
    ) -> None:
        self.extractor = extractor
        self.embedding_service = embedding_service
        self.vector_index = vector_index
        self.catalog = catalog
        self.indexing = IndexingPipeline(extractor, embedding_service, vector_index, catalog)
        self.query = QueryPipeline(embedding_service, vector_index)

    @classmethod
    def from_settings(cls, settings: Settings) -> "MagicFolder":
        """Build the default components from configuration."""
        return cls(
            extractor=TextContentExtractor(),
            embedding_service=OllamaEmbeddingService(settings.embedding),
            vector_index=QdrantVectorIndex(settings.vector),
            catalog=MetadataCatalog(settings.catalog),
        )

    async def start(self) -> None:
        """Open both stores.

        Raises:
            SchemaMismatchError: If the vector collection has another dimension.
            StorageError: If either store cannot be opened.
        """
        await self.catalog.open()
        try:
            await self.vector_index.initialize()
        except BaseException:
            await self.catalog.close()
            raise
        logger.info("Magic Folder services started")

    async def close(self) -> None:
        """Close the stores and the embedding client."""
        try:
            await self.embedding_service.close()
            await self.vector_index.close()
        finally:
            await self.catalog.close()

    async def __aenter__(self) -> "MagicFolder":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
