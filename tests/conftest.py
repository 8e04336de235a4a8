"""Pytest configuration and shared fixtures."""

import hashlib
import logging
import math
import re
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from magic_folder.api.app import create_app
from magic_folder.catalog.service import MetadataCatalog
from magic_folder.config import CatalogSettings, Settings, VectorIndexSettings
from magic_folder.embeddings.models import EmbeddingResult
from magic_folder.embeddings.service import EmbeddingService
from magic_folder.extraction.extractor import TextContentExtractor
from magic_folder.services import MagicFolder
from magic_folder.vectorstore.service import QdrantVectorIndex

DIMENSION = 16


class HashingEmbeddingService(EmbeddingService):
    """Deterministic bag-of-words embeddings, no network.

    Identical texts map to identical vectors; texts sharing no words map to
    vectors that are far apart.
    """

    def __init__(self, dimension: int = DIMENSION) -> None:
        self.dimension = dimension
        self.calls: list[str] = []

    @property
    def model_name(self) -> str:
        return "hashing-test"

    async def embed(self, text: str) -> EmbeddingResult:
        self.calls.append(text)
        vector = [0.0] * self.dimension
        for token in re.findall(r"\w+", text.lower()):
            digest = hashlib.sha256(token.encode()).digest()
            vector[digest[0] % self.dimension] += 1.0
        norm = math.sqrt(sum(x * x for x in vector)) or 1.0
        vector = [x / norm for x in vector]
        return EmbeddingResult(
            text=text,
            embedding=vector,
            model=self.model_name,
            dimensions=self.dimension,
        )


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    """Undo handler and level changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing both stores into a temporary directory."""
    return Settings(
        vector=VectorIndexSettings(
            path=tmp_path / "vectors",
            collection_name="files",
            dimension=DIMENSION,
        ),
        catalog=CatalogSettings(path=tmp_path / "metadata.sqlite", max_pending=8),
    )


@pytest.fixture
def embedding_service() -> HashingEmbeddingService:
    return HashingEmbeddingService()


@pytest.fixture
async def vector_index(settings: Settings) -> AsyncGenerator[QdrantVectorIndex, None]:
    """Initialized on-disk vector index."""
    index = QdrantVectorIndex(settings.vector)
    await index.initialize()
    yield index
    await index.close()


@pytest.fixture
async def catalog(settings: Settings) -> AsyncGenerator[MetadataCatalog, None]:
    """Open on-disk metadata catalog."""
    async with MetadataCatalog(settings.catalog) as opened:
        yield opened


@pytest.fixture
async def services(
    settings: Settings,
    embedding_service: HashingEmbeddingService,
) -> AsyncGenerator[MagicFolder, None]:
    """Started services with the hashing embedder."""
    folder = MagicFolder(
        extractor=TextContentExtractor(),
        embedding_service=embedding_service,
        vector_index=QdrantVectorIndex(settings.vector),
        catalog=MetadataCatalog(settings.catalog),
    )
    async with folder:
        yield folder


@pytest.fixture
async def client(
    settings: Settings,
    services: MagicFolder,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client for the API, serving the test services.

    Yields:
        AsyncClient configured for testing.
    """
    app = create_app(settings=settings, services=services)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def unconfigured_client(settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """API client whose lifespan never ran, so no services are attached."""
    app = create_app(settings=settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def write_file(tmp_path: Path):
    """Create a file under a ``docs`` directory and return its path as str."""

    def _write(name: str, content: str) -> str:
        path = tmp_path / "docs" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write
