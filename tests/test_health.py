"""Integration tests for health check endpoints."""

import pytest
from httpx import AsyncClient

from magic_folder import __version__
from magic_folder.api.app import create_app
from magic_folder.catalog.service import MetadataCatalog
from magic_folder.config import Settings
from magic_folder.exceptions import CatalogError
from magic_folder.extraction.extractor import TextContentExtractor
from magic_folder.services import MagicFolder
from magic_folder.vectorstore.service import QdrantVectorIndex

from tests.conftest import HashingEmbeddingService


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    async def test_health_returns_200(self, client: AsyncClient) -> None:
        """Health endpoint returns 200 OK."""
        response = await client.get("/health")
        assert response.status_code == 200

    async def test_health_returns_version(self, client: AsyncClient) -> None:
        """Health endpoint returns application version."""
        data = (await client.get("/health")).json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__

    async def test_health_returns_timestamp(self, client: AsyncClient) -> None:
        """Health endpoint returns ISO timestamp."""
        data = (await client.get("/health")).json()
        assert "T" in data["timestamp"]


class TestReadinessEndpoint:
    """Tests for /health/ready endpoint."""

    async def test_ready_with_services(self, client: AsyncClient) -> None:
        """Both stores reachable means ready."""
        data = (await client.get("/health/ready")).json()

        assert data["status"] == "ready"
        assert data["checks"]["vector_index"] == "ok"
        assert data["checks"]["catalog"] == "ok"
        assert data["checks"]["catalog_pending"] == "0"

    async def test_not_ready_without_services(
        self, unconfigured_client: AsyncClient
    ) -> None:
        """No services means not ready."""
        data = (await unconfigured_client.get("/health/ready")).json()

        assert data["status"] == "not_ready"
        assert data["checks"]["services"] == "not_configured"


class TestLivenessEndpoint:
    """Tests for /health/live endpoint."""

    async def test_liveness_returns_alive(self, client: AsyncClient) -> None:
        """Liveness endpoint returns alive status."""
        response = await client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestLifespan:
    """Tests for service ownership in the app lifespan."""

    async def test_owned_services_closed_on_error(
        self, settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Services built by the lifespan are closed even when serving fails."""

        def from_settings(cls, s: Settings) -> MagicFolder:
            return cls(
                extractor=TextContentExtractor(),
                embedding_service=HashingEmbeddingService(),
                vector_index=QdrantVectorIndex(s.vector),
                catalog=MetadataCatalog(s.catalog),
            )

        monkeypatch.setattr(MagicFolder, "from_settings", classmethod(from_settings))
        app = create_app(settings=settings)

        with pytest.raises(RuntimeError):
            async with app.router.lifespan_context(app):
                services = app.state.services
                assert services is not None
                raise RuntimeError("server crashed")

        assert app.state.services is None
        with pytest.raises(CatalogError):
            await services.catalog.count()
