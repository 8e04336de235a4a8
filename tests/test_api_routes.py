"""Tests for the file API routes."""

from httpx import AsyncClient

from magic_folder.api.routes import (
    ProcessFileResponse,
    SearchRequest,
    hit_to_response,
    outcome_to_response,
)
from magic_folder.pipeline.models import ProcessOutcome, SearchHit


class TestModels:
    """Tests for request and response models."""

    def test_search_defaults(self) -> None:
        """Search request defaults to five results."""
        assert SearchRequest(query="x").top_k == 5

    def test_outcome_to_response(self) -> None:
        """Processed outcome maps to file and vector ids."""
        response = outcome_to_response(ProcessOutcome.processed(3, "/a.txt"))
        assert response == ProcessFileResponse(
            message="File processed successfully", file_id=3, vector_id="/a.txt"
        )

    def test_skipped_to_response(self) -> None:
        """Skipped outcome has no ids."""
        response = outcome_to_response(ProcessOutcome.skipped())
        assert response.file_id is None
        assert response.vector_id is None

    def test_hit_to_response(self) -> None:
        """Hits map path and score."""
        response = hit_to_response(SearchHit(path="/a.txt", score=0.25))
        assert response.path == "/a.txt"
        assert response.score == 0.25


class TestRoot:
    """Tests for / endpoint."""

    async def test_banner(self, client: AsyncClient) -> None:
        """Root returns the banner."""
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json() == "MagicFolder API is running!"


class TestProcessFileEndpoint:
    """Tests for /process_file endpoint."""

    async def test_process_file(self, client: AsyncClient, write_file) -> None:
        """Processing a text file returns its ids."""
        path = write_file("a.txt", "hello from the api")

        response = await client.post("/process_file", json={"file_path": path})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "File processed successfully"
        assert isinstance(data["file_id"], int)
        assert data["vector_id"] == path

    async def test_skipped_file(self, client: AsyncClient, write_file) -> None:
        """Unsupported files return 200 with null ids."""
        path = write_file("a.bin", "binary")

        response = await client.post("/process_file", json={"file_path": path})

        assert response.status_code == 200
        assert response.json() == {
            "message": "No text extracted or unsupported file type",
            "file_id": None,
            "vector_id": None,
        }

    async def test_missing_file(self, client: AsyncClient, tmp_path) -> None:
        """Missing files return 404 with a structured error."""
        response = await client.post(
            "/process_file", json={"file_path": str(tmp_path / "missing.txt")}
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "MF-2000"

    async def test_validates_request(self, client: AsyncClient) -> None:
        """Missing file_path is a validation error."""
        response = await client.post("/process_file", json={})
        assert response.status_code == 422


class TestSearchEndpoint:
    """Tests for /search endpoint."""

    async def test_search(self, client: AsyncClient, write_file) -> None:
        """Processed files are found by their text."""
        path = write_file("a.md", "semantic search over local files")
        await client.post("/process_file", json={"file_path": path})

        response = await client.post(
            "/search", json={"query": "semantic search over local files", "top_k": 1}
        )

        assert response.status_code == 200
        results = response.json()
        assert len(results) == 1
        assert results[0]["path"] == path
        assert results[0]["score"] < 1e-4

    async def test_negative_top_k(self, client: AsyncClient) -> None:
        """Negative top_k is rejected."""
        response = await client.post("/search", json={"query": "x", "top_k": -1})
        assert response.status_code == 422

    async def test_validates_request(self, client: AsyncClient) -> None:
        """Missing query is a validation error."""
        response = await client.post("/search", json={})
        assert response.status_code == 422


class TestUnconfigured:
    """Tests for the API without services."""

    async def test_process_returns_503(self, unconfigured_client: AsyncClient) -> None:
        """Requests fail with 503 until services are attached."""
        response = await unconfigured_client.post("/process_file", json={"file_path": "/a"})

        assert response.status_code == 503
        assert "not configured" in response.json()["detail"]["error"]

    async def test_search_returns_503(self, unconfigured_client: AsyncClient) -> None:
        """Search fails with 503 until services are attached."""
        response = await unconfigured_client.post("/search", json={"query": "x"})
        assert response.status_code == 503
