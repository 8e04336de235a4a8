"""Tests for observability module."""

from httpx import AsyncClient

from magic_folder.observability.metrics import (
    get_metrics,
    track_embedding_request,
    track_process_outcome,
    track_search_request,
    track_vector_operation,
)


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    async def test_metrics_endpoint_returns_prometheus_format(
        self, client: AsyncClient
    ) -> None:
        """Metrics endpoint returns Prometheus format."""
        await client.get("/health")
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"http_requests_total" in response.content

    async def test_processing_is_counted(self, client: AsyncClient, write_file) -> None:
        """Processing a file increments the outcome counter."""
        await client.post("/process_file", json={"file_path": write_file("a.txt", "x")})

        metrics = (await client.get("/metrics")).text
        assert 'files_processed_total{outcome="processed"}' in metrics


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        assert isinstance(get_metrics(), bytes)

    def test_track_embedding_request(self) -> None:
        """Embedding requests are recorded per status."""
        track_embedding_request(model="test-model", duration=0.2, success=True)
        track_embedding_request(model="test-model", duration=0.1, success=False)

        metrics = get_metrics().decode()
        assert 'embedding_requests_total{model="test-model",status="success"}' in metrics
        assert 'embedding_requests_total{model="test-model",status="error"}' in metrics

    def test_track_process_outcome(self) -> None:
        """Outcomes are counted by label."""
        track_process_outcome("skipped")
        assert 'files_processed_total{outcome="skipped"}' in get_metrics().decode()

    def test_track_search_request(self) -> None:
        """Search metrics are recorded, empty searches included."""
        track_search_request(results_returned=3, top_distance=0.4)
        track_search_request(results_returned=0, top_distance=None)

        metrics = get_metrics().decode()
        assert "search_results_returned" in metrics
        assert "search_top_distance" in metrics

    def test_track_vector_operation(self) -> None:
        """Vector operations are timed."""
        track_vector_operation("upsert", 0.01)
        assert "vectorstore_operation_duration_seconds" in get_metrics().decode()
