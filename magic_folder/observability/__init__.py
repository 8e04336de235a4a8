"""Observability module for metrics and monitoring."""

from magic_folder.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_embedding_request,
    track_process_outcome,
    track_search_request,
    track_vector_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_embedding_request",
    "track_process_outcome",
    "track_search_request",
    "track_vector_operation",
]
