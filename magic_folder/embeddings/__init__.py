"""Embedding service module."""

from magic_folder.embeddings.models import EmbeddingResult
from magic_folder.embeddings.service import EmbeddingService, OllamaEmbeddingService

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "OllamaEmbeddingService",
]
