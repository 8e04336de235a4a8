"""Vector store module."""

from magic_folder.vectorstore.models import IndexEntry, VectorMatch
from magic_folder.vectorstore.service import QdrantVectorIndex, VectorIndex

__all__ = [
    "IndexEntry",
    "QdrantVectorIndex",
    "VectorIndex",
    "VectorMatch",
]
