"""Indexing and query pipelines."""

from magic_folder.pipeline.indexing import IndexingPipeline
from magic_folder.pipeline.models import ProcessOutcome, ProcessStatus, SearchHit
from magic_folder.pipeline.query import QueryPipeline

__all__ = [
    "IndexingPipeline",
    "ProcessOutcome",
    "ProcessStatus",
    "QueryPipeline",
    "SearchHit",
]
