"""Metadata catalog data models."""

from datetime import datetime

from pydantic import BaseModel, Field


class FileRecord(BaseModel):
    """Bookkeeping row for one processed file.

    Attributes:
        id: Catalog-local identity, kept across reprocessing.
        path: File path, unique in the catalog.
        processed_at: When the file was last processed (UTC).
        vector_key: Key of the file's rows in the vector index.
    """

    id: int = Field(description="Catalog identity")
    path: str = Field(description="File path")
    processed_at: datetime = Field(description="Last processing time (UTC)")
    vector_key: str | None = Field(default=None, description="Vector index key")
