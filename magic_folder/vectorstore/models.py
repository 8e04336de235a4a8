"""Vector store data models."""

from pydantic import BaseModel, Field


class IndexEntry(BaseModel):
    """A row of the vector index.

    Rows are append-only: several entries may share a key.

    Attributes:
        key: Correlation key, the indexed file's path.
        vector: The embedding vector.
    """

    key: str = Field(description="Correlation key (file path)")
    vector: list[float] = Field(description="Embedding vector")


class VectorMatch(BaseModel):
    """Result from a nearest-neighbor search.

    Attributes:
        key: Key of the matched row.
        distance: Euclidean distance to the query (smaller is more similar).
    """

    key: str = Field(description="Key of the matched row")
    distance: float = Field(ge=0.0, description="Distance to the query vector")
