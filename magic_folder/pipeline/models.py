"""Pipeline data models."""

from enum import Enum

from pydantic import BaseModel, Field

PROCESSED_MESSAGE = "File processed successfully"
SKIPPED_MESSAGE = "No text extracted or unsupported file type"


class ProcessStatus(str, Enum):
    """How ``process`` finished."""

    PROCESSED = "processed"
    SKIPPED = "skipped"


class ProcessOutcome(BaseModel):
    """Result of processing one file.

    Skipped files carry neither an id nor a vector key.

    Attributes:
        status: Processed or skipped.
        message: Human-readable summary.
        id: Catalog id of the file's row.
        vector_key: Key of the file's vector index rows.
    """

    status: ProcessStatus = Field(description="Outcome kind")
    message: str = Field(description="Human-readable summary")
    id: int | None = Field(default=None, description="Catalog id")
    vector_key: str | None = Field(default=None, description="Vector index key")

    @classmethod
    def processed(cls, file_id: int, vector_key: str) -> "ProcessOutcome":
        return cls(
            status=ProcessStatus.PROCESSED,
            message=PROCESSED_MESSAGE,
            id=file_id,
            vector_key=vector_key,
        )

    @classmethod
    def skipped(cls) -> "ProcessOutcome":
        return cls(status=ProcessStatus.SKIPPED, message=SKIPPED_MESSAGE)

    @property
    def is_skipped(self) -> bool:
        return self.status is ProcessStatus.SKIPPED


class SearchHit(BaseModel):
    """One search result.

    Attributes:
        path: Path of the matching file.
        score: Distance to the query (smaller is more similar).
    """

    path: str = Field(description="Matching file path")
    score: float = Field(description="Distance to the query")
