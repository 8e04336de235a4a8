"""Application exception hierarchy.

All custom exceptions inherit from MagicFolderError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "MF-1000"
    CONFIGURATION_ERROR = "MF-1001"
    VALIDATION_ERROR = "MF-1002"

    # Input file errors (2xxx)
    PATH_NOT_FOUND = "MF-2000"
    EXTRACTION_ERROR = "MF-2001"

    # Embedding service errors (3xxx)
    UPSTREAM_ERROR = "MF-3000"

    # Storage errors (4xxx)
    STORAGE_ERROR = "MF-4000"
    DIMENSION_MISMATCH = "MF-4001"
    SCHEMA_MISMATCH = "MF-4002"
    CATALOG_ERROR = "MF-4100"
    CATALOG_BUSY = "MF-4101"


class MagicFolderError(Exception):
    """Base exception for all Magic Folder errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(MagicFolderError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(MagicFolderError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class PathNotFoundError(MagicFolderError):
    """The input path does not exist."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.PATH_NOT_FOUND, details)


class ExtractionError(MagicFolderError):
    """A recognized file could not be read."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.EXTRACTION_ERROR, details)


class UpstreamError(MagicFolderError):
    """Embedding service failure."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UPSTREAM_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class StorageError(MagicFolderError):
    """Vector index or catalog failure."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.STORAGE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class DimensionMismatchError(StorageError):
    """Vector length disagrees with the index dimension."""

    def __init__(
        self,
        expected: int,
        actual: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector has {actual} dimensions, index expects {expected}",
            ErrorCode.DIMENSION_MISMATCH,
            {"expected": expected, "actual": actual, **(details or {})},
        )


class SchemaMismatchError(StorageError):
    """Stored collection was created with a different dimension."""

    def __init__(
        self,
        collection: str,
        stored: int,
        requested: int,
    ) -> None:
        self.stored = stored
        self.requested = requested
        super().__init__(
            f"Collection {collection} has dimension {stored}, requested {requested}",
            ErrorCode.SCHEMA_MISMATCH,
            {"collection": collection, "stored": stored, "requested": requested},
        )


class CatalogError(StorageError):
    """Metadata catalog failure."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CATALOG_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class CatalogBusyError(CatalogError):
    """Catalog request queue is full."""

    def __init__(self, max_pending: int) -> None:
        super().__init__(
            f"Catalog queue is full ({max_pending} pending requests)",
            ErrorCode.CATALOG_BUSY,
            {"max_pending": max_pending},
        )
