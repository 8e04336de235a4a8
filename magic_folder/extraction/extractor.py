"""Content extractor interface and implementations."""

from abc import ABC, abstractmethod
from pathlib import Path

from magic_folder.exceptions import ExtractionError
from magic_folder.logging_config import get_logger

logger = get_logger(__name__)


class ContentExtractor(ABC):
    """Abstract base class for content extractors.

    An extractor turns a file into text. Files it does not recognize yield
    an empty string, which callers treat as "nothing to index".
    """

    @abstractmethod
    def supports(self, path: str | Path) -> bool:
        """Check if this extractor recognizes the given file.

        Args:
            path: File path to check.

        Returns:
            True if the file's type is recognized.
        """
        ...

    @abstractmethod
    def extract(self, path: str | Path) -> str:
        """Extract the text content of a file.

        Args:
            path: File to read.

        Returns:
            The file's text, or an empty string for unsupported files.

        Raises:
            ExtractionError: If a recognized file cannot be read.
        """
        ...


class TextContentExtractor(ContentExtractor):
    """Extractor for plain text and lightweight markup files.

    Recognized files are returned verbatim; no markup is stripped.
    """

    SUPPORTED_EXTENSIONS = frozenset({".txt", ".text", ".md", ".markdown", ".rst"})

    def __init__(self, encoding: str = "utf-8") -> None:
        """Initialize the text extractor.

        Args:
            encoding: Text encoding to use when reading files.
        """
        self.encoding = encoding

    def supports(self, path: str | Path) -> bool:
        return Path(path).suffix.lower() in self.SUPPORTED_EXTENSIONS

    def extract(self, path: str | Path) -> str:
        path = Path(path)

        if not self.supports(path):
            logger.debug(
                "Unsupported file type, nothing extracted",
                extra={"path": str(path), "suffix": path.suffix},
            )
            return ""

        try:
            return path.read_bytes().decode(self.encoding)
        except UnicodeDecodeError as e:
            raise ExtractionError(
                f"Failed to decode file: {path}",
                details={"path": str(path), "encoding": self.encoding, "error": str(e)},
            ) from e
        except OSError as e:
            raise ExtractionError(
                f"Failed to read file: {path}",
                details={"path": str(path), "error": str(e)},
            ) from e
