"""Content extraction module."""

from magic_folder.extraction.extractor import ContentExtractor, TextContentExtractor

__all__ = [
    "ContentExtractor",
    "TextContentExtractor",
]
