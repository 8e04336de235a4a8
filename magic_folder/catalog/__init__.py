"""Metadata catalog module."""

from magic_folder.catalog.models import FileRecord
from magic_folder.catalog.service import MetadataCatalog

__all__ = [
    "FileRecord",
    "MetadataCatalog",
]
