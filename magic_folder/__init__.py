"""Magic Folder: semantic indexing and retrieval for folder contents."""

__version__ = "0.1.0"
