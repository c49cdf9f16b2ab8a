"""Blob store backends and value codec."""

from sirop.storage.memory import MemoryBlobStore
from sirop.storage.protocol import BlobStore
from sirop.storage.sqlite import SQLiteBlobStore

__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "SQLiteBlobStore",
]
