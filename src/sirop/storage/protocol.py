"""Blob store protocol for swappable key-value backends.

The blob store holds full record bodies, lazily-loaded property values and
sequence counters. Keys and values are opaque to the backend; encoding lives
in sirop.storage.serialization.

Usage:
    blob = MemoryBlobStore()
    store = Datastore(blob=blob, index=FTSSearchIndex())
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BlobStore(Protocol):
    """Abstract key-value interface. Implementations handle actual bytes.

    Implementations raise StorageError for backend failures.
    """

    def get(self, key: str) -> bytes | None:
        """Get value for key, or None if absent."""
        ...

    def set(self, key: str, value: bytes) -> None:
        """Set/overwrite value for key."""
        ...

    def delete(self, key: str) -> bool:
        """Delete key. Returns True if it existed."""
        ...

    def clear(self) -> None:
        """Remove every key."""
        ...

    def count(self) -> int:
        """Number of stored keys."""
        ...

    def close(self) -> None:
        """Release resources."""
        ...
