"""In-memory blob store.

Simple dict-based storage suitable for single-process use and testing.
Data is lost when the process ends.

Usage:
    blob = MemoryBlobStore()
    blob.set("Game/1", b"...")
"""

from __future__ import annotations

import threading


class MemoryBlobStore:
    """Dict-backed BlobStore.

    Structure:
        _data[key] = value bytes
    """

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._data)

    def keys(self) -> list[str]:
        """Snapshot of stored keys, sorted."""
        with self._lock:
            return sorted(self._data)

    def close(self) -> None:
        """Nothing to release; data stays until clear()."""
