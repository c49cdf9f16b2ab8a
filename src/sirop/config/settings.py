"""Configuration settings using Pydantic Settings.

Provides typed configuration with environment variable support.

Usage:
    from sirop.config import StoreSettings

    # Load from environment variables (SIROP_*)
    settings = StoreSettings()

    # Or override with explicit values
    settings = StoreSettings(path="./data", uuid=True)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ImportError as e:
    raise ImportError(
        "pydantic-settings is required for config module. "
        "Install with: pip install pydantic-settings"
    ) from e


class StoreSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for a Datastore.

    Attributes:
        path: Directory for the blob store and index files.
        uuid: Use UUID ids instead of per-domain counters. Recommended when
            more than one process writes records.
        blob_backend: "sqlite" (file in path) or "memory".
        blob_filename: Blob store file name, or ":memory:".
        index_backend: "fts" (SQLite FTS5 file in path) or "chroma".
        index_filename: FTS index file name, or ":memory:".
        collection_name: Chroma collection name.

    Environment Variables:
        SIROP_PATH
        SIROP_UUID
        SIROP_BLOB_BACKEND
        SIROP_BLOB_FILENAME
        SIROP_INDEX_BACKEND
        SIROP_INDEX_FILENAME
        SIROP_COLLECTION_NAME
    """

    model_config = SettingsConfigDict(
        env_prefix="SIROP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    path: str = ".sirop"
    uuid: bool = False
    blob_backend: Literal["sqlite", "memory"] = "sqlite"
    blob_filename: str = "db.sqlite3"
    index_backend: Literal["fts", "chroma"] = "fts"
    index_filename: str = "index.sqlite3"
    collection_name: str = "sirop"

    def resolve(self, filename: str) -> str:
        """Location of a store file inside path (":memory:" passes through)."""
        if filename == ":memory:":
            return filename
        return str(Path(self.path) / filename)

    def needs_directory(self) -> bool:
        """Whether any configured backend writes files under path."""
        return (
            (self.blob_backend == "sqlite" and self.blob_filename != ":memory:")
            or (self.index_backend == "fts" and self.index_filename != ":memory:")
            or self.index_backend == "chroma"
        )
