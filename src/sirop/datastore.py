"""Datastore: context object tying record types to their backends.

Holds the blob store, the search index and the id sequence, and registers
record types against them.

Usage:
    store = sirop.setup(path="./data")

    @store.record
    class Game(Record):
        title = Property(indexed=True)

    Game(title="Loom").save()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, overload

from sirop.config import StoreSettings
from sirop.core.property import PropertyDescriptor
from sirop.core.registry import RecordType, TypeRegistry
from sirop.core.sequence import SequenceGenerator, SequenceMode
from sirop.index.fts import FTSSearchIndex
from sirop.index.protocol import SearchIndex
from sirop.mapper.mapper import RecordMapper
from sirop.mapper.query import QueryGateway
from sirop.mapper.record import Record
from sirop.storage.memory import MemoryBlobStore
from sirop.storage.protocol import BlobStore
from sirop.storage.serialization import dumps, loads
from sirop.storage.sqlite import SQLiteBlobStore

logger = logging.getLogger(__name__)


class Datastore:
    """Blob store, search index and sequence shared by registered record types.

    Args:
        blob: Key-value store for record bodies, lazy values and counters.
        index: Search index for discovery queries.
        uuid: Generate UUID ids instead of per-domain counters.
    """

    def __init__(self, blob: BlobStore, index: SearchIndex, *, uuid: bool = False):
        self._blob = blob
        self._index = index
        self._sequence = SequenceGenerator(
            blob, SequenceMode.UUID if uuid else SequenceMode.COUNTER
        )
        self._registry = TypeRegistry(index, reserved=dir(Record))
        self._mapper = RecordMapper(blob, index)

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> Datastore:
        """Build backends from settings, creating the storage directory if needed."""
        if settings.needs_directory():
            Path(settings.path).mkdir(parents=True, exist_ok=True)

        blob: BlobStore
        if settings.blob_backend == "memory":
            blob = MemoryBlobStore()
        else:
            blob = SQLiteBlobStore(settings.resolve(settings.blob_filename))

        index: SearchIndex
        if settings.index_backend == "chroma":
            from sirop.index.chroma import ChromaSearchIndex

            index = ChromaSearchIndex.from_path(settings.path, settings.collection_name)
        else:
            index = FTSSearchIndex(settings.resolve(settings.index_filename))

        logger.debug(
            "Opened datastore at %s (blob=%s, index=%s, uuid=%s)",
            settings.path,
            settings.blob_backend,
            settings.index_backend,
            settings.uuid,
        )
        return cls(blob, index, uuid=settings.uuid)

    @property
    def blob(self) -> BlobStore:
        return self._blob

    @property
    def index(self) -> SearchIndex:
        return self._index

    @property
    def sequence(self) -> SequenceGenerator:
        return self._sequence

    @property
    def mapper(self) -> RecordMapper:
        return self._mapper

    # Type registration

    def register_type(self, cls: type[Record], domain: str | None = None) -> RecordType:
        """Register a Record subclass and declare its class-body properties.

        Args:
            cls: Record subclass.
            domain: Domain name; defaults to the class name.

        Raises:
            TypeError: If cls is not a Record subclass.
        """
        if not (isinstance(cls, type) and issubclass(cls, Record)):
            raise TypeError(f"{cls!r} must subclass sirop.Record to be registered")
        record_type = self._registry.register(cls, self, domain)
        record_type.gateway = QueryGateway(record_type, self._mapper, self._index)
        return record_type

    @overload
    def record(self, cls: type[Record]) -> type[Record]: ...

    @overload
    def record(
        self, cls: None = None, *, domain: str | None = None
    ) -> Callable[[type[Record]], type[Record]]: ...

    def record(
        self, cls: type[Record] | None = None, *, domain: str | None = None
    ) -> type[Record] | Callable[[type[Record]], type[Record]]:
        """Class decorator form of register_type.

        Supports three forms:
            @store.record
            @store.record()
            @store.record(domain="Games")
        """

        def decorator(c: type[Record]) -> type[Record]:
            self.register_type(c, domain)
            return c

        if cls is None:
            return decorator
        return decorator(cls)

    def record_type(self, cls: type) -> RecordType:
        """Raises ConfigurationError if cls is not registered here."""
        return self._registry.get(cls)

    def declare_property(self, cls: type, name: str, **options: Any) -> PropertyDescriptor:
        """Declare a property on a registered type.

        Raises:
            ConfigurationError: If cls is not registered with this datastore.
        """
        return self._registry.declare_property(cls, name, **options)

    # Blob helpers

    def next_sequence(self, domain: str | None = None) -> int | str:
        return self._sequence.next(domain)

    def db_set(self, key: str, value: Any) -> None:
        """Encode value and store it under key."""
        self._blob.set(key, dumps(value))

    def db_get(self, key: str) -> Any:
        """Load and decode the value under key, or None."""
        raw = self._blob.get(key)
        return None if raw is None else loads(raw)

    # Lifecycle

    def clear(self) -> None:
        """Empty the blob store (counters included) and the index."""
        self._blob.clear()
        self._index.clear()

    def close(self) -> None:
        self._blob.close()
        self._index.close()

    def __enter__(self) -> Datastore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def setup(settings: StoreSettings | None = None, **overrides: Any) -> Datastore:
    """Create a Datastore from settings.

    Args:
        settings: Base settings; read from SIROP_* environment variables if None.
        **overrides: Settings fields to override.

    Example:
        store = setup(uuid=True)
        store = setup(blob_backend="memory", index_filename=":memory:")
    """
    if settings is None:
        settings = StoreSettings(**overrides)
    elif overrides:
        settings = settings.model_copy(update=overrides)
    return Datastore.from_settings(settings)
