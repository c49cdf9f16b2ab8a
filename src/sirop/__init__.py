"""Sirop: persist Python objects to a key-value store and a search index.

Usage:
    import sirop
    from sirop import Property, Record

    store = sirop.setup(path="./data")

    @store.record
    class Player(Record):
        name = Property(indexed=True)

    @store.record
    class Game(Record):
        title = Property(indexed=True)
        description = Property(lazy=True)
        players = Property(indexed=True, model=Player, many=True)

    guybrush = Player(name="Guybrush")
    guybrush.save()
    Game(title="Monkey Island", players=[guybrush]).save()

    Game.search("title:monkey", lambda game, score: print(game.title, score))
"""

__version__ = "0.1.0"

from sirop.config import StoreSettings
from sirop.core import (
    Cardinality,
    Property,
    PropertyDescriptor,
    RecordType,
    SequenceGenerator,
    SequenceMode,
)
from sirop.datastore import Datastore, setup
from sirop.errors import (
    ConfigurationError,
    MissingModelError,
    RecordNotFound,
    SearchIndexError,
    SerializationError,
    SiropError,
    StorageError,
)
from sirop.index import FieldOptions, Filter, FilterGroup, FilterOperator, FTSSearchIndex, SearchIndex
from sirop.mapper import Record
from sirop.storage import BlobStore, MemoryBlobStore, SQLiteBlobStore

__all__ = [
    # Version
    "__version__",
    # Setup
    "Datastore",
    "setup",
    "StoreSettings",
    # Records
    "Record",
    "Property",
    "PropertyDescriptor",
    "Cardinality",
    "RecordType",
    # Ids
    "SequenceGenerator",
    "SequenceMode",
    # Backends
    "BlobStore",
    "MemoryBlobStore",
    "SQLiteBlobStore",
    "SearchIndex",
    "FTSSearchIndex",
    "FieldOptions",
    "Filter",
    "FilterGroup",
    "FilterOperator",
    # Errors
    "SiropError",
    "ConfigurationError",
    "RecordNotFound",
    "MissingModelError",
    "StorageError",
    "SerializationError",
    "SearchIndexError",
]
