"""Exception taxonomy for sirop.

Usage:
    try:
        game = Game.find(42)
    except RecordNotFound as e:
        print(e.expected, e.found)
"""

from __future__ import annotations


class SiropError(Exception):
    """Base exception for all sirop errors."""


class ConfigurationError(SiropError):
    """A type or property was used before it was registered with a Datastore."""


class RecordNotFound(SiropError, LookupError):
    """One or more records requested by id could not be found.

    Attributes:
        expected: Number of records requested.
        found: Number of records that resolved.
    """

    def __init__(self, message: str, expected: int = 1, found: int = 0):
        self.expected = expected
        self.found = found
        super().__init__(message)


class MissingModelError(SiropError):
    """A property without an associated type was asked to unfold ids."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"property {name} does not define a model")


class StorageError(SiropError):
    """Blob store I/O failure."""


class SerializationError(StorageError):
    """A value could not be encoded for, or decoded from, the blob store."""


class SearchIndexError(SiropError):
    """Search index I/O or query failure."""
