"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from sirop import Datastore, FTSSearchIndex, MemoryBlobStore, Property, Record


@pytest.fixture
def store():
    """Fresh Datastore over an in-memory blob store and FTS index."""
    datastore = Datastore(MemoryBlobStore(), FTSSearchIndex())
    yield datastore
    datastore.close()


@pytest.fixture
def uuid_store():
    """Fresh Datastore generating UUID ids."""
    datastore = Datastore(MemoryBlobStore(), FTSSearchIndex(), uuid=True)
    yield datastore
    datastore.close()


@pytest.fixture
def player_cls(store):
    """Player record type registered with the store fixture."""

    @store.record
    class Player(Record):
        name = Property(indexed=True)
        score = Property()

    return Player


@pytest.fixture
def game_cls(store, player_cls):
    """Game record type: indexed title, lazy description, many players."""

    @store.record
    class Game(Record):
        title = Property(indexed=True)
        description = Property(lazy=True)
        players = Property(indexed=True, model=player_cls, many=True)

    return Game
