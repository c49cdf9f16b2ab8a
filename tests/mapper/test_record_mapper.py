"""Tests for RecordMapper save/load/remove.

Focus: index write skipping (performance contract), lazy properties,
and what remove leaves behind.
"""

import logging

import pytest

from sirop import Property, Record, SerializationError
from sirop.mapper.mapper import lazy_key


@pytest.fixture
def upserts(store, monkeypatch):
    """Record every index upsert made through the store's index."""
    calls: list[str] = []
    original = store.index.upsert

    def counting_upsert(key, document):
        calls.append(key)
        original(key, document)

    monkeypatch.setattr(store.index, "upsert", counting_upsert)
    return calls


def test_first_save_assigns_id_and_doc_key(store, player_cls):
    player = player_cls(name="Guybrush")
    player.save()

    assert player.id == 1
    assert player.doc_key == "Player/1"
    assert store.blob.get("Player/1") is not None


def test_unchanged_save_skips_index_write(store, player_cls, upserts):
    """Saving without touching indexed fields does not re-index.

    Why: Replacing an index document is the slow part of a save.
    """
    player = player_cls(name="Guybrush", score=10)
    player.save()
    player.save()
    player.score = 20
    player.save()

    assert upserts == ["Player/1"]
    assert player_cls.find(1).score == 20


def test_changed_indexed_field_reindexes(store, player_cls, upserts):
    player = player_cls(name="Guybrush")
    player.save()
    player.name = "Guybrush Threepwood"
    player.save()

    assert upserts == ["Player/1", "Player/1"]
    assert player_cls.all() == [player]


def test_loaded_record_saves_without_reindex(store, player_cls, game_cls, upserts):
    """A record read back from the store starts with its indexed snapshot."""
    guybrush = player_cls(name="Guybrush")
    guybrush.save()
    game_cls(title="Monkey Island", players=[guybrush]).save()
    upserts.clear()

    game_cls.find(1).save()
    player_cls.find(1).save()

    assert upserts == []


def test_in_place_mutation_of_indexed_list_is_detected(store, player_cls, upserts):
    """The index snapshot is a copy, so mutating the saved value still re-indexes."""

    player_cls.property("aliases", indexed=True)
    player = player_cls(name="Guybrush", aliases=["mighty pirate"])
    player.save()
    player.aliases.append("wannabe")
    player.save()

    assert len(upserts) == 2


def test_lazy_property_loads_on_first_access(store, game_cls):
    """Lazy values live under their own key and stay unloaded until read."""
    game_cls(title="Loom", description="A fantasy adventure.").save()

    game = game_cls.find(1)

    assert store.blob.get(lazy_key("Game/1", "description")) is not None
    assert not game.is_loaded("description")
    assert game.description == "A fantasy adventure."
    assert game.is_loaded("description")


def test_untouched_lazy_property_survives_resave(store, game_cls):
    """Re-saving a loaded record without reading the lazy value keeps it."""
    game_cls(title="Loom", description="A fantasy adventure.").save()

    game = game_cls.find(1)
    game.title = "Loom (VGA)"
    game.save()

    assert game_cls.find(1).description == "A fantasy adventure."


def test_lazy_value_not_in_main_document(store, game_cls):
    game_cls(title="Loom", description="A fantasy adventure.").save()

    assert "description" not in store.db_get("Game/1")


def test_associations_stored_as_ids(store, player_cls, game_cls):
    guybrush = player_cls(name="Guybrush")
    guybrush.save()
    game_cls(title="Monkey Island", players=[guybrush]).save()

    assert store.db_get("Game/1")["players"] == [1]


def test_unserializable_value_writes_nothing(store, player_cls):
    """A failing save leaves no partial blob behind."""
    player = player_cls(name="Guybrush", score=object())

    with pytest.raises(SerializationError):
        player.save()

    assert store.blob.get(player.doc_key) is None
    assert store.index.count() == 0


def test_unknown_stored_field_logs_warning(store, player_cls, caplog):
    """Fields no longer declared are skipped with a warning."""
    store.db_set("Player/5", {"id": 5, "name": "LeChuck", "legacy": True})

    with caplog.at_level(logging.WARNING, logger="sirop.mapper.mapper"):
        player = player_cls.get("Player/5")

    assert player.name == "LeChuck"
    assert "legacy" in caplog.text


def test_remove_deletes_blob_lazy_blobs_and_index(store, game_cls):
    game = game_cls(title="Loom", description="A fantasy adventure.")
    game.save()

    game.destroy()

    assert store.blob.get("Game/1") is None
    assert store.blob.get(lazy_key("Game/1", "description")) is None
    assert store.index.count() == 0
    assert game_cls.get("Game/1") is None


@pytest.fixture
def walkthrough_cls(store, player_cls):
    """Walkthrough record type: lazy indexed body, lazy single-record author."""

    @store.record
    class Walkthrough(Record):
        headline = Property(indexed=True)
        body = Property(lazy=True, indexed=True)
        author = Property(lazy=True, model=player_cls)

    return Walkthrough


def test_loaded_record_with_lazy_indexed_field_saves_without_reindex(store, walkthrough_cls, upserts):
    """An unchanged record with an unread lazy indexed value is not re-indexed.

    Why: Save has to read the lazy value; that read must not look like a change.
    """
    walkthrough_cls(headline="Pirate classic", body="Insult sword fighting!").save()
    upserts.clear()

    walkthrough_cls.find(1).save()

    read_first = walkthrough_cls.find(1)
    assert read_first.body == "Insult sword fighting!"
    read_first.save()

    assert upserts == []


def test_changed_lazy_indexed_field_reindexes(store, walkthrough_cls, upserts):
    walkthrough_cls(headline="Pirate classic", body="Insult sword fighting!").save()
    upserts.clear()

    walkthrough = walkthrough_cls.find(1)
    walkthrough.body = "Grog is a secret formula."
    walkthrough.save()

    assert upserts == ["Walkthrough/1"]
    assert [r.doc_key for r, _ in walkthrough_cls.iter_search("body:grog")] == ["Walkthrough/1"]


def test_lazy_association_resolves_on_first_access(store, player_cls, walkthrough_cls):
    """A lazy single-record association is stored as one id and unfolded on read."""
    guybrush = player_cls(name="Guybrush")
    guybrush.save()
    walkthrough_cls(headline="Pirate classic", author=guybrush).save()

    walkthrough = walkthrough_cls.find(1)

    assert store.db_get("Walkthrough/1/author") == 1
    assert not walkthrough.is_loaded("author")
    assert walkthrough.author == guybrush
    assert walkthrough.author.name == "Guybrush"
    assert walkthrough.is_loaded("author")


def test_single_association_roundtrip(store, player_cls):
    """A non-lazy model= property stores one id and loads one record."""

    @store.record
    class Match(Record):
        winner = Property(indexed=True, model=player_cls)

    elaine = player_cls(name="Elaine")
    elaine.save()
    Match(winner=elaine).save()

    assert store.db_get("Match/1")["winner"] == elaine.id
    assert Match.find(1).winner == elaine
    assert [m.doc_key for m, _ in Match.iter_search(f"winner:{elaine.id}")] == ["Match/1"]


def test_remove_leaves_no_lazy_blobs_behind(store, walkthrough_cls, player_cls):
    """Removing a record deletes its main and lazy blobs, nothing else."""
    guybrush = player_cls(name="Guybrush")
    guybrush.save()
    walkthrough = walkthrough_cls(headline="Pirate classic", body="Grog.", author=guybrush)
    walkthrough.save()

    walkthrough.destroy()

    assert store.blob.keys() == ["Player/1", "_seq_Player", "_seq_Walkthrough"]
