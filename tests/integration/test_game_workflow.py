"""End-to-end workflows over the public API."""

import threading

import sirop
from sirop import Property, Record


def test_game_with_players_roundtrip(store, player_cls, game_cls):
    """Save a player and a game, find it by id and by search.

    Why: This is the canonical usage - every layer is involved.
    """
    guybrush = player_cls(name="Guybrush")
    guybrush.save()
    assert guybrush.id == 1

    game = game_cls(title="Monkey Island", players=[guybrush], description="Pirates!")
    game.save()

    found = game_cls.find(1)
    assert found.players == [guybrush]
    assert found.players[0].name == "Guybrush"
    assert found.description == "Pirates!"

    hits: list = []
    game_cls.search("title:Monkey", lambda record, score: hits.append(record))
    assert hits == [game]


def test_search_by_associated_id(store, player_cls, game_cls):
    """Associated ids are indexed, so games can be found by player id."""
    guybrush = player_cls(name="Guybrush")
    elaine = player_cls(name="Elaine")
    guybrush.save()
    elaine.save()
    game_cls(title="Monkey Island", players=[guybrush]).save()
    game_cls(title="Monkey Island 2", players=[guybrush, elaine]).save()

    titles = sorted(g.title for g, _ in game_cls.iter_search(f"players:{elaine.id}"))

    assert titles == ["Monkey Island 2"]


def test_remove_then_get_and_search(store, game_cls):
    game = game_cls(title="Loom")
    game.save()

    game_cls.remove(game.doc_key)

    assert game_cls.get(game.doc_key) is None
    assert list(game_cls.iter_search("title:loom")) == []


def test_uuid_ids_never_collide_between_stores(tmp_path):
    """Two datastores over the same files in UUID mode draw distinct ids.

    Why: Counters are only safe within one process - UUID mode is the
    multi-writer answer.
    """
    stores = [sirop.setup(path=str(tmp_path), uuid=True) for _ in range(2)]
    order_types = []
    for store in stores:

        @store.record
        class Order(Record):
            item = Property(indexed=True)

        order_types.append(Order)

    ids: list[str] = []
    ids_lock = threading.Lock()

    def create(order_cls) -> None:
        for _ in range(10):
            order = order_cls(item="grog")
            order.save()
            with ids_lock:
                ids.append(order.id)

    threads = [threading.Thread(target=create, args=(cls,)) for cls in order_types]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(ids)) == 20
    assert len(order_types[0].all()) == 20
    for store in stores:
        store.close()
