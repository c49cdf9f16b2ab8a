"""Games and players: declare, save, find and search records.

Run with:
    python examples/game.py
"""

import logging
import tempfile

import sirop
from sirop import Property, Record


def main():
    logging.basicConfig(level=logging.INFO)

    with tempfile.TemporaryDirectory() as path, sirop.setup(path=path) as store:

        @store.record
        class Player(Record):
            name = Property(indexed=True)

        @store.record
        class Game(Record):
            title = Property(indexed={"boost": 2.0})
            description = Property(lazy=True)
            players = Property(indexed=True, model=Player, many=True)
            champion = Property(lazy=True, model=Player)

            @property
            def rating(self):
                return self.read_slot("rating") or 0

            @rating.setter
            def rating(self, value):
                self.write_slot("rating", max(0, min(10, value)))

        Game.property("rating", indexed=True, accessors=False)

        guybrush = Player(name="Guybrush")
        elaine = Player(name="Elaine")
        guybrush.save()
        elaine.save()
        print(f"Saved {guybrush.doc_key} and {elaine.doc_key}")

        Game(
            title="The Secret of Monkey Island",
            description="A mighty pirate in the making.",
            players=[guybrush, elaine],
            rating=11,
            champion=elaine,
        ).save()
        Game(title="Loom", description="Weave the pattern.").save()

        game = Game.find(1)
        print(f"{game.title}: {[p.name for p in game.players]}")
        print(f"Description loaded yet? {game.is_loaded('description')}")
        print(f"Description: {game.description}")
        print(f"Rating (clamped): {game.rating}")
        print(f"Champion loaded yet? {game.is_loaded('champion')}")
        print(f"Champion: {game.champion.name}")

        print("\nSearching title:monkey")
        Game.search("title:monkey", lambda g, score: print(f"  {g.title} ({score:.3f})"))

        print(f"\nGames with Elaine (player {elaine.id}):")
        for g, _ in Game.iter_search(f"players:{elaine.id}"):
            print(f"  {g.title}")

        Game.delete(2)
        print(f"\nAfter deleting Loom: {[g.title for g in Game.all()]}")

        try:
            Game.find([1, 2])
        except sirop.RecordNotFound as e:
            print(f"find([1, 2]) failed: {e}")

    print("Done.")


if __name__ == "__main__":
    main()
