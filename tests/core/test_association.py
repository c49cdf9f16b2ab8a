"""Tests for folding records into ids and unfolding them back."""

import pytest

from sirop import MissingModelError, RecordNotFound
from sirop.core.association import fold
from sirop.core.property import Cardinality


def test_fold_single_and_many(store, player_cls):
    guybrush = player_cls(name="Guybrush")
    elaine = player_cls(name="Elaine")

    assert fold(guybrush) == guybrush.id
    assert fold([guybrush, elaine]) == [guybrush.id, elaine.id]
    assert fold((guybrush,)) == [guybrush.id]
    assert fold(None) is None


def test_fold_passes_plain_ids_through():
    """Already-folded ids stay as they are."""
    assert fold(3) == 3
    assert fold([1, 2]) == [1, 2]


def test_fold_enforces_declared_cardinality(store, player_cls):
    """A single record for a many property is a TypeError, and vice versa."""
    guybrush = player_cls(name="Guybrush")

    with pytest.raises(TypeError, match="collection"):
        fold(guybrush, Cardinality.MANY)
    with pytest.raises(TypeError, match="single record"):
        fold([guybrush], Cardinality.SINGLE)


def test_unfold_resolves_ids_via_model(store, player_cls, game_cls):
    guybrush = player_cls(name="Guybrush")
    guybrush.save()

    assert game_cls.unfold_association("players", [guybrush.id]) == [guybrush]
    assert game_cls.unfold_association("players", None) is None


def test_unfold_without_model_raises(game_cls):
    with pytest.raises(MissingModelError, match="property title does not define a model"):
        game_cls.unfold_association("title", [1])


def test_unfold_missing_id_raises(game_cls):
    with pytest.raises(RecordNotFound):
        game_cls.unfold_association("players", [99])


def test_fold_association_classmethod(store, player_cls, game_cls):
    guybrush = player_cls(name="Guybrush")

    assert game_cls.fold_association([guybrush]) == [guybrush.id]
