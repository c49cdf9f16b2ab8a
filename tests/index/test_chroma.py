"""Tests for ChromaSearchIndex.

Focus: metadata serialization round-trip (complex), filter building
(error-prone), domain scoping against a real collection.
"""

import importlib.util

import pytest

from sirop.index.chroma import (
    ChromaQuery,
    _build_chroma_where,
    _deserialize_from_metadata,
    _document_text,
    _serialize_to_metadata,
)
from sirop.index.models import Filter, FilterGroup, FilterOperator


def test_serialize_roundtrip_complex_values():
    """Lists and None survive the metadata round-trip.

    Why: Chroma metadata only holds scalars - lists and None need encoding.
    """
    document = {"id": 1, "_domain": "Game", "title": "Loom", "players": [1, 2], "year": None}

    metadata = _serialize_to_metadata(document)

    assert "_null_year" in metadata
    assert "_json_players" in metadata
    assert _deserialize_from_metadata(metadata) == document


def test_document_text_skips_reserved_fields():
    """Only indexed values are searchable text, not ids or domains."""
    text = _document_text({"id": 7, "_domain": "Game", "_doc_key": "Game/7", "title": "Loom"})

    assert text == "Loom"


def test_filter_single_equality():
    """Single equality filter produces correct ChromaDB format."""
    f = Filter(field="title", operator=FilterOperator.EQ, value="Loom")

    assert _build_chroma_where(f) == {"title": "Loom"}


def test_filter_with_operator():
    """Non-equality operators use ChromaDB operator syntax."""
    f = Filter(field="year", operator=FilterOperator.GT, value=1990)

    assert _build_chroma_where(f) == {"year": {"$gt": 1990}}


def test_filter_group_single_child_unwraps():
    """Single-child group unwraps to avoid unnecessary nesting.

    Why: ChromaDB may reject or mishandle unnecessary $and wrappers.
    """
    group = FilterGroup(filters=[Filter(field="title", operator=FilterOperator.EQ, value="Loom")])

    assert _build_chroma_where(group) == {"title": "Loom"}


def test_filter_none_returns_none():
    """None filter returns None (no filtering)."""
    assert _build_chroma_where(None) is None


HAS_CHROMADB = importlib.util.find_spec("chromadb") is not None


@pytest.mark.skipif(not HAS_CHROMADB, reason="chromadb not installed")
def test_domain_query_combines_scope_with_filter():
    """Filters are ANDed with the domain scope."""
    from sirop.index.chroma import ChromaSearchIndex

    index = ChromaSearchIndex.from_memory("test_domain_query")
    query = index.domain_query("Game", Filter(field="title", operator=FilterOperator.EQ, value="Loom"))

    assert query == ChromaQuery(where={"$and": [{"_domain": "Game"}, {"title": "Loom"}]})


@pytest.mark.skipif(not HAS_CHROMADB, reason="chromadb not installed")
def test_chroma_upsert_query_delete_roundtrip():
    """Upsert, domain query and delete against a real collection.

    Why: Tests actual ChromaDB interaction, not just our serialization.
    """
    from sirop.index.chroma import ChromaSearchIndex

    index = ChromaSearchIndex.from_memory("test_roundtrip")
    index.upsert("Game/1", {"id": 1, "_doc_key": "Game/1", "_domain": "Game", "title": "Loom"})
    index.upsert("Movie/1", {"id": 1, "_doc_key": "Movie/1", "_domain": "Movie", "title": "Loom"})

    hits = index.query_all(index.domain_query("Game", "Loom"))

    assert [index.resolve(h.reference) for h in hits] == ["Game/1"]
    assert index.get_document("Game/1")["title"] == "Loom"
    assert index.delete("Game/1") is True
    assert index.query_all(index.domain_query("Game")) == []
