"""Search index protocol for swappable full-text backends.

The index holds a reduced document per record, used only for discovery.
Authoritative values live in the blob store.

Usage:
    index = FTSSearchIndex()
    index.define_field("title", FieldOptions())
    index.upsert("Game/1", {"id": 1, "_doc_key": "Game/1", "_domain": "Game", "title": "Loom"})
    for hit in index.query_all(index.domain_query("Game", "title:loom")):
        print(index.resolve(hit.reference), hit.score)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from sirop.index.models import FieldOptions, Hit


@runtime_checkable
class SearchIndex(Protocol):
    """Abstract search interface. Query grammar belongs to the implementation.

    Implementations raise SearchIndexError for backend failures.
    """

    def upsert(self, key: str, document: Mapping[str, Any]) -> None:
        """Insert or replace the document stored under key."""
        ...

    def delete(self, key: str) -> bool:
        """Delete the document under key. Returns True if it existed."""
        ...

    def query_all(self, expression: Any, limit: int | None = None) -> list[Hit]:
        """Run a query, best hits first. limit=None returns every match."""
        ...

    def resolve(self, reference: Any) -> str | None:
        """Map a hit reference back to its document key."""
        ...

    def domain_query(self, domain: str, clause: Any = None) -> Any:
        """Build "documents of domain AND (clause)" in this backend's grammar."""
        ...

    def define_field(self, name: str, options: FieldOptions) -> None:
        """Add a field to the schema. Existing definitions are left untouched."""
        ...

    def has_field(self, name: str) -> bool:
        """Check if the schema defines a field."""
        ...

    def clear(self) -> None:
        """Remove every document (the schema is kept)."""
        ...

    def count(self) -> int:
        """Number of indexed documents."""
        ...

    def close(self) -> None:
        """Release resources."""
        ...
