"""ChromaDB search index.

Stores index documents as Chroma metadata and their indexed values as the
Chroma document text. Chroma has no relevance ranking without embeddings,
so every hit scores 1.0 and the expressions are filters:

    ChromaQuery(where={"title": "Loom"})
    ChromaQuery(text="tentacle")  # document $contains

Usage:
    index = ChromaSearchIndex.from_memory("games")
    store = Datastore(blob=MemoryBlobStore(), index=index)

    Game.search(Filter("title", FilterOperator.EQ, "Loom"), print)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sirop.errors import SearchIndexError
from sirop.index.models import (
    DOC_KEY_FIELD,
    DOMAIN_FIELD,
    ID_FIELD,
    RESERVED_FIELDS,
    FieldOptions,
    Filter,
    FilterGroup,
    FilterOperator,
    Hit,
)

if TYPE_CHECKING:
    import chromadb
    from chromadb.api.models.Collection import Collection

logger = logging.getLogger(__name__)

# Constant embedding: documents are only ever matched by filters
_EMBEDDING = [1.0]


@dataclass(frozen=True, slots=True)
class ChromaQuery:
    """Chroma query expression.

    Attributes:
        where: Chroma metadata filter.
        text: Substring the document text must contain.
    """

    where: dict[str, Any] | None = None
    text: str | None = None


def _serialize_to_metadata(document: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten an index document into Chroma metadata.

    Chroma metadata only supports str, int, float, bool values. None becomes a
    _null_ sentinel, other values are JSON-serialized under _json_.
    """
    metadata: dict[str, Any] = {}
    for key, value in document.items():
        if isinstance(value, str | int | float | bool):
            metadata[key] = value
        elif value is None:
            metadata[f"_null_{key}"] = True
        else:
            metadata[f"_json_{key}"] = json.dumps(value, default=str)
    return metadata


def _deserialize_from_metadata(metadata: Mapping[str, Any]) -> dict[str, Any]:
    """Rebuild an index document from Chroma metadata."""
    document: dict[str, Any] = {}
    for key, value in metadata.items():
        if key.startswith("_null_"):
            document[key[6:]] = None
        elif key.startswith("_json_"):
            document[key[6:]] = json.loads(value)
        else:
            document[key] = value
    return document


def _document_text(document: Mapping[str, Any]) -> str:
    """Searchable text: the indexed values, space separated."""
    parts: list[str] = []
    for key, value in document.items():
        if key in RESERVED_FIELDS or value is None:
            continue
        if isinstance(value, list | tuple):
            parts.extend(str(v) for v in value if v is not None)
        else:
            parts.append(str(value))
    return " ".join(parts)


def _build_chroma_where(filters: Filter | FilterGroup | None) -> dict[str, Any] | None:
    """Convert Filter/FilterGroup to ChromaDB where clause.

    Args:
        filters: Filter specification.

    Returns:
        ChromaDB-compatible where dictionary.
    """
    if filters is None:
        return None

    if isinstance(filters, Filter):
        op_map = {
            FilterOperator.EQ: "$eq",
            FilterOperator.NE: "$ne",
            FilterOperator.GT: "$gt",
            FilterOperator.GTE: "$gte",
            FilterOperator.LT: "$lt",
            FilterOperator.LTE: "$lte",
            FilterOperator.IN: "$in",
            FilterOperator.NIN: "$nin",
        }
        if filters.operator == FilterOperator.EQ:
            # Simple equality can omit operator
            return {filters.field: filters.value}
        return {filters.field: {op_map[filters.operator]: filters.value}}

    if not filters.filters:
        return None

    children = [_build_chroma_where(f) for f in filters.filters]
    children = [c for c in children if c is not None]

    if not children:
        return None
    if len(children) == 1:
        return children[0]

    chroma_op = "$and" if filters.operator == "and" else "$or"
    return {chroma_op: children}


def _and(*clauses: dict[str, Any] | None) -> dict[str, Any] | None:
    present = [c for c in clauses if c]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return {"$and": present}


class ChromaSearchIndex:
    """SearchIndex backed by a ChromaDB collection.

    Attributes:
        collection: The underlying ChromaDB collection.
    """

    def __init__(self, collection: Collection) -> None:
        """Initialize index with a ChromaDB collection.

        Use factory methods instead of direct construction.

        Args:
            collection: ChromaDB collection instance.
        """
        self._collection = collection
        self._fields: dict[str, FieldOptions] = {
            DOC_KEY_FIELD: FieldOptions(searchable=False),
            DOMAIN_FIELD: FieldOptions(),
            ID_FIELD: FieldOptions(),
        }

    @classmethod
    def from_client(
        cls,
        client: chromadb.ClientAPI,  # type: ignore[name-defined]
        collection_name: str,
    ) -> ChromaSearchIndex:
        """Create index from existing ChromaDB client.

        Args:
            client: ChromaDB client instance.
            collection_name: Name of collection to use/create.

        Returns:
            Configured ChromaSearchIndex instance.
        """
        collection = client.get_or_create_collection(name=collection_name)
        return cls(collection)

    @classmethod
    def from_path(cls, path: str, collection_name: str) -> ChromaSearchIndex:
        """Create index with persistent storage.

        Args:
            path: Directory path for persistent storage.
            collection_name: Name of collection to use/create.
        """
        try:
            import chromadb
        except ImportError as e:
            raise ImportError(
                "chromadb is required for ChromaSearchIndex. Install with: pip install sirop[chroma]"
            ) from e

        client = chromadb.PersistentClient(path=path)
        return cls.from_client(client, collection_name)

    @classmethod
    def from_memory(cls, collection_name: str) -> ChromaSearchIndex:
        """Create index with ephemeral (in-memory) storage.

        Args:
            collection_name: Name of collection to use/create.
        """
        try:
            import chromadb
        except ImportError as e:
            raise ImportError(
                "chromadb is required for ChromaSearchIndex. Install with: pip install sirop[chroma]"
            ) from e

        client = chromadb.EphemeralClient()
        return cls.from_client(client, collection_name)

    @property
    def collection(self) -> Collection:
        """Get the underlying ChromaDB collection."""
        return self._collection

    def define_field(self, name: str, options: FieldOptions) -> None:
        # Chroma metadata is schemaless; definitions only back has_field()
        self._fields.setdefault(name, options)

    def has_field(self, name: str) -> bool:
        return name in self._fields

    def upsert(self, key: str, document: Mapping[str, Any]) -> None:
        metadata = _serialize_to_metadata({**document, DOC_KEY_FIELD: key})
        try:
            self._collection.upsert(
                ids=[key],
                embeddings=[_EMBEDDING],  # type: ignore[arg-type]
                documents=[_document_text(document)],
                metadatas=[metadata],
            )
        except Exception as e:
            raise SearchIndexError(f"Chroma upsert failed for {key}: {e}") from e

    def get_document(self, key: str) -> dict[str, Any] | None:
        """Read back the stored index document for key."""
        result = self._collection.get(ids=[key], include=["metadatas"])
        if not result["ids"]:
            return None
        return _deserialize_from_metadata(result["metadatas"][0])  # type: ignore[index]

    def delete(self, key: str) -> bool:
        existing = self._collection.get(ids=[key])
        if not existing["ids"]:
            return False
        try:
            self._collection.delete(ids=[key])
        except Exception as e:
            raise SearchIndexError(f"Chroma delete failed for {key}: {e}") from e
        return True

    def clear(self) -> None:
        ids = self._collection.get()["ids"]
        if ids:
            self._collection.delete(ids=ids)

    def count(self) -> int:
        return int(self._collection.count())

    def domain_query(
        self,
        domain: str,
        clause: str | Filter | FilterGroup | dict[str, Any] | ChromaQuery | None = None,
    ) -> ChromaQuery:
        """Scope a query to one domain.

        Strings become document text matches, Filter/FilterGroup and raw dicts
        become metadata filters.
        """
        scope = {DOMAIN_FIELD: domain}
        if clause is None:
            return ChromaQuery(where=scope)
        if isinstance(clause, str):
            return ChromaQuery(where=scope, text=clause)
        if isinstance(clause, ChromaQuery):
            return ChromaQuery(where=_and(scope, clause.where), text=clause.text)
        if isinstance(clause, Filter | FilterGroup):
            return ChromaQuery(where=_and(scope, _build_chroma_where(clause)))
        return ChromaQuery(where=_and(scope, clause))

    def query_all(self, expression: ChromaQuery, limit: int | None = None) -> list[Hit]:
        try:
            result = self._collection.get(
                where=expression.where,
                where_document={"$contains": expression.text} if expression.text else None,
                limit=limit,
                include=["metadatas"],
            )
        except Exception as e:
            raise SearchIndexError(f"Chroma query failed: {e}") from e
        return [Hit(reference=id_, score=1.0) for id_ in result["ids"]]

    def resolve(self, reference: str) -> str | None:
        return reference

    def close(self) -> None:
        """Chroma clients hold no per-index resources."""
