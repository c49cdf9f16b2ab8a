"""Search index backends.

Provides the SearchIndex protocol and implementations:
- FTSSearchIndex: SQLite FTS5 (default)
- ChromaSearchIndex: ChromaDB (pip install sirop[chroma])

Usage:
    from sirop.index import FTSSearchIndex, FieldOptions

    from sirop.index.chroma import ChromaSearchIndex  # optional dependency
"""

from sirop.index.fts import FTSQuery, FTSSearchIndex
from sirop.index.models import (
    DOC_KEY_FIELD,
    DOMAIN_FIELD,
    ID_FIELD,
    FieldOptions,
    Filter,
    FilterGroup,
    FilterOperator,
    Hit,
)
from sirop.index.protocol import SearchIndex

__all__ = [
    # Protocol
    "SearchIndex",
    # Implementations
    "FTSSearchIndex",
    "FTSQuery",
    # Types
    "FieldOptions",
    "Hit",
    "Filter",
    "FilterGroup",
    "FilterOperator",
    # Reserved fields
    "ID_FIELD",
    "DOC_KEY_FIELD",
    "DOMAIN_FIELD",
]
