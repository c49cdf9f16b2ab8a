"""Data models for search index backends.

Defines the field schema options, query hits and the metadata filters
used by SearchIndex implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Reserved index fields present in every index document
ID_FIELD = "id"
DOC_KEY_FIELD = "_doc_key"
DOMAIN_FIELD = "_domain"

RESERVED_FIELDS = (DOC_KEY_FIELD, DOMAIN_FIELD, ID_FIELD)


@dataclass(frozen=True, slots=True)
class FieldOptions:
    """Schema options for an indexed field.

    Attributes:
        searchable: If False the value is kept but cannot be matched.
        boost: Relevance weight applied to matches in this field.
    """

    searchable: bool = True
    boost: float = 1.0

    @classmethod
    def coerce(cls, options: bool | dict[str, Any] | FieldOptions | None) -> FieldOptions | None:
        """Normalize the `indexed=` argument of a property declaration.

        Returns:
            FieldOptions for truthy input, None when the field is not indexed.
        """
        if options is None or options is False:
            return None
        if options is True:
            return cls()
        if isinstance(options, FieldOptions):
            return options
        if isinstance(options, dict):
            return cls(**options)
        raise TypeError(f"indexed must be a bool, dict or FieldOptions, got {type(options).__name__}")


@dataclass(frozen=True, slots=True)
class Hit:
    """One match from a search index query.

    Attributes:
        reference: Backend-specific handle, resolved to a doc key by the index.
        score: Relevance score (higher is better).
    """

    reference: Any
    score: float


class FilterOperator(Enum):
    """Operators for metadata filtering."""

    EQ = "eq"  # equals
    NE = "ne"  # not equals
    GT = "gt"  # greater than
    GTE = "gte"  # greater than or equal
    LT = "lt"  # less than
    LTE = "lte"  # less than or equal
    IN = "in"  # in list
    NIN = "nin"  # not in list


@dataclass(slots=True)
class Filter:
    """Single filter condition.

    Attributes:
        field: Index field name to filter on.
        operator: Comparison operator.
        value: Value to compare against.
    """

    field: str
    operator: FilterOperator
    value: Any


@dataclass(slots=True)
class FilterGroup:
    """Group of filters combined with AND/OR.

    Attributes:
        filters: List of Filter or nested FilterGroup.
        operator: How to combine filters ("and" or "or").
    """

    filters: list[Filter | FilterGroup] = field(default_factory=list)
    operator: str = "and"  # "and" or "or"
