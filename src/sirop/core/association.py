"""Association codec: records to ids and back.

fold() turns one record or a collection of records into an id or a list of
ids. unfold() resolves ids through the associated type's find(), returning
the same shape it was given.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from sirop.core.property import Cardinality, PropertyDescriptor
from sirop.errors import MissingModelError


@runtime_checkable
class Identified(Protocol):
    """Anything persisted under an id and doc key (records)."""

    @property
    def id(self) -> int | str: ...

    @property
    def doc_key(self) -> str: ...


def _is_collection(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping, Identified))


def _id_of(value: Any) -> Any:
    return value.id if isinstance(value, Identified) else value


def fold(value: Any, cardinality: Cardinality | None = None) -> Any:
    """Replace records with their ids.

    Args:
        value: A record, a collection of records, None, or a plain scalar.
        cardinality: Declared cardinality to enforce. None infers it from the
            shape of value.

    Returns:
        None for None, a list of ids for a collection, else a single id.
        Non-record scalars pass through unchanged.

    Raises:
        TypeError: If value does not match the declared cardinality.
    """
    if value is None:
        return None

    many = _is_collection(value)
    if cardinality is Cardinality.MANY and not many:
        raise TypeError(f"expected a collection of records, got {type(value).__name__}")
    if cardinality is Cardinality.SINGLE and many:
        raise TypeError(f"expected a single record, got {type(value).__name__}")

    if many:
        return [_id_of(item) for item in value]
    return _id_of(value)


def unfold(descriptor: PropertyDescriptor, ids: Any) -> Any:
    """Resolve stored id(s) into records of the descriptor's model.

    Raises:
        MissingModelError: If the property has no associated type.
        RecordNotFound: If any id does not resolve.
    """
    if descriptor.model is None:
        raise MissingModelError(descriptor.name)
    if ids is None:
        return None
    return descriptor.model.find(ids)
