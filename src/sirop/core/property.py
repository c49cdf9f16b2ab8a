"""Property declarations, descriptors and accessors.

Usage:
    class Game(Record):
        title = Property(indexed=True)
        description = Property(lazy=True)
        players = Property(indexed=True, model=Player, many=True)

    # After registration, programmatic declarations work the same way:
    Game.property("owner", accessors=False)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from sirop.index.models import FieldOptions

if TYPE_CHECKING:
    from sirop.mapper.record import Record


class Cardinality(Enum):
    """How many associated records a property holds."""

    SINGLE = auto()
    MANY = auto()


@dataclass(frozen=True, slots=True)
class PropertyDescriptor:
    """Registered metadata for one property of a record type.

    Attributes:
        name: Property name, also the blob and index field name.
        index: Search schema options, None if the property is not indexed.
        lazy: Value lives under its own blob key and loads on first access.
        model: Associated record type, stored as id(s).
        cardinality: SINGLE or MANY associated records.
        accessors: Whether get/set accessors were generated.
    """

    name: str
    index: FieldOptions | None = None
    lazy: bool = False
    model: type[Record] | None = None
    cardinality: Cardinality = Cardinality.SINGLE
    accessors: bool = True

    @property
    def indexed(self) -> bool:
        return self.index is not None

    @property
    def associated(self) -> bool:
        return self.model is not None


class Property:
    """Class-body property declaration and its generated accessor.

    Reads and writes go to the record's slot table. Once the owning type is
    registered and the property is declared lazy, the first read loads the
    value from the blob store and memoizes it.

    Args:
        indexed: True, a FieldOptions or a dict of its fields to index the value.
        lazy: Load the value from its own blob key on first access.
        model: Associated Record type; values are stored as ids.
        many: The association holds a collection of records.
        accessors: Must stay True in a class body; use Record.property() for
            hand-written accessors.
    """

    def __init__(
        self,
        *,
        indexed: bool | dict[str, Any] | FieldOptions = False,
        lazy: bool = False,
        model: type[Record] | None = None,
        many: bool = False,
        accessors: bool = True,
    ):
        self.name = ""
        self.indexed = indexed
        self.lazy = lazy
        self.model = model
        self.many = many
        self.accessors = accessors

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Record | None, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        record_type = type(obj).__dict__.get("__record_type__")
        if record_type is not None:
            descriptor = record_type.properties.get(self.name)
            if descriptor is not None and descriptor.lazy:
                return obj._lazy_value(descriptor)
        return obj.read_slot(self.name)

    def __set__(self, obj: Record, value: Any) -> None:
        obj.write_slot(self.name, value)

    def options(self) -> dict[str, Any]:
        """Keyword options for TypeRegistry.declare_property."""
        return {
            "indexed": self.indexed,
            "lazy": self.lazy,
            "model": self.model,
            "many": self.many,
            "accessors": self.accessors,
        }

    def __repr__(self) -> str:
        return f"Property({self.name!r})"
