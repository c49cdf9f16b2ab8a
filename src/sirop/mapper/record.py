"""Record base class.

Usage:
    store = sirop.setup()

    @store.record
    class Player(Record):
        name = Property(indexed=True)

    player = Player(name="Guybrush")
    player.save()
    assert Player.find(player.id) == player
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, ClassVar, Self

from sirop.core.association import fold, unfold
from sirop.core.property import PropertyDescriptor
from sirop.errors import ConfigurationError, MissingModelError

if TYPE_CHECKING:
    from sirop.core.registry import RecordType
    from sirop.mapper.query import QueryGateway


class Record:
    """Base class for persistent records.

    Property values live in a slot table; generated accessors read and write
    it, and hand-written accessors should use read_slot()/write_slot(). A
    lazy slot that was never read is absent from the table.

    Two records are equal when their doc keys are equal.
    """

    __record_type__: ClassVar[RecordType]

    def __init__(self, **values: Any):
        self._init_state()
        for name, value in values.items():
            if not hasattr(type(self), name):
                raise TypeError(f"{type(self).__name__} has no property {name!r}")
            setattr(self, name, value)

    def _init_state(self) -> None:
        self._slots: dict[str, Any] = {}
        self._id: int | str | None = None
        self._doc_key: str | None = None
        self._previous_index_document: dict[str, Any] | None = None

    # Identity

    @builtins.property
    def id(self) -> int | str:
        """Record id, drawn from the domain's sequence on first access."""
        if self._id is None:
            record_type = type(self)._record_type()
            self._id = record_type.store.next_sequence(record_type.domain)
        return self._id

    @builtins.property
    def doc_key(self) -> str:
        """Key of the record in both stores: "<domain>/<id>"."""
        if self._doc_key is None:
            self._doc_key = f"{type(self).domain()}/{self.id}"
        return self._doc_key

    def __eq__(self, other: object) -> bool:
        other_key = getattr(other, "doc_key", None)
        return other_key is not None and other_key == self.doc_key

    def __hash__(self) -> int:
        return hash(self.doc_key)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._doc_key or 'unsaved'}>"

    # Slots

    def read_slot(self, name: str) -> Any:
        """Raw slot value; None if unset or an unloaded lazy property."""
        return self._slots.get(name)

    def write_slot(self, name: str, value: Any) -> None:
        self._slots[name] = value

    def is_loaded(self, name: str) -> bool:
        """Whether the slot holds a value (always True once a lazy property is read)."""
        return name in self._slots

    def _lazy_value(self, descriptor: PropertyDescriptor) -> Any:
        if descriptor.name not in self._slots:
            store = type(self)._record_type().store
            self._slots[descriptor.name] = store.mapper.load_lazy(self, descriptor)
        return self._slots[descriptor.name]

    # Persistence

    def save(self) -> None:
        """Write the record to the blob store and, if needed, the index."""
        type(self)._record_type().store.mapper.save(self)

    def destroy(self) -> None:
        """Remove the record from both stores."""
        type(self).remove(self.doc_key)

    # Type-level API

    @classmethod
    def _record_type(cls) -> RecordType:
        record_type = cls.__dict__.get("__record_type__")
        if record_type is None:
            raise ConfigurationError(
                f"{cls.__name__} is not registered; call Datastore.register_type first"
            )
        return record_type

    @classmethod
    def _gateway(cls) -> QueryGateway:
        gateway = cls._record_type().gateway
        if gateway is None:
            raise ConfigurationError(
                f"{cls.__name__} has no query gateway; register it with Datastore.register_type"
            )
        return gateway

    @classmethod
    def properties(cls) -> dict[str, PropertyDescriptor]:
        """Property descriptors in declaration order."""
        return dict(cls._record_type().properties)

    @classmethod
    def domain(cls) -> str:
        return cls._record_type().domain

    @classmethod
    def set_domain(cls, domain: str) -> None:
        """Rename the domain, e.g. after renaming the class."""
        cls._record_type().domain = domain

    @classmethod
    def all(cls, limit: int | None = None) -> list[Self]:
        """Every record of the domain, or the first limit of them."""
        return cls._gateway().all(limit)

    @classmethod
    def iter_all(cls) -> Iterator[Self]:
        return cls._gateway().iter_all()

    @classmethod
    def each(cls, callback: Callable[[Self], Any]) -> None:
        """Call callback with every record of the domain."""
        cls._gateway().each(callback)

    @classmethod
    def iter_search(cls, query: Any) -> Iterator[tuple[Self, float]]:
        return cls._gateway().iter_search(query)

    @classmethod
    def search(cls, query: Any, callback: Callable[[Self, float], Any]) -> None:
        """Run a query scoped to the domain, calling callback(record, score).

        Example:
            Game.search('title:"monkey island"', lambda game, score: print(game.title))
        """
        cls._gateway().search(query, callback)

    @classmethod
    def find(cls, ids: Any) -> Any:
        """Find the record with the given id, or a list of records for a list of ids.

        Raises:
            RecordNotFound: If any id is missing.
        """
        return cls._gateway().find(ids)

    @classmethod
    def get(cls, doc_key: str) -> Self | None:
        """Materialize the record with the given doc key, or None."""
        return cls._gateway().get(doc_key)

    @classmethod
    def delete(cls, id: int | str) -> None:
        cls._gateway().delete(id)

    @classmethod
    def remove(cls, doc_key: str) -> None:
        """Remove the record with the given doc key from the index and blob store."""
        cls._gateway().remove(doc_key)

    @classmethod
    def fold_association(cls, records: Any) -> Any:
        """Convert a record or a collection of records into id(s)."""
        return fold(records)

    @classmethod
    def unfold_association(cls, name: str, ids: Any) -> Any:
        """Convert id(s) stored for property name into records.

        Raises:
            MissingModelError: If the property has no model.
        """
        descriptor = cls._record_type().properties.get(name)
        if descriptor is None:
            raise MissingModelError(name)
        return unfold(descriptor, ids)

    # Defined last: shadows the builtin inside this class body
    @classmethod
    def property(cls, name: str, **options: Any) -> PropertyDescriptor:
        """Declare a property on a registered record type.

        Options are those of Property: indexed, lazy, model, many, accessors.

        Raises:
            ConfigurationError: If the type is not registered.
        """
        return cls._record_type().store.declare_property(cls, name, **options)
