"""Record type registry.

Keeps one RecordType per registered class: its domain and the ordered
table of property descriptors. Declaring an indexed property also defines
the field on the shared search index schema.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sirop.core.property import Cardinality, Property, PropertyDescriptor
from sirop.errors import ConfigurationError
from sirop.index.models import RESERVED_FIELDS, FieldOptions
from sirop.index.protocol import SearchIndex

if TYPE_CHECKING:
    from sirop.datastore import Datastore
    from sirop.mapper.query import QueryGateway


@dataclass(eq=False)
class RecordType:
    """Registry entry for one record class.

    Attributes:
        cls: The record class.
        domain: Namespace for ids, doc keys, sequences and index queries.
        store: Datastore the type is registered with.
        properties: Property descriptors in declaration order.
        gateway: Domain-scoped query operations, attached by the Datastore.
    """

    cls: type
    domain: str
    store: Datastore
    properties: dict[str, PropertyDescriptor] = field(default_factory=dict)
    gateway: QueryGateway | None = None

    def lazy_properties(self) -> list[PropertyDescriptor]:
        return [p for p in self.properties.values() if p.lazy]

    def __repr__(self) -> str:
        return f"RecordType({self.cls.__name__}, domain={self.domain!r})"


class TypeRegistry:
    """Maps record classes to their RecordType entries.

    Args:
        index: Search index whose schema receives indexed property fields.
        reserved: Names that cannot be used as property names.
    """

    def __init__(self, index: SearchIndex, reserved: Iterable[str] = ()):
        self._index = index
        self._reserved = frozenset(reserved) | frozenset(RESERVED_FIELDS)
        self._types: dict[type, RecordType] = {}

    def register(self, cls: type, store: Datastore, domain: str | None = None) -> RecordType:
        """Register a class and declare its class-body properties.

        Properties are declared base classes first, in definition order.
        Properties declared programmatically on a registered base are inherited.

        Returns:
            The new RecordType.
        """
        record_type = RecordType(cls=cls, domain=domain or cls.__name__, store=store)
        self._types[cls] = record_type
        cls.__record_type__ = record_type  # type: ignore[attr-defined]

        for klass in reversed(cls.__mro__):
            base_type = klass.__dict__.get("__record_type__")
            if klass is not cls and base_type is not None:
                for descriptor in base_type.properties.values():
                    self._declare(record_type, descriptor.name, descriptor)
                continue
            for name, attr in list(vars(klass).items()):
                if isinstance(attr, Property):
                    if not attr.accessors:
                        raise ConfigurationError(
                            f"{cls.__name__}.{name}: accessors=False needs a hand-written "
                            f"accessor; declare it with {cls.__name__}.property() instead"
                        )
                    self.declare_property(cls, name, **attr.options())
        return record_type

    def get(self, cls: type) -> RecordType:
        """Get the RecordType for a class.

        Raises:
            ConfigurationError: If the class is not registered.
        """
        try:
            return self._types[cls]
        except KeyError:
            raise ConfigurationError(
                f"{cls.__name__} is not registered; call Datastore.register_type first"
            ) from None

    def is_registered(self, cls: type) -> bool:
        return cls in self._types

    def types(self) -> list[RecordType]:
        return list(self._types.values())

    def declare_property(
        self,
        cls: type,
        name: str,
        *,
        indexed: bool | dict[str, Any] | FieldOptions = False,
        lazy: bool = False,
        model: type | None = None,
        many: bool = False,
        accessors: bool = True,
    ) -> PropertyDescriptor:
        """Register (or overwrite) a property of a registered class.

        Raises:
            ConfigurationError: If the class is unregistered, the name is
                reserved, or many=True is given without a model.
        """
        record_type = self.get(cls)
        if name in self._reserved:
            raise ConfigurationError(f"{cls.__name__}.{name}: {name!r} is a reserved name")
        if many and model is None:
            raise ConfigurationError(f"{cls.__name__}.{name}: many=True requires a model")

        descriptor = PropertyDescriptor(
            name=name,
            index=FieldOptions.coerce(indexed),
            lazy=lazy,
            model=model,
            cardinality=Cardinality.MANY if many else Cardinality.SINGLE,
            accessors=accessors,
        )
        return self._declare(record_type, name, descriptor)

    def _declare(
        self, record_type: RecordType, name: str, descriptor: PropertyDescriptor
    ) -> PropertyDescriptor:
        cls = record_type.cls
        record_type.properties[name] = descriptor

        if descriptor.index is not None and not self._index.has_field(name):
            self._index.define_field(name, descriptor.index)

        # Lazy properties always get accessors
        existing = cls.__dict__.get(name)
        if descriptor.lazy or descriptor.accessors:
            if not isinstance(getattr(cls, name, None), Property):
                accessor = Property()
                accessor.__set_name__(cls, name)
                setattr(cls, name, accessor)
        elif isinstance(existing, Property):
            delattr(cls, name)
        return descriptor
