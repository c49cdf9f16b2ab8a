"""Core primitives: property metadata, type registry, ids and associations."""

from sirop.core.association import fold, unfold
from sirop.core.property import Cardinality, Property, PropertyDescriptor
from sirop.core.registry import RecordType, TypeRegistry
from sirop.core.sequence import SequenceGenerator, SequenceMode

__all__ = [
    # Properties
    "Property",
    "PropertyDescriptor",
    "Cardinality",
    # Registry
    "RecordType",
    "TypeRegistry",
    # Ids
    "SequenceGenerator",
    "SequenceMode",
    # Associations
    "fold",
    "unfold",
]
