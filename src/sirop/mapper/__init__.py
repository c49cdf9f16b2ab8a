"""Record mapping: the Record base class, save/load, and domain queries."""

from sirop.mapper.mapper import RecordMapper
from sirop.mapper.query import QueryGateway
from sirop.mapper.record import Record

__all__ = [
    "Record",
    "RecordMapper",
    "QueryGateway",
]
