"""Domain-scoped queries for one record type.

Search hits are resolved to doc keys and materialized through the mapper.
Hits whose blob document is gone are skipped: between a blob write and the
next index write the index may lag behind the blob store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from sirop.core.registry import RecordType
from sirop.errors import RecordNotFound
from sirop.index.protocol import SearchIndex

if TYPE_CHECKING:
    from sirop.mapper.mapper import RecordMapper
    from sirop.mapper.record import Record

logger = logging.getLogger(__name__)


def _is_id_collection(ids: Any) -> bool:
    return isinstance(ids, Iterable) and not isinstance(ids, (str, bytes, Mapping))


class QueryGateway:
    """all/each/search/find/get/delete/remove scoped to record_type.domain.

    Args:
        record_type: Registered type whose domain scopes every query.
        mapper: Materializes and removes records.
        index: Search index answering the domain queries.
    """

    def __init__(self, record_type: RecordType, mapper: RecordMapper, index: SearchIndex):
        self._record_type = record_type
        self._mapper = mapper
        self._index = index

    @property
    def domain(self) -> str:
        return self._record_type.domain

    def doc_key(self, id: int | str) -> str:
        return f"{self.domain}/{id}"

    def _hits(self, clause: Any = None, limit: int | None = None) -> Iterator[tuple[Record, float]]:
        expression = self._index.domain_query(self.domain, clause)
        for hit in self._index.query_all(expression, limit):
            doc_key = self._index.resolve(hit.reference)
            record = self.get(doc_key) if doc_key is not None else None
            if record is None:
                logger.debug("Skipping dangling index hit %r (%s)", hit.reference, doc_key)
                continue
            yield record, hit.score

    def all(self, limit: int | None = None) -> list[Record]:
        return [record for record, _ in self._hits(limit=limit)]

    def iter_all(self) -> Iterator[Record]:
        for record, _ in self._hits():
            yield record

    def each(self, callback: Callable[[Record], Any]) -> None:
        for record in self.iter_all():
            callback(record)

    def iter_search(self, query: Any) -> Iterator[tuple[Record, float]]:
        return self._hits(query)

    def search(self, query: Any, callback: Callable[[Record, float], Any]) -> None:
        for record, score in self.iter_search(query):
            callback(record, score)

    def find(self, ids: Any) -> Any:
        """Materialize one id, or every id of a collection (all or nothing).

        Raises:
            RecordNotFound: If any requested record is missing.
        """
        if _is_id_collection(ids):
            wanted = list(ids)
            records = [r for r in (self.get(self.doc_key(i)) for i in wanted) if r is not None]
            if len(records) < len(wanted):
                raise RecordNotFound(
                    f"{len(wanted)} expected, {len(records)} found in {self.domain}",
                    expected=len(wanted),
                    found=len(records),
                )
            return records

        record = self.get(self.doc_key(ids))
        if record is None:
            raise RecordNotFound(f"the record with id {ids} was not found in {self.domain}")
        return record

    def get(self, doc_key: str) -> Record | None:
        return self._mapper.get(self._record_type, doc_key)

    def delete(self, id: int | str) -> None:
        self.remove(self.doc_key(id))

    def remove(self, doc_key: str) -> None:
        self._mapper.remove(self._record_type, doc_key)
