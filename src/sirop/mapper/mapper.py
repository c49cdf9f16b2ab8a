"""Record mapper: moves records between memory, the blob store and the index.

A save writes the lazy property blobs and the main blob document, then
upserts the index document only if it changed since the last save or load.
There is no transaction across the two stores: a failure between the blob
and index writes leaves the index stale until the next save.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from sirop.core.association import fold, unfold
from sirop.core.property import PropertyDescriptor
from sirop.core.registry import RecordType
from sirop.index.models import DOC_KEY_FIELD, DOMAIN_FIELD, ID_FIELD
from sirop.index.protocol import SearchIndex
from sirop.storage.protocol import BlobStore
from sirop.storage.serialization import dumps, loads

if TYPE_CHECKING:
    from sirop.mapper.record import Record

logger = logging.getLogger(__name__)


def lazy_key(doc_key: str, name: str) -> str:
    """Blob key of a lazy property value."""
    return f"{doc_key}/{name}"


class RecordMapper:
    """Save, load and remove records.

    Args:
        blob: Store for record bodies and lazy values.
        index: Search index for discovery documents.
    """

    def __init__(self, blob: BlobStore, index: SearchIndex):
        self._blob = blob
        self._index = index

    def save(self, record: Record) -> None:
        """Persist a record.

        Lazy values are materialized first, so an untouched lazy property
        keeps its stored value. Associated values are folded to ids.

        Raises:
            SerializationError: If a value cannot be encoded. Nothing is written.
            StorageError / SearchIndexError: On backend failure.
        """
        record_type = type(record)._record_type()
        record_id = record.id
        doc_key = record.doc_key

        blob_doc: dict[str, Any] = {ID_FIELD: record_id}
        index_doc: dict[str, Any] = {
            ID_FIELD: record_id,
            DOC_KEY_FIELD: doc_key,
            DOMAIN_FIELD: record_type.domain,
        }
        lazy_blobs: list[tuple[str, bytes]] = []

        for name, descriptor in record_type.properties.items():
            if descriptor.lazy:
                value = record._lazy_value(descriptor)
            else:
                value = record.read_slot(name)
            if descriptor.associated:
                value = fold(value, descriptor.cardinality)

            if descriptor.lazy:
                lazy_blobs.append((lazy_key(doc_key, name), dumps(value)))
            else:
                blob_doc[name] = value
            if descriptor.indexed:
                index_doc[name] = value

        payload = dumps(blob_doc)
        for key, raw in lazy_blobs:
            self._blob.set(key, raw)
        self._blob.set(doc_key, payload)

        if index_doc != record._previous_index_document:
            self._index.upsert(doc_key, index_doc)
            logger.debug("Indexed %s", doc_key)
        else:
            logger.debug("Skipping re-index of %s: indexed fields unchanged", doc_key)
        record._previous_index_document = copy.deepcopy(index_doc)

    def get(self, record_type: RecordType, doc_key: str) -> Record | None:
        """Materialize the record stored under doc_key.

        Lazy properties stay unloaded. Associated ids are resolved through the
        associated type.

        Returns:
            The record, or None if no blob document exists.
        """
        raw = self._blob.get(doc_key)
        if raw is None:
            return None
        data = loads(raw)

        record = record_type.cls.__new__(record_type.cls)
        record._init_state()
        # Indexed fields as stored; an unchanged record saves without an index write
        previous: dict[str, Any] = {DOC_KEY_FIELD: doc_key, DOMAIN_FIELD: record_type.domain}

        for name, value in data.items():
            if name == ID_FIELD:
                previous[ID_FIELD] = value
                record._id = value
                continue
            descriptor = record_type.properties.get(name)
            if descriptor is None:
                logger.warning(
                    "Ignoring stored field %r of %s: %s declares no such property",
                    name,
                    doc_key,
                    record_type.cls.__name__,
                )
                continue
            if descriptor.indexed:
                previous[name] = copy.deepcopy(value)
            if descriptor.associated:
                value = unfold(descriptor, value)
            record.write_slot(name, value)

        record._doc_key = doc_key
        record._previous_index_document = previous
        return record

    def load_lazy(self, record: Record, descriptor: PropertyDescriptor) -> Any:
        """Read a lazy property value from the blob store."""
        raw = self._blob.get(lazy_key(record.doc_key, descriptor.name))
        value = None if raw is None else loads(raw)
        previous = record._previous_index_document
        # The stored value is also the indexed one
        if descriptor.indexed and previous is not None:
            previous.setdefault(descriptor.name, copy.deepcopy(value))
        if descriptor.associated:
            value = unfold(descriptor, value)
        return value

    def remove(self, record_type: RecordType, doc_key: str) -> None:
        """Delete a record from the index, then from the blob store.

        Lazy property blobs go last. A failure in between leaves an unindexed
        blob, never an index hit without a blob.
        """
        self._index.delete(doc_key)
        self._blob.delete(doc_key)
        for descriptor in record_type.lazy_properties():
            self._blob.delete(lazy_key(doc_key, descriptor.name))
        logger.debug("Removed %s", doc_key)
