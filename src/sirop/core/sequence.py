"""Record id generation.

SequenceGenerator hands out ids in one of two process-wide modes:
- COUNTER: per-domain integers starting at 1, kept in the blob store under
  "_seq_<domain>". Safe for concurrent threads of one process.
- UUID: random UUID strings. Use when several processes write the same store.
"""

from __future__ import annotations

import logging
import threading
import uuid
from enum import Enum

from sirop.storage.protocol import BlobStore

logger = logging.getLogger(__name__)

SEQUENCE_PREFIX = "_seq_"

# Guards the read-increment-write cycle of every counter in the process
_counter_lock = threading.Lock()


class SequenceMode(Enum):
    """How ids are generated."""

    COUNTER = "counter"
    UUID = "uuid"


class SequenceGenerator:
    """Generates record ids per domain.

    Args:
        blob: Blob store holding the counters.
        mode: COUNTER (default) or UUID.
    """

    def __init__(self, blob: BlobStore, mode: SequenceMode = SequenceMode.COUNTER):
        self._blob = blob
        self._mode = mode

    @property
    def mode(self) -> SequenceMode:
        return self._mode

    def next(self, domain: str | None = None) -> int | str:
        """Return a new id for domain.

        Args:
            domain: Required in COUNTER mode, ignored in UUID mode.

        Returns:
            Next integer of the domain's counter, or a UUID string.

        Raises:
            ValueError: If domain is missing in COUNTER mode.
            StorageError: If the counter cannot be read or written.
        """
        if self._mode is SequenceMode.UUID:
            return str(uuid.uuid4())

        if domain is None:
            raise ValueError("domain is required for counter sequences")
        key = f"{SEQUENCE_PREFIX}{domain}"
        with _counter_lock:
            raw = self._blob.get(key)
            value = (int(raw) if raw else 0) + 1
            self._blob.set(key, str(value).encode("ascii"))
        logger.debug("Drew id %d for %s", value, domain)
        return value
