"""Tests for SequenceGenerator id allocation."""

import re
import threading

import pytest

from sirop.core.sequence import SequenceGenerator, SequenceMode
from sirop.storage import MemoryBlobStore

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def test_counter_starts_at_one_per_domain():
    """Each domain has its own counter, starting at 1."""
    sequence = SequenceGenerator(MemoryBlobStore())

    assert [sequence.next("Game"), sequence.next("Game")] == [1, 2]
    assert sequence.next("Player") == 1


def test_counter_is_stored_as_ascii_integer():
    """Counters live in the blob store as plain decimal text.

    Why: Other readers of the store parse these keys directly.
    """
    blob = MemoryBlobStore()
    sequence = SequenceGenerator(blob)
    sequence.next("Game")
    sequence.next("Game")

    assert blob.get("_seq_Game") == b"2"


def test_counter_resumes_from_stored_value():
    """A new generator over the same store continues the sequence."""
    blob = MemoryBlobStore()
    SequenceGenerator(blob).next("Game")

    assert SequenceGenerator(blob).next("Game") == 2


def test_counter_requires_domain():
    with pytest.raises(ValueError, match="domain is required"):
        SequenceGenerator(MemoryBlobStore()).next()


def test_concurrent_threads_never_share_an_id():
    """Threads drawing from one domain get distinct, gap-free ids.

    Why: The read-increment-write cycle races without the lock.
    """
    sequence = SequenceGenerator(MemoryBlobStore())
    drawn: list[int] = []
    drawn_lock = threading.Lock()

    def draw() -> None:
        for _ in range(50):
            value = sequence.next("Order")
            with drawn_lock:
                drawn.append(value)

    threads = [threading.Thread(target=draw) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(drawn) == list(range(1, 401))


def test_uuid_mode_returns_unique_uuid4_strings():
    """UUID mode ignores the domain and never touches the blob store."""
    blob = MemoryBlobStore()
    sequence = SequenceGenerator(blob, SequenceMode.UUID)

    ids = {sequence.next("Order") for _ in range(100)}

    assert len(ids) == 100
    assert all(UUID_PATTERN.match(i) for i in ids)
    assert blob.count() == 0
