"""
Per-key mutual exclusion for ledger mutations.

Every mutating operation on a meeting runs inside ``meeting_locks.hold(meeting_id)``
so read-modify-write sequences on one meeting never interleave within a
process. Different meetings never contend.

Design:
- One ``threading.Lock`` per active key, created on demand
- Reference counting so entries are dropped once no thread holds or waits on them
- A single registry lock guards the dictionary itself (held only briefly)

The database constraints and compare-and-set updates in the service layer
still hold across processes; this lock keeps a single process from racing
itself and turning those constraint violations into the common path.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List


class KeyedLock:
    """A registry of mutexes keyed by an arbitrary hashable value."""

    def __init__(self):
        self._registry_lock = threading.Lock()
        # key -> [lock, number of threads holding or waiting]
        self._locks: Dict[Hashable, List] = {}

    def _acquire_entry(self, key: Hashable) -> threading.Lock:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _release_entry(self, key: Hashable) -> None:
        with self._registry_lock:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._acquire_entry(key)
        try:
            with lock:
                yield
        finally:
            self._release_entry(key)

    def active_keys(self) -> int:
        """Number of keys currently held or awaited."""
        with self._registry_lock:
            return len(self._locks)


meeting_locks = KeyedLock()
