"""Per-resource mutexes for the claim/release critical sections."""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

_REGISTRY_LOCK = threading.Lock()
_LOCKS: Dict[Tuple[str, int], threading.Lock] = {}


def _lock_for(resource_type: str, resource_id: int) -> threading.Lock:
    key = (resource_type, resource_id)
    with _REGISTRY_LOCK:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _LOCKS[key] = lock
        return lock


@contextmanager
def resource_lock(resource_type: str, resource_id: int) -> Iterator[None]:
    """
    Serialise every read-decide-write sequence on one resource within this
    process. The caller must commit before leaving the block, otherwise the
    next holder can read a ledger that is missing the write.
    """
    lock = _lock_for(resource_type, resource_id)
    with lock:
        yield


@contextmanager
def resource_locks(*keys: Tuple[str, int]) -> Iterator[None]:
    """Lock several resources at once, always in sorted order to avoid deadlocks."""
    ordered = sorted(set(keys))
    locks = [_lock_for(t, i) for t, i in ordered]
    acquired = []
    try:
        for lock in locks:
            lock.acquire()
            acquired.append(lock)
        yield
    finally:
        for lock in reversed(acquired):
            lock.release()
