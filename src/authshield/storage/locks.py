"""Per-key lock manager.

Serializes read-modify-write on one identifier's state without a global
lock: callers touching different keys never wait on each other. The
registry lock is held only while looking up or releasing a key's lock,
never across a state transition.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple


class _KeyLock:
    __slots__ = ("lock", "holders")
    
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class KeyedLockManager:
    """Reference-counted locks keyed by (namespace, key).
    
    Idle locks are discarded so the registry does not grow with the number
    of identifiers ever seen.
    """
    
    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: Dict[Tuple[str, str], _KeyLock] = {}
    
    def _checkout(self, slot: Tuple[str, str]) -> _KeyLock:
        with self._registry_lock:
            entry = self._locks.get(slot)
            if entry is None:
                entry = _KeyLock()
                self._locks[slot] = entry
            entry.holders += 1
            return entry
    
    def _checkin(self, slot: Tuple[str, str], entry: _KeyLock) -> None:
        with self._registry_lock:
            entry.holders -= 1
            if entry.holders == 0:
                self._locks.pop(slot, None)
    
    @contextmanager
    def hold(self, namespace: str, key: str) -> Iterator[None]:
        """Hold the lock for one key for the duration of the block.
        
        Not reentrant: a holder must not request the same key again.
        """
        slot = (namespace, key)
        entry = self._checkout(slot)
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            self._checkin(slot, entry)
    
    def active_keys(self) -> int:
        """Number of keys currently held or awaited."""
        with self._registry_lock:
            return len(self._locks)
