"""Server-authoritative state storage."""

from authshield.storage.locks import KeyedLockManager
from authshield.storage.store import (
    Document,
    FileStateStore,
    InMemoryStateStore,
    StateStore,
)
from authshield.storage.config import create_state_store

__all__ = [
    "Document",
    "FileStateStore",
    "InMemoryStateStore",
    "KeyedLockManager",
    "StateStore",
    "create_state_store",
]
