"""State Store - Abstraction for server-side control state.

This module provides an interface for state storage backends, decoupling
the controls from specific persistence mechanisms.

Design principles:
- Documents are plain JSON-compatible dicts keyed by (namespace, key)
- Per-key locking for read-modify-write; no global lock
- Durable backends survive process restart
- Any backend fault surfaces as StorageError (fail closed)
"""

import copy
import fcntl
import hashlib
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from authshield.common.constants import StorageConstants
from authshield.common.exceptions import StorageError
from authshield.common.logging import get_logger
from authshield.storage.locks import KeyedLockManager


logger = get_logger(__name__)

Document = Dict[str, Any]


class StateStore(ABC):
    """Abstract base class for state storage backends.
    
    Implementations must be safe to call from many threads. Callers that
    read, modify and write a document must do so inside ``lock()`` for
    that key.
    """
    
    def __init__(self, lock_manager: Optional[KeyedLockManager] = None):
        self._locks = lock_manager or KeyedLockManager()
    
    @contextmanager
    def lock(self, namespace: str, key: str) -> Iterator[None]:
        """Serialize read-modify-write on one key.
        
        The base implementation is process-local; durable backends extend it
        with a cross-process lock.
        """
        with self._locks.hold(namespace, key):
            yield
    
    @abstractmethod
    def get(self, namespace: str, key: str) -> Optional[Document]:
        """Fetch a document, or None if absent.
        
        Raises:
            StorageError: If the backend cannot be read
        """
        pass
    
    @abstractmethod
    def put(self, namespace: str, key: str, document: Document) -> None:
        """Create or replace a document.
        
        Raises:
            StorageError: If the backend cannot be written
        """
        pass
    
    @abstractmethod
    def delete(self, namespace: str, key: str) -> bool:
        """Delete a document. Returns False if it did not exist."""
        pass
    
    @abstractmethod
    def keys(self, namespace: str) -> List[str]:
        """List the keys present in a namespace."""
        pass
    
    def clear(self, namespace: str) -> int:
        """Delete every document in a namespace and return how many."""
        removed = 0
        for key in self.keys(namespace):
            with self.lock(namespace, key):
                if self.delete(namespace, key):
                    removed += 1
        return removed
    
    def health_check(self) -> bool:
        return True


class InMemoryStateStore(StateStore):
    """Process-local store for tests and single-process development.
    
    Does not survive restart.
    """
    
    def __init__(self, lock_manager: Optional[KeyedLockManager] = None):
        super().__init__(lock_manager)
        self._data: Dict[str, Dict[str, Document]] = {}
        self._data_lock = threading.Lock()
    
    def get(self, namespace: str, key: str) -> Optional[Document]:
        with self._data_lock:
            document = self._data.get(namespace, {}).get(key)
            return copy.deepcopy(document) if document is not None else None
    
    def put(self, namespace: str, key: str, document: Document) -> None:
        with self._data_lock:
            self._data.setdefault(namespace, {})[key] = copy.deepcopy(document)
    
    def delete(self, namespace: str, key: str) -> bool:
        with self._data_lock:
            return self._data.get(namespace, {}).pop(key, None) is not None
    
    def keys(self, namespace: str) -> List[str]:
        with self._data_lock:
            return list(self._data.get(namespace, {}).keys())


class FileStateStore(StateStore):
    """File-based store with one JSON document per key.
    
    Features:
    - Atomic replace on write (temp file + os.replace)
    - Striped fcntl lock files for cross-process safety: keys hash onto a
      fixed set of lock files, so lock files never outlive their documents
      and their number does not grow with the identifiers seen
    - Key names are hashed into file names; the original key is kept in
      the document envelope
    """
    
    DOCUMENT_SUFFIX = ".json"
    LOCK_SUFFIX = ".lock"
    LOCK_DIR = ".locks"
    
    def __init__(
        self,
        state_dir: str,
        fsync_on_write: bool = False,
        lock_manager: Optional[KeyedLockManager] = None,
        lock_stripes: int = StorageConstants.FILE_LOCK_STRIPES,
    ):
        """Initialize file state store.
        
        Args:
            state_dir: Root directory; one sub-directory per namespace.
            fsync_on_write: Whether to fsync before replacing (slower but safer).
            lock_manager: Shared in-process lock manager.
            lock_stripes: Number of lock files per namespace.
        """
        super().__init__(lock_manager)
        if lock_stripes < 1:
            raise ValueError("lock_stripes must be at least 1")
        self.state_dir = Path(state_dir)
        self.fsync_on_write = fsync_on_write
        self.lock_stripes = lock_stripes
        
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            os.chmod(self.state_dir, 0o700)
        except OSError as e:
            raise StorageError(
                f"Cannot initialise state directory {self.state_dir}: {e}"
            ) from e
    
    def _namespace_dir(self, namespace: str) -> Path:
        path = self.state_dir / namespace
        path.mkdir(parents=True, exist_ok=True)
        return path
    
    def _slot_name(self, key: str) -> str:
        return hashlib.sha256(key.encode("utf-8")).hexdigest()
    
    def _document_path(self, namespace: str, key: str) -> Path:
        return self._namespace_dir(namespace) / (self._slot_name(key) + self.DOCUMENT_SUFFIX)
    
    def _lock_path(self, namespace: str, key: str) -> Path:
        stripe = int(self._slot_name(key)[:8], 16) % self.lock_stripes
        lock_dir = self.state_dir / self.LOCK_DIR / namespace
        lock_dir.mkdir(parents=True, exist_ok=True)
        return lock_dir / f"{stripe:04d}{self.LOCK_SUFFIX}"
    
    @contextmanager
    def lock(self, namespace: str, key: str) -> Iterator[None]:
        with super().lock(namespace, key):
            try:
                fd = os.open(str(self._lock_path(namespace, key)), os.O_RDWR | os.O_CREAT, 0o600)
            except OSError as e:
                raise StorageError(f"Cannot open lock file: {e}", namespace, key) from e
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(fd, fcntl.LOCK_UN)
            finally:
                os.close(fd)
    
    def get(self, namespace: str, key: str) -> Optional[Document]:
        try:
            path = self._document_path(namespace, key)
            with open(path, "r") as f:
                envelope = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read state document: {e}", namespace, key) from e
        if not isinstance(envelope, dict) or not isinstance(envelope.get("document"), dict):
            raise StorageError("Malformed state document envelope", namespace, key)
        return envelope["document"]
    
    def put(self, namespace: str, key: str, document: Document) -> None:
        envelope = {"key": key, "document": document}
        try:
            path = self._document_path(namespace, key)
            fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(envelope, f, default=str)
                    if self.fsync_on_write:
                        f.flush()
                        os.fsync(f.fileno())
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot write state document: {e}", namespace, key) from e
    
    def delete(self, namespace: str, key: str) -> bool:
        try:
            self._document_path(namespace, key).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Cannot delete state document: {e}", namespace, key) from e
    
    def keys(self, namespace: str) -> List[str]:
        try:
            paths = sorted(self._namespace_dir(namespace).glob("*" + self.DOCUMENT_SUFFIX))
        except OSError as e:
            raise StorageError(f"Cannot list state documents: {e}", namespace) from e
        keys = []
        for path in paths:
            try:
                with open(path, "r") as f:
                    keys.append(json.load(f)["key"])
            except FileNotFoundError:
                continue  # deleted concurrently
            except (OSError, json.JSONDecodeError, KeyError) as e:
                raise StorageError(
                    f"Corrupt state document {path.name}: {e}", namespace
                ) from e
        return keys
    
    def health_check(self) -> bool:
        return self.state_dir.is_dir() and os.access(self.state_dir, os.W_OK)
