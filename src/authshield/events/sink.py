"""Security event sinks.

Controls hand events to a sink after their state change has been
persisted. Sinks never raise into the caller: a failed notification is
logged and dropped.
"""

import fcntl
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

from authshield.common.logging import get_logger
from authshield.events.schemas import SecurityEvent


logger = get_logger(__name__)


class EventSink(ABC):
    """Abstract base class for security event destinations."""
    
    def emit(self, event: SecurityEvent) -> None:
        """Deliver an event, logging (not raising) on failure."""
        try:
            self.write(event)
        except Exception as e:
            logger.error(
                f"Failed to emit {event.event_type.value} event: {e}",
                extra={"event_id": event.event_id},
            )
    
    @abstractmethod
    def write(self, event: SecurityEvent) -> None:
        """Write a single event to the destination.
        
        Raises:
            Exception: Any delivery failure; handled by emit()
        """
        pass


class LoggingEventSink(EventSink):
    """Writes events to the application log."""
    
    def __init__(self, logger_name: str = "authshield.security"):
        self._logger = get_logger(logger_name)
    
    def write(self, event: SecurityEvent) -> None:
        self._logger.warning(
            f"{event.event_type.value} subject={event.subject} details={event.details}",
            extra={"event_id": event.event_id},
        )


class JsonlEventSink(EventSink):
    """Append-only JSONL event log with cross-process file locking."""
    
    def __init__(self, path: Union[str, Path], fsync_on_write: bool = False):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.fsync_on_write = fsync_on_write
        self._lock = threading.Lock()
    
    def write(self, event: SecurityEvent) -> None:
        with self._lock:
            fd = os.open(
                str(self.path),
                os.O_WRONLY | os.O_CREAT | os.O_APPEND,
                0o600
            )
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                try:
                    os.write(fd, (event.to_jsonl() + "\n").encode("utf-8"))
                    if self.fsync_on_write:
                        os.fsync(fd)
                finally:
                    fcntl.flock(fd, fcntl.LOCK_UN)
            finally:
                os.close(fd)
    
    def read_events(self) -> List[SecurityEvent]:
        """Read back every event in the log (oldest first)."""
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [
                SecurityEvent.model_validate_json(line)
                for line in f
                if line.strip()
            ]


class CollectingEventSink(EventSink):
    """Keeps events in memory. Useful for admin screens and tests."""
    
    def __init__(self, limit: Optional[int] = None):
        self.limit = limit
        self.events: List[SecurityEvent] = []
        self._lock = threading.Lock()
    
    def write(self, event: SecurityEvent) -> None:
        with self._lock:
            self.events.append(event)
            if self.limit is not None and len(self.events) > self.limit:
                del self.events[: len(self.events) - self.limit]


def create_event_sink(path: Optional[Union[str, Path]] = None) -> EventSink:
    """Create a JSONL sink when a path is configured, else a logging sink."""
    if path:
        logger.info(f"Security events written to {path}")
        return JsonlEventSink(path)
    return LoggingEventSink()
