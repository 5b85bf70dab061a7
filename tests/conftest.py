"""Shared fixtures: a controllable clock and fresh state stores."""

from datetime import datetime, timedelta, timezone

import pytest

from authshield.events.sink import CollectingEventSink
from authshield.storage.store import FileStateStore, InMemoryStateStore


class FakeClock:
    """Callable clock that only moves when told to."""
    
    def __init__(self, start: datetime):
        self.now = start
    
    def __call__(self) -> datetime:
        return self.now
    
    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
    
    def set(self, when: datetime) -> None:
        self.now = when


@pytest.fixture
def clock():
    """Clock starting at noon UTC, outside the default unusual-time window."""
    return FakeClock(datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_store():
    return InMemoryStateStore()


@pytest.fixture
def file_store(tmp_path):
    return FileStateStore(state_dir=str(tmp_path / "state"))


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    """Each control test runs against both local backends."""
    if request.param == "memory":
        return InMemoryStateStore()
    return FileStateStore(state_dir=str(tmp_path / "state"))


@pytest.fixture
def event_sink():
    return CollectingEventSink()
