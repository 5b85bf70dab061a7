"""Tests for the Concurrent Session Registry."""

import threading

import pytest

from authshield.common.constants import SessionConstants
from authshield.common.exceptions import StorageError
from authshield.controls.sessions import SessionRegistry
from authshield.core.types import EnforcementMode
from authshield.data.schemas.policy import SessionConfig
from authshield.events.schemas import SecurityEventType


FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


def make_registry(store, clock, event_sink=None, **overrides):
    return SessionRegistry(SessionConfig(**overrides), store, clock=clock, event_sink=event_sink)


@pytest.fixture
def registry(store, clock, event_sink):
    return make_registry(store, clock, event_sink)


def register_many(registry, clock, user_id, count):
    sessions = []
    for _ in range(count):
        clock.advance(minutes=1)
        result = registry.register_session(user_id, ip_address="198.51.100.23")
        sessions.append(result.session)
    return sessions


class TestRegistration:
    """Tests for register_session() below the cap."""
    
    def test_register_creates_active_session(self, registry, clock):
        result = registry.register_session("u1", ip_address="198.51.100.23", location="Berlin, DE", device=FIREFOX_LINUX)
        
        assert result.success is True
        assert result.terminated == []
        assert result.notify_user is True
        session = result.session
        assert session.id.startswith("session_")
        assert session.device_info == "Firefox on Linux"
        assert session.created_at == clock.now
        assert session.is_current is True
        assert [s.id for s in registry.get_user_sessions("u1")] == [session.id]
    
    def test_unissued_handle_is_replaced(self, registry):
        result = registry.register_session("u1", session_id="session_client_chosen")
        
        assert result.session.id != "session_client_chosen"
        assert result.session.id.startswith("session_")
    
    def test_handle_in_use_is_not_reused(self, registry):
        first = registry.register_session("u1").session
        second = registry.register_session("u1", session_id=first.id)
        
        assert second.session.id != first.id
        assert len(registry.get_user_sessions("u1")) == 2
    
    def test_notify_flag_follows_config(self, store, clock):
        registry = make_registry(store, clock, notify_on_new_session=False)
        
        assert registry.register_session("u1").notify_user is False
    
    def test_created_event_emitted(self, registry, event_sink):
        result = registry.register_session("u1")
        
        assert event_sink.events[-1].event_type == SecurityEventType.SESSION_CREATED
        assert event_sink.events[-1].details["session_id"] == result.session.id


class TestEnforcement:
    """Tests for the three enforcement policies at the cap."""
    
    def test_terminate_oldest_evicts_least_recently_active(self, registry, clock):
        first, second, third = register_many(registry, clock, "u1", 3)
        # The first session stays busy, so the second is now least recently active
        clock.advance(minutes=1)
        registry.update_activity("u1", first.id)
        
        clock.advance(minutes=1)
        result = registry.register_session("u1")
        
        assert result.success is True
        assert [s.id for s in result.terminated] == [second.id]
        active_ids = {s.id for s in registry.get_user_sessions("u1")}
        assert active_ids == {first.id, third.id, result.session.id}
    
    def test_terminate_oldest_emits_eviction(self, registry, clock, event_sink):
        first, _, _ = register_many(registry, clock, "u1", 3)
        
        registry.register_session("u1")
        
        evictions = [e for e in event_sink.events if e.event_type == SecurityEventType.SESSION_EVICTED]
        assert [e.details["session_id"] for e in evictions] == [first.id]
    
    def test_block_refuses_at_cap(self, store, clock, event_sink):
        registry = make_registry(store, clock, event_sink, enforce_on_new_login=EnforcementMode.BLOCK)
        register_many(registry, clock, "u1", 3)
        
        result = registry.register_session("u1")
        
        assert result.success is False
        assert result.session is None
        assert result.error == "Maximum 3 active sessions allowed. Please log out from another device."
        assert len(registry.get_user_sessions("u1")) == 3
        assert event_sink.events[-1].event_type == SecurityEventType.SESSION_BLOCKED
    
    def test_block_admits_after_expiry(self, store, clock):
        registry = make_registry(store, clock, enforce_on_new_login="block")
        register_many(registry, clock, "u1", 3)
        clock.advance(minutes=61)
        
        assert registry.register_session("u1").success is True
    
    def test_allow_exceeds_cap(self, store, clock):
        registry = make_registry(store, clock, enforce_on_new_login="allow")
        register_many(registry, clock, "u1", 4)
        
        assert len(registry.get_user_sessions("u1")) == 4
    
    def test_lowered_cap_evicts_down_to_cap(self, registry, clock):
        register_many(registry, clock, "u1", 3)
        registry.update_config(max_concurrent_sessions=2)
        
        result = registry.register_session("u1")
        
        assert len(result.terminated) == 2
        assert len(registry.get_user_sessions("u1")) == 2
    
    def test_concurrent_registrations_respect_cap(self, memory_store, clock):
        registry = make_registry(memory_store, clock, enforce_on_new_login="block")
        results = []
        
        def register():
            results.append(registry.register_session("u1"))
        
        threads = [threading.Thread(target=register) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        assert sum(1 for r in results if r.success) == 3
        assert len(registry.get_user_sessions("u1")) == 3


class TestExpiry:
    """Tests for timeout-based expiry."""
    
    def test_timed_out_sessions_are_hidden(self, registry, clock):
        old = registry.register_session("u1").session
        clock.advance(minutes=30)
        fresh = registry.register_session("u1").session
        
        clock.advance(minutes=30)
        
        assert [s.id for s in registry.get_user_sessions("u1")] == [fresh.id]
        assert old.id not in {s.id for s in registry.get_user_sessions("u1")}
    
    def test_update_activity_keeps_session_alive(self, registry, clock):
        session = registry.register_session("u1").session
        clock.advance(minutes=59)
        
        assert registry.update_activity("u1", session.id) is True
        clock.advance(minutes=59)
        
        assert len(registry.get_user_sessions("u1")) == 1
    
    def test_update_activity_on_expired_session_fails(self, registry, clock):
        session = registry.register_session("u1").session
        clock.advance(minutes=60)
        
        assert registry.update_activity("u1", session.id) is False
    
    def test_update_activity_on_unknown_session_fails(self, registry):
        assert registry.update_activity("u1", "session_missing") is False
    
    def test_expired_sessions_are_compacted_on_write(self, registry, clock, store):
        register_many(registry, clock, "u1", 2)
        clock.advance(hours=2)
        
        registry.register_session("u1")
        
        stats = registry.get_statistics("u1")
        assert stats.total_sessions == 1
        assert stats.active_sessions == 1
    
    def test_purge_expired(self, registry, clock):
        register_many(registry, clock, "u1", 2)
        register_many(registry, clock, "u2", 1)
        clock.advance(hours=2)
        
        assert registry.purge_expired() == 3
        assert registry.get_statistics("u1").total_sessions == 0
        assert registry.purge_expired() == 0


class TestTermination:
    """Tests for terminate_session(), terminate_other_sessions() and logout()."""
    
    def test_terminate_session(self, registry):
        session = registry.register_session("u1").session
        
        assert registry.terminate_session("u1", session.id) is True
        assert registry.get_user_sessions("u1") == []
        assert registry.terminate_session("u1", session.id) is False
    
    def test_terminate_other_sessions(self, registry, clock):
        current, _, _ = register_many(registry, clock, "u1", 3)
        
        assert registry.terminate_other_sessions("u1", current.id) == 2
        
        sessions = registry.get_user_sessions("u1", current_session_id=current.id)
        assert [s.id for s in sessions] == [current.id]
        assert sessions[0].is_current is True
    
    def test_logout_returns_fresh_handle(self, registry):
        session = registry.register_session("u1").session
        
        new_handle = registry.logout("u1", session.id)
        
        assert new_handle != session.id
        assert registry.get_user_sessions("u1") == []
    
    def test_logged_out_handle_is_never_current_again(self, registry):
        old = registry.register_session("u1").session
        registry.logout("u1", old.id)
        
        # A client replaying the old handle gets a fresh one
        replay = registry.register_session("u1", session_id=old.id)
        
        assert replay.session.id != old.id
        sessions = registry.get_user_sessions("u1", current_session_id=old.id)
        assert all(s.is_current is False for s in sessions)
    
    def test_logged_out_handle_stays_dead_after_many_logouts(self, registry):
        old = registry.register_session("u1").session
        handle = registry.logout("u1", old.id)
        for _ in range(SessionConstants.ISSUED_HANDLE_LIMIT + 5):
            session = registry.register_session("u1", session_id=handle).session
            handle = registry.logout("u1", session.id)
        
        replay = registry.register_session("u1", session_id=old.id)
        
        assert replay.session.id != old.id
        sessions = registry.get_user_sessions("u1", current_session_id=old.id)
        assert [s.is_current for s in sessions] == [False]
    
    def test_logout_handle_can_register_once(self, registry):
        session = registry.register_session("u1").session
        new_handle = registry.logout("u1", session.id)
        
        first = registry.register_session("u1", session_id=new_handle)
        second = registry.register_session("u1", session_id=new_handle)
        
        assert first.session.id == new_handle
        assert second.session.id != new_handle
    
    def test_logout_handle_is_bound_to_its_user(self, registry):
        session = registry.register_session("u1").session
        new_handle = registry.logout("u1", session.id)
        
        result = registry.register_session("u2", session_id=new_handle)
        
        assert result.session.id != new_handle


class TestQueries:
    """Tests for get_user_sessions() and get_statistics()."""
    
    def test_sessions_most_recently_active_first(self, registry, clock):
        first, second, third = register_many(registry, clock, "u1", 3)
        clock.advance(minutes=1)
        registry.update_activity("u1", first.id)
        
        ids = [s.id for s in registry.get_user_sessions("u1")]
        
        assert ids == [first.id, third.id, second.id]
    
    def test_is_current_computed_per_caller(self, registry, clock):
        first, second = register_many(registry, clock, "u1", 2)
        
        mine = registry.get_user_sessions("u1", current_session_id=second.id)
        
        assert {s.id: s.is_current for s in mine} == {first.id: False, second.id: True}
        assert all(not s.is_current for s in registry.get_user_sessions("u1"))
    
    def test_statistics(self, registry, clock):
        first, _ = register_many(registry, clock, "u1", 2)
        
        stats = registry.get_statistics("u1")
        
        assert stats.total_sessions == 2
        assert stats.active_sessions == 2
        assert stats.max_allowed == 3
        assert stats.oldest_session == first.created_at
    
    def test_unknown_user(self, registry):
        assert registry.get_user_sessions("ghost") == []
        assert registry.get_statistics("ghost").oldest_session is None


class TestFailClosed:
    """A corrupt session record is a storage fault."""
    
    def test_corrupt_record_raises_storage_error(self, registry, store):
        store.put("sessions", "u1", {"sessions": [{"id": 7}]})
        
        with pytest.raises(StorageError) as exc_info:
            registry.register_session("u1")
        
        assert exc_info.value.namespace == "sessions"
        assert exc_info.value.key == "u1"
        assert store.get("sessions", "u1") == {"sessions": [{"id": 7}]}
