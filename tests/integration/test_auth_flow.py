"""Integration tests for AuthShield.

End-to-end tests that run login attempts through all three controls.
"""

import pytest

from authshield.controls import BackoffController, LoginRiskAnalyzer, SessionRegistry
from authshield.data.schemas.device import DeviceDescriptor
from authshield.data.schemas.policy import DelayConfig, LoginAlertConfig, SessionConfig
from authshield.events import JsonlEventSink, SecurityEventType
from authshield.orchestration import AuthenticationFlow, LoginContext
from authshield.storage import FileStateStore


LAPTOP = DeviceDescriptor(
    user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 14_2) Safari/605.1.15",
    screen="2560x1600",
    timezone="America/New_York",
)


class Credentials:
    """Stand-in for the external credential check; counts invocations."""
    
    def __init__(self, valid: bool):
        self.valid = valid
        self.calls = 0
    
    def __call__(self) -> bool:
        self.calls += 1
        return self.valid


def build_flow(store, clock, sink=None):
    return AuthenticationFlow(
        BackoffController(DelayConfig(max_attempts=5), store, clock=clock, event_sink=sink),
        LoginRiskAnalyzer(LoginAlertConfig(), store, clock=clock, event_sink=sink),
        SessionRegistry(SessionConfig(max_concurrent_sessions=2), store, clock=clock, event_sink=sink),
    )


class TestAuthenticationFlow:
    """Integration tests for the login attempt pipeline."""
    
    @pytest.fixture
    def flow(self, store, clock):
        return build_flow(store, clock)
    
    @pytest.fixture
    def context(self):
        return LoginContext(device=LAPTOP, ip_address="192.0.2.10", location="New York, US")
    
    def test_successful_first_login(self, flow, context):
        outcome = flow.attempt("alice", Credentials(True), context)
        
        assert outcome.authenticated is True
        assert outcome.gate.allowed is True
        assert outcome.login_event.alerts == ["Login from new device", "Login from new location: New York, US"]
        assert outcome.registration.success is True
        assert outcome.session_id.startswith("session_")
        assert outcome.registration.session.device_info == "Safari on Mac"
    
    def test_failed_login_records_backoff_and_history(self, flow, context):
        outcome = flow.attempt("alice", Credentials(False), context)
        
        assert outcome.authenticated is False
        assert outcome.registration is None
        assert outcome.gate.allowed is False
        assert outcome.gate.wait_ms == 1000
        assert flow.risk.get_statistics("alice").failed_logins == 1
    
    def test_denied_gate_skips_credential_check(self, flow, context):
        flow.attempt("alice", Credentials(False), context)
        credentials = Credentials(True)
        
        outcome = flow.attempt("alice", credentials, context)
        
        assert credentials.calls == 0
        assert outcome.verified is False
        assert outcome.login_event is None
        assert flow.risk.get_statistics("alice").total_logins == 1
    
    def test_brute_force_then_recovery(self, flow, context, clock):
        for _ in range(5):
            clock.advance(minutes=2)
            outcome = flow.attempt("alice", Credentials(False), context)
        
        assert outcome.gate.locked_out is True
        assert outcome.login_event.alerts == ["Multiple failed login attempts (5)"]
        
        clock.advance(minutes=4)
        assert flow.attempt("alice", Credentials(True), context).gate.allowed is False
        
        clock.advance(minutes=1)
        outcome = flow.attempt("alice", Credentials(True), context)
        
        assert outcome.authenticated is True
        assert flow.backoff.get_state("alice") is None
    
    def test_session_handle_reuse_and_logout(self, flow):
        first = flow.attempt("alice", Credentials(True), LoginContext(device=LAPTOP))
        handle = flow.sessions.logout("alice", first.session_id)
        
        context = LoginContext(device=LAPTOP, session_id=handle)
        outcome = flow.attempt("alice", Credentials(True), context)
        assert outcome.session_id == handle
        
        flow.sessions.logout("alice", handle)
        replay = flow.attempt("alice", Credentials(True), context)
        
        assert replay.session_id != handle
    
    def test_separate_user_id(self, flow):
        context = LoginContext(device=LAPTOP, user_id="user_42")
        
        flow.attempt("alice@example.com", Credentials(True), context)
        
        assert flow.risk.get_statistics("user_42").total_logins == 1
        assert len(flow.sessions.get_user_sessions("user_42")) == 1


class TestRestart:
    """State held in the file store survives a process restart."""
    
    def test_lockout_and_sessions_survive_restart(self, tmp_path, clock):
        state_dir = str(tmp_path / "state")
        events = JsonlEventSink(tmp_path / "events.jsonl")
        flow = build_flow(FileStateStore(state_dir), clock, events)
        context = LoginContext(device=LAPTOP)
        
        session_id = flow.attempt("bob", Credentials(True), context).session_id
        for _ in range(5):
            clock.advance(minutes=3)
            flow.attempt("bob", Credentials(False), context)
        
        restarted = build_flow(FileStateStore(state_dir), clock)
        
        assert restarted.backoff.check_allowed("bob").locked_out is True
        assert [s.id for s in restarted.sessions.get_user_sessions("bob")] == [session_id]
        assert restarted.risk.get_statistics("bob").total_logins == 6
        
        event_types = [e.event_type for e in events.read_events()]
        assert SecurityEventType.LOCKOUT_TRIGGERED in event_types
        assert SecurityEventType.SESSION_CREATED in event_types
