"""Tests for defense policy loading and the policy schemas."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from authshield.common.config import DefensePolicy, load_policy
from authshield.common.exceptions import ConfigurationError
from authshield.core.types import EnforcementMode
from authshield.data.schemas.policy import DelayConfig, LoginAlertConfig, SessionConfig


REPO_POLICY = Path(__file__).resolve().parents[3] / "config" / "defense_policy.yaml"


class TestLoadPolicy:
    """Tests for load_policy()."""
    
    def test_repository_policy_is_valid(self):
        policy = load_policy(REPO_POLICY)
        
        assert policy.delay.max_attempts == 10
        assert policy.alerts.unusual_time_start == 23
        assert policy.sessions.enforce_on_new_login == EnforcementMode.TERMINATE_OLDEST
    
    def test_missing_file_yields_defaults(self, tmp_path):
        assert load_policy(tmp_path / "absent.yaml") == DefensePolicy()
    
    def test_no_file_yields_defaults(self):
        assert load_policy(None) == DefensePolicy()
    
    def test_partial_file_keeps_other_defaults(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("sessions:\n  max_concurrent_sessions: 5\n  enforce_on_new_login: block\n")
        
        policy = load_policy(path)
        
        assert policy.sessions.max_concurrent_sessions == 5
        assert policy.sessions.enforce_on_new_login == EnforcementMode.BLOCK
        assert policy.delay == DelayConfig()
    
    def test_empty_file_yields_defaults(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("")
        
        assert load_policy(path) == DefensePolicy()
    
    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("delay: [unclosed\n")
        
        with pytest.raises(ConfigurationError):
            load_policy(path)
    
    def test_invalid_values(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("delay:\n  base_delay_ms: -5\n")
        
        with pytest.raises(ConfigurationError) as exc_info:
            load_policy(path)
        
        assert exc_info.value.code == "CONFIG_ERROR"
        assert exc_info.value.details["errors"]
    
    def test_unknown_section(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("rate_limits:\n  per_ip: 10\n")
        
        with pytest.raises(ConfigurationError):
            load_policy(path)


class TestPolicySchemas:
    """Tests for the per-control config models."""
    
    def test_delay_defaults(self):
        config = DelayConfig()
        
        assert (config.base_delay_ms, config.max_delay_ms, config.max_attempts, config.reset_after_ms) == (
            1000, 300_000, 10, 3_600_000
        )
    
    def test_base_must_not_exceed_max(self):
        with pytest.raises(PydanticValidationError):
            DelayConfig(base_delay_ms=10_000, max_delay_ms=5_000)
    
    @pytest.mark.parametrize("field", ["base_delay_ms", "max_delay_ms", "max_attempts", "reset_after_ms"])
    def test_delay_values_must_be_positive(self, field):
        with pytest.raises(PydanticValidationError):
            DelayConfig(**{field: 0})
    
    def test_alert_hours_bounded(self):
        with pytest.raises(PydanticValidationError):
            LoginAlertConfig(unusual_time_start=24)
    
    def test_unknown_timezone_rejected(self):
        with pytest.raises(PydanticValidationError):
            LoginAlertConfig(timezone="Mars/Olympus_Mons")
    
    def test_session_mode_from_string(self):
        assert SessionConfig(enforce_on_new_login="allow").enforce_on_new_login == EnforcementMode.ALLOW
