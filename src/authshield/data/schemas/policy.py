"""Policy schemas - admin-editable configuration for the three controls.

Each control is constructed with its own config instance, so several
tenants or environments can run independent policies in one process.
"""

from pydantic import BaseModel, Field, model_validator

from authshield.common.constants import (
    BackoffConstants,
    RiskConstants,
    SessionConstants,
)
from authshield.core.types import EnforcementMode


class DelayConfig(BaseModel):
    """Progressive delay / lockout policy."""
    base_delay_ms: int = Field(
        default=BackoffConstants.DEFAULT_BASE_DELAY_MS, gt=0,
        description="Wait imposed after the first failure"
    )
    max_delay_ms: int = Field(
        default=BackoffConstants.DEFAULT_MAX_DELAY_MS, gt=0,
        description="Cap on the backoff wait and the lockout duration"
    )
    max_attempts: int = Field(
        default=BackoffConstants.DEFAULT_MAX_ATTEMPTS, ge=1,
        description="Consecutive failures before lockout"
    )
    reset_after_ms: int = Field(
        default=BackoffConstants.DEFAULT_RESET_AFTER_MS, gt=0,
        description="Inactivity window after which the failure counter resets"
    )
    
    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "example": {
                "base_delay_ms": 1000,
                "max_delay_ms": 300000,
                "max_attempts": 10,
                "reset_after_ms": 3600000,
            }
        }
    }
    
    @model_validator(mode="after")
    def _check_bounds(self) -> "DelayConfig":
        if self.base_delay_ms > self.max_delay_ms:
            raise ValueError("base_delay_ms must not exceed max_delay_ms")
        return self


class LoginAlertConfig(BaseModel):
    """Which anomaly classes raise login alerts."""
    alert_on_new_device: bool = Field(default=True)
    alert_on_new_location: bool = Field(default=True)
    alert_on_unusual_time: bool = Field(default=True)
    alert_on_vpn_proxy: bool = Field(default=True)
    alert_on_multiple_failures: bool = Field(default=True)
    failure_threshold: int = Field(
        default=RiskConstants.DEFAULT_FAILURE_THRESHOLD, ge=1,
        description="Failures within the trailing hour that raise an alert"
    )
    unusual_time_start: int = Field(
        default=RiskConstants.DEFAULT_UNUSUAL_TIME_START, ge=0, le=23,
        description="Start hour of the unusual-time window (inclusive)"
    )
    unusual_time_end: int = Field(
        default=RiskConstants.DEFAULT_UNUSUAL_TIME_END, ge=0, le=23,
        description="End hour of the unusual-time window (exclusive); may wrap past midnight"
    )
    timezone: str = Field(
        default="UTC", description="IANA timezone the unusual-time window is evaluated in"
    )
    history_limit: int = Field(
        default=RiskConstants.HISTORY_LIMIT, ge=1,
        description="Login events retained per user (runtime and durable)"
    )
    pending_alert_limit: int = Field(
        default=RiskConstants.PENDING_ALERT_LIMIT, ge=1,
        description="Undismissed alerts retained per user"
    )
    email_alerts: bool = Field(default=True, description="Route alerting events to email")
    in_app_alerts: bool = Field(default=True, description="Route alerting events to in-app notifications")
    
    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "example": {
                "alert_on_new_device": True,
                "alert_on_new_location": True,
                "alert_on_unusual_time": True,
                "alert_on_vpn_proxy": True,
                "alert_on_multiple_failures": True,
                "failure_threshold": 3,
                "unusual_time_start": 23,
                "unusual_time_end": 5,
                "timezone": "UTC",
                "email_alerts": True,
                "in_app_alerts": True,
            }
        }
    }
    
    @model_validator(mode="after")
    def _check_timezone(self) -> "LoginAlertConfig":
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {self.timezone}") from e
        return self


class SessionConfig(BaseModel):
    """Concurrent session policy."""
    max_concurrent_sessions: int = Field(
        default=SessionConstants.DEFAULT_MAX_CONCURRENT, ge=1
    )
    session_timeout_minutes: int = Field(
        default=SessionConstants.DEFAULT_TIMEOUT_MINUTES, ge=1,
        description="Inactivity after which a session is no longer active"
    )
    enforce_on_new_login: EnforcementMode = Field(
        default=EnforcementMode.TERMINATE_OLDEST,
        description="Behaviour when a new login would exceed the cap"
    )
    notify_on_new_session: bool = Field(default=True)
    
    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "example": {
                "max_concurrent_sessions": 3,
                "session_timeout_minutes": 60,
                "enforce_on_new_login": "terminate_oldest",
                "notify_on_new_session": True,
            }
        }
    }
