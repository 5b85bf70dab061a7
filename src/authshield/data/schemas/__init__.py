"""Data schemas - canonical Pydantic definitions."""

from authshield.data.schemas.attempt_state import AttemptState
from authshield.data.schemas.device import (
    DeviceDescriptor,
    DeviceInput,
    describe_device,
    describe_user_agent,
    fingerprint_for,
)
from authshield.data.schemas.login_event import LoginEvent, LoginStatistics
from authshield.data.schemas.policy import DelayConfig, LoginAlertConfig, SessionConfig
from authshield.data.schemas.session import (
    SessionInfo,
    SessionRegistration,
    SessionStatistics,
)

__all__ = [
    "AttemptState",
    "DeviceDescriptor",
    "DeviceInput",
    "describe_device",
    "describe_user_agent",
    "fingerprint_for",
    "LoginEvent",
    "LoginStatistics",
    "DelayConfig",
    "LoginAlertConfig",
    "SessionConfig",
    "SessionInfo",
    "SessionRegistration",
    "SessionStatistics",
]
