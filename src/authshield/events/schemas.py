"""Security event schemas - notifications raised by the defense controls."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, Field

from authshield.common.clock import utc_now


class SecurityEventType(str, Enum):
    """Types of security events."""
    LOCKOUT_TRIGGERED = "lockout_triggered"
    LOGIN_ALERT_RAISED = "login_alert_raised"
    SESSION_EVICTED = "session_evicted"
    SESSION_BLOCKED = "session_blocked"
    SESSION_CREATED = "session_created"


class SecurityEvent(BaseModel):
    """A single security notification.
    
    Immutable. Events describe state changes that already happened;
    they are never read back to make decisions.
    """
    event_id: str = Field(
        default_factory=lambda: f"evt_{uuid4().hex[:12]}",
        description="Unique event identifier"
    )
    event_type: SecurityEventType = Field(
        ...,
        description="Type of security event"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )
    subject: str = Field(
        ...,
        description="Identifier or user id the event concerns"
    )
    details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Event-specific context"
    )
    
    model_config = {"frozen": True}
    
    def to_jsonl(self) -> str:
        """Serialize as a single JSON line."""
        return self.model_dump_json()
