"""Session schema - canonical definition."""

from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field


class SessionInfo(BaseModel):
    """An authenticated session belonging to one user.
    
    ``is_current`` is transient: it is recomputed on every read against the
    caller's own session handle and is never trusted from storage.
    """
    id: str = Field(..., description="Session handle")
    user_id: str = Field(..., description="Owning user")
    device_info: str = Field(default="Unknown Browser on Unknown OS")
    ip_address: str = Field(default="Unknown")
    location: Optional[str] = Field(default=None)
    created_at: datetime = Field(...)
    last_active_at: datetime = Field(...)
    is_current: bool = Field(default=False)
    
    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "session_3b1f0c9e2a7d4e81",
                "user_id": "user_abc123",
                "device_info": "Firefox on Linux",
                "ip_address": "198.51.100.23",
                "location": "Berlin, DE",
                "created_at": "2026-01-25T08:00:00Z",
                "last_active_at": "2026-01-25T08:42:10Z",
                "is_current": True,
            }
        }
    }
    
    def is_active(self, now: datetime, timeout_minutes: int) -> bool:
        """Active iff the last activity falls inside the timeout window."""
        return now - self.last_active_at < timedelta(minutes=timeout_minutes)


class SessionRegistration(BaseModel):
    """Result of registering a session under the concurrency policy."""
    success: bool
    session: Optional[SessionInfo] = None
    terminated: List[SessionInfo] = Field(default_factory=list)
    error: Optional[str] = None
    notify_user: bool = Field(
        default=False, description="Caller should notify the user of the new session"
    )


class SessionStatistics(BaseModel):
    """Per-user session summary."""
    total_sessions: int = 0
    active_sessions: int = 0
    max_allowed: int = 0
    oldest_session: Optional[datetime] = None
