"""AttemptState schema - per-identifier backoff state."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from authshield.common.clock import elapsed_ms


class AttemptState(BaseModel):
    """Consecutive-failure state for one identifier.
    
    Expiry and lockout are never stored as booleans; they are computed from
    the stored timestamps against the caller's "now".
    """
    identifier: str = Field(..., description="Account or user key")
    failure_count: int = Field(default=0, ge=0)
    last_attempt_at: datetime = Field(..., description="Timestamp of the last failure")
    locked_until: Optional[datetime] = Field(
        default=None, description="Earliest time the next attempt may proceed"
    )
    
    def is_stale(self, now: datetime, reset_after_ms: int) -> bool:
        """True once the inactivity window has elapsed since the last attempt."""
        return elapsed_ms(self.last_attempt_at, now) > reset_after_ms
    
    def is_locked_out(self, max_attempts: int) -> bool:
        """Full lockout, as opposed to soft backoff."""
        return self.failure_count >= max_attempts
    
    def wait_ms(self, now: datetime) -> int:
        """Milliseconds until the next attempt may proceed (0 if it may now)."""
        if self.locked_until is None or self.locked_until <= now:
            return 0
        return max(1, elapsed_ms(now, self.locked_until))
