"""Login risk analyzer storage schema."""

from typing import List

from pydantic import BaseModel, Field

from authshield.data.schemas.login_event import LoginEvent


class UserLoginRecord(BaseModel):
    """Everything the analyzer persists for one user (namespace "logins").
    
    Lists are kept oldest first; known-sets are stored as insertion-ordered lists.
    """
    history: List[LoginEvent] = Field(default_factory=list)
    known_devices: List[str] = Field(default_factory=list, description="Trusted device fingerprints")
    known_locations: List[str] = Field(default_factory=list, description="Locations of past successful logins")
    pending_alerts: List[LoginEvent] = Field(default_factory=list, description="Undismissed events with alerts")
    
    def trim(self, history_limit: int, pending_alert_limit: int) -> None:
        """Evict the oldest entries beyond the retention bounds."""
        if len(self.history) > history_limit:
            self.history = self.history[-history_limit:]
        if len(self.pending_alerts) > pending_alert_limit:
            self.pending_alerts = self.pending_alerts[-pending_alert_limit:]
