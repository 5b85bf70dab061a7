"""Session registry storage schema."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from authshield.common.constants import SessionConstants
from authshield.data.schemas.session import SessionInfo


class UserSessionRecord(BaseModel):
    """Everything the registry persists for one user (namespace "sessions")."""
    sessions: List[SessionInfo] = Field(default_factory=list)
    issued_handles: List[str] = Field(
        default_factory=list, description="Handles issued by logout and not yet bound to a session, oldest first"
    )
    
    def active(self, now: datetime, timeout_minutes: int) -> List[SessionInfo]:
        return [s for s in self.sessions if s.is_active(now, timeout_minutes)]
    
    def compact(self, now: datetime, timeout_minutes: int) -> int:
        """Drop expired sessions. Returns how many were removed."""
        active = self.active(now, timeout_minutes)
        removed = len(self.sessions) - len(active)
        self.sessions = active
        return removed
    
    def find(self, session_id: str) -> int:
        for idx, session in enumerate(self.sessions):
            if session.id == session_id:
                return idx
        return -1
    
    def issue(self, handle: str) -> None:
        self.issued_handles.append(handle)
        if len(self.issued_handles) > SessionConstants.ISSUED_HANDLE_LIMIT:
            self.issued_handles = self.issued_handles[-SessionConstants.ISSUED_HANDLE_LIMIT:]
    
    def redeem(self, handle: Optional[str]) -> bool:
        """Consume an issued handle. Each handle binds to at most one session."""
        if handle is None or handle not in self.issued_handles:
            return False
        self.issued_handles.remove(handle)
        return True
    
    def to_document(self) -> Dict[str, Any]:
        # is_current is per-caller and never persisted as truth
        return self.model_dump(mode="json", exclude={"sessions": {"__all__": {"is_current"}}})
