"""Concurrent Session Registry - caps simultaneous sessions per user.

Session lifecycle: created -> active -> (terminated | expired). Expiry is
computed from last_active_at on every read; expired sessions are compacted
out of storage whenever the user's record is written.
"""

from typing import List, Optional
from uuid import uuid4

from authshield.common.constants import Namespaces
from authshield.common.logging import get_logger
from authshield.controls.sessions.schema import UserSessionRecord
from authshield.core.base import DefenseControl
from authshield.core.types import EnforcementMode
from authshield.data.schemas.device import DeviceInput, describe_device
from authshield.data.schemas.policy import SessionConfig
from authshield.data.schemas.session import (
    SessionInfo,
    SessionRegistration,
    SessionStatistics,
)
from authshield.events.schemas import SecurityEventType


logger = get_logger(__name__)


def new_session_id() -> str:
    return f"session_{uuid4().hex}"


class SessionRegistry(DefenseControl[SessionConfig]):
    """Registers sessions per user under the configured concurrency policy."""
    
    config_model = SessionConfig
    NAMESPACE = Namespaces.SESSIONS
    
    def _load(self, user_id: str) -> UserSessionRecord:
        doc = self.store.get(self.NAMESPACE, user_id)
        if doc is None:
            return UserSessionRecord()
        return self._parse_document(UserSessionRecord, self.NAMESPACE, user_id, doc)
    
    def _save(self, user_id: str, record: UserSessionRecord) -> None:
        now = self._now()
        record.compact(now, self.config.session_timeout_minutes)
        if not record.sessions and not record.issued_handles:
            self.store.delete(self.NAMESPACE, user_id)
            return
        self.store.put(self.NAMESPACE, user_id, record.to_document())
    
    @staticmethod
    def _with_current(session: SessionInfo, current_session_id: Optional[str]) -> SessionInfo:
        return session.model_copy(update={"is_current": session.id == current_session_id})
    
    # ===== REGISTRATION =====
    
    def register_session(
        self,
        user_id: str,
        ip_address: str = "Unknown",
        location: Optional[str] = None,
        device: Optional[DeviceInput] = None,
        session_id: Optional[str] = None,
    ) -> SessionRegistration:
        """Register a new session for a user.
        
        Args:
            user_id: Owning user
            ip_address: Client IP as seen by the caller
            location: Pre-resolved location label, if known
            device: DeviceDescriptor or user-agent string for the device label
            session_id: Handle previously returned by logout(); anything the
                registry did not issue, or that is already bound, is replaced
                by a fresh one
            
        Returns:
            SessionRegistration; success=False only under the block policy
            
        Raises:
            StorageError: If the user's sessions cannot be read or written
        """
        config = self.config
        
        with self.store.lock(self.NAMESPACE, user_id):
            now = self._now()
            record = self._load(user_id)
            record.compact(now, config.session_timeout_minutes)
            active = record.sessions
            terminated: List[SessionInfo] = []
            
            at_cap = len(active) >= config.max_concurrent_sessions
            
            if at_cap and config.enforce_on_new_login == EnforcementMode.BLOCK:
                logger.warning(
                    f"Session blocked for {user_id}: {len(active)} active sessions at cap",
                    extra={"user_id": user_id},
                )
                self._emit(
                    SecurityEventType.SESSION_BLOCKED,
                    user_id,
                    active_sessions=len(active),
                    max_allowed=config.max_concurrent_sessions,
                )
                return SessionRegistration(
                    success=False,
                    error=(
                        f"Maximum {config.max_concurrent_sessions} active sessions allowed. "
                        "Please log out from another device."
                    ),
                )
            
            if at_cap and config.enforce_on_new_login == EnforcementMode.TERMINATE_OLDEST:
                overflow = len(active) - config.max_concurrent_sessions + 1
                terminated = sorted(active, key=lambda s: s.last_active_at)[:overflow]
                evicted_ids = {s.id for s in terminated}
                record.sessions = [s for s in active if s.id not in evicted_ids]
            
            if not record.redeem(session_id):
                session_id = new_session_id()
            
            session = SessionInfo(
                id=session_id,
                user_id=user_id,
                device_info=describe_device(device),
                ip_address=ip_address,
                location=location,
                created_at=now,
                last_active_at=now,
            )
            record.sessions.append(session)
            self._save(user_id, record)
        
        for evicted in terminated:
            logger.info(f"Evicted session {evicted.id} for {user_id} (concurrency cap)")
            self._emit(
                SecurityEventType.SESSION_EVICTED,
                user_id,
                session_id=evicted.id,
                device_info=evicted.device_info,
                last_active_at=evicted.last_active_at.isoformat(),
            )
        self._emit(
            SecurityEventType.SESSION_CREATED,
            user_id,
            session_id=session.id,
            device_info=session.device_info,
            ip_address=ip_address,
        )
        
        return SessionRegistration(
            success=True,
            session=self._with_current(session, session.id),
            terminated=terminated,
            notify_user=config.notify_on_new_session,
        )
    
    # ===== ACTIVITY =====
    
    def update_activity(self, user_id: str, session_id: str) -> bool:
        """Refresh last_active_at of an active session.
        
        Returns:
            False if the session does not exist or has already expired
        """
        timeout = self.config.session_timeout_minutes
        with self.store.lock(self.NAMESPACE, user_id):
            now = self._now()
            record = self._load(user_id)
            idx = record.find(session_id)
            if idx < 0 or not record.sessions[idx].is_active(now, timeout):
                return False
            record.sessions[idx] = record.sessions[idx].model_copy(update={"last_active_at": now})
            self._save(user_id, record)
        return True
    
    # ===== TERMINATION =====
    
    def terminate_session(self, user_id: str, session_id: str) -> bool:
        """Terminate one session. Returns False if it was not found."""
        with self.store.lock(self.NAMESPACE, user_id):
            record = self._load(user_id)
            idx = record.find(session_id)
            if idx < 0:
                return False
            del record.sessions[idx]
            self._save(user_id, record)
        logger.info(f"Terminated session {session_id} for {user_id}")
        return True
    
    def terminate_other_sessions(self, user_id: str, current_session_id: str) -> int:
        """Terminate every active session except the caller's own.
        
        Returns:
            Number of sessions terminated
        """
        timeout = self.config.session_timeout_minutes
        with self.store.lock(self.NAMESPACE, user_id):
            now = self._now()
            record = self._load(user_id)
            record.compact(now, timeout)
            keep = [s for s in record.sessions if s.id == current_session_id]
            terminated = len(record.sessions) - len(keep)
            if terminated:
                record.sessions = keep
                self._save(user_id, record)
        if terminated:
            logger.info(f"Terminated {terminated} other sessions for {user_id}")
        return terminated
    
    def logout(self, user_id: str, session_id: str) -> str:
        """End a session and issue a replacement handle.
        
        The old handle stops resolving immediately; handles are never reused.
        
        Returns:
            A fresh handle for the caller's next login
        """
        with self.store.lock(self.NAMESPACE, user_id):
            record = self._load(user_id)
            idx = record.find(session_id)
            if idx >= 0:
                del record.sessions[idx]
            fresh = new_session_id()
            record.issue(fresh)
            self._save(user_id, record)
        logger.info(f"Logged out session {session_id} for {user_id}")
        return fresh
    
    # ===== QUERIES =====
    
    def get_user_sessions(
        self, user_id: str, current_session_id: Optional[str] = None
    ) -> List[SessionInfo]:
        """Active sessions, most recently active first."""
        now = self._now()
        record = self._load(user_id)
        active = record.active(now, self.config.session_timeout_minutes)
        return [
            self._with_current(s, current_session_id)
            for s in sorted(active, key=lambda s: s.last_active_at, reverse=True)
        ]
    
    def get_statistics(self, user_id: str) -> SessionStatistics:
        now = self._now()
        record = self._load(user_id)
        active = record.active(now, self.config.session_timeout_minutes)
        return SessionStatistics(
            total_sessions=len(record.sessions),
            active_sessions=len(active),
            max_allowed=self.config.max_concurrent_sessions,
            oldest_session=min((s.created_at for s in active), default=None),
        )
    
    def purge_expired(self, user_id: Optional[str] = None) -> int:
        """Compact expired sessions from storage for one user or all users.
        
        Returns:
            Number of sessions removed
        """
        user_ids = [user_id] if user_id is not None else self.store.keys(self.NAMESPACE)
        timeout = self.config.session_timeout_minutes
        purged = 0
        for uid in user_ids:
            with self.store.lock(self.NAMESPACE, uid):
                if self.store.get(self.NAMESPACE, uid) is None:
                    continue
                record = self._load(uid)
                removed = record.compact(self._now(), timeout)
                if removed:
                    self._save(uid, record)
                    purged += removed
        if purged:
            logger.info(f"Purged {purged} expired sessions")
        return purged
