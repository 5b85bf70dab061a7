"""Concurrent Session Registry."""

from authshield.controls.sessions.registry import SessionRegistry, new_session_id
from authshield.controls.sessions.schema import UserSessionRecord

__all__ = ["SessionRegistry", "UserSessionRecord", "new_session_id"]
