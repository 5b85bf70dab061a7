"""Backoff/Lockout Controller - progressive delay after failed logins.

State is keyed per identifier (account or user key, never IP address).
The n-th consecutive failure imposes min(base * 2^(n-1), max) before the
next attempt; at max_attempts the identifier is locked for max_delay_ms.
A success, an admin clear, or reset_after_ms of inactivity wipes the slate.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from authshield.common.constants import Namespaces
from authshield.common.logging import get_logger
from authshield.controls.backoff.schema import AttemptDecision
from authshield.core.base import DefenseControl
from authshield.data.schemas.attempt_state import AttemptState
from authshield.data.schemas.policy import DelayConfig
from authshield.events.schemas import SecurityEventType


logger = get_logger(__name__)


def format_wait(ms: int) -> str:
    """Render a wait as "a moment", "N seconds", "N minutes" or "N hours" (rounded up)."""
    if ms <= 0:
        return "a moment"
    seconds = math.ceil(ms / 1000)
    if seconds < 60:
        return f"{seconds} second{'s' if seconds != 1 else ''}"
    minutes = math.ceil(seconds / 60)
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    hours = math.ceil(minutes / 60)
    return f"{hours} hour{'s' if hours != 1 else ''}"


class BackoffController(DefenseControl[DelayConfig]):
    """Gates login attempts per identifier."""
    
    config_model = DelayConfig
    NAMESPACE = Namespaces.ATTEMPTS
    
    # ===== STATE ACCESS =====
    
    def _load(self, identifier: str) -> Optional[AttemptState]:
        doc = self.store.get(self.NAMESPACE, identifier)
        if doc is None:
            return None
        return self._parse_document(AttemptState, self.NAMESPACE, identifier, doc)
    
    def _save(self, state: AttemptState) -> None:
        self.store.put(self.NAMESPACE, state.identifier, state.model_dump(mode="json"))
    
    def _load_fresh(self, identifier: str, now: datetime, config: DelayConfig) -> Optional[AttemptState]:
        """Load state, discarding it if the inactivity window has passed."""
        state = self._load(identifier)
        if state is not None and state.is_stale(now, config.reset_after_ms):
            self.store.delete(self.NAMESPACE, identifier)
            logger.debug(f"Attempt state for {identifier} expired after inactivity")
            return None
        return state
    
    def _decide(self, state: Optional[AttemptState], now: datetime, config: DelayConfig) -> AttemptDecision:
        if state is None:
            return AttemptDecision(allowed=True, max_attempts=config.max_attempts)
        
        wait_ms = state.wait_ms(now)
        locked_out = wait_ms > 0 and state.is_locked_out(config.max_attempts)
        if wait_ms == 0:
            message = ""
        elif locked_out:
            message = f"Account temporarily locked. Try again in {format_wait(wait_ms)}."
        else:
            message = f"Please wait {format_wait(wait_ms)} before trying again."
        
        return AttemptDecision(
            allowed=wait_ms == 0,
            wait_ms=wait_ms,
            attempts=state.failure_count,
            max_attempts=config.max_attempts,
            locked_out=locked_out,
            message=message,
        )
    
    # ===== OPERATIONS =====
    
    def check_allowed(self, identifier: str) -> AttemptDecision:
        """Whether an attempt for this identifier may proceed now.
        
        Args:
            identifier: Account or user key
            
        Returns:
            AttemptDecision; wait_ms > 0 when denied
            
        Raises:
            StorageError: If state cannot be read (the attempt is not allowed)
        """
        config = self.config
        with self.store.lock(self.NAMESPACE, identifier):
            now = self._now()
            state = self._load_fresh(identifier, now, config)
            return self._decide(state, now, config)
    
    def record_result(self, identifier: str, success: bool) -> AttemptDecision:
        """Record the outcome of a credential check.
        
        Success deletes all state. Failure increments the counter and sets
        the next permitted attempt time.
        
        Returns:
            The decision for the next attempt
        """
        config = self.config
        with self.store.lock(self.NAMESPACE, identifier):
            now = self._now()
            
            if success:
                if self.store.delete(self.NAMESPACE, identifier):
                    logger.info(f"Attempt state reset for {identifier} after successful login")
                return AttemptDecision(allowed=True, max_attempts=config.max_attempts)
            
            state = self._load_fresh(identifier, now, config)
            was_locked_out = state is not None and self._decide(state, now, config).locked_out
            failure_count = (state.failure_count if state else 0) + 1
            
            if failure_count >= config.max_attempts:
                delay_ms = config.max_delay_ms
            else:
                delay_ms = min(config.base_delay_ms * (2 ** (failure_count - 1)), config.max_delay_ms)
            
            state = AttemptState(
                identifier=identifier,
                failure_count=failure_count,
                last_attempt_at=now,
                locked_until=now + timedelta(milliseconds=delay_ms),
            )
            self._save(state)
            decision = self._decide(state, now, config)
        
        if decision.locked_out and not was_locked_out:
            logger.warning(
                f"Identifier {identifier} locked out after {failure_count} failed attempts",
                extra={"identifier": identifier, "lockout_ms": delay_ms},
            )
            self._emit(
                SecurityEventType.LOCKOUT_TRIGGERED,
                identifier,
                failure_count=failure_count,
                locked_until=state.locked_until.isoformat(),
            )
        else:
            logger.info(f"Failed attempt {failure_count} for {identifier}; next attempt in {delay_ms}ms")
        
        return decision
    
    def clear(self, identifier: Optional[str] = None) -> int:
        """Admin override: wipe state for one identifier, or all of them.
        
        Returns:
            Number of identifiers cleared (0 if nothing was stored)
        """
        if identifier is None:
            cleared = self.store.clear(self.NAMESPACE)
            logger.warning(f"Cleared attempt state for all identifiers ({cleared})")
            return cleared
        
        with self.store.lock(self.NAMESPACE, identifier):
            cleared = int(self.store.delete(self.NAMESPACE, identifier))
        if cleared:
            logger.info(f"Cleared attempt state for {identifier}")
        return cleared
    
    def get_state(self, identifier: str) -> Optional[AttemptState]:
        """Stored state for an identifier, without modifying it."""
        return self._load(identifier)
    
    def get_statistics(self) -> Dict[str, Any]:
        """Identifiers with live state, and how many have a future locked_until."""
        config = self.config
        now = self._now()
        total = 0
        locked = 0
        for identifier in self.store.keys(self.NAMESPACE):
            state = self._load(identifier)
            if state is None or state.is_stale(now, config.reset_after_ms):
                continue
            total += 1
            if state.wait_ms(now) > 0:
                locked += 1
        return {"total_identifiers": total, "locked_identifiers": locked}
    
    format_wait = staticmethod(format_wait)
