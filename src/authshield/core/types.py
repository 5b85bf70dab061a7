"""Core types and enums."""

from enum import Enum
from typing import List


class RiskLevel(str, Enum):
    """Coarse risk classification of a single login event."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
    
    @classmethod
    def from_alerts(cls, alerts: List[str]) -> "RiskLevel":
        """Derive risk purely from the number of alerts raised."""
        count = len(alerts)
        if count == 0:
            return cls.LOW
        if count == 1:
            return cls.MEDIUM
        if count == 2:
            return cls.HIGH
        return cls.CRITICAL
    
    @property
    def is_high_risk(self) -> bool:
        return self in (RiskLevel.HIGH, RiskLevel.CRITICAL)


class EnforcementMode(str, Enum):
    """What to do when a new login would exceed the session cap."""
    BLOCK = "block"
    TERMINATE_OLDEST = "terminate_oldest"
    ALLOW = "allow"
