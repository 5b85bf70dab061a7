"""Core types shared by every control."""

from authshield.core.types import EnforcementMode, RiskLevel

__all__ = ["EnforcementMode", "RiskLevel"]
