"""AuthShield - adaptive authentication defense."""

__version__ = "0.1.0"
__author__ = "AuthShield Team"

# Core exports
from authshield.core.types import EnforcementMode, RiskLevel
from authshield.controls import BackoffController, LoginRiskAnalyzer, SessionRegistry
from authshield.orchestration import AuthenticationFlow, LoginContext

__all__ = [
    "EnforcementMode",
    "RiskLevel",
    "BackoffController",
    "LoginRiskAnalyzer",
    "SessionRegistry",
    "AuthenticationFlow",
    "LoginContext",
]
