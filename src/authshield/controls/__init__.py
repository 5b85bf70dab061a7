"""Defense controls - backoff/lockout, login risk, concurrent sessions."""

from authshield.controls.backoff import AttemptDecision, BackoffController
from authshield.controls.risk import LoginRiskAnalyzer
from authshield.controls.sessions import SessionRegistry

__all__ = [
    "AttemptDecision",
    "BackoffController",
    "LoginRiskAnalyzer",
    "SessionRegistry",
]
