"""Orchestration - the login attempt pipeline."""

from authshield.orchestration.auth_flow import AuthenticationFlow, CredentialCheck
from authshield.orchestration.context import AuthenticationOutcome, LoginContext

__all__ = [
    "AuthenticationFlow",
    "AuthenticationOutcome",
    "CredentialCheck",
    "LoginContext",
]
