"""Authentication Flow - runs the three controls around one login attempt.

Order:
1. Backoff gate (denied attempts stop here: no credential check)
2. External credential check (injected callable)
3. Outcome reported to the backoff controller and the risk analyzer
4. On success, a session is registered under the concurrency policy

Credential verification is never performed here.
"""

from typing import Callable, Optional

from authshield.common.logging import get_logger
from authshield.controls.backoff.controller import BackoffController
from authshield.controls.risk.analyzer import LoginRiskAnalyzer
from authshield.controls.sessions.registry import SessionRegistry
from authshield.orchestration.context import AuthenticationOutcome, LoginContext


logger = get_logger(__name__)

CredentialCheck = Callable[[], bool]


class AuthenticationFlow:
    """Coordinates the controller, analyzer and registry for one attempt."""
    
    def __init__(
        self,
        backoff: BackoffController,
        risk: LoginRiskAnalyzer,
        sessions: Optional[SessionRegistry] = None,
    ):
        self.backoff = backoff
        self.risk = risk
        self.sessions = sessions
    
    def attempt(
        self,
        identifier: str,
        verify: CredentialCheck,
        context: LoginContext,
    ) -> AuthenticationOutcome:
        """Run a login attempt through the defense controls.
        
        Args:
            identifier: Account key the backoff state is kept under
            verify: Performs the credential check; called at most once
            context: Device, network and session-handle facts
            
        Returns:
            AuthenticationOutcome; a denied gate leaves every other field empty
            
        Raises:
            StorageError: If any control cannot read or write its state
        """
        gate = self.backoff.check_allowed(identifier)
        if not gate.allowed:
            logger.info(f"Attempt for {identifier} denied by backoff ({gate.wait_ms}ms remaining)")
            return AuthenticationOutcome(identifier=identifier, gate=gate)
        
        verified = bool(verify())
        user_id = context.user_id or identifier
        
        decision = self.backoff.record_result(identifier, verified)
        login_event = self.risk.record_login(
            user_id,
            verified,
            context.device,
            ip_address=context.ip_address,
            location=context.location,
            is_vpn=context.is_vpn,
        )
        
        registration = None
        if verified and self.sessions is not None:
            registration = self.sessions.register_session(
                user_id,
                ip_address=context.ip_address,
                location=context.location,
                device=context.device,
                session_id=context.session_id,
            )
        
        return AuthenticationOutcome(
            identifier=identifier,
            gate=decision,
            verified=verified,
            login_event=login_event,
            registration=registration,
        )
