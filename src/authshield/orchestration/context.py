"""Authentication flow context - inputs and outcome of one login attempt.

Frozen dataclasses: a context describes an attempt that has happened and
is never modified after creation.
"""

from dataclasses import dataclass
from typing import Optional

from authshield.controls.backoff.schema import AttemptDecision
from authshield.data.schemas.device import DeviceInput
from authshield.data.schemas.login_event import LoginEvent
from authshield.data.schemas.session import SessionRegistration


@dataclass(frozen=True)
class LoginContext:
    """Caller-observed facts about a login attempt.
    
    Location and the VPN verdict are resolved by the caller; this package
    does no IP intelligence of its own.
    """
    device: DeviceInput
    ip_address: str = "Unknown"
    location: Optional[str] = None
    is_vpn: bool = False
    user_id: Optional[str] = None
    session_id: Optional[str] = None


@dataclass(frozen=True)
class AuthenticationOutcome:
    """Everything the three controls decided about one attempt."""
    identifier: str
    gate: AttemptDecision
    verified: bool = False
    login_event: Optional[LoginEvent] = None
    registration: Optional[SessionRegistration] = None
    
    @property
    def authenticated(self) -> bool:
        """Credentials verified and no session policy refused the login."""
        return self.verified and (self.registration is None or self.registration.success)
    
    @property
    def session_id(self) -> Optional[str]:
        if self.registration is None or self.registration.session is None:
            return None
        return self.registration.session.id
