"""LoginEvent schema - canonical definition."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from authshield.core.types import RiskLevel


class LoginEvent(BaseModel):
    """Immutable record of one login attempt and the alerts it raised."""
    id: str = Field(..., description="Unique event identifier")
    user_id: str = Field(..., description="Target user account")
    timestamp: datetime = Field(..., description="Event timestamp (UTC)")
    ip_address: str = Field(default="Unknown", description="Client IP address")
    location: Optional[str] = Field(default=None, description="Resolved location, if any")
    device_info: str = Field(..., description="Short device label, e.g. 'Chrome on Windows'")
    device_fingerprint: str = Field(..., description="Hashed device fingerprint")
    success: bool = Field(..., description="Outcome of the credential check")
    alerts: List[str] = Field(default_factory=list, description="Alert messages in rule order")
    risk_level: RiskLevel = Field(default=RiskLevel.LOW)
    is_new_device: bool = Field(default=False, description="Fingerprint not previously trusted")
    is_new_location: bool = Field(default=False, description="Location not previously trusted")
    notify_email: bool = Field(default=False, description="Alerting event the caller should send by email")
    notify_in_app: bool = Field(default=False, description="Alerting event the caller should show in-app")
    
    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "id": "login_5f2c9a1b7e3d",
                "user_id": "user_abc123",
                "timestamp": "2026-01-25T23:30:05Z",
                "ip_address": "203.0.113.7",
                "location": "Lisbon, PT",
                "device_info": "Chrome on Windows",
                "device_fingerprint": "9f86d081884c7d65...",
                "success": True,
                "alerts": ["Login from new device", "Login at unusual time"],
                "risk_level": "high",
                "is_new_device": True,
                "is_new_location": False,
                "notify_email": True,
                "notify_in_app": True,
            }
        }
    }
    
    @property
    def has_alerts(self) -> bool:
        return bool(self.alerts)


class LoginStatistics(BaseModel):
    """Per-user login summary for account security screens."""
    total_logins: int = 0
    successful_logins: int = 0
    failed_logins: int = 0
    unique_devices: int = 0
    unique_locations: int = 0
    high_risk_events: int = 0
    last_login: Optional[datetime] = None
