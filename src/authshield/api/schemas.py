"""API Schemas - Request/Response models for the defense service.

Domain models (LoginEvent, SessionInfo, SessionRegistration, the config
models) are returned as-is; only request bodies and small wrappers are
defined here.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field

from authshield.data.schemas.device import DeviceDescriptor


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class AttemptCheckRequest(BaseModel):
    """Request body for POST /attempts/check."""
    identifier: str = Field(..., min_length=1, description="Account or user key")


class AttemptResultRequest(BaseModel):
    """Request body for POST /attempts/result."""
    identifier: str = Field(..., min_length=1, description="Account or user key")
    success: bool = Field(..., description="Outcome of the credential check")


class RecordLoginRequest(BaseModel):
    """Request body for POST /logins."""
    user_id: str = Field(..., min_length=1)
    success: bool = Field(..., description="Outcome of the credential check")
    device: Union[DeviceDescriptor, str] = Field(
        ..., description="Device descriptor, or an opaque device string"
    )
    ip_address: str = Field(default="Unknown")
    location: Optional[str] = Field(default=None, description="Pre-resolved location label")
    is_vpn: bool = Field(default=False, description="Caller's VPN/proxy verdict")

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_id": "user_abc123",
                "success": True,
                "device": {
                    "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                    "screen": "1920x1080",
                    "timezone": "Europe/Lisbon",
                },
                "ip_address": "203.0.113.7",
                "location": "Lisbon, PT",
                "is_vpn": False,
            }
        }
    }


class TrustDeviceRequest(BaseModel):
    """Request body for POST /users/{user_id}/trusted-devices."""
    device: Union[DeviceDescriptor, str] = Field(...)


class RegisterSessionRequest(BaseModel):
    """Request body for POST /users/{user_id}/sessions."""
    ip_address: str = Field(default="Unknown")
    location: Optional[str] = Field(default=None)
    device: Optional[Union[DeviceDescriptor, str]] = Field(default=None)
    session_id: Optional[str] = Field(
        default=None, description="Handle returned by a previous logout; other values are replaced"
    )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class AttemptStatisticsResponse(BaseModel):
    total_identifiers: int
    locked_identifiers: int


class CountResponse(BaseModel):
    """Number of records affected by an admin or bulk operation."""
    count: int = Field(..., ge=0)


class OperationResponse(BaseModel):
    """Outcome of an operation that may find nothing to act on."""
    success: bool


class TrustDeviceResponse(BaseModel):
    device_fingerprint: str


class LogoutResponse(BaseModel):
    """The fresh handle the client should use from now on."""
    session_id: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    request_id: Optional[str] = Field(
        default=None, description="Request ID for debugging"
    )
