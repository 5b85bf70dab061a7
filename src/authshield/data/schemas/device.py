"""Device schema - descriptor and fingerprint derivation."""

import hashlib
import re
from typing import Optional, Union

from pydantic import BaseModel, Field


_BROWSER_PATTERN = re.compile(r"(chrome|safari|firefox|edge|opera)", re.IGNORECASE)
_OS_PATTERN = re.compile(r"(windows|mac|linux|android|ios)", re.IGNORECASE)


class DeviceDescriptor(BaseModel):
    """Observable characteristics of the client device.
    
    Supplied by the caller; this package never probes the client itself.
    """
    user_agent: str = Field(..., description="Raw User-Agent header")
    screen: Optional[str] = Field(default=None, description="Display size, e.g. '1920x1080'")
    timezone: Optional[str] = Field(default=None, description="Client IANA timezone")
    
    model_config = {
        "json_schema_extra": {
            "example": {
                "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                "screen": "1920x1080",
                "timezone": "Europe/Paris",
            }
        }
    }
    
    def fingerprint(self) -> str:
        """SHA-256 over the pipe-joined characteristics."""
        raw = f"{self.user_agent}|{self.screen or ''}|{self.timezone or ''}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()
    
    def describe(self) -> str:
        return describe_user_agent(self.user_agent)


DeviceInput = Union[DeviceDescriptor, str]


def fingerprint_for(device: DeviceInput) -> str:
    """Fingerprint of a descriptor, or of an opaque descriptor string."""
    if isinstance(device, DeviceDescriptor):
        return device.fingerprint()
    return hashlib.sha256(device.encode("utf-8")).hexdigest()


def describe_device(device: Optional[DeviceInput]) -> str:
    if device is None:
        return describe_user_agent("")
    if isinstance(device, DeviceDescriptor):
        return device.describe()
    return describe_user_agent(device)


def describe_user_agent(user_agent: str) -> str:
    """Short "<browser> on <os>" label for session and alert screens."""
    browser = _BROWSER_PATTERN.search(user_agent)
    os_match = _OS_PATTERN.search(user_agent)
    browser_name = browser.group(0) if browser else "Unknown Browser"
    os_name = os_match.group(0) if os_match else "Unknown OS"
    return f"{browser_name} on {os_name}"
