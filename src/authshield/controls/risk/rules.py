"""Anomaly rules evaluated on each login.

Pure functions of the event inputs, the user's stored record and the
alert config; nothing here reads or writes storage.
"""

from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from authshield.common.clock import elapsed_ms
from authshield.common.constants import RiskConstants
from authshield.controls.risk.schema import UserLoginRecord
from authshield.data.schemas.policy import LoginAlertConfig


NEW_DEVICE_ALERT = "Login from new device"
NEW_LOCATION_ALERT = "Login from new location: {location}"
UNUSUAL_TIME_ALERT = "Login at unusual time"
VPN_PROXY_ALERT = "Login via VPN/proxy detected"
MULTIPLE_FAILURES_ALERT = "Multiple failed login attempts ({count})"


def is_unusual_hour(hour: int, start: int, end: int) -> bool:
    """Whether an hour of day falls in the [start, end) window.
    
    A window with start > end wraps midnight (e.g. 23 -> 5).
    """
    if start > end:
        return hour >= start or hour < end
    return start <= hour < end


def local_hour(timestamp: datetime, timezone: str) -> int:
    return timestamp.astimezone(ZoneInfo(timezone)).hour


def recent_failures(record: UserLoginRecord, now: datetime) -> int:
    """Failed logins in the user's history within the trailing hour."""
    window_ms = RiskConstants.FAILURE_WINDOW_SECONDS * 1000
    return sum(
        1 for event in record.history
        if not event.success and elapsed_ms(event.timestamp, now) < window_ms
    )


def evaluate_alerts(
    config: LoginAlertConfig,
    record: UserLoginRecord,
    now: datetime,
    success: bool,
    is_new_device: bool,
    is_new_location: bool,
    location: Optional[str],
    is_vpn: bool,
) -> List[str]:
    """Run every enabled rule in order and return the alerts raised.
    
    Context rules (device, location, time, VPN) fire on successful logins
    only; the repeated-failure rule fires on failures only.
    """
    alerts: List[str] = []
    
    if success:
        if config.alert_on_new_device and is_new_device:
            alerts.append(NEW_DEVICE_ALERT)
        if config.alert_on_new_location and is_new_location:
            alerts.append(NEW_LOCATION_ALERT.format(location=location))
        if config.alert_on_unusual_time and is_unusual_hour(
            local_hour(now, config.timezone),
            config.unusual_time_start,
            config.unusual_time_end,
        ):
            alerts.append(UNUSUAL_TIME_ALERT)
        if config.alert_on_vpn_proxy and is_vpn:
            alerts.append(VPN_PROXY_ALERT)
    elif config.alert_on_multiple_failures:
        count = recent_failures(record, now) + 1
        if count >= config.failure_threshold:
            alerts.append(MULTIPLE_FAILURES_ALERT.format(count=count))
    
    return alerts
