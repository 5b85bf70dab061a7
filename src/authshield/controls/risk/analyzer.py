"""Login Risk Analyzer - flags anomalous logins for the account owner.

Each recorded login is checked against the user's known devices and
locations, the configured unusual-time window, the caller-supplied VPN
flag and recent failures. Alerts are advisory: the analyzer never blocks
a login, it only reports.
"""

from typing import List, Optional
from uuid import uuid4

from authshield.common.constants import Namespaces, RiskConstants
from authshield.common.logging import get_logger
from authshield.controls.risk.rules import evaluate_alerts
from authshield.controls.risk.schema import UserLoginRecord
from authshield.core.base import DefenseControl
from authshield.core.types import RiskLevel
from authshield.data.schemas.device import DeviceInput, describe_device, fingerprint_for
from authshield.data.schemas.login_event import LoginEvent, LoginStatistics
from authshield.data.schemas.policy import LoginAlertConfig
from authshield.events.schemas import SecurityEventType


logger = get_logger(__name__)


class LoginRiskAnalyzer(DefenseControl[LoginAlertConfig]):
    """Records logins per user and raises alerts on anomalies."""
    
    config_model = LoginAlertConfig
    NAMESPACE = Namespaces.LOGINS
    
    def _load(self, user_id: str) -> UserLoginRecord:
        doc = self.store.get(self.NAMESPACE, user_id)
        if doc is None:
            return UserLoginRecord()
        return self._parse_document(UserLoginRecord, self.NAMESPACE, user_id, doc)
    
    def _save(self, user_id: str, record: UserLoginRecord) -> None:
        self.store.put(self.NAMESPACE, user_id, record.model_dump(mode="json"))
    
    # ===== RECORDING =====
    
    def record_login(
        self,
        user_id: str,
        success: bool,
        device: DeviceInput,
        ip_address: str = "Unknown",
        location: Optional[str] = None,
        is_vpn: bool = False,
    ) -> LoginEvent:
        """Record a login attempt and evaluate it for anomalies.
        
        Args:
            user_id: Account the attempt targeted
            success: Outcome of the external credential check
            device: DeviceDescriptor or opaque device string
            ip_address: Client IP as seen by the caller
            location: Pre-resolved location label, if known
            is_vpn: Caller's VPN/proxy verdict
            
        Returns:
            The immutable LoginEvent, with alerts in rule order
            
        Raises:
            StorageError: If the user's record cannot be read or written
        """
        config = self.config
        fingerprint = fingerprint_for(device)
        
        with self.store.lock(self.NAMESPACE, user_id):
            now = self._now()
            record = self._load(user_id)
            
            is_new_device = fingerprint not in record.known_devices
            is_new_location = bool(location) and location not in record.known_locations
            
            alerts = evaluate_alerts(
                config,
                record,
                now,
                success=success,
                is_new_device=is_new_device,
                is_new_location=is_new_location,
                location=location,
                is_vpn=is_vpn,
            )
            
            event = LoginEvent(
                id=f"login_{uuid4().hex[:16]}",
                user_id=user_id,
                timestamp=now,
                ip_address=ip_address,
                location=location,
                device_info=describe_device(device),
                device_fingerprint=fingerprint,
                success=success,
                alerts=alerts,
                risk_level=RiskLevel.from_alerts(alerts),
                is_new_device=is_new_device,
                is_new_location=is_new_location,
                notify_email=bool(alerts) and config.email_alerts,
                notify_in_app=bool(alerts) and config.in_app_alerts,
            )
            
            record.history.append(event)
            if success:
                if is_new_device:
                    record.known_devices.append(fingerprint)
                if is_new_location:
                    record.known_locations.append(location)
            if event.has_alerts:
                record.pending_alerts.append(event)
            
            record.trim(config.history_limit, config.pending_alert_limit)
            self._save(user_id, record)
        
        if event.has_alerts:
            logger.warning(
                f"Login alerts for {user_id}: {alerts}",
                extra={"user_id": user_id, "risk_level": event.risk_level.value},
            )
            self._emit(
                SecurityEventType.LOGIN_ALERT_RAISED,
                user_id,
                login_id=event.id,
                alerts=alerts,
                risk_level=event.risk_level.value,
                notify_email=event.notify_email,
                notify_in_app=event.notify_in_app,
            )
        
        return event
    
    # ===== HISTORY =====
    
    def get_login_history(
        self, user_id: str, limit: int = RiskConstants.DEFAULT_HISTORY_PAGE
    ) -> List[LoginEvent]:
        """The user's most recent logins, newest first."""
        if limit <= 0:
            return []
        history = self._load(user_id).history[-limit:]
        return sorted(history, key=lambda e: e.timestamp, reverse=True)
    
    def get_statistics(self, user_id: str) -> LoginStatistics:
        record = self._load(user_id)
        history = record.history
        return LoginStatistics(
            total_logins=len(history),
            successful_logins=sum(1 for e in history if e.success),
            failed_logins=sum(1 for e in history if not e.success),
            unique_devices=len(record.known_devices),
            unique_locations=len(record.known_locations),
            high_risk_events=sum(1 for e in history if e.risk_level.is_high_risk),
            last_login=history[-1].timestamp if history else None,
        )
    
    # ===== ALERTS =====
    
    def get_pending_alerts(self, user_id: Optional[str] = None) -> List[LoginEvent]:
        """Undismissed alert events for one user, or for every user.
        
        Returned oldest first.
        """
        if user_id is not None:
            return list(self._load(user_id).pending_alerts)
        
        alerts: List[LoginEvent] = []
        for key in self.store.keys(self.NAMESPACE):
            alerts.extend(self._load(key).pending_alerts)
        return sorted(alerts, key=lambda e: e.timestamp)
    
    def dismiss_alert(self, alert_id: str, user_id: Optional[str] = None) -> bool:
        """Remove one pending alert by its event id.
        
        Without a user_id every user's queue is searched.
        
        Returns:
            True if an alert was removed
        """
        user_ids = [user_id] if user_id is not None else self.store.keys(self.NAMESPACE)
        for uid in user_ids:
            with self.store.lock(self.NAMESPACE, uid):
                if self.store.get(self.NAMESPACE, uid) is None:
                    continue
                record = self._load(uid)
                remaining = [e for e in record.pending_alerts if e.id != alert_id]
                if len(remaining) != len(record.pending_alerts):
                    record.pending_alerts = remaining
                    self._save(uid, record)
                    logger.info(f"Dismissed alert {alert_id} for {uid}")
                    return True
        return False
    
    def dismiss_all_alerts(self, user_id: str) -> int:
        """Clear the user's pending alert queue. Returns how many were removed."""
        with self.store.lock(self.NAMESPACE, user_id):
            if self.store.get(self.NAMESPACE, user_id) is None:
                return 0
            record = self._load(user_id)
            removed = len(record.pending_alerts)
            if removed:
                record.pending_alerts = []
                self._save(user_id, record)
        if removed:
            logger.info(f"Dismissed {removed} alerts for {user_id}")
        return removed
    
    # ===== TRUST =====
    
    def trust_device(self, user_id: str, device: DeviceInput) -> str:
        """Add a device to the user's known set without a login.
        
        Returns:
            The trusted fingerprint
        """
        fingerprint = fingerprint_for(device)
        with self.store.lock(self.NAMESPACE, user_id):
            record = self._load(user_id)
            if fingerprint not in record.known_devices:
                record.known_devices.append(fingerprint)
                self._save(user_id, record)
                logger.info(f"Trusted new device for {user_id}: {describe_device(device)}")
        return fingerprint
    
    def get_known_devices(self, user_id: str) -> List[str]:
        return list(self._load(user_id).known_devices)
    
    def get_known_locations(self, user_id: str) -> List[str]:
        return list(self._load(user_id).known_locations)
