"""Login Risk Analyzer."""

from authshield.controls.risk.analyzer import LoginRiskAnalyzer
from authshield.controls.risk.rules import evaluate_alerts, is_unusual_hour
from authshield.controls.risk.schema import UserLoginRecord

__all__ = ["LoginRiskAnalyzer", "UserLoginRecord", "evaluate_alerts", "is_unusual_hour"]
