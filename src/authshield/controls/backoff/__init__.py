"""Backoff/Lockout Controller."""

from authshield.controls.backoff.controller import BackoffController, format_wait
from authshield.controls.backoff.schema import AttemptDecision

__all__ = ["AttemptDecision", "BackoffController", "format_wait"]
