"""Clock helpers.

Every component takes an optional ``clock`` callable so that expiry and
backoff can be evaluated against an injected "now" in tests.
"""

from datetime import datetime, timezone
from typing import Callable


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds between two timestamps (negative if end < start)."""
    delta = end - start
    return (delta.days * 86_400_000) + (delta.seconds * 1000) + (delta.microseconds // 1000)
