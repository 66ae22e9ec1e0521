"""
Clock capability.

WHAT: Injectable source of "now"
WHY: Handlers read the current time for archivedAt stamps and staleness cutoffs
HOW: A zero-argument callable returning a timezone-aware UTC datetime
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


def fixed_clock(moment: datetime) -> Clock:
    """Clock that always returns ``moment``."""
    def _now() -> datetime:
        return moment
    return _now
