"""
Time arithmetic shared by the timeline and chart builders.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from session_timeline.storage.models import SessionEvent

MS_PER_MINUTE = 60_000


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Milliseconds from start to end (negative if end is earlier)."""
    delta = end - start
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def round_minutes(ms: float) -> int:
    """Convert milliseconds to whole minutes, rounding halves up."""
    minutes = Decimal(ms) / Decimal(MS_PER_MINUTE)
    return int(minutes.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def in_sequence_order(events: Iterable[SessionEvent]) -> List[SessionEvent]:
    """Sort events by sequence, breaking ties by recorded time."""
    return sorted(events, key=lambda e: (e.sequence, e.recorded_at))
