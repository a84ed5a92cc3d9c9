"""
Live session state derived from the event log.

Used while a session is still running to show the current stack, active
playing time and hand count without storing any of them.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from session_timeline.storage.models import SessionEvent
from session_timeline.storage.payloads import EventType
from .timeutil import MS_PER_MINUTE, elapsed_ms, in_sequence_order


@dataclass(frozen=True)
class LastHandInfo:
    recorded_at: datetime
    position: Optional[str] = None


@dataclass(frozen=True)
class LiveSessionState:
    """Snapshot of a running session at a given moment."""
    current_stack: int
    paused_ms: int
    is_paused: bool
    elapsed_minutes: int
    hand_count: int
    last_hand: Optional[LastHandInfo] = None


def compute_live_state(
    buy_in: int,
    start_time: datetime,
    events: Iterable[SessionEvent],
    now: datetime,
) -> LiveSessionState:
    """Derive the live state of a session.

    The stack starts at the buy-in, is replaced by each stack update and
    grows by each later rebuy or addon. A session whose last pause was never
    resumed is paused, and the time since that pause counts as paused.

    Args:
        buy_in: Session buy-in
        start_time: Session start time
        events: Raw session events, any order
        now: Moment to evaluate the state at

    Returns:
        LiveSessionState with elapsed minutes rounded down
    """
    current_stack = buy_in
    paused_ms = 0
    last_pause: Optional[datetime] = None
    hand_count = 0
    last_hand: Optional[LastHandInfo] = None

    for event in in_sequence_order(events):
        amount = getattr(event.payload, "amount", None)
        if event.kind == EventType.STACK_UPDATE and amount is not None:
            current_stack = amount
        elif event.kind in (EventType.REBUY, EventType.ADDON) and amount:
            current_stack += amount
        elif event.kind == EventType.SESSION_PAUSE:
            last_pause = event.recorded_at
        elif event.kind == EventType.SESSION_RESUME and last_pause is not None:
            paused_ms += elapsed_ms(last_pause, event.recorded_at)
            last_pause = None
        elif event.kind == EventType.HAND_COMPLETE:
            hand_count += 1
            last_hand = LastHandInfo(recorded_at=event.recorded_at, position=event.payload.position)
        elif event.kind == EventType.HANDS_PASSED:
            hand_count += event.payload.count or 0

    is_paused = last_pause is not None
    if is_paused:
        paused_ms += elapsed_ms(last_pause, now)

    active_ms = elapsed_ms(start_time, now) - paused_ms
    return LiveSessionState(
        current_stack=current_stack,
        paused_ms=paused_ms,
        is_paused=is_paused,
        elapsed_minutes=max(active_ms, 0) // MS_PER_MINUTE,
        hand_count=hand_count,
        last_hand=last_hand,
    )
