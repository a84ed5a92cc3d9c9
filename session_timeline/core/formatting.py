"""
Display text for timeline items and session figures.

Labels, short descriptions and number formats shared by every front end.
"""

from datetime import datetime
from typing import Optional

from session_timeline.storage.models import AllInRecord, SessionEvent
from session_timeline.storage.payloads import EventType
from .ev import parse_equity, uses_runout
from .timeutil import elapsed_ms

EVENT_LABELS = {
    EventType.SESSION_START: "Session start",
    EventType.SESSION_RESUME: "Resume",
    EventType.SESSION_PAUSE: "Pause",
    EventType.SESSION_END: "Session end",
    EventType.PLAYER_SEATED: "Player seated",
    EventType.HAND_RECORDED: "Hand recorded",
    EventType.HANDS_PASSED: "Hands passed",
    EventType.HAND_COMPLETE: "Hand complete",
    EventType.STACK_UPDATE: "Stack update",
    EventType.REBUY: "Rebuy",
    EventType.ADDON: "Add-on",
    EventType.ALL_IN: "All-in",
}

EVENT_COLORS = {
    EventType.SESSION_START: "green",
    EventType.SESSION_RESUME: "green",
    EventType.SESSION_PAUSE: "grey50",
    EventType.SESSION_END: "red",
    EventType.PLAYER_SEATED: "cyan",
    EventType.STACK_UPDATE: "blue",
    EventType.REBUY: "dark_orange",
    EventType.ADDON: "dark_cyan",
    EventType.ALL_IN: "magenta",
}


def event_label(event: SessionEvent) -> str:
    """Human-readable label; unknown types show their raw name."""
    return EVENT_LABELS.get(event.kind, event.event_type)


def event_color(event: SessionEvent) -> str:
    return EVENT_COLORS.get(event.kind, "grey50")


def event_description(event: SessionEvent) -> Optional[str]:
    """Short detail text for an event, or None when there is nothing to add."""
    payload = event.payload
    if event.kind == EventType.SESSION_END:
        return f"Cash-out: {payload.cash_out:,}" if payload.cash_out else None
    if event.kind == EventType.PLAYER_SEATED:
        if not payload.player_name:
            return None
        seat = payload.seat_number if payload.seat_number is not None else "?"
        return f"{payload.player_name} (seat {seat})"
    if event.kind in (EventType.STACK_UPDATE, EventType.ALL_IN):
        return f"Stack: {payload.amount:,}" if payload.amount else None
    if event.kind in (EventType.REBUY, EventType.ADDON):
        return f"+{payload.amount:,}" if payload.amount else None
    if event.kind == EventType.HANDS_PASSED:
        return f"{payload.count} hands" if payload.count else None
    return None


def all_in_description(all_in: AllInRecord) -> str:
    """One-line all-in summary, e.g. '12,000 / 65.0% -> Win' or '... -> 1/2'."""
    if uses_runout(all_in):
        if all_in.wins_in_runout >= all_in.run_it_times:
            result = "Win"
        elif all_in.wins_in_runout <= 0:
            result = "Loss"
        else:
            result = f"{all_in.wins_in_runout}/{all_in.run_it_times}"
    else:
        result = "Win" if all_in.actual_result else "Loss"

    return f"{all_in.pot_amount:,} / {parse_equity(all_in.win_probability):.1f}% -> {result}"


def format_timeline_time(when: datetime, time_format: str = "%H:%M") -> str:
    return when.strftime(time_format)


def format_elapsed_minutes(minutes: int) -> str:
    """Format minutes as '45m', '2h' or '1h30m'."""
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    return f"{hours}h{mins}m" if mins > 0 else f"{hours}h"


def format_profit_loss(amount: Optional[float]) -> str:
    """Format a profit or loss with an explicit sign; None becomes '-'."""
    if amount is None:
        return "-"
    formatted = f"{abs(amount):,.0f}"
    if formatted == "0":
        return formatted
    return f"+{formatted}" if amount > 0 else f"-{formatted}"


def profit_loss_color(amount: Optional[float]) -> str:
    if amount is None or amount == 0:
        return "dim"
    return "green" if amount > 0 else "red"


def format_ev(value: float) -> str:
    """Format an EV amount without a sign, rounded to a whole unit."""
    return f"{value:,.0f}"


def format_session_duration(start_time: datetime, end_time: Optional[datetime]) -> str:
    """Format a session span, e.g. '2.0h (22:30-00:30)' or '(22:30-)' while open."""
    start_str = format_timeline_time(start_time)
    if end_time is None:
        return f"({start_str}-)"
    hours = elapsed_ms(start_time, end_time) / 3_600_000
    return f"{hours:.1f}h ({start_str}-{format_timeline_time(end_time)})"
