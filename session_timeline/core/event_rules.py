"""
Edit and delete rules for session events.

The data layer enforces these before mutating the log. The profit series
depends on them: a rebuy/addon amount edit must move the session's running
buy-in by the same delta, or the reconstructed buy-in steps drift from the
stored total.
"""

from datetime import datetime
from typing import List, Sequence

from session_timeline.storage.models import SessionEvent
from session_timeline.storage.payloads import EventType
from .timeutil import in_sequence_order

AMOUNT_EDITABLE_EVENTS = frozenset({EventType.STACK_UPDATE, EventType.REBUY, EventType.ADDON})
NON_EDITABLE_TIME_EVENTS = frozenset({EventType.SESSION_START, EventType.SESSION_END})
NON_DELETABLE_EVENTS = frozenset({EventType.SESSION_START, EventType.SESSION_END})

BUY_IN_EVENTS = frozenset({EventType.REBUY, EventType.ADDON})


class EventEditError(ValueError):
    """Raised when a requested event edit breaks an edit rule."""


def can_edit_amount(event: SessionEvent) -> bool:
    return event.kind in AMOUNT_EDITABLE_EVENTS


def can_edit_time(event: SessionEvent) -> bool:
    return event.kind not in NON_EDITABLE_TIME_EVENTS


def can_delete(event: SessionEvent) -> bool:
    return event.kind not in NON_DELETABLE_EVENTS


def buy_in_delta_for_amount_edit(event: SessionEvent, new_amount: int) -> int:
    """Change to apply to the session buy-in when an event's amount is edited.

    Raises:
        EventEditError: If the event's amount is not editable
    """
    if not can_edit_amount(event):
        raise EventEditError(f"Amount of {event.event_type} events cannot be edited")
    if event.kind not in BUY_IN_EVENTS:
        return 0
    return new_amount - (event.payload.amount or 0)


def buy_in_delta_for_delete(event: SessionEvent) -> int:
    """Change to apply to the session buy-in when an event is deleted."""
    if event.kind not in BUY_IN_EVENTS:
        return 0
    return -(event.payload.amount or 0)


def paired_break_events(events: Sequence[SessionEvent], event: SessionEvent) -> List[str]:
    """Ids of the events removed together when `event` is deleted.

    Deleting a pause also deletes the next resume, and deleting a resume the
    previous pause, as long as no event of the same type sits between them.

    Raises:
        EventEditError: If the event may not be deleted
    """
    if not can_delete(event):
        raise EventEditError(f"{event.event_type} events cannot be deleted")

    ids = [event.id]
    ordered = in_sequence_order(events)

    if event.kind == EventType.SESSION_PAUSE:
        later = [e for e in ordered if e.sequence > event.sequence]
        for candidate in later:
            if candidate.kind == EventType.SESSION_PAUSE:
                break
            if candidate.kind == EventType.SESSION_RESUME:
                ids.append(candidate.id)
                break
    elif event.kind == EventType.SESSION_RESUME:
        earlier = [e for e in ordered if e.sequence < event.sequence]
        for candidate in reversed(earlier):
            if candidate.kind == EventType.SESSION_RESUME:
                break
            if candidate.kind == EventType.SESSION_PAUSE:
                ids.append(candidate.id)
                break

    return ids


def check_time_edit(
    events: Sequence[SessionEvent],
    event: SessionEvent,
    new_time: datetime,
    now: datetime,
) -> None:
    """Validate moving an event to `new_time`.

    The new time must lie strictly between the neighbouring events in
    sequence order and must not be in the future.

    Raises:
        EventEditError: If the edit is not allowed
    """
    if not can_edit_time(event):
        raise EventEditError(f"Time of {event.event_type} events cannot be edited")

    ordered = in_sequence_order(events)
    index = next((i for i, e in enumerate(ordered) if e.id == event.id), None)
    if index is None:
        raise EventEditError(f"Event {event.id} is not part of the session log")

    if index > 0 and new_time <= ordered[index - 1].recorded_at:
        raise EventEditError("New time must be after the previous event")
    if index < len(ordered) - 1 and new_time >= ordered[index + 1].recorded_at:
        raise EventEditError("New time must be before the next event")
    if new_time > now:
        raise EventEditError("New time cannot be in the future")
