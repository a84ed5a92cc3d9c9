"""
Event types and per-type event payloads.

Raw event payloads are loosely-typed mappings whose shape depends on the
event type. They are resolved once, when a SessionEvent is built, into one
of the small frozen payload types below.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Closed set of session event types."""
    SESSION_START = "session_start"
    SESSION_RESUME = "session_resume"
    SESSION_PAUSE = "session_pause"
    SESSION_END = "session_end"
    PLAYER_SEATED = "player_seated"
    HAND_RECORDED = "hand_recorded"
    HANDS_PASSED = "hands_passed"
    HAND_COMPLETE = "hand_complete"
    STACK_UPDATE = "stack_update"
    REBUY = "rebuy"
    ADDON = "addon"
    ALL_IN = "all_in"


@dataclass(frozen=True)
class EmptyPayload:
    """Payload for event types whose data the engine never reads."""


@dataclass(frozen=True)
class SessionEndPayload:
    cash_out: Optional[int] = None


@dataclass(frozen=True)
class PlayerSeatedPayload:
    player_name: Optional[str] = None
    seat_number: Optional[int] = None


@dataclass(frozen=True)
class AmountPayload:
    """Payload for stack_update, rebuy, addon and all_in events."""
    amount: Optional[int] = None


@dataclass(frozen=True)
class HandsPassedPayload:
    count: Optional[int] = None


@dataclass(frozen=True)
class HandCompletePayload:
    position: Optional[str] = None


EventPayload = Union[
    EmptyPayload,
    SessionEndPayload,
    PlayerSeatedPayload,
    AmountPayload,
    HandsPassedPayload,
    HandCompletePayload,
]

AMOUNT_EVENT_TYPES = frozenset({
    EventType.STACK_UPDATE,
    EventType.REBUY,
    EventType.ADDON,
    EventType.ALL_IN,
})


def resolve_event_type(raw: str) -> Optional[EventType]:
    """Map a raw event type string to EventType, or None if unknown."""
    try:
        return EventType(raw)
    except ValueError:
        logger.debug(f"Unknown event type {raw!r}; passing through without payload")
        return None


def parse_payload(kind: Optional[EventType], data: Optional[Mapping[str, Any]]) -> EventPayload:
    """Resolve a raw event payload into its typed form.

    Only the fields the engine reads are kept. Missing or mistyped fields
    become None rather than raising.

    Args:
        kind: Resolved event type (None for unknown types)
        data: Raw payload mapping, may be None

    Returns:
        The payload dataclass matching the event type
    """
    if not isinstance(data, Mapping):
        data = {}

    if kind == EventType.SESSION_END:
        return SessionEndPayload(cash_out=_as_int(data.get("cashOut")))
    if kind == EventType.PLAYER_SEATED:
        return PlayerSeatedPayload(
            player_name=_as_str(data.get("playerName")),
            seat_number=_as_int(data.get("seatNumber")),
        )
    if kind in AMOUNT_EVENT_TYPES:
        return AmountPayload(amount=_as_int(data.get("amount")))
    if kind == EventType.HANDS_PASSED:
        return HandsPassedPayload(count=_as_int(data.get("count")))
    if kind == EventType.HAND_COMPLETE:
        return HandCompletePayload(position=_as_str(data.get("position")))
    return EmptyPayload()


def _as_int(value: Any) -> Optional[int]:
    # bool is an int subclass; a True amount is not a number here
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None
