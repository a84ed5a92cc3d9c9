"""
Data models for storage layer.

Defines the session records handed to the engine by the data layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from .payloads import EventPayload, EventType, parse_payload, resolve_event_type


@dataclass(frozen=True)
class SessionEvent:
    """Immutable, append-only fact in a session's event log.

    `sequence` establishes processing order. `recorded_at` may be backdated,
    so it only orders events for display and breaks sequence ties.

    The typed `kind` and `payload` are resolved once from `event_type` and
    `event_data` when the event is built.
    """
    id: str
    session_id: str
    event_type: str
    sequence: int
    recorded_at: datetime
    event_data: Mapping[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    kind: Optional[EventType] = field(init=False, compare=False, repr=False)
    payload: EventPayload = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        kind = resolve_event_type(self.event_type)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "payload", parse_payload(kind, self.event_data))


@dataclass(frozen=True)
class AllInRecord:
    """One realized all-in gamble.

    `win_probability` is kept as the stored decimal string (0-100) and is
    parsed only when EV is calculated. `actual_result` is ignored when the
    pot was run out more than once.
    """
    id: str
    session_id: str
    pot_amount: int
    win_probability: str
    actual_result: bool
    recorded_at: datetime
    run_it_times: Optional[int] = None
    wins_in_runout: Optional[int] = None


@dataclass(frozen=True)
class PokerSession:
    """Session totals the engine reads but does not own.

    `buy_in` is the running total, already including every rebuy and addon.
    """
    id: str
    buy_in: int
    start_time: datetime
    cash_out: Optional[int] = None
    end_time: Optional[datetime] = None
    big_blind: Optional[int] = None
    variant: str = "cash"

    def __post_init__(self):
        if self.variant not in ("cash", "tournament"):
            raise ValueError("variant must be 'cash' or 'tournament'")


@dataclass(frozen=True)
class SessionSnapshot:
    """One session's data as fetched by the data layer."""
    session: PokerSession
    events: Tuple[SessionEvent, ...] = ()
    all_ins: Tuple[AllInRecord, ...] = ()
