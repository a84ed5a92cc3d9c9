"""
Timeline grouping for session events.

Turns the raw event log and all-in records of one session into a single
newest-first list of display items:

1. Consecutive hand_complete / hands_passed events collapse into one
   HandsBlock with a summed hand count
2. A pause and the nearest later unclaimed resume become one BreakItem
3. A pause with no later resume becomes an OngoingBreak
4. Every other event, including unknown types, is an EventItem
5. Every all-in record is an AllInItem

Pause/resume pairing is greedy: each pause claims the nearest later resume
that no earlier pause has claimed. Logs with several pauses before any
resume therefore pair first-pause-with-first-resume, which may not be what
the player meant.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Set, Tuple, Union

from session_timeline.storage.models import AllInRecord, SessionEvent
from session_timeline.storage.payloads import EventType
from .timeutil import elapsed_ms, in_sequence_order, round_minutes

logger = logging.getLogger(__name__)

HAND_EVENT_TYPES = frozenset({EventType.HAND_COMPLETE, EventType.HANDS_PASSED})


class TimelineKind(Enum):
    """Discriminator for timeline item variants."""
    EVENT = "event"
    ALL_IN = "all_in"
    HANDS = "hands"
    BREAK = "break"
    ONGOING_BREAK = "ongoing_break"


@dataclass(frozen=True)
class EventItem:
    """A single raw event shown as-is."""
    event: SessionEvent
    kind: TimelineKind = TimelineKind.EVENT


@dataclass(frozen=True)
class AllInItem:
    all_in: AllInRecord
    kind: TimelineKind = TimelineKind.ALL_IN


@dataclass(frozen=True)
class HandsBlock:
    """A run of consecutive hand events collapsed into one item."""
    count: int
    start_time: datetime
    end_time: datetime
    events: Tuple[SessionEvent, ...] = ()
    kind: TimelineKind = TimelineKind.HANDS


@dataclass(frozen=True)
class BreakItem:
    """A pause paired with the resume that ended it."""
    pause_event: SessionEvent
    resume_event: SessionEvent
    duration_minutes: int
    kind: TimelineKind = TimelineKind.BREAK


@dataclass(frozen=True)
class OngoingBreak:
    """A pause that no later resume ended."""
    pause_event: SessionEvent
    kind: TimelineKind = TimelineKind.ONGOING_BREAK


TimelineItem = Union[EventItem, AllInItem, HandsBlock, BreakItem, OngoingBreak]


def item_time(item: TimelineItem) -> datetime:
    """Representative timestamp of a timeline item, used for ordering."""
    if isinstance(item, EventItem):
        return item.event.recorded_at
    if isinstance(item, AllInItem):
        return item.all_in.recorded_at
    if isinstance(item, HandsBlock):
        return item.end_time
    if isinstance(item, BreakItem):
        return item.resume_event.recorded_at
    if isinstance(item, OngoingBreak):
        return item.pause_event.recorded_at
    raise TypeError(f"Not a timeline item: {item!r}")


def item_events(item: TimelineItem) -> Tuple[SessionEvent, ...]:
    """Raw events represented by a timeline item (empty for all-ins)."""
    if isinstance(item, EventItem):
        return (item.event,)
    if isinstance(item, HandsBlock):
        return item.events
    if isinstance(item, BreakItem):
        return (item.pause_event, item.resume_event)
    if isinstance(item, OngoingBreak):
        return (item.pause_event,)
    return ()


def group_timeline_items(
    events: Iterable[SessionEvent],
    all_ins: Iterable[AllInRecord],
) -> List[TimelineItem]:
    """Group session events and all-in records into timeline items.

    Args:
        events: Raw session events, any order (scanned by sequence)
        all_ins: All-in records of the same session

    Returns:
        Timeline items sorted newest first; empty when there is nothing
        to show
    """
    ordered = in_sequence_order(events)
    items: List[TimelineItem] = []
    claimed_resumes: Set[int] = set()

    i = 0
    while i < len(ordered):
        event = ordered[i]

        if event.kind in HAND_EVENT_TYPES:
            block, i = _collect_hands(ordered, i)
            items.extend(block)
            continue

        if event.kind == EventType.SESSION_PAUSE:
            resume_index = _find_resume(ordered, i, claimed_resumes)
            if resume_index is None:
                items.append(OngoingBreak(pause_event=event))
            else:
                claimed_resumes.add(resume_index)
                resume = ordered[resume_index]
                items.append(BreakItem(
                    pause_event=event,
                    resume_event=resume,
                    duration_minutes=round_minutes(elapsed_ms(event.recorded_at, resume.recorded_at)),
                ))
            i += 1
            continue

        if event.kind == EventType.SESSION_RESUME and i in claimed_resumes:
            i += 1
            continue

        # Orphaned resumes, unknown types and everything else
        items.append(EventItem(event=event))
        i += 1

    for all_in in all_ins:
        items.append(AllInItem(all_in=all_in))

    # Stable ascending sort, then reverse for newest first
    items.sort(key=item_time)
    items.reverse()
    return items


def _collect_hands(events: List[SessionEvent], start: int) -> Tuple[List[TimelineItem], int]:
    """Consume a run of hand events starting at `start`.

    Returns the items for the run and the index after it. A run that adds
    up to zero hands is returned as plain events so nothing is dropped.
    """
    count = 0
    run: List[SessionEvent] = []
    i = start
    while i < len(events) and events[i].kind in HAND_EVENT_TYPES:
        current = events[i]
        if current.kind == EventType.HAND_COMPLETE:
            count += 1
        else:
            count += current.payload.count or 0
        run.append(current)
        i += 1

    if count <= 0:
        logger.debug(f"Hand run of {len(run)} events counts no hands; showing events individually")
        return [EventItem(event=e) for e in run], i

    block = HandsBlock(
        count=count,
        start_time=run[0].recorded_at,
        end_time=run[-1].recorded_at,
        events=tuple(run),
    )
    return [block], i


def _find_resume(events: List[SessionEvent], pause_index: int, claimed: Set[int]):
    for j in range(pause_index + 1, len(events)):
        if events[j].kind == EventType.SESSION_RESUME and j not in claimed:
            return j
    return None
