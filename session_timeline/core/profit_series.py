"""
Profit time series for session charts.

Reconstructs, from the immutable event log, a chronological series of
(active elapsed minutes, nominal profit, luck-adjusted profit) samples.

Key rules:
1. Time zero is the session_start event; without it there is no series
2. Paused intervals are excluded from elapsed time
3. Buy-in is a step function of time: rebuys and addons only count from
   the moment they were recorded
4. Luck is the cumulative realized-minus-expected value of all-ins recorded
   up to the sample time; adjusted profit removes it
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from session_timeline.storage.models import AllInRecord, SessionEvent
from session_timeline.storage.payloads import EventType
from .ev import luck_of
from .timeutil import elapsed_ms, in_sequence_order, round_minutes

logger = logging.getLogger(__name__)

BUY_IN_EVENT_TYPES = frozenset({EventType.REBUY, EventType.ADDON})


@dataclass(frozen=True)
class ProfitSample:
    """One chart point.

    `hand_count` supports a hands-based x-axis and `stack` the tournament
    variant, which charts the absolute stack instead of profit.
    """
    elapsed_minutes: int
    profit: float
    adjusted_profit: float
    hand_count: int = 0
    stack: int = 0


@dataclass(frozen=True)
class BuyInSchedule:
    """Buy-in in effect at any point in time.

    The session's stored buy-in already includes every rebuy and addon, so
    the initial buy-in is recovered by subtracting them.
    """
    initial_buy_in: int
    steps: Tuple[Tuple[datetime, int], ...] = ()

    @classmethod
    def from_events(cls, events: Iterable[SessionEvent], buy_in: int) -> "BuyInSchedule":
        steps = []
        for event in events:
            if event.kind in BUY_IN_EVENT_TYPES and event.payload.amount:
                steps.append((event.recorded_at, event.payload.amount))
        return cls(
            initial_buy_in=buy_in - sum(amount for _, amount in steps),
            steps=tuple(steps),
        )

    def at(self, when: datetime) -> int:
        """Total buy-in including every rebuy/addon recorded at or before `when`."""
        return self.initial_buy_in + sum(
            amount for recorded_at, amount in self.steps if recorded_at <= when
        )


def buy_in_at(events: Iterable[SessionEvent], buy_in: int, when: datetime) -> int:
    """Buy-in that was in effect at `when`."""
    return BuyInSchedule.from_events(events, buy_in).at(when)


def cumulative_luck(all_ins: Iterable[AllInRecord], up_to: datetime) -> float:
    """Sum of realized minus expected value for all-ins recorded up to `up_to`."""
    return sum(luck_of(a) for a in all_ins if a.recorded_at <= up_to)


def build_profit_series(
    events: Iterable[SessionEvent],
    all_ins: Iterable[AllInRecord],
    buy_in: int,
    cash_out: Optional[int] = None,
    end_time: Optional[datetime] = None,
    current_stack: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[ProfitSample]:
    """Build the chart series for one session.

    Args:
        events: Raw session events, any order (walked by sequence)
        all_ins: All-in records of the same session
        buy_in: Session buy-in total, including rebuys and addons
        cash_out: Cash-out amount once the session has ended
        end_time: Session end time once the session has ended
        current_stack: Live stack; with `now`, adds a point for the present
        now: Current time for the live point

    Returns:
        Samples in chronological order starting at (0, 0, 0), or an empty
        list when the log has no session_start event
    """
    ordered = in_sequence_order(events)
    start_event = next((e for e in ordered if e.kind == EventType.SESSION_START), None)
    if start_event is None:
        logger.debug("No session_start event; profit series is empty")
        return []

    start_time = start_event.recorded_at
    schedule = BuyInSchedule.from_events(ordered, buy_in)
    sorted_all_ins = sorted(all_ins, key=lambda a: a.recorded_at)

    first_stack = next(
        (e.payload.amount for e in ordered
         if e.kind == EventType.STACK_UPDATE and e.payload.amount is not None),
        None,
    )
    if first_stack is not None:
        initial_stack = first_stack
    elif current_stack is not None:
        initial_stack = current_stack
    else:
        initial_stack = buy_in

    samples = [ProfitSample(elapsed_minutes=0, profit=0, adjusted_profit=0, hand_count=0, stack=initial_stack)]

    paused_ms = 0
    last_pause: Optional[datetime] = None
    hand_count = 0

    for event in ordered:
        if event.kind == EventType.SESSION_PAUSE:
            last_pause = event.recorded_at
            continue
        if event.kind == EventType.SESSION_RESUME:
            if last_pause is not None:
                paused_ms += elapsed_ms(last_pause, event.recorded_at)
                last_pause = None
            continue
        if event.kind == EventType.HAND_COMPLETE:
            hand_count += 1
            continue
        if event.kind == EventType.HANDS_PASSED:
            hand_count += event.payload.count or 0
            continue
        if event.kind != EventType.STACK_UPDATE or event.payload.amount is None:
            continue

        when = event.recorded_at
        stack = event.payload.amount
        profit = stack - schedule.at(when)
        sample = ProfitSample(
            elapsed_minutes=round_minutes(elapsed_ms(start_time, when) - paused_ms),
            profit=profit,
            adjusted_profit=profit - cumulative_luck(sorted_all_ins, when),
            hand_count=hand_count,
            stack=stack,
        )
        # One point per minute: a later update in the same minute replaces it.
        # The origin sample is never replaced.
        if len(samples) > 1 and samples[-1].elapsed_minutes == sample.elapsed_minutes:
            samples[-1] = sample
        else:
            samples.append(sample)

    if current_stack is not None and now is not None:
        _append_final(
            samples, start_time, now, paused_ms, last_pause,
            profit=current_stack - buy_in,
            luck=cumulative_luck(sorted_all_ins, now),
            hand_count=hand_count,
            stack=current_stack,
        )
    elif end_time is not None and cash_out is not None:
        _append_final(
            samples, start_time, end_time, paused_ms, last_pause,
            profit=cash_out - buy_in,
            luck=cumulative_luck(sorted_all_ins, end_time),
            hand_count=hand_count,
            stack=cash_out,
        )

    return samples


def _append_final(
    samples: List[ProfitSample],
    start_time: datetime,
    until: datetime,
    paused_ms: int,
    last_pause: Optional[datetime],
    profit: float,
    luck: float,
    hand_count: int,
    stack: int,
) -> None:
    # A pause that was never resumed runs until the final point
    if last_pause is not None:
        paused_ms += elapsed_ms(last_pause, until)
    minutes = round_minutes(elapsed_ms(start_time, until) - paused_ms)
    if samples[-1].elapsed_minutes == minutes:
        return
    samples.append(ProfitSample(
        elapsed_minutes=minutes,
        profit=profit,
        adjusted_profit=profit - luck,
        hand_count=hand_count,
        stack=stack,
    ))


def has_chartable_data(samples: Sequence[ProfitSample], min_samples: int = 2) -> bool:
    """Whether there is enough stack data to draw a chart."""
    return len(samples) >= min_samples


def compute_y_domain(
    samples: Sequence[ProfitSample],
    variant: str = "cash",
    big_blind: Optional[int] = None,
    min_range_big_blinds: int = 100,
) -> Optional[Tuple[float, Optional[float]]]:
    """Y-axis bounds for a profit chart.

    Tournament charts start at zero with an open upper bound. Cash charts
    with a known big blind span at least `min_range_big_blinds` big blinds,
    padding the data range equally above and below.

    Returns:
        (low, high) bounds, high None meaning automatic; None to let the
        chart decide
    """
    if variant == "tournament":
        return (0, None)
    if not big_blind or not samples:
        return None

    values = [v for s in samples for v in (s.profit, s.adjusted_profit)]
    data_min, data_max = min(values), max(values)
    data_range = data_max - data_min
    min_range = min_range_big_blinds * big_blind

    if data_range >= min_range:
        return (data_min, data_max)

    buffer = (min_range - data_range) / 2
    return (data_min - buffer, data_max + buffer)
