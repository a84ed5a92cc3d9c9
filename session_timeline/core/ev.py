"""
Expected value reconciliation for all-in records.

Compares what each all-in was expected to win, given the holder's equity,
against what it actually won. The difference is the luck component of a
session's result.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List

from session_timeline.storage.models import AllInRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllInSummary:
    """Aggregate EV statistics over a set of all-in records.

    `ev_difference` is positive when the session ran above expectation
    (lucky) and negative when it ran below (unlucky).
    """
    count: int
    total_pot_amount: int
    average_win_rate: float
    all_in_ev: float
    actual_result_total: float
    ev_difference: float
    win_count: int
    loss_count: int


EMPTY_SUMMARY = AllInSummary(
    count=0,
    total_pot_amount=0,
    average_win_rate=0.0,
    all_in_ev=0.0,
    actual_result_total=0.0,
    ev_difference=0.0,
    win_count=0,
    loss_count=0,
)


def parse_equity(win_probability) -> float:
    """Parse a stored equity string into a percentage.

    Non-numeric and non-finite content is treated as 0% equity so that it
    never propagates NaN into sums.
    """
    try:
        value = float(win_probability)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def uses_runout(record: AllInRecord) -> bool:
    """Whether the record's outcome is split across several run-outs."""
    return (
        record.run_it_times is not None
        and record.run_it_times > 1
        and record.wins_in_runout is not None
    )


def expected_value(record: AllInRecord) -> float:
    """Probability-weighted share of the pot: pot * equity."""
    return record.pot_amount * (parse_equity(record.win_probability) / 100)


def realized_value(record: AllInRecord) -> float:
    """Share of the pot actually won.

    Run-outs win `pot * wins / run_it_times`; a single run-out wins the whole
    pot or nothing.
    """
    if uses_runout(record):
        return record.pot_amount * (_clamped_wins(record) / record.run_it_times)
    return record.pot_amount if record.actual_result else 0


def luck_of(record: AllInRecord) -> float:
    """Realized minus expected value for one record."""
    return realized_value(record) - expected_value(record)


def is_win(record: AllInRecord) -> bool:
    """A run-out counts as a win if any of its boards was won."""
    if uses_runout(record):
        return _clamped_wins(record) > 0
    return bool(record.actual_result)


def summarize_all_ins(records: Iterable[AllInRecord]) -> AllInSummary:
    """Calculate all-in summary statistics for a session.

    `average_win_rate` is the plain mean of the equities, not weighted by
    pot size.

    Args:
        records: All-in records of one session, any order

    Returns:
        AllInSummary; the all-zero summary when there are no records
    """
    records = list(records)
    if not records:
        return EMPTY_SUMMARY

    count = len(records)
    total_pot_amount = sum(r.pot_amount for r in records)

    win_rates: List[float] = [parse_equity(r.win_probability) for r in records]
    average_win_rate = sum(win_rates) / count

    all_in_ev = sum(expected_value(r) for r in records)
    actual_result_total = sum(realized_value(r) for r in records)

    win_count = sum(1 for r in records if is_win(r))

    return AllInSummary(
        count=count,
        total_pot_amount=total_pot_amount,
        average_win_rate=average_win_rate,
        all_in_ev=all_in_ev,
        actual_result_total=actual_result_total,
        ev_difference=actual_result_total - all_in_ev,
        win_count=win_count,
        loss_count=count - win_count,
    )


def _clamped_wins(record: AllInRecord) -> int:
    wins = record.wins_in_runout
    if wins < 0 or wins > record.run_it_times:
        logger.warning(
            f"All-in {record.id}: wins_in_runout={wins} outside 0..{record.run_it_times}; clamping"
        )
        return min(max(wins, 0), record.run_it_times)
    return wins
