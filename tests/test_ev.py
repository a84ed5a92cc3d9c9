"""
Unit tests for all-in EV reconciliation.

Tests expected value, realized value with run-outs and summary statistics.
"""

import logging
from datetime import datetime

import pytest

from session_timeline.core.ev import (
    EMPTY_SUMMARY,
    expected_value,
    is_win,
    luck_of,
    parse_equity,
    realized_value,
    summarize_all_ins,
)
from session_timeline.storage.models import AllInRecord


class TestAllInValues:
    """Test per-record value calculations."""

    def create_all_in(
        self,
        pot: int = 1000,
        equity: str = "50",
        won: bool = True,
        run_it_times: int = None,
        wins_in_runout: int = None,
    ) -> AllInRecord:
        """Create an all-in record for testing."""
        return AllInRecord(
            id="allin-1",
            session_id="session-1",
            pot_amount=pot,
            win_probability=equity,
            actual_result=won,
            recorded_at=datetime(2025, 1, 10, 20, 0),
            run_it_times=run_it_times,
            wins_in_runout=wins_in_runout,
        )

    def test_parse_equity(self):
        """Test equity strings parse to percentages."""
        assert parse_equity("62.50") == 62.5
        assert parse_equity("0") == 0.0
        assert parse_equity("100.00") == 100.0

    def test_parse_equity_treats_garbage_as_zero(self):
        """Test non-numeric and non-finite equity never becomes NaN."""
        assert parse_equity("abc") == 0.0
        assert parse_equity("") == 0.0
        assert parse_equity(None) == 0.0
        assert parse_equity("nan") == 0.0
        assert parse_equity("inf") == 0.0

    def test_expected_value(self):
        """Test EV is pot times equity."""
        record = self.create_all_in(pot=2000, equity="30")
        assert expected_value(record) == pytest.approx(600)

    def test_realized_value_single_runout(self):
        """Test a single run-out wins all or nothing."""
        assert realized_value(self.create_all_in(pot=1000, won=True)) == 1000
        assert realized_value(self.create_all_in(pot=1000, won=False)) == 0

    def test_realized_value_run_it_twice(self):
        """Test a run-out splits the pot by boards won."""
        record = self.create_all_in(pot=500, won=False, run_it_times=2, wins_in_runout=1)
        assert realized_value(record) == pytest.approx(250)

    def test_run_it_once_uses_actual_result(self):
        """Test run_it_times of 1 never divides and falls back to the result."""
        record = self.create_all_in(pot=800, won=True, run_it_times=1, wins_in_runout=0)
        assert realized_value(record) == 800

    def test_run_it_times_without_wins_uses_actual_result(self):
        """Test a run-out missing its win count falls back to the result."""
        record = self.create_all_in(pot=800, won=False, run_it_times=3, wins_in_runout=None)
        assert realized_value(record) == 0
        assert not is_win(record)

    def test_wins_above_run_it_times_are_clamped(self, caplog):
        """Test an impossible win count is clamped and logged."""
        record = self.create_all_in(pot=1000, run_it_times=2, wins_in_runout=5)

        with caplog.at_level(logging.WARNING, logger="session_timeline.core.ev"):
            value = realized_value(record)

        assert value == 1000
        assert "clamping" in caplog.text

    def test_luck_is_realized_minus_expected(self):
        """Test luck of a lost 70% all-in is minus 70% of the pot."""
        record = self.create_all_in(pot=1000, equity="70", won=False)
        assert luck_of(record) == pytest.approx(-700)

    def test_runout_win_counts_any_board(self):
        """Test a run-out is a win when at least one board was won."""
        assert is_win(self.create_all_in(won=False, run_it_times=2, wins_in_runout=1))
        assert not is_win(self.create_all_in(won=True, run_it_times=2, wins_in_runout=0))


class TestAllInSummary:
    """Test aggregate EV statistics."""

    def create_all_in(self, id: str, pot: int, equity: str, won: bool = False, **runout) -> AllInRecord:
        return AllInRecord(
            id=id,
            session_id="session-1",
            pot_amount=pot,
            win_probability=equity,
            actual_result=won,
            recorded_at=datetime(2025, 1, 10, 20, 0),
            **runout,
        )

    def test_empty_records_give_zero_summary(self):
        """Test no records yields the all-zero summary, not an error."""
        summary = summarize_all_ins([])

        assert summary == EMPTY_SUMMARY
        assert summary.count == 0
        assert summary.ev_difference == 0

    def test_mixed_records_scenario(self):
        """Test a win, a loss and a split run-out reconcile as expected."""
        records = [
            self.create_all_in("a", 1000, "60", won=True),
            self.create_all_in("b", 2000, "30", won=False),
            self.create_all_in("c", 500, "50", run_it_times=2, wins_in_runout=1),
        ]

        summary = summarize_all_ins(records)

        assert summary.count == 3
        assert summary.total_pot_amount == 3500
        assert summary.all_in_ev == pytest.approx(1450)
        assert summary.actual_result_total == pytest.approx(1250)
        assert summary.ev_difference == pytest.approx(-200)
        assert summary.win_count == 2
        assert summary.loss_count == 1

    def test_average_win_rate_is_unweighted(self):
        """Test the average equity ignores pot size."""
        records = [
            self.create_all_in("a", 100, "80"),
            self.create_all_in("b", 10000, "20"),
        ]

        assert summarize_all_ins(records).average_win_rate == pytest.approx(50)

    def test_all_wins_realize_total_pot(self):
        """Test every won single run-out realizes the whole pot."""
        records = [
            self.create_all_in("a", 1000, "80", won=True),
            self.create_all_in("b", 3000, "45.5", won=True),
            self.create_all_in("c", 700, "12", won=True),
        ]

        summary = summarize_all_ins(records)

        assert summary.actual_result_total == summary.total_pot_amount
        assert summary.ev_difference == pytest.approx(summary.actual_result_total - summary.all_in_ev)
        assert summary.loss_count == 0

    def test_garbage_equity_counts_as_zero(self):
        """Test an unparsable equity string does not poison the sums."""
        records = [
            self.create_all_in("a", 1000, "not-a-number", won=True),
            self.create_all_in("b", 1000, "50", won=False),
        ]

        summary = summarize_all_ins(records)

        assert summary.all_in_ev == pytest.approx(500)
        assert summary.average_win_rate == pytest.approx(25)
        assert summary.ev_difference == pytest.approx(500)

    def test_accepts_any_iterable(self):
        """Test a generator of records is summarized like a list."""
        summary = summarize_all_ins(
            self.create_all_in(str(i), 100, "50", won=True) for i in range(4)
        )

        assert summary.count == 4
        assert summary.win_count == 4
