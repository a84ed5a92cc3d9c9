"""
Tests for the CLI interface.
"""
import os

import pytest
import yaml
from typer.testing import CliRunner

from session_timeline.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL

runner = CliRunner()


@pytest.fixture
def sample_snapshot(tmp_path):
    """Write the demo session to a temporary snapshot file."""
    path = str(tmp_path / "session.yaml")
    result = runner.invoke(app, ["demo", path])
    assert result.exit_code == EXIT_CODE_PASS
    return path


@pytest.fixture
def live_snapshot(tmp_path):
    """A running session that is currently on a break."""
    data = {
        "session": {"id": "live-1", "buy_in": 1000, "start_time": "2025-01-10T19:00:00"},
        "events": [
            {"id": "e1", "event_type": "session_start", "sequence": 1, "recorded_at": "2025-01-10T19:00:00"},
            {"id": "e2", "event_type": "stack_update", "event_data": {"amount": 1800},
             "sequence": 2, "recorded_at": "2025-01-10T19:30:00"},
            {"id": "e3", "event_type": "session_pause", "sequence": 3, "recorded_at": "2025-01-10T19:40:00"},
        ],
    }
    path = tmp_path / "live.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_demo_writes_snapshot(self, tmp_path):
        path = str(tmp_path / "demo.yaml")

        result = runner.invoke(app, ["demo", path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Sample session written to" in result.output
        assert os.path.exists(path)

    def test_timeline_command(self, sample_snapshot):
        """Test the grouped timeline shows blocks, breaks and all-ins."""
        result = runner.invoke(app, ["timeline", sample_snapshot])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Session Timeline" in result.output
        assert "10 hands" in result.output
        assert "25 hands" in result.output
        assert "15 min" in result.output
        assert "16,000 / 62.0% -> 1/2" in result.output
        assert "Villain (seat 4)" in result.output
        assert "Cash-out: 23,500" in result.output

    def test_timeline_newest_first(self, sample_snapshot):
        result = runner.invoke(app, ["timeline", sample_snapshot])

        assert result.output.index("Cash-out") < result.output.index("Session start")

    def test_timeline_without_events(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text(
            "session:\n  id: s\n  buy_in: 100\n  start_time: '2025-01-10T19:00:00'\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["timeline", str(path)])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No events" in result.output

    def test_ev_command(self, sample_snapshot):
        """Test the EV summary of the demo session."""
        result = runner.invoke(app, ["ev", sample_snapshot])

        assert result.exit_code == EXIT_CODE_PASS
        assert "All-in EV Summary" in result.output
        assert "All-ins: 2 (1 won, 1 lost)" in result.output
        assert "Total pot: 36,000" in result.output
        assert "Expected value: 17,020" in result.output
        assert "Actual result: 8,000" in result.output
        assert "EV difference: -9,020" in result.output
        assert "Profit: +3,500" in result.output
        assert "EV-adjusted profit: +12,520" in result.output

    def test_ev_without_all_ins(self, live_snapshot):
        result = runner.invoke(app, ["ev", live_snapshot])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No all-in records." in result.output

    def test_chart_command(self, sample_snapshot):
        """Test the profit series of the demo session."""
        result = runner.invoke(app, ["chart", sample_snapshot])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Session Profit" in result.output
        assert "-6,000" in result.output
        assert "+10,020" in result.output
        assert "2h15m" in result.output
        assert "+12,520" in result.output
        assert "Y-axis: -6,740 to 13,260" in result.output

    def test_chart_by_hands(self, sample_snapshot):
        result = runner.invoke(app, ["chart", sample_snapshot, "--hands"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Hands" in result.output
        assert "35" in result.output

    def test_chart_insufficient_data(self, tmp_path):
        path = tmp_path / "bare.yaml"
        path.write_text(
            "session:\n  id: s\n  buy_in: 100\n  start_time: '2025-01-10T19:00:00'\n"
            "  end_time: '2025-01-10T20:00:00'\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["chart", str(path)])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Insufficient stack data" in result.output

    def test_live_command_on_ended_session(self, sample_snapshot):
        """Test live state defaults to the session end time."""
        result = runner.invoke(app, ["live", sample_snapshot])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Current stack: 21,000" in result.output
        assert "Active time: 2h15m" in result.output
        assert "Hands: 35" in result.output
        assert "Last hand: 19:12 (CO)" in result.output
        assert "Paused" not in result.output

    def test_live_command_while_paused(self, live_snapshot):
        result = runner.invoke(app, ["live", live_snapshot, "--now", "2025-01-10T20:00:00"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Current stack: 1,800" in result.output
        assert "Active time: 40m" in result.output
        assert "Paused" in result.output

    def test_live_command_rejects_bad_time(self, live_snapshot):
        result = runner.invoke(app, ["live", live_snapshot, "--now", "soon"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "ISO-8601" in result.output

    def test_missing_snapshot_fails(self, tmp_path):
        result = runner.invoke(app, ["timeline", str(tmp_path / "missing.yaml")])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Snapshot file not found" in result.output

    def test_invalid_snapshot_fails(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("events: []\n", encoding="utf-8")

        result = runner.invoke(app, ["ev", str(path)])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "session" in result.output

    def test_bad_config_fails(self, tmp_path, sample_snapshot):
        config = tmp_path / "config.yaml"
        config.write_text("charts:\n  min_samples: 2\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config), "ev", sample_snapshot])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error loading config" in result.output

    def test_config_time_format_applies(self, tmp_path, sample_snapshot):
        config = tmp_path / "config.yaml"
        config.write_text("timeline:\n  time_format: '%H.%M'\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config), "timeline", sample_snapshot])

        assert result.exit_code == EXIT_CODE_PASS
        assert "21.30" in result.output

    def test_config_time_format_applies_to_last_hand(self, tmp_path, sample_snapshot):
        config = tmp_path / "config.yaml"
        config.write_text("timeline:\n  time_format: '%H.%M'\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config), "live", sample_snapshot])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Last hand: 19.12 (CO)" in result.output
