"""
CLI interface for Session Timeline.

Renders the timeline, EV summary, profit chart data and live state of a
session snapshot file.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from session_timeline.config.loader import DEFAULT_CONFIG, EngineConfig, load_engine_config
from session_timeline.core.ev import summarize_all_ins
from session_timeline.core.formatting import (
    all_in_description,
    event_color,
    event_description,
    event_label,
    format_elapsed_minutes,
    format_ev,
    format_profit_loss,
    format_session_duration,
    format_timeline_time,
    profit_loss_color,
)
from session_timeline.core.grouping import (
    AllInItem,
    BreakItem,
    EventItem,
    HandsBlock,
    OngoingBreak,
    TimelineItem,
    group_timeline_items,
)
from session_timeline.core.live_state import compute_live_state
from session_timeline.core.profit_series import (
    build_profit_series,
    compute_y_domain,
    has_chartable_data,
)
from session_timeline.demo.sample_session import build_sample_session
from session_timeline.storage.models import SessionSnapshot
from session_timeline.storage.repository import load_session_snapshot, save_session_snapshot

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

_state = {"config": DEFAULT_CONFIG}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _config() -> EngineConfig:
    return _state["config"]


def _load(path: str) -> SessionSnapshot:
    """Load a snapshot, exiting with an error message on failure."""
    try:
        return load_session_snapshot(path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML engine configuration file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    ),
):
    """Session Timeline CLI."""
    try:
        _state["config"] = load_engine_config(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    _configure_logging("debug" if verbose else _config().logging.level)

    if ctx.invoked_subcommand is None:
        console.print("Session Timeline - Use --help to see available commands")


@app.command()
def timeline(snapshot: str = typer.Argument(..., help="Session snapshot file (YAML or JSON)")):
    """Show the grouped session timeline, newest first."""
    data = _load(snapshot)
    items = group_timeline_items(data.events, data.all_ins)

    if not items:
        console.print("[dim]No events[/]")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title="Session Timeline")
    table.add_column("Time")
    table.add_column("Event")
    table.add_column("Detail")
    for item in items:
        table.add_row(*_timeline_row(item))
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


def _timeline_row(item: TimelineItem):
    time_format = _config().timeline.time_format

    def fmt(when: datetime) -> str:
        return format_timeline_time(when, time_format)

    if isinstance(item, HandsBlock):
        return fmt(item.end_time), "Hands", f"{item.count} hands"
    if isinstance(item, BreakItem):
        span = f"{fmt(item.pause_event.recorded_at)}-{fmt(item.resume_event.recorded_at)}"
        return span, "[grey50]Break[/]", f"{item.duration_minutes} min"
    if isinstance(item, OngoingBreak):
        return fmt(item.pause_event.recorded_at), "[grey50]On break[/]", ""
    if isinstance(item, AllInItem):
        return fmt(item.all_in.recorded_at), "[magenta]All-in[/]", all_in_description(item.all_in)
    if isinstance(item, EventItem):
        event = item.event
        color = event_color(event)
        label = escape(event_label(event))
        return fmt(event.recorded_at), f"[{color}]{label}[/]", escape(event_description(event) or "")
    raise TypeError(f"Not a timeline item: {item!r}")


@app.command()
def ev(snapshot: str = typer.Argument(..., help="Session snapshot file (YAML or JSON)")):
    """Show expected value against actual results for the session's all-ins."""
    data = _load(snapshot)
    summary = summarize_all_ins(data.all_ins)

    console.print("\n[bold]All-in EV Summary[/bold]")
    console.print("-" * 40)

    if summary.count == 0:
        console.print("\n[dim]No all-in records.[/]")
        sys.exit(EXIT_CODE_PASS)

    color = profit_loss_color(summary.ev_difference)
    console.print(f"All-ins: {summary.count} ({summary.win_count} won, {summary.loss_count} lost)")
    console.print(f"Total pot: {summary.total_pot_amount:,}")
    console.print(f"Average equity: {summary.average_win_rate:.1f}%")
    console.print(f"Expected value: {format_ev(summary.all_in_ev)}")
    console.print(f"Actual result: {format_ev(summary.actual_result_total)}")
    console.print(f"EV difference: [{color}]{format_profit_loss(summary.ev_difference)}[/]")

    session = data.session
    if session.cash_out is not None:
        profit = session.cash_out - session.buy_in
        adjusted = profit - summary.ev_difference
        console.print(f"Profit: {format_profit_loss(profit)}")
        console.print(
            f"EV-adjusted profit: [{profit_loss_color(adjusted)}]{format_profit_loss(adjusted)}[/]"
        )
    sys.exit(EXIT_CODE_PASS)


@app.command()
def chart(
    snapshot: str = typer.Argument(..., help="Session snapshot file (YAML or JSON)"),
    hands: bool = typer.Option(
        False,
        "--hands",
        help="Use hand count instead of elapsed time for the x-axis"
    ),
):
    """Show the profit series used to chart the session."""
    data = _load(snapshot)
    session = data.session
    config = _config().chart

    current_stack = None
    now = None
    if session.end_time is None:
        now = _utc_now()
        current_stack = compute_live_state(session.buy_in, session.start_time, data.events, now).current_stack

    samples = build_profit_series(
        data.events,
        data.all_ins,
        buy_in=session.buy_in,
        cash_out=session.cash_out,
        end_time=session.end_time,
        current_stack=current_stack,
        now=now,
    )

    if not has_chartable_data(samples, config.min_samples):
        console.print("[dim]Insufficient stack data to chart[/]")
        sys.exit(EXIT_CODE_PASS)

    tournament = session.variant == "tournament"
    table = Table(title="Session Profit")
    table.add_column("Hands" if hands else "Elapsed", justify="right")
    if tournament:
        table.add_column("Stack", justify="right")
    else:
        table.add_column("Profit", justify="right")
        table.add_column("All-in adjusted", justify="right")

    for sample in samples:
        x = str(sample.hand_count) if hands else format_elapsed_minutes(sample.elapsed_minutes)
        if tournament:
            table.add_row(x, f"{sample.stack:,}")
        else:
            table.add_row(x, format_profit_loss(sample.profit), format_profit_loss(sample.adjusted_profit))
    console.print(table)

    domain = compute_y_domain(samples, session.variant, session.big_blind, config.min_range_big_blinds)
    if domain is not None:
        low, high = domain
        console.print(f"Y-axis: {low:,.0f} to {'auto' if high is None else f'{high:,.0f}'}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def live(
    snapshot: str = typer.Argument(..., help="Session snapshot file (YAML or JSON)"),
    now: Optional[str] = typer.Option(
        None,
        "--now",
        help="Evaluate at this ISO-8601 time (defaults to the session end, or the current time)"
    ),
):
    """Show current stack, active time and hand count of a session."""
    data = _load(snapshot)
    session = data.session

    if now is not None:
        try:
            at = datetime.fromisoformat(now)
            if at.tzinfo is not None:
                at = at.astimezone(timezone.utc).replace(tzinfo=None)
        except ValueError:
            console.print(f"[red]Error:[/] --now is not an ISO-8601 timestamp: {escape(now)}")
            sys.exit(EXIT_CODE_FAIL)
    else:
        at = session.end_time or _utc_now()

    state = compute_live_state(session.buy_in, session.start_time, data.events, at)
    console.print(f"\n[bold]Session {escape(session.id)}[/bold] {format_session_duration(session.start_time, session.end_time)}")
    console.print(f"Current stack: {state.current_stack:,}")
    console.print(f"Active time: {format_elapsed_minutes(state.elapsed_minutes)}")
    console.print(f"Hands: {state.hand_count}")
    if state.is_paused:
        console.print("[yellow]Paused[/]")
    if state.last_hand is not None:
        position = f" ({escape(state.last_hand.position)})" if state.last_hand.position else ""
        console.print(f"Last hand: {format_timeline_time(state.last_hand.recorded_at, _config().timeline.time_format)}{position}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def demo(output: str = typer.Argument(..., help="Where to write the sample snapshot")):
    """Write a sample session snapshot to try the other commands on."""
    try:
        save_session_snapshot(build_sample_session(), output)
    except OSError as e:
        console.print(f"[red]Error writing snapshot:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Sample session written to {escape(output)}")
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
