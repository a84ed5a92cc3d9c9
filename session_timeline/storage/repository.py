"""
Session snapshot files.

Reads and writes the session data exported by the data layer, so the
engine can run outside the application. Snapshots are YAML; JSON exports
load as well, since JSON is parsed through the same YAML loader.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .models import AllInRecord, PokerSession, SessionEvent, SessionSnapshot

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot file is structurally invalid."""


def load_session_snapshot(path: str) -> SessionSnapshot:
    """Load a session snapshot file.

    Args:
        path: Path to a YAML or JSON snapshot

    Returns:
        SessionSnapshot with events and all-ins in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        SnapshotError: If the file is not a valid snapshot
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with open(snapshot_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SnapshotError(f"Invalid YAML in snapshot {path}: {e}")

    if not isinstance(raw, dict):
        raise SnapshotError("Snapshot must be a dictionary")
    if "session" not in raw:
        raise SnapshotError("Missing required 'session' section")

    session = _parse_session(_mapping(raw["session"], "session"))

    events = [
        _parse_event(_mapping(item, f"events[{i}]"), session.id, f"events[{i}]")
        for i, item in enumerate(_list(raw.get("events"), "events"))
    ]
    all_ins = [
        _parse_all_in(_mapping(item, f"all_ins[{i}]"), session.id, f"all_ins[{i}]")
        for i, item in enumerate(_list(raw.get("all_ins"), "all_ins"))
    ]

    logger.debug(f"Loaded snapshot {path}: {len(events)} events, {len(all_ins)} all-ins")
    return SessionSnapshot(session=session, events=tuple(events), all_ins=tuple(all_ins))


def save_session_snapshot(snapshot: SessionSnapshot, path: str) -> None:
    """Write a snapshot file that `load_session_snapshot` reads back."""
    session = snapshot.session
    data = {
        "session": {
            "id": session.id,
            "buy_in": session.buy_in,
            "cash_out": session.cash_out,
            "start_time": session.start_time.isoformat(),
            "end_time": session.end_time.isoformat() if session.end_time else None,
            "big_blind": session.big_blind,
            "variant": session.variant,
        },
        "events": [
            {
                "id": e.id,
                "event_type": e.event_type,
                "event_data": dict(e.event_data),
                "sequence": e.sequence,
                "recorded_at": e.recorded_at.isoformat(),
                "created_at": e.created_at.isoformat() if e.created_at else None,
            }
            for e in snapshot.events
        ],
        "all_ins": [
            {
                "id": a.id,
                "pot_amount": a.pot_amount,
                "win_probability": a.win_probability,
                "actual_result": a.actual_result,
                "recorded_at": a.recorded_at.isoformat(),
                "run_it_times": a.run_it_times,
                "wins_in_runout": a.wins_in_runout,
            }
            for a in snapshot.all_ins
        ],
    }
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)


def _parse_session(data: Dict[str, Any]) -> PokerSession:
    try:
        return PokerSession(
            id=str(_required(data, "id", "session")),
            buy_in=_int(_required(data, "buy_in", "session"), "session.buy_in"),
            start_time=_timestamp(_required(data, "start_time", "session"), "session.start_time"),
            cash_out=_optional_int(data.get("cash_out"), "session.cash_out"),
            end_time=_optional_timestamp(data.get("end_time"), "session.end_time"),
            big_blind=_optional_int(data.get("big_blind"), "session.big_blind"),
            variant=data.get("variant") or "cash",
        )
    except SnapshotError:
        raise
    except ValueError as e:
        raise SnapshotError(f"Invalid session: {e}")


def _parse_event(data: Dict[str, Any], session_id: str, path: str) -> SessionEvent:
    event_data = data.get("event_data") or {}
    if not isinstance(event_data, dict):
        raise SnapshotError(f"'{path}.event_data' must be a dictionary")
    return SessionEvent(
        id=str(_required(data, "id", path)),
        session_id=str(data.get("session_id") or session_id),
        event_type=str(_required(data, "event_type", path)),
        sequence=_int(_required(data, "sequence", path), f"{path}.sequence"),
        recorded_at=_timestamp(_required(data, "recorded_at", path), f"{path}.recorded_at"),
        event_data=event_data,
        created_at=_optional_timestamp(data.get("created_at"), f"{path}.created_at"),
    )


def _parse_all_in(data: Dict[str, Any], session_id: str, path: str) -> AllInRecord:
    actual_result = data.get("actual_result", False)
    if not isinstance(actual_result, bool):
        raise SnapshotError(f"'{path}.actual_result' must be a boolean")
    win_probability = _required(data, "win_probability", path)
    return AllInRecord(
        id=str(_required(data, "id", path)),
        session_id=str(data.get("session_id") or session_id),
        pot_amount=_int(_required(data, "pot_amount", path), f"{path}.pot_amount"),
        # Equity stays a decimal string until EV is calculated
        win_probability=str(win_probability),
        actual_result=actual_result,
        recorded_at=_timestamp(_required(data, "recorded_at", path), f"{path}.recorded_at"),
        run_it_times=_optional_int(data.get("run_it_times"), f"{path}.run_it_times"),
        wins_in_runout=_optional_int(data.get("wins_in_runout"), f"{path}.wins_in_runout"),
    )


def _mapping(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SnapshotError(f"'{path}' must be a dictionary")
    return value


def _list(value: Any, path: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotError(f"'{path}' must be a list")
    return value


def _required(data: Dict[str, Any], key: str, path: str) -> Any:
    if data.get(key) is None:
        raise SnapshotError(f"Missing required '{key}' in {path}")
    return data[key]


def _int(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"'{path}' must be an integer")
    return value


def _optional_int(value: Any, path: str) -> Optional[int]:
    return None if value is None else _int(value, path)


def _timestamp(value: Any, path: str) -> datetime:
    """Parse a timestamp and normalise it to naive UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise SnapshotError(f"'{path}' is not an ISO-8601 timestamp: {value!r}")
    else:
        raise SnapshotError(f"'{path}' must be a timestamp")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _optional_timestamp(value: Any, path: str) -> Optional[datetime]:
    return None if value is None else _timestamp(value, path)
