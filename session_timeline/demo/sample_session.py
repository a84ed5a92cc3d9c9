# session_timeline/demo/sample_session.py

from datetime import datetime, timedelta

from session_timeline.storage.models import AllInRecord, PokerSession, SessionEvent, SessionSnapshot


def build_sample_session(start: datetime = datetime(2025, 1, 10, 19, 0)) -> SessionSnapshot:
    """A finished 1/2 cash session with a break, a rebuy and two all-ins."""
    session_id = "demo-session"
    steps = [
        (0, "session_start", {}),
        (5, "player_seated", {"playerName": "Villain", "seatNumber": 4}),
        (10, "hand_complete", {"position": "BTN"}),
        (12, "hand_complete", {"position": "CO"}),
        (15, "hands_passed", {"count": 8}),
        (30, "stack_update", {"amount": 14000}),
        (45, "session_pause", {}),
        (60, "session_resume", {}),
        (75, "stack_update", {"amount": 4000}),
        (76, "rebuy", {"amount": 10000}),
        (110, "stack_update", {"amount": 21000}),
        (120, "hands_passed", {"count": 25}),
        (150, "session_end", {"cashOut": 23500}),
    ]
    events = tuple(
        SessionEvent(
            id=f"demo-event-{i}",
            session_id=session_id,
            event_type=event_type,
            event_data=data,
            sequence=i,
            recorded_at=start + timedelta(minutes=offset),
        )
        for i, (offset, event_type, data) in enumerate(steps, start=1)
    )
    all_ins = (
        AllInRecord(
            id="demo-allin-1",
            session_id=session_id,
            pot_amount=20000,
            win_probability="35.50",
            actual_result=False,
            recorded_at=start + timedelta(minutes=70),
        ),
        AllInRecord(
            id="demo-allin-2",
            session_id=session_id,
            pot_amount=16000,
            win_probability="62.00",
            actual_result=True,
            recorded_at=start + timedelta(minutes=100),
            run_it_times=2,
            wins_in_runout=1,
        ),
    )
    session = PokerSession(
        id=session_id,
        buy_in=20000,
        start_time=start,
        cash_out=23500,
        end_time=start + timedelta(minutes=150),
        big_blind=200,
    )
    return SessionSnapshot(session=session, events=events, all_ins=all_ins)
