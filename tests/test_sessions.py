from __future__ import annotations

from liftlog.history.entries import SessionEndMarker, SetEntry
from liftlog.history.sessions import find_session_end_for, parse_sessions, session_bounds


def _set(ex_id: str, ts: int, kg: float = 50.0, reps: int = 8) -> SetEntry:
    return SetEntry(ex_id=ex_id, kg=kg, reps=reps, ts=ts)


def test_parse_completed_and_active_sessions() -> None:
    log = (
        _set("squat", 1),
        _set("squat", 2),
        SessionEndMarker(ts=3),
        _set("bench", 4),
    )

    sessions = parse_sessions(log)

    assert len(sessions) == 2
    assert sessions[0].start_ts == 1
    assert sessions[0].end_ts == 3
    assert [s.ts for s in sessions[0].sets] == [1, 2]
    assert sessions[1].is_active
    assert sessions[1].start_ts == 4


def test_stray_markers_are_ignored() -> None:
    log = (
        SessionEndMarker(ts=1),
        _set("squat", 2),
        SessionEndMarker(ts=3),
        SessionEndMarker(ts=4),
    )

    sessions = parse_sessions(log)

    assert len(sessions) == 1
    assert sessions[0].end_ts == 3
    assert parse_sessions(()) == []


def test_flattened_sessions_reproduce_sets() -> None:
    log = (
        _set("a", 1),
        _set("b", 2),
        SessionEndMarker(ts=3),
        _set("a", 4),
        SessionEndMarker(ts=5),
        _set("c", 6),
        _set("c", 7),
    )

    sessions = parse_sessions(log)

    assert [s for session in sessions for s in session.sets] == [
        e for e in log if isinstance(e, SetEntry)
    ]
    assert [session.end_ts for session in sessions] == [3, 5, None]


def test_session_stats() -> None:
    log = (_set("a", 1, kg=100, reps=5), _set("b", 2, kg=20, reps=10), _set("a", 3, kg=100, reps=5))

    session = parse_sessions(log)[0]

    assert session.total_volume == 1200
    assert session.unique_exercises == ["a", "b"]
    assert session.timestamps == (1, 2, 3)


def test_session_bounds_and_lookup() -> None:
    log = (
        _set("a", 1),
        SessionEndMarker(ts=2),
        _set("b", 3),
        _set("b", 4),
        SessionEndMarker(ts=5),
        _set("c", 6),
    )

    assert session_bounds(log, 2) == (0, 1)
    assert session_bounds(log, 5) == (2, 4)
    assert session_bounds(log, None) == (5, 6)
    assert session_bounds(log, 99) is None

    assert find_session_end_for(log, 4) == (True, 5)
    assert find_session_end_for(log, 6) == (True, None)
    assert find_session_end_for(log, 42) == (False, None)
