from __future__ import annotations

import json
from pathlib import Path

import pytest

from liftlog.core.state import TrackerState
from liftlog.history.codec import HistoryParseError
from liftlog.history.entries import SessionEndMarker, SetEntry
from liftlog.history.store import (
    load_history,
    load_tracker_file,
    save_history,
    save_tracker_file,
)


def test_save_and_load_tracker_file(tmp_path: Path) -> None:
    store = tmp_path / "nested" / "history.json"
    state = TrackerState(
        history=(
            SetEntry(ex_id="squat", kg=100, reps=5, ts=1000, rest=180, difficulty="hard"),
            SessionEndMarker(ts=2000),
        ),
        rest_times={"squat": 180},
    )

    saved = save_tracker_file(state, store)
    loaded = load_tracker_file(store)

    assert saved == store
    assert loaded.history == state.history
    assert loaded.rest_times == {"squat": 180}
    assert json.loads(store.read_text(encoding="utf-8"))["version"] == 1


def test_load_missing_file_starts_empty(tmp_path: Path) -> None:
    state = load_tracker_file(tmp_path / "absent.json")

    assert state.history == ()
    assert state.rest_times == {}


def test_load_accepts_bare_array(tmp_path: Path) -> None:
    store = tmp_path / "export.json"
    store.write_text('[{"type":"set","exId":"row","kg":40,"reps":12,"ts":5}]', encoding="utf-8")

    assert load_history(store) == (SetEntry(ex_id="row", kg=40, reps=12, ts=5),)


def test_save_history_keeps_rest_overrides(tmp_path: Path) -> None:
    store = tmp_path / "history.json"
    save_tracker_file(TrackerState(rest_times={"bench": 120}), store)

    save_history([SetEntry(ex_id="bench", kg=60, reps=10, ts=1)], store)

    loaded = load_tracker_file(store)
    assert len(loaded.history) == 1
    assert loaded.rest_times == {"bench": 120}


def test_load_invalid_json(tmp_path: Path) -> None:
    store = tmp_path / "history.json"
    store.write_text("{not json", encoding="utf-8")

    with pytest.raises(HistoryParseError):
        load_tracker_file(store)


def test_load_invalid_rest_times(tmp_path: Path) -> None:
    store = tmp_path / "history.json"
    store.write_text('{"version":1,"history":[],"rest_times":{"squat":-5}}', encoding="utf-8")

    with pytest.raises(HistoryParseError, match="squat"):
        load_tracker_file(store)
