from __future__ import annotations

import csv
from pathlib import Path

from liftlog.core.exercises import ExerciseCatalog
from liftlog.history.entries import SessionEndMarker, SetEntry
from liftlog.history.sessions import Session, parse_sessions
from liftlog.history.share import build_share_payload, export_session_csv


def _session() -> Session:
    history = (
        SetEntry(ex_id="pullup", kg=0, reps=8, ts=1000, rest=60),
        SetEntry(ex_id="dip", kg=10, reps=10, ts=2000, rest=60),
        SetEntry(ex_id="pullup", kg=0, reps=7, ts=3000, rest=60),
        SetEntry(ex_id="dip", kg=10, reps=9, ts=4000, rest=120, difficulty="hard"),
        SetEntry(ex_id="curl", kg=15, reps=12, ts=5000),
        SessionEndMarker(ts=6000),
    )
    return parse_sessions(history)[0]


def _catalog(tmp_path: Path) -> ExerciseCatalog:
    path = tmp_path / "exercises.json"
    path.write_text(
        '[{"id":"pullup","name":"Pull-up"},{"id":"dip","name":"Dip","equipment":"bars"}]',
        encoding="utf-8",
    )
    return ExerciseCatalog(path)


def test_build_share_payload(tmp_path: Path) -> None:
    payload = build_share_payload(_session(), _catalog(tmp_path))

    assert payload["start_ts"] == 1000
    assert payload["end_ts"] == 6000
    assert payload["totals"] == {"sets": 5, "volume_kg": 370, "exercises": 3}
    circuit, single = payload["groups"]
    assert circuit["pattern"] == ["pullup", "dip"]
    assert circuit["names"] == ["Pull-up", "Dip"]
    assert circuit["is_circuit"] is True
    assert len(circuit["rounds"]) == 2
    assert circuit["rounds"][1][1]["difficulty"] == "hard"
    assert single["names"] == ["curl"]
    assert single["is_circuit"] is False


def test_export_session_csv(tmp_path: Path) -> None:
    out = export_session_csv(_session(), out_dir=tmp_path / "exports", lookup=_catalog(tmp_path))

    assert out.name == "session-1000.csv"
    with out.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 5
    assert rows[0]["exercise_name"] == "Pull-up"
    assert rows[0]["group_index"] == "1"
    assert rows[3]["round_index"] == "2"
    assert rows[4]["group_index"] == "2"
    assert rows[4]["rest_sec"] == ""
    assert rows[4]["session_end_ts"] == "6000"


def test_catalog_name_map_and_missing_file(tmp_path: Path) -> None:
    path = tmp_path / "names.json"
    path.write_text('{"squat": "Back Squat"}', encoding="utf-8")
    catalog = ExerciseCatalog(path)

    meta = catalog("squat")
    assert meta is not None and meta.name == "Back Squat"
    assert catalog.get("bench") is None
    assert ExerciseCatalog(tmp_path / "absent.json").get("squat") is None
