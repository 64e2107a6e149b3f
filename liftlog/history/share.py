"""Shareable session payloads and CSV exports."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

from liftlog.core.exercises import ExerciseLookup, exercise_label
from liftlog.history.circuits import detect_circuits
from liftlog.history.sessions import Session


def _default_export_dir() -> Path:
    return Path.home() / ".liftlog" / "exports"


def build_share_payload(session: Session, lookup: ExerciseLookup | None = None) -> dict[str, Any]:
    groups = []
    for group in detect_circuits(session.sets):
        groups.append(
            {
                "pattern": list(group.pattern),
                "names": [exercise_label(lookup, ex_id) for ex_id in group.pattern],
                "is_circuit": group.is_circuit,
                "rounds": [
                    [
                        {
                            "ex_id": s.ex_id,
                            "kg": s.kg,
                            "reps": s.reps,
                            "rest": s.rest,
                            "difficulty": s.difficulty,
                        }
                        for s in round_sets
                    ]
                    for round_sets in group.rounds
                ],
            }
        )
    return {
        "start_ts": session.start_ts,
        "end_ts": session.end_ts,
        "totals": {
            "sets": len(session.sets),
            "volume_kg": session.total_volume,
            "exercises": len(session.unique_exercises),
        },
        "groups": groups,
    }


def export_session_csv(
    session: Session,
    out_dir: Path | None = None,
    lookup: ExerciseLookup | None = None,
) -> Path:
    target_dir = out_dir or _default_export_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    out = target_dir / f"session-{session.start_ts}.csv"
    with out.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(
            [
                "session_start_ts",
                "session_end_ts",
                "group_index",
                "is_circuit",
                "round_index",
                "ts",
                "ex_id",
                "exercise_name",
                "kg",
                "reps",
                "rest_sec",
                "difficulty",
                "duration_sec",
            ]
        )
        for group_index, group in enumerate(detect_circuits(session.sets), start=1):
            for round_index, round_sets in enumerate(group.rounds, start=1):
                for s in round_sets:
                    writer.writerow(
                        [
                            session.start_ts,
                            session.end_ts,
                            group_index,
                            group.is_circuit,
                            round_index,
                            s.ts,
                            s.ex_id,
                            exercise_label(lookup, s.ex_id),
                            s.kg,
                            s.reps,
                            s.rest,
                            s.difficulty,
                            s.duration,
                        ]
                    )
    return out
