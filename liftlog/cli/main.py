"""Terminal CLI for the liftlog workout history."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Sequence

from liftlog.core.exercises import ExerciseCatalog, ExerciseLookup, exercise_label
from liftlog.core.tracker import WorkoutTracker
from liftlog.history.codec import HistoryParseError
from liftlog.history.entries import DIFFICULTIES
from liftlog.history.mutations import MutationResult
from liftlog.history.sessions import Session
from liftlog.history.share import build_share_payload, export_session_csv
from liftlog.insights.e1rm import calculate_e1rm_metrics
from liftlog.insights.format import format_detailed_prediction, format_duration, format_rest
from liftlog.insights.predictions import predict_exercise_values

logger = logging.getLogger(__name__)

# default for optional session arguments: the most recent session
_LATEST = object()


def _session_ref(raw: str) -> int | None:
    if raw == "active":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("expected a session end ts or 'active'") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="liftlog workout history")
    parser.add_argument("--history", type=Path, default=None, help="History JSON file")
    parser.add_argument(
        "--exercises",
        type=Path,
        default=None,
        help="Exercise catalog JSON used for display names",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("sessions", help="List sessions, most recent first")

    show = sub.add_parser("show", help="Show a session grouped into circuits")
    show.add_argument("session", nargs="?", type=_session_ref, default=_LATEST)

    log = sub.add_parser("log", help="Log a set in the active session")
    log.add_argument("ex_id")
    log.add_argument("kg", type=float)
    log.add_argument("reps", type=int)
    log.add_argument("--difficulty", choices=DIFFICULTIES, default=None)
    log.add_argument("--duration", type=int, default=None, help="Set duration in seconds")

    sub.add_parser("end", help="Finish the active session")
    sub.add_parser("resume", help="Reopen the last finished session")

    delete = sub.add_parser("delete-session", help="Delete a finished session and its sets")
    delete.add_argument("end_ts", type=int)

    remove = sub.add_parser("remove-set", help="Remove one set")
    remove.add_argument("ts", type=int)

    edit = sub.add_parser("edit-set", help="Correct a logged set")
    edit.add_argument("ts", type=int)
    edit.add_argument("--kg", type=float, default=None)
    edit.add_argument("--reps", type=int, default=None)
    edit.add_argument("--rest", type=int, default=None)
    edit.add_argument("--difficulty", choices=DIFFICULTIES, default=None)

    move = sub.add_parser("move-cycle", help="Move a circuit within its session")
    move.add_argument("ts", type=int, nargs="+")
    move.add_argument("--to-index", type=int, required=True)
    move.add_argument("--session", type=_session_ref, default=None)

    move_to = sub.add_parser("move-cycle-to", help="Move a circuit to another session")
    move_to.add_argument("ts", type=int, nargs="+")
    move_to.add_argument("--target", type=_session_ref, required=True)

    rest = sub.add_parser("rest", help="Set the default rest time for an exercise")
    rest.add_argument("ex_id")
    rest.add_argument("seconds", type=int)

    predict = sub.add_parser("predict", help="Suggest the next set")
    predict.add_argument("ex_id", nargs="?", default=None)

    e1rm = sub.add_parser("e1rm", help="Estimated one-rep max for an exercise")
    e1rm.add_argument("ex_id")

    export = sub.add_parser("export", help="Export a session as CSV or share JSON")
    export.add_argument("session", nargs="?", type=_session_ref, default=_LATEST)
    export.add_argument("--out", type=Path, default=None, help="CSV output directory")
    export.add_argument("--json", action="store_true", help="Print the share payload instead")
    return parser


def _fmt_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d %H:%M")


def _report(result: MutationResult, success: str) -> int:
    if not result.ok:
        assert result.error is not None
        print(f"Error: {result.error.message}")
        return 1
    print(success)
    return 0


def _pick_session(tracker: WorkoutTracker, ref: object) -> Session | None:
    if ref is _LATEST:
        sessions = tracker.sessions()
        return sessions[-1] if sessions else None
    assert ref is None or isinstance(ref, int)
    return tracker.find_session(ref)


def run_sessions(tracker: WorkoutTracker) -> int:
    sessions = tracker.sessions()
    if not sessions:
        print("No sessions logged")
        return 0
    for session in reversed(sessions):
        status = "active" if session.is_active else str(session.end_ts)
        print(
            f"{_fmt_ts(session.start_ts)}  [{status:>13}]  "
            f"{len(session.unique_exercises)} ex · {len(session.sets)} sets · "
            f"{session.total_volume:,.0f}kg · {format_duration(session.start_ts, session.end_ts)}"
        )
    return 0


def run_show(session: Session, tracker: WorkoutTracker, lookup: ExerciseLookup) -> int:
    print(f"{_fmt_ts(session.start_ts)} ({format_duration(session.start_ts, session.end_ts)})")
    for group in tracker.circuits(session):
        names = " + ".join(exercise_label(lookup, ex_id) for ex_id in group.pattern)
        print(f"{'⟳ ' if group.is_circuit else ''}{names}")
        for number, round_sets in enumerate(group.rounds, start=1):
            sets = ", ".join(f"{s.kg:g}×{s.reps} [{s.ts}]" for s in round_sets)
            rest = round_sets[-1].rest
            suffix = f"  rest {format_rest(rest)}" if rest else ""
            print(f"  {number}. {sets}{suffix}")
    return 0


def run_predict(tracker: WorkoutTracker, ex_id: str | None) -> int:
    if ex_id is None:
        prediction = tracker.predict_next()
    else:
        prediction = predict_exercise_values(tracker.history, tracker.state.rest_times, ex_id)
    if prediction is None:
        print("No suggestion yet")
        return 0
    print(f"{prediction.ex_id}: {format_detailed_prediction(prediction)} (rest {format_rest(prediction.rest)})")
    return 0


def run_e1rm(tracker: WorkoutTracker, ex_id: str) -> int:
    metrics = calculate_e1rm_metrics(tracker.history, ex_id)
    if metrics.current is None:
        print(f"Not enough reliable sets for {ex_id}")
        return 0
    print(f"e1RM {metrics.current:g}kg (peak {metrics.peak:g}kg, trend {metrics.trend or 'n/a'})")
    for suggestion in metrics.suggested_weights:
        print(f"  {suggestion.target_reps:>2} reps: {suggestion.suggested_kg:g}kg ({suggestion.description})")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        tracker = WorkoutTracker.open(args.history)
    except HistoryParseError as exc:
        print(f"Error: {exc}")
        return 2
    lookup = ExerciseCatalog(args.exercises)

    try:
        return _dispatch(args, tracker, lookup)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2


def _dispatch(args: argparse.Namespace, tracker: WorkoutTracker, lookup: ExerciseLookup) -> int:
    command = args.command
    if command == "sessions":
        return run_sessions(tracker)
    if command in ("show", "export"):
        session = _pick_session(tracker, args.session)
        if session is None:
            print("Session not found")
            return 1
        if command == "show":
            return run_show(session, tracker, lookup)
        if args.json:
            print(json.dumps(build_share_payload(session, lookup), ensure_ascii=False, indent=2))
            return 0
        print(export_session_csv(session, out_dir=args.out, lookup=lookup))
        return 0
    if command == "log":
        result = tracker.log_set(
            args.ex_id, args.kg, args.reps, difficulty=args.difficulty, duration=args.duration
        )
        return _report(result, f"Logged {args.ex_id} {args.kg:g}kg × {args.reps}")
    if command == "end":
        return _report(tracker.end_session(), "Session finished")
    if command == "resume":
        return _report(tracker.resume_session(), "Session resumed")
    if command == "delete-session":
        return _report(tracker.delete_session(args.end_ts), "Session deleted")
    if command == "remove-set":
        return _report(tracker.remove_set(args.ts), "Set removed")
    if command == "edit-set":
        updates = {
            key: value
            for key, value in (
                ("kg", args.kg),
                ("reps", args.reps),
                ("rest", args.rest),
                ("difficulty", args.difficulty),
            )
            if value is not None
        }
        return _report(tracker.update_set(args.ts, updates), "Set updated")
    if command == "move-cycle":
        return _report(
            tracker.move_cycle_in_session(args.ts, args.to_index, args.session), "Cycle moved"
        )
    if command == "move-cycle-to":
        return _report(tracker.move_cycle_to_session(args.ts, args.target), "Cycle moved")
    if command == "rest":
        tracker.set_rest_time(args.ex_id, args.seconds)
        print(f"Rest for {args.ex_id} set to {format_rest(args.seconds)}")
        return 0
    if command == "predict":
        return run_predict(tracker, args.ex_id)
    if command == "e1rm":
        return run_e1rm(tracker, args.ex_id)

    logger.error("Unhandled command %s", command)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
