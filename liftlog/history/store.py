"""Local persistence for the workout history log."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

from liftlog.core.state import TrackerState
from liftlog.history.codec import HistoryParseError, decode_history, encode_history
from liftlog.history.entries import HistoryEntry, HistoryLog

logger = logging.getLogger(__name__)

STORE_VERSION = 1


def _default_history_path() -> Path:
    return Path.home() / ".liftlog" / "history.json"


def load_tracker_file(path: Path | None = None) -> TrackerState:
    target = path or _default_history_path()
    if not target.exists():
        logger.debug("No history file at %s, starting empty", target)
        return TrackerState()

    try:
        payload = json.loads(target.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise HistoryParseError(f"Invalid JSON in {target}: {exc}") from exc

    # bare arrays are accepted for logs exported without rest overrides
    if isinstance(payload, list):
        return TrackerState(history=decode_history(payload))
    if not isinstance(payload, dict):
        raise HistoryParseError("History file must contain an object or an array")

    version = payload.get("version", STORE_VERSION)
    if version != STORE_VERSION:
        logger.warning("History file %s has version %r, expected %d", target, version, STORE_VERSION)

    rest_obj = payload.get("rest_times", {})
    if not isinstance(rest_obj, dict):
        raise HistoryParseError("Field 'rest_times' must be an object")
    rest_times: dict[str, int] = {}
    for ex_id, seconds in rest_obj.items():
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
            raise HistoryParseError(f"Rest time for {ex_id!r} must be a non-negative integer")
        rest_times[str(ex_id)] = seconds

    return TrackerState(history=decode_history(payload.get("history", [])), rest_times=rest_times)


def save_tracker_file(state: TrackerState, path: Path | None = None) -> Path:
    target = path or _default_history_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "version": STORE_VERSION,
        "history": encode_history(state.history),
        "rest_times": dict(state.rest_times),
    }
    target.write_text(json.dumps(payload, ensure_ascii=True, indent=2), encoding="utf-8")
    logger.debug("Saved %d history entries to %s", len(state.history), target)
    return target


def load_history(path: Path | None = None) -> HistoryLog:
    return load_tracker_file(path).history


def save_history(history: Sequence[HistoryEntry], path: Path | None = None) -> Path:
    """Replace the stored log, keeping any stored rest overrides."""
    target = path or _default_history_path()
    rest_times = load_tracker_file(target).rest_times if target.exists() else {}
    return save_tracker_file(TrackerState(history=tuple(history), rest_times=rest_times), target)
