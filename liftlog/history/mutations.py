"""Edits to the history log that keep session boundaries consistent.

Every operation takes a snapshot of the log and returns a
:class:`MutationResult` holding a new tuple. Expected failures (an unknown
timestamp, no session to end) come back as a :class:`MutationError` with
the input snapshot untouched; only malformed arguments raise.

Storage order is authoritative: moving sets never renumbers their ``ts``,
so after a move the log is no longer sorted by timestamp.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, Sequence

from liftlog.history.entries import (
    DIFFICULTIES,
    Difficulty,
    HistoryEntry,
    HistoryLog,
    SessionEndMarker,
    SetEntry,
    find_entry_index,
    is_set_entry,
    next_timestamp,
)
from liftlog.history.sessions import find_session_end_for, session_bounds

logger = logging.getLogger(__name__)


FailureKind = Literal[
    "not_found",
    "invalid_entry",
    "no_active_session",
    "no_completed_session",
    "session_not_found",
    "cycle_not_found",
]

UPDATABLE_FIELDS = ("kg", "reps", "rest", "difficulty", "duration")


class InvalidUpdateError(ValueError):
    """Raised when set updates have an unknown field or a bad value."""


@dataclass(frozen=True)
class MutationError:
    kind: FailureKind
    message: str
    ts: int | None = None


@dataclass(frozen=True)
class MutationResult:
    log: HistoryLog
    error: MutationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _ok(entries: Iterable[HistoryEntry]) -> MutationResult:
    return MutationResult(log=tuple(entries))


def _fail(
    log: Sequence[HistoryEntry], kind: FailureKind, message: str, ts: int | None = None
) -> MutationResult:
    return MutationResult(log=tuple(log), error=MutationError(kind=kind, message=message, ts=ts))


def _target_ts(target: SetEntry | int) -> int:
    if isinstance(target, SetEntry):
        return target.ts
    if isinstance(target, bool) or not isinstance(target, int):
        raise TypeError(f"Expected a SetEntry or int timestamp, got {type(target).__name__}")
    return target


def _check_new_ts(log: Sequence[HistoryEntry], ts: int) -> None:
    if find_entry_index(log, ts) != -1:
        raise ValueError(f"Timestamp {ts} is already used in the log")


def has_active_session(log: Sequence[HistoryEntry]) -> bool:
    return bool(log) and is_set_entry(log[-1])


def log_set(
    log: Sequence[HistoryEntry],
    ex_id: str,
    kg: float,
    reps: int,
    *,
    difficulty: Difficulty | None = None,
    duration: int | None = None,
    now: int | None = None,
) -> MutationResult:
    """Append a new set to the active session (starting one if needed).

    If the previous entry is a set with no rest recorded (missing or 0), the
    gap since it is stamped on it as its rest.
    """
    if not ex_id:
        raise ValueError("Exercise id must not be empty")
    _validate_field("kg", kg)
    _validate_field("reps", reps)
    if difficulty is not None:
        _validate_field("difficulty", difficulty)
    if duration is not None:
        _validate_field("duration", duration)

    ts = next_timestamp(log, now)
    entries = list(log)
    if entries and isinstance(entries[-1], SetEntry) and not entries[-1].rest:
        previous = entries[-1]
        entries[-1] = dataclasses.replace(previous, rest=round((ts - previous.ts) / 1000))

    entries.append(
        SetEntry(
            ex_id=ex_id,
            kg=kg,
            reps=reps,
            ts=ts,
            difficulty=difficulty,
            duration=duration,
        )
    )
    return _ok(entries)


def remove_set(log: Sequence[HistoryEntry], target: SetEntry | int) -> MutationResult:
    ts = _target_ts(target)
    index = find_entry_index(log, ts)
    if index == -1:
        return _fail(log, "not_found", f"No set with ts {ts}", ts)
    if not isinstance(log[index], SetEntry):
        return _fail(log, "invalid_entry", f"Entry {ts} is a session end marker, not a set", ts)
    return _ok(entry for i, entry in enumerate(log) if i != index)


def update_set(
    log: Sequence[HistoryEntry], ts: int, updates: Mapping[str, Any]
) -> MutationResult:
    index = find_entry_index(log, ts)
    if index == -1:
        return _fail(log, "not_found", f"No set with ts {ts}", ts)
    entry = log[index]
    if not isinstance(entry, SetEntry):
        return _fail(log, "invalid_entry", f"Entry {ts} is a session end marker, not a set", ts)

    changes = _validate_updates(updates)
    entries = list(log)
    entries[index] = dataclasses.replace(entry, **changes)
    return _ok(entries)


def end_session(log: Sequence[HistoryEntry], ts: int | None = None) -> MutationResult:
    if not has_active_session(log):
        return _fail(log, "no_active_session", "There is no active session to end")
    if ts is None:
        ts = next_timestamp(log)
    else:
        _check_new_ts(log, ts)
    return _ok([*log, SessionEndMarker(ts=ts)])


def resume_session(log: Sequence[HistoryEntry]) -> MutationResult:
    """Reopen the last completed session by dropping its end marker."""
    if not log or not isinstance(log[-1], SessionEndMarker):
        return _fail(log, "no_completed_session", "The log does not end with a completed session")
    return _ok(log[:-1])


def delete_session(log: Sequence[HistoryEntry], session_end_ts: int) -> MutationResult:
    bounds = session_bounds(log, session_end_ts)
    if bounds is None:
        return _fail(log, "session_not_found", f"No session ends at {session_end_ts}", session_end_ts)
    start, end = bounds
    return _ok([*log[:start], *log[end + 1 :]])


def move_cycle_in_session(
    log: Sequence[HistoryEntry],
    cycle_timestamps: Sequence[int],
    target_index: int,
    session_end_ts: int | None,
) -> MutationResult:
    """Move a circuit's sets to ``target_index`` within their session.

    ``target_index`` is the position the first moved set takes in the
    session's set list once the cycle has been taken out; it is clamped to
    the session. The moved sets keep their relative order.
    """
    bounds = session_bounds(log, session_end_ts)
    if bounds is None:
        return _fail(log, "session_not_found", f"No session ends at {session_end_ts}", session_end_ts)
    start, end = bounds
    session_sets = [entry for entry in log[start:end] if isinstance(entry, SetEntry)]

    wanted = _unique(cycle_timestamps)
    present = {s.ts for s in session_sets}
    missing = [ts for ts in wanted if ts not in present]
    if not wanted or missing:
        return _fail(
            log,
            "cycle_not_found",
            f"Cycle sets not found in session: {missing or 'empty cycle'}",
            missing[0] if missing else None,
        )

    wanted_set = set(wanted)
    cycle = [s for s in session_sets if s.ts in wanted_set]
    remaining = [s for s in session_sets if s.ts not in wanted_set]
    current_start = next(i for i, s in enumerate(session_sets) if s.ts in wanted_set)
    if current_start == target_index:
        return _ok(log)

    insert_at = min(len(remaining), max(0, target_index))
    reordered = remaining[:insert_at] + cycle + remaining[insert_at:]
    return _ok([*log[:start], *reordered, *log[end:]])


def move_cycle_to_session(
    log: Sequence[HistoryEntry],
    cycle_timestamps: Sequence[int],
    target_session_end_ts: int | None,
) -> MutationResult:
    """Move a circuit's sets to the end of another session.

    ``target_session_end_ts`` names the target by its end marker, or None for
    the active session. A completed source session left without sets keeps
    its end marker; parsing skips it.
    """
    wanted = _unique(cycle_timestamps)
    by_ts = {entry.ts: entry for entry in log if isinstance(entry, SetEntry)}
    missing = [ts for ts in wanted if ts not in by_ts]
    if not wanted or missing:
        return _fail(
            log,
            "cycle_not_found",
            f"Cycle sets not found: {missing or 'empty cycle'}",
            missing[0] if missing else None,
        )

    source_end = find_session_end_for(log, wanted[0])[1]
    if any(find_session_end_for(log, ts)[1] != source_end for ts in wanted[1:]):
        return _fail(log, "cycle_not_found", "Cycle sets span more than one session", wanted[0])

    if target_session_end_ts is None:
        if not has_active_session(log):
            return _fail(log, "session_not_found", "There is no active session")
    elif session_bounds(log, target_session_end_ts) is None:
        return _fail(
            log,
            "session_not_found",
            f"No session ends at {target_session_end_ts}",
            target_session_end_ts,
        )

    wanted_set = set(wanted)
    cycle = [entry for entry in log if isinstance(entry, SetEntry) and entry.ts in wanted_set]
    entries = [entry for entry in log if entry.ts not in wanted_set]

    if target_session_end_ts is None:
        entries.extend(cycle)
    else:
        bounds = session_bounds(entries, target_session_end_ts)
        assert bounds is not None
        insert_at = bounds[1]
        entries[insert_at:insert_at] = cycle
    return _ok(entries)


def restore_sets(
    log: Sequence[HistoryEntry],
    sets: Iterable[SetEntry],
    anchors: Mapping[int, int | None] | None = None,
) -> MutationResult:
    """Put previously removed sets back (undo of a delete).

    ``anchors`` maps a set's ``ts`` to the ``ts`` of the entry that followed
    it when it was removed; the set goes back right before that entry. With
    anchors, ``sets`` must be in removal order and are restored newest
    removal first, so an anchor that was itself removed is back in place
    before it is needed. A set without a usable anchor goes before the
    first entry with a later ``ts``. Sets whose ``ts`` is already present
    are skipped.
    """
    entries = list(log)
    used = {entry.ts for entry in entries}
    ordered = list(reversed(list(sets))) if anchors else sorted(sets, key=lambda item: item.ts)
    for s in ordered:
        if not isinstance(s, SetEntry):
            raise TypeError(f"Only sets can be restored, got {type(s).__name__}")
        if s.ts in used:
            logger.debug("Set %s already in the log, not restoring", s.ts)
            continue
        anchor = anchors.get(s.ts) if anchors else None
        insert_at = find_entry_index(entries, anchor) if anchor is not None else -1
        if insert_at == -1:
            insert_at = next(
                (i for i, entry in enumerate(entries) if entry.ts > s.ts), len(entries)
            )
        entries.insert(insert_at, s)
        used.add(s.ts)
    return _ok(entries)


def _unique(timestamps: Sequence[int]) -> list[int]:
    out: list[int] = []
    for ts in timestamps:
        if ts not in out:
            out.append(ts)
    return out


def _validate_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    if not isinstance(updates, Mapping):
        raise InvalidUpdateError("Set updates must be a mapping")
    unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
    if unknown:
        raise InvalidUpdateError(f"Cannot update field(s): {', '.join(unknown)}")
    for field, value in updates.items():
        if value is None and field in ("rest", "difficulty", "duration"):
            continue
        _validate_field(field, value)
    return dict(updates)


def _validate_field(field: str, value: object) -> None:
    if field == "difficulty":
        if value not in DIFFICULTIES:
            raise InvalidUpdateError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidUpdateError(f"{field} must be a number")
    if not math.isfinite(value):
        raise InvalidUpdateError(f"{field} must be finite")
    if field != "kg" and not isinstance(value, int):
        raise InvalidUpdateError(f"{field} must be an integer")
    if value < 0:
        raise InvalidUpdateError(f"{field} must be >= 0")
