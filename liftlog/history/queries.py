"""Read-only lookups over the history log."""

from __future__ import annotations

from typing import Mapping, Sequence

from liftlog.history.entries import HistoryEntry, SetEntry, is_session_end_marker, set_entries


DEFAULT_REST_SECONDS = 90


def find_last_session_end_index(history: Sequence[HistoryEntry]) -> int:
    for index in range(len(history) - 1, -1, -1):
        if is_session_end_marker(history[index]):
            return index
    return -1


def get_last_set(history: Sequence[HistoryEntry], ex_id: str) -> SetEntry | None:
    for entry in reversed(history):
        if isinstance(entry, SetEntry) and entry.ex_id == ex_id:
            return entry
    return None


def completed_session_sets(history: Sequence[HistoryEntry]) -> list[list[SetEntry]]:
    """Sets of every completed session, oldest first, empty sessions skipped."""
    sessions: list[list[SetEntry]] = []
    current: list[SetEntry] = []
    for entry in history:
        if isinstance(entry, SetEntry):
            current.append(entry)
        elif current:
            sessions.append(current)
            current = []
    return sessions


def get_first_set_of_last_session(history: Sequence[HistoryEntry], ex_id: str) -> SetEntry | None:
    """First set of ``ex_id`` in the most recent completed session that has one.

    Used for starting values of a new day, so drop-set tails are ignored.
    Before any session has been completed the first occurrence in the whole
    log is used.
    """
    if find_last_session_end_index(history) == -1:
        for entry in history:
            if isinstance(entry, SetEntry) and entry.ex_id == ex_id:
                return entry
        return None

    for sets in reversed(completed_session_sets(history)):
        for s in sets:
            if s.ex_id == ex_id:
                return s
    return None


def get_default_rest(
    history: Sequence[HistoryEntry],
    ex_id: str,
    overrides: Mapping[str, int] | None = None,
) -> int:
    if overrides and ex_id in overrides:
        return overrides[ex_id]
    for entry in reversed(history):
        if isinstance(entry, SetEntry) and entry.ex_id == ex_id and entry.rest is not None:
            return entry.rest
    return DEFAULT_REST_SECONDS


def get_current_session_sets(history: Sequence[HistoryEntry]) -> list[SetEntry]:
    start = find_last_session_end_index(history) + 1
    return set_entries(history[start:])


def get_sets_for_exercise_today(history: Sequence[HistoryEntry], ex_id: str) -> list[SetEntry]:
    return [s for s in get_current_session_sets(history) if s.ex_id == ex_id]


def build_exercise_order(sets: Sequence[SetEntry]) -> list[str]:
    """Exercise transitions in order; consecutive sets of one exercise count once."""
    order: list[str] = []
    for s in sets:
        if not order or order[-1] != s.ex_id:
            order.append(s.ex_id)
    return order
