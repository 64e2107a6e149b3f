"""Reconstruct workout sessions from the flat history log."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from liftlog.history.entries import HistoryEntry, SessionEndMarker, SetEntry


@dataclass(frozen=True)
class Session:
    sets: tuple[SetEntry, ...]
    start_ts: int
    end_ts: int | None

    @property
    def is_active(self) -> bool:
        return self.end_ts is None

    @property
    def total_volume(self) -> float:
        return sum(s.volume for s in self.sets)

    @property
    def unique_exercises(self) -> list[str]:
        seen: list[str] = []
        for s in self.sets:
            if s.ex_id not in seen:
                seen.append(s.ex_id)
        return seen

    @property
    def timestamps(self) -> tuple[int, ...]:
        return tuple(s.ts for s in self.sets)


def parse_sessions(history: Sequence[HistoryEntry]) -> list[Session]:
    """Split ``history`` into sessions in log order.

    A marker with no sets before it closes nothing and is skipped. Sets
    after the last marker form the active session (``end_ts`` is None).
    """
    sessions: list[Session] = []
    current: list[SetEntry] = []

    for entry in history:
        if isinstance(entry, SetEntry):
            current.append(entry)
        elif isinstance(entry, SessionEndMarker):
            if current:
                sessions.append(
                    Session(sets=tuple(current), start_ts=current[0].ts, end_ts=entry.ts)
                )
            current = []

    if current:
        sessions.append(Session(sets=tuple(current), start_ts=current[0].ts, end_ts=None))
    return sessions


def session_bounds(
    history: Sequence[HistoryEntry], session_end_ts: int | None
) -> tuple[int, int] | None:
    """Return ``(start, end)`` log indices of a session's sets.

    ``end`` is the index of the closing marker, or ``len(history)`` for the
    active session. Returns None when no marker carries ``session_end_ts``.
    """
    if session_end_ts is None:
        end = len(history)
    else:
        end = -1
        for index, entry in enumerate(history):
            if isinstance(entry, SessionEndMarker) and entry.ts == session_end_ts:
                end = index
                break
        if end == -1:
            return None

    start = 0
    for index in range(end - 1, -1, -1):
        if isinstance(history[index], SessionEndMarker):
            start = index + 1
            break
    return start, end


def find_session_end_for(history: Sequence[HistoryEntry], ts: int) -> tuple[bool, int | None]:
    """Locate the session holding the set ``ts``.

    Returns ``(found, end_ts)`` where ``end_ts`` is None for the active
    session.
    """
    found = False
    for entry in history:
        if isinstance(entry, SetEntry) and entry.ts == ts:
            found = True
        elif isinstance(entry, SessionEndMarker) and found:
            return True, entry.ts
    return found, None
