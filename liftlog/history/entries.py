"""Workout history log entries."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable, Literal, Sequence, Union


Difficulty = Literal["easy", "normal", "hard"]

DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "normal", "hard")


@dataclass(frozen=True)
class SetEntry:
    ex_id: str
    kg: float
    reps: int
    ts: int
    rest: int | None = None
    difficulty: Difficulty | None = None
    duration: int | None = None

    @property
    def type(self) -> str:
        return "set"

    @property
    def volume(self) -> float:
        return self.kg * self.reps


@dataclass(frozen=True)
class SessionEndMarker:
    ts: int

    @property
    def type(self) -> str:
        return "session-end"


HistoryEntry = Union[SetEntry, SessionEndMarker]
HistoryLog = tuple[HistoryEntry, ...]


def is_set_entry(entry: HistoryEntry) -> bool:
    return isinstance(entry, SetEntry)


def is_session_end_marker(entry: HistoryEntry) -> bool:
    return isinstance(entry, SessionEndMarker)


def same_entry(a: HistoryEntry, b: HistoryEntry) -> bool:
    """Entries are identified by their creation timestamp."""
    return a.ts == b.ts


def set_entries(entries: Iterable[HistoryEntry]) -> list[SetEntry]:
    return [entry for entry in entries if isinstance(entry, SetEntry)]


def now_ms() -> int:
    return int(time.time() * 1000)


def next_timestamp(log: Sequence[HistoryEntry], now: int | None = None) -> int:
    """Return a creation timestamp that does not collide with ``log``.

    Moves keep entries' original ``ts`` so the largest value can sit
    anywhere in the log, not only at the end.
    """
    candidate = now_ms() if now is None else int(now)
    if not log:
        return candidate
    return max(candidate, max(entry.ts for entry in log) + 1)


def find_entry_index(log: Sequence[HistoryEntry], ts: int) -> int:
    for index, entry in enumerate(log):
        if entry.ts == ts:
            return index
    return -1
