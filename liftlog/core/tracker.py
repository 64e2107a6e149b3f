"""Stateful workout tracker over a persisted history log."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from liftlog.core.state import TrackerState
from liftlog.history import mutations
from liftlog.history.circuits import CircuitGroup, detect_circuits
from liftlog.history.entries import Difficulty, HistoryLog, SetEntry, find_entry_index
from liftlog.history.mutations import MutationResult
from liftlog.history.sessions import Session, parse_sessions
from liftlog.history.store import load_tracker_file, save_tracker_file
from liftlog.insights.predictions import NextExercisePrediction, predict_next_exercise

logger = logging.getLogger(__name__)


class WorkoutTracker:
    def __init__(
        self,
        state: TrackerState | None = None,
        path: Path | None = None,
        autosave: bool = False,
    ) -> None:
        self.state = state or TrackerState()
        self._path = path
        self._autosave = autosave
        self._deleted: list[SetEntry] = []
        # ts of the entry that followed each deleted set, None if it was last
        self._anchors: dict[int, int | None] = {}

    @classmethod
    def open(cls, path: Path | None = None, autosave: bool = True) -> "WorkoutTracker":
        return cls(state=load_tracker_file(path), path=path, autosave=autosave)

    @property
    def history(self) -> HistoryLog:
        return self.state.history

    @property
    def deleted_sets(self) -> tuple[SetEntry, ...]:
        return tuple(self._deleted)

    def save(self) -> Path:
        return save_tracker_file(self.state, self._path)

    def sessions(self) -> list[Session]:
        return parse_sessions(self.state.history)

    def circuits(self, session: Session) -> list[CircuitGroup]:
        return detect_circuits(session.sets)

    def find_session(self, end_ts: int | None) -> Session | None:
        return next((s for s in self.sessions() if s.end_ts == end_ts), None)

    def predict_next(self) -> NextExercisePrediction | None:
        return predict_next_exercise(self.state.history, self.state.rest_times)

    def set_rest_time(self, ex_id: str, seconds: int) -> None:
        if seconds < 0:
            raise ValueError("Rest time must be >= 0")
        self.state.rest_times[ex_id] = seconds
        if self._autosave:
            self.save()

    def log_set(
        self,
        ex_id: str,
        kg: float,
        reps: int,
        *,
        difficulty: Difficulty | None = None,
        duration: int | None = None,
        now: int | None = None,
    ) -> MutationResult:
        return self._apply(
            "log_set",
            lambda log: mutations.log_set(
                log, ex_id, kg, reps, difficulty=difficulty, duration=duration, now=now
            ),
        )

    def remove_set(self, ts: int) -> MutationResult:
        history = self.state.history
        index = find_entry_index(history, ts)
        removed = history[index] if index != -1 else None
        result = self._apply("remove_set", lambda log: mutations.remove_set(log, ts))
        if result.ok and isinstance(removed, SetEntry):
            self._deleted.append(removed)
            self._anchors[ts] = history[index + 1].ts if index + 1 < len(history) else None
        return result

    def undo_remove(self) -> MutationResult:
        """Restore every set removed since the last undo."""
        deleted, self._deleted = self._deleted, []
        anchors, self._anchors = self._anchors, {}
        return self._apply(
            "restore_sets", lambda log: mutations.restore_sets(log, deleted, anchors)
        )

    def update_set(self, ts: int, updates: Mapping[str, Any]) -> MutationResult:
        return self._apply("update_set", lambda log: mutations.update_set(log, ts, updates))

    def end_session(self, ts: int | None = None) -> MutationResult:
        return self._apply("end_session", lambda log: mutations.end_session(log, ts))

    def resume_session(self) -> MutationResult:
        return self._apply("resume_session", mutations.resume_session)

    def delete_session(self, session_end_ts: int) -> MutationResult:
        return self._apply(
            "delete_session", lambda log: mutations.delete_session(log, session_end_ts)
        )

    def move_cycle_in_session(
        self,
        cycle_timestamps: Sequence[int],
        target_index: int,
        session_end_ts: int | None,
    ) -> MutationResult:
        return self._apply(
            "move_cycle_in_session",
            lambda log: mutations.move_cycle_in_session(
                log, cycle_timestamps, target_index, session_end_ts
            ),
        )

    def move_cycle_to_session(
        self, cycle_timestamps: Sequence[int], target_session_end_ts: int | None
    ) -> MutationResult:
        return self._apply(
            "move_cycle_to_session",
            lambda log: mutations.move_cycle_to_session(
                log, cycle_timestamps, target_session_end_ts
            ),
        )

    def _apply(self, name: str, op: Callable[[HistoryLog], MutationResult]) -> MutationResult:
        result = op(self.state.history)
        if not result.ok:
            assert result.error is not None
            logger.info("%s failed (%s): %s", name, result.error.kind, result.error.message)
            return result
        self.state.history = result.log
        logger.debug("%s applied, log has %d entries", name, len(result.log))
        if self._autosave:
            self.save()
        return result
