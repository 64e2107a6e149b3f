"""In-memory tracker state persisted between runs."""

from __future__ import annotations

from dataclasses import dataclass, field

from liftlog.history.entries import HistoryLog


@dataclass
class TrackerState:
    history: HistoryLog = ()
    rest_times: dict[str, int] = field(default_factory=dict)
