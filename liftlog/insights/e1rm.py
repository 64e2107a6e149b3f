"""Estimated one-rep max (e1RM) from logged sets.

The Epley estimate is nudged up for sets that were not taken near failure:
easy sets, short rests and sets late in a session all under-report true
strength. Each completed session contributes its best reliable set.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Literal, Sequence

from liftlog.history.entries import Difficulty, HistoryEntry, SetEntry
from liftlog.history.queries import completed_session_sets


Trend = Literal["up", "down", "stable"]

RECENT_SESSIONS = 3
TREND_BAND = 0.02
SUGGESTION_TARGETS: tuple[tuple[int, str], ...] = (
    (5, "Strength"),
    (8, "Hypertrophy"),
    (12, "Volume"),
    (15, "Endurance"),
)


@dataclass(frozen=True)
class WeightSuggestion:
    target_reps: int
    suggested_kg: float
    description: str


@dataclass(frozen=True)
class E1rmMetrics:
    current: float | None
    peak: float | None
    trend: Trend | None
    suggested_weights: tuple[WeightSuggestion, ...]


@dataclass(frozen=True)
class SessionPeak:
    sessions_ago: int
    e1rm: float
    set: SetEntry


def _round_half_up(value: float, step: float) -> float:
    return math.floor(value / step + 0.5) * step


def _round1(value: float) -> float:
    return round(_round_half_up(value, 0.1), 1)


def base_e1rm(kg: float, reps: int) -> float:
    if reps <= 0 or kg <= 0:
        return 0
    if reps == 1:
        return kg
    return kg * (1 + reps / 30)


def difficulty_multiplier(difficulty: Difficulty | None) -> float:
    if difficulty == "easy":
        return 1.07
    if difficulty == "hard":
        return 1.00
    return 1.03


def rest_multiplier(rest_sec: int | None) -> float:
    if rest_sec is None:
        return 1.00
    if rest_sec < 60:
        return 1.10
    if rest_sec <= 120:
        return 1.05
    return 1.00


def fatigue_multiplier(set_index: int) -> float:
    # +1% per earlier set of the exercise, capped at +8%
    return round(1.0 + min(set_index * 0.01, 0.08), 2)


def smart_e1rm(
    kg: float,
    reps: int,
    *,
    difficulty: Difficulty | None = None,
    rest_sec: int | None = None,
    set_index: int = 0,
) -> float:
    base = base_e1rm(kg, reps)
    if base == 0:
        return 0
    return _round1(
        base
        * difficulty_multiplier(difficulty)
        * rest_multiplier(rest_sec)
        * fatigue_multiplier(set_index)
    )


def _is_reliable(s: SetEntry) -> bool:
    return 1 <= s.reps <= 15 and s.kg > 0 and s.difficulty != "easy"


def session_peaks(history: Sequence[HistoryEntry], ex_id: str) -> list[SessionPeak]:
    """Best reliable e1RM per completed session, most recent first."""
    sessions = completed_session_sets(history)
    peaks: list[SessionPeak] = []
    for sessions_ago, sets in enumerate(reversed(sessions)):
        best: SessionPeak | None = None
        matching = [s for s in sets if s.ex_id == ex_id]
        for set_index, s in enumerate(matching):
            if not _is_reliable(s):
                continue
            value = smart_e1rm(
                s.kg,
                s.reps,
                difficulty=s.difficulty,
                rest_sec=s.rest,
                set_index=set_index,
            )
            if value > 0 and (best is None or value > best.e1rm):
                best = SessionPeak(sessions_ago=sessions_ago, e1rm=value, set=s)
        if best is not None:
            peaks.append(best)
    return peaks


def _current(peaks: Sequence[SessionPeak]) -> float | None:
    recent = [p.e1rm for p in peaks if p.sessions_ago < RECENT_SESSIONS]
    if not recent:
        return None
    return _round1(statistics.median(recent))


def _trend(peaks: Sequence[SessionPeak]) -> Trend | None:
    recent = [p.e1rm for p in peaks if p.sessions_ago < RECENT_SESSIONS]
    previous = [p.e1rm for p in peaks if RECENT_SESSIONS <= p.sessions_ago < 2 * RECENT_SESSIONS]
    if not recent or not previous:
        return None
    delta = (statistics.fmean(recent) - statistics.fmean(previous)) / statistics.fmean(previous)
    if delta > TREND_BAND:
        return "up"
    if delta < -TREND_BAND:
        return "down"
    return "stable"


def suggest_weights(current: float) -> tuple[WeightSuggestion, ...]:
    return tuple(
        WeightSuggestion(
            target_reps=reps,
            suggested_kg=_round_half_up(current / (1 + reps / 30), 0.5),
            description=description,
        )
        for reps, description in SUGGESTION_TARGETS
    )


def calculate_e1rm_metrics(history: Sequence[HistoryEntry], ex_id: str) -> E1rmMetrics:
    peaks = session_peaks(history, ex_id)
    if not peaks:
        return E1rmMetrics(current=None, peak=None, trend=None, suggested_weights=())

    current = _current(peaks)
    return E1rmMetrics(
        current=current,
        peak=_round1(max(p.e1rm for p in peaks)),
        trend=_trend(peaks),
        suggested_weights=suggest_weights(current) if current else (),
    )
