from __future__ import annotations

import pytest

from liftlog.history.entries import HistoryEntry, SessionEndMarker, SetEntry
from liftlog.insights.e1rm import (
    base_e1rm,
    calculate_e1rm_metrics,
    difficulty_multiplier,
    fatigue_multiplier,
    rest_multiplier,
    smart_e1rm,
)


def _bench(ts: int, kg: float, reps: int, difficulty: str | None = "hard") -> SetEntry:
    return SetEntry(ex_id="bench", kg=kg, reps=reps, ts=ts, difficulty=difficulty)  # type: ignore[arg-type]


def _sessions(*weights: float) -> tuple[HistoryEntry, ...]:
    out: list[HistoryEntry] = []
    for i, kg in enumerate(weights):
        out.append(_bench(i * 2000 + 1000, kg, 5))
        out.append(SessionEndMarker(ts=i * 2000 + 2000))
    return tuple(out)


def test_base_e1rm() -> None:
    assert base_e1rm(100, 1) == 100
    assert base_e1rm(100, 10) == pytest.approx(133.33, abs=0.01)
    assert base_e1rm(0, 5) == 0
    assert base_e1rm(100, 0) == 0
    assert base_e1rm(-10, 5) == 0


def test_multipliers() -> None:
    assert difficulty_multiplier("easy") == 1.07
    assert difficulty_multiplier("normal") == 1.03
    assert difficulty_multiplier("hard") == 1.00
    assert difficulty_multiplier(None) == 1.03

    assert rest_multiplier(30) == 1.10
    assert rest_multiplier(59) == 1.10
    assert rest_multiplier(60) == 1.05
    assert rest_multiplier(120) == 1.05
    assert rest_multiplier(121) == 1.00
    assert rest_multiplier(None) == 1.00

    assert fatigue_multiplier(0) == 1.00
    assert fatigue_multiplier(2) == 1.02
    assert fatigue_multiplier(5) == 1.05
    assert fatigue_multiplier(8) == 1.08
    assert fatigue_multiplier(20) == 1.08


def test_smart_e1rm_applies_all_multipliers() -> None:
    expected = 100 * (1 + 5 / 30) * 1.07 * 1.10 * 1.02

    result = smart_e1rm(100, 5, difficulty="easy", rest_sec=30, set_index=2)

    assert result == pytest.approx(expected, abs=0.05)
    assert smart_e1rm(0, 5) == 0


def test_metrics_empty() -> None:
    metrics = calculate_e1rm_metrics((), "bench")

    assert metrics.current is None
    assert metrics.peak is None
    assert metrics.trend is None
    assert metrics.suggested_weights == ()


def test_metrics_ignore_other_exercises_and_active_session() -> None:
    history = (
        SetEntry(ex_id="row", kg=60, reps=10, ts=1000),
        SessionEndMarker(ts=2000),
        _bench(3000, 100, 5),
    )

    assert calculate_e1rm_metrics(history, "bench").current is None


def test_metrics_skip_warmups_and_high_rep_sets() -> None:
    warmup = (_bench(1000, 60, 10, "easy"), _bench(2000, 100, 5), SessionEndMarker(ts=3000))
    high_reps = (_bench(1000, 40, 20), _bench(2000, 80, 8), SessionEndMarker(ts=3000))

    # 100 × 5 as the second set: 116.67 × 1.01
    assert calculate_e1rm_metrics(warmup, "bench").current == pytest.approx(117.8)
    assert calculate_e1rm_metrics(high_reps, "bench").current == pytest.approx(102.3)


def test_metrics_peak_and_current() -> None:
    metrics = calculate_e1rm_metrics(_sessions(80, 100, 90), "bench")

    assert metrics.peak == pytest.approx(116.7)
    assert metrics.current == pytest.approx(105.0)
    assert metrics.trend is None


def test_metrics_trend() -> None:
    assert calculate_e1rm_metrics(_sessions(80, 80, 80, 100, 100, 100), "bench").trend == "up"
    assert calculate_e1rm_metrics(_sessions(100, 100, 100, 80, 80, 80), "bench").trend == "down"
    assert calculate_e1rm_metrics(_sessions(100, 100, 100, 100, 100, 101), "bench").trend == "stable"


def test_suggested_weights() -> None:
    metrics = calculate_e1rm_metrics(_sessions(100), "bench")

    by_reps = {s.target_reps: s for s in metrics.suggested_weights}
    assert set(by_reps) == {5, 8, 12, 15}
    assert by_reps[5].suggested_kg == 100
    assert by_reps[5].description == "Strength"
    assert all(s.suggested_kg % 0.5 == 0 for s in metrics.suggested_weights)
