"""Human-readable text for predictions, rests and durations."""

from __future__ import annotations

import time

from liftlog.insights.predictions import NextExercisePrediction


def _capitalize(s: str) -> str:
    return s[:1].upper() + s[1:]


def _weight(kg: float) -> str:
    return f"{kg:g}kg"


def format_rest(seconds: int) -> str:
    mins, secs = divmod(int(seconds), 60)
    return f"{mins}:{secs:02d}" if mins > 0 else f"{secs}s"


def format_duration(start_ts: int, end_ts: int | None) -> str:
    end = end_ts if end_ts is not None else int(time.time() * 1000)
    mins = max(0, (end - start_ts) // 1000) // 60
    hrs = mins // 60
    if hrs > 0:
        return f"{hrs}h {mins % 60}m"
    return f"{mins}m"


def format_detailed_prediction(prediction: NextExercisePrediction) -> str:
    reason = prediction.reason
    values = f"{_weight(prediction.kg)} × {prediction.reps}"

    if reason.type == "cycle":
        return f"{' → '.join(_capitalize(ex_id) for ex_id in reason.pattern)} cycle: {values}"
    if reason.type == "trend":
        delta_kg, delta_reps = reason.delta
        if delta_kg == 0 and delta_reps == 0:
            return f"Continue: {values}"
        prev = f"{_weight(prediction.kg - delta_kg)} × {prediction.reps - delta_reps}"
        return f"Trend: {prev} → {values}"
    if reason.type == "history-dropset":
        parts = []
        for i, (kg, reps, _) in enumerate(reason.sets):
            text = f"{_weight(kg)} × {reps}"
            parts.append(f"({text})" if i == reason.current_index else text)
        return f"Following last session: {' → '.join(parts)}"
    if reason.type == "history-dropset-start":
        return "Last session: " + " → ".join(f"{_weight(kg)} × {reps}" for kg, reps, _ in reason.sets)
    if reason.type == "history-sequence":
        ago = "last workout" if reason.matched_session == 1 else f"workout {reason.matched_session} ago"
        return f"Based on {ago}: {values}"
    if reason.type == "start":
        return f"From last session: {values}"
    if reason.type == "session-start":
        return f"Start with: {values}"
    return f"Continue: {values}"
