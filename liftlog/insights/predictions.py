"""Suggest the next exercise and its weight/reps from the history log."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Mapping, Optional, Sequence

from liftlog.history.entries import Difficulty, HistoryEntry, SetEntry
from liftlog.history.queries import (
    build_exercise_order,
    completed_session_sets,
    find_last_session_end_index,
    get_current_session_sets,
    get_default_rest,
    get_last_set,
)


ReasonType = Literal[
    "cycle",
    "trend",
    "history-dropset",
    "history-dropset-start",
    "history-sequence",
    "continue",
    "start",
    "session-start",
]

# (kg, reps, difficulty) of one set in a remembered pattern
SetPattern = tuple[float, int, Optional[Difficulty]]


@dataclass(frozen=True)
class PredictionReason:
    type: ReasonType
    pattern: tuple[str, ...] = ()
    delta: tuple[float, int] = (0, 0)
    sets: tuple[SetPattern, ...] = ()
    current_index: int = 0
    matched_session: int = 0


@dataclass(frozen=True)
class NextExercisePrediction:
    ex_id: str
    kg: float
    reps: int
    rest: int
    reason: PredictionReason


@dataclass(frozen=True)
class PredictionContext:
    current_sets: tuple[SetEntry, ...]
    exercise_order: tuple[str, ...]
    last_ex_id: str
    history: Sequence[HistoryEntry]
    rest_times: Mapping[str, int]


PredictionStrategy = Callable[[PredictionContext], Optional[NextExercisePrediction]]


def _trailing_run(sets: Sequence[SetEntry], ex_id: str) -> list[SetEntry]:
    run: list[SetEntry] = []
    for s in reversed(sets):
        if s.ex_id != ex_id:
            break
        run.append(s)
    run.reverse()
    return run


def _pattern_of(sets: Sequence[SetEntry]) -> tuple[SetPattern, ...]:
    return tuple((s.kg, s.reps, s.difficulty) for s in sets)


def predict_drop_set_trend(sets: Sequence[SetEntry], ex_id: str) -> tuple[float, int] | None:
    """Extrapolate the last two consecutive sets of ``ex_id`` one step further."""
    run = _trailing_run(sets, ex_id)
    if len(run) < 2:
        return None
    prev, last = run[-2], run[-1]
    return max(0, last.kg + (last.kg - prev.kg)), max(1, last.reps + (last.reps - prev.reps))


def _find_cycle(order: Sequence[str]) -> tuple[tuple[str, ...], int] | None:
    start = 0
    while start < len(order) - 2:
        sub = order[start:]
        cycle_length = next((i for i in range(1, len(sub)) if sub[i] == sub[0]), -1)
        if cycle_length < 2:
            start += 1
            continue
        pattern = tuple(sub[:cycle_length])
        break_at = next(
            (i for i in range(len(sub)) if sub[i] != pattern[i % cycle_length]), -1
        )
        if break_at == -1:
            return pattern, len(sub)
        start += break_at
    return None


def _try_cycle_pattern(ctx: PredictionContext) -> NextExercisePrediction | None:
    if len(ctx.exercise_order) < 3:
        return None
    found = _find_cycle(ctx.exercise_order)
    if found is None:
        return None
    pattern, length = found
    next_ex_id = pattern[length % len(pattern)]

    source = next((s for s in reversed(ctx.current_sets) if s.ex_id == next_ex_id), None)
    if source is None:
        source = get_last_set(ctx.history, next_ex_id)
    return NextExercisePrediction(
        ex_id=next_ex_id,
        kg=source.kg if source else 0,
        reps=source.reps if source else 0,
        rest=get_default_rest(ctx.history, next_ex_id, ctx.rest_times),
        reason=PredictionReason(type="cycle", pattern=pattern),
    )


def _trend_prediction(
    ctx_history: Sequence[HistoryEntry],
    rest_times: Mapping[str, int],
    sets: Sequence[SetEntry],
    ex_id: str,
) -> NextExercisePrediction | None:
    trend = predict_drop_set_trend(sets, ex_id)
    if trend is None:
        return None
    run = _trailing_run(sets, ex_id)
    prev, last = run[-2], run[-1]
    return NextExercisePrediction(
        ex_id=ex_id,
        kg=trend[0],
        reps=trend[1],
        rest=get_default_rest(ctx_history, ex_id, rest_times),
        reason=PredictionReason(type="trend", delta=(last.kg - prev.kg, last.reps - prev.reps)),
    )


def _try_current_trend(ctx: PredictionContext) -> NextExercisePrediction | None:
    return _trend_prediction(ctx.history, ctx.rest_times, ctx.current_sets, ctx.last_ex_id)


def _try_historical_drop_set(ctx: PredictionContext) -> NextExercisePrediction | None:
    current_ex_sets = [s for s in ctx.current_sets if s.ex_id == ctx.last_ex_id]
    if not current_ex_sets:
        return None
    first = current_ex_sets[0]
    next_index = len(current_ex_sets)

    sessions = completed_session_sets(ctx.history)
    for index in range(len(sessions) - 1, -1, -1):
        for block in _blocks_of(sessions[index], ctx.last_ex_id):
            if len(block) < 2:
                continue
            if first.kg != block[0].kg or first.reps != block[0].reps:
                continue
            if next_index >= len(block):
                continue
            return NextExercisePrediction(
                ex_id=ctx.last_ex_id,
                kg=block[next_index].kg,
                reps=block[next_index].reps,
                rest=get_default_rest(ctx.history, ctx.last_ex_id, ctx.rest_times),
                reason=PredictionReason(
                    type="history-dropset",
                    matched_session=len(sessions) - index,
                    sets=_pattern_of(block),
                    current_index=next_index,
                ),
            )
    return None


def _blocks_of(sets: Sequence[SetEntry], ex_id: str) -> list[list[SetEntry]]:
    blocks: list[list[SetEntry]] = []
    block: list[SetEntry] = []
    for s in sets:
        if s.ex_id == ex_id:
            block.append(s)
        elif block:
            blocks.append(block)
            block = []
    if block:
        blocks.append(block)
    return blocks


def _unique(ids: Sequence[str]) -> list[str]:
    out: list[str] = []
    for ex_id in ids:
        if ex_id not in out:
            out.append(ex_id)
    return out


def _try_historical_sequence(ctx: PredictionContext) -> NextExercisePrediction | None:
    sequence = _unique(ctx.exercise_order)
    sessions = completed_session_sets(ctx.history)

    for index in range(len(sessions) - 1, -1, -1):
        sets = sessions[index]
        session_sequence = _unique([s.ex_id for s in sets])
        if len(session_sequence) <= len(sequence):
            continue
        if session_sequence[: len(sequence)] != sequence:
            continue
        next_ex_id = session_sequence[len(sequence)]
        next_set = next(s for s in sets if s.ex_id == next_ex_id)
        return NextExercisePrediction(
            ex_id=next_ex_id,
            kg=next_set.kg,
            reps=next_set.reps,
            rest=get_default_rest(ctx.history, next_ex_id, ctx.rest_times),
            reason=PredictionReason(type="history-sequence", matched_session=len(sessions) - index),
        )
    return None


def _fallback_continue(ctx: PredictionContext) -> NextExercisePrediction | None:
    if not ctx.last_ex_id:
        return None
    last = next((s for s in reversed(ctx.current_sets) if s.ex_id == ctx.last_ex_id), None)
    return NextExercisePrediction(
        ex_id=ctx.last_ex_id,
        kg=last.kg if last else 0,
        reps=last.reps if last else 0,
        rest=get_default_rest(ctx.history, ctx.last_ex_id, ctx.rest_times),
        reason=PredictionReason(type="continue"),
    )


STRATEGIES: tuple[PredictionStrategy, ...] = (
    _try_cycle_pattern,
    _try_current_trend,
    _try_historical_drop_set,
    _try_historical_sequence,
    _fallback_continue,
)


def _first_set_of_last_completed_session(history: Sequence[HistoryEntry]) -> SetEntry | None:
    end = find_last_session_end_index(history)
    if end == -1:
        return None
    start = find_last_session_end_index(history[:end]) + 1
    return next((e for e in history[start:end] if isinstance(e, SetEntry)), None)


def predict_next_exercise(
    history: Sequence[HistoryEntry], rest_times: Mapping[str, int] | None = None
) -> NextExercisePrediction | None:
    rest_times = rest_times or {}
    current_sets = get_current_session_sets(history)

    if not current_sets:
        first = _first_set_of_last_completed_session(history)
        if first is None:
            return None
        return NextExercisePrediction(
            ex_id=first.ex_id,
            kg=first.kg,
            reps=first.reps,
            rest=get_default_rest(history, first.ex_id, rest_times),
            reason=PredictionReason(type="session-start"),
        )

    order = build_exercise_order(current_sets)
    ctx = PredictionContext(
        current_sets=tuple(current_sets),
        exercise_order=tuple(order),
        last_ex_id=order[-1],
        history=history,
        rest_times=rest_times,
    )
    for strategy in STRATEGIES:
        result = strategy(ctx)
        if result is not None:
            return result
    return None


def get_exercise_pattern_from_last_session(
    history: Sequence[HistoryEntry], ex_id: str
) -> tuple[SetPattern, ...] | None:
    """All sets of ``ex_id`` in the latest completed session that has any."""
    if find_last_session_end_index(history) == -1:
        sets = [e for e in history if isinstance(e, SetEntry) and e.ex_id == ex_id]
        return _pattern_of(sets) if sets else None

    for sets in reversed(completed_session_sets(history)):
        matching = [s for s in sets if s.ex_id == ex_id]
        if matching:
            return _pattern_of(matching)
    return None


def predict_exercise_values(
    history: Sequence[HistoryEntry],
    rest_times: Mapping[str, int] | None,
    ex_id: str,
) -> NextExercisePrediction | None:
    rest_times = rest_times or {}
    current_sets = get_current_session_sets(history)
    ex_sets = [s for s in current_sets if s.ex_id == ex_id]

    if ex_sets:
        prediction = predict_next_exercise(history, rest_times)
        if prediction is not None and prediction.ex_id == ex_id:
            return prediction
        if len(ex_sets) >= 2:
            trend = _trend_prediction(history, rest_times, current_sets, ex_id)
            if trend is not None:
                return trend
        last = ex_sets[-1]
        return NextExercisePrediction(
            ex_id=ex_id,
            kg=last.kg,
            reps=last.reps,
            rest=get_default_rest(history, ex_id, rest_times),
            reason=PredictionReason(type="continue"),
        )

    pattern = get_exercise_pattern_from_last_session(history, ex_id)
    if not pattern:
        return None
    kg, reps, _ = pattern[0]
    reason = (
        PredictionReason(type="history-dropset-start", sets=pattern)
        if len(pattern) >= 2
        else PredictionReason(type="start")
    )
    return NextExercisePrediction(
        ex_id=ex_id,
        kg=kg,
        reps=reps,
        rest=get_default_rest(history, ex_id, rest_times),
        reason=reason,
    )
