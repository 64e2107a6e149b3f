"""History log (de)serialization to JSON-ready values."""

from __future__ import annotations

import math
from typing import Any, Sequence

from liftlog.history.entries import (
    DIFFICULTIES,
    Difficulty,
    HistoryEntry,
    HistoryLog,
    SessionEndMarker,
    SetEntry,
)


class HistoryParseError(ValueError):
    """Raised when stored history data is invalid."""


# Compact share-link encoding uses numeric difficulty codes.
_DIFFICULTY_CODES: dict[int, Difficulty] = {0: "easy", 1: "normal", 2: "hard"}


def encode_entry(entry: HistoryEntry) -> dict[str, Any]:
    if isinstance(entry, SessionEndMarker):
        return {"type": "session-end", "ts": entry.ts}
    out: dict[str, Any] = {
        "type": "set",
        "exId": entry.ex_id,
        "kg": entry.kg,
        "reps": entry.reps,
        "ts": entry.ts,
    }
    if entry.rest is not None:
        out["rest"] = entry.rest
    if entry.difficulty is not None:
        out["difficulty"] = entry.difficulty
    if entry.duration is not None:
        out["duration"] = entry.duration
    return out


def encode_history(history: Sequence[HistoryEntry]) -> list[dict[str, Any]]:
    return [encode_entry(entry) for entry in history]


def decode_history(raw: object) -> HistoryLog:
    if not isinstance(raw, list):
        raise HistoryParseError("History must be an array")
    entries = tuple(decode_entry(item, index=i) for i, item in enumerate(raw))
    seen: set[int] = set()
    for i, entry in enumerate(entries):
        if entry.ts in seen:
            raise HistoryParseError(f"Entry {i + 1}: duplicate ts {entry.ts}")
        seen.add(entry.ts)
    return entries


def decode_entry(raw: object, *, index: int = 0) -> HistoryEntry:
    if not isinstance(raw, dict):
        raise HistoryParseError(f"Entry {index + 1}: must be an object")
    if "t" in raw:
        return _decode_compact(raw, index=index)

    kind = raw.get("type")
    if kind == "session-end":
        return SessionEndMarker(ts=_parse_int_field(raw=raw.get("ts"), field_name="ts", index=index))
    if kind != "set":
        raise HistoryParseError(f"Entry {index + 1}: unknown type {kind!r}")

    return _build_set(
        ex_id_obj=raw.get("exId"),
        kg_obj=raw.get("kg"),
        reps_obj=raw.get("reps"),
        ts_obj=raw.get("ts"),
        rest_obj=raw.get("rest"),
        difficulty_obj=raw.get("difficulty"),
        duration_obj=raw.get("duration"),
        index=index,
    )


def _decode_compact(raw: dict[str, Any], *, index: int) -> HistoryEntry:
    kind = raw.get("t")
    if kind == 1:
        return SessionEndMarker(ts=_parse_int_field(raw=raw.get("x"), field_name="ts", index=index))
    if kind != 0:
        raise HistoryParseError(f"Entry {index + 1}: unknown compact type {kind!r}")

    code = raw.get("d")
    if code is None:
        difficulty_obj = None
    elif code in _DIFFICULTY_CODES:
        difficulty_obj = _DIFFICULTY_CODES[code]
    else:
        raise HistoryParseError(f"Entry {index + 1}: invalid difficulty")

    return _build_set(
        ex_id_obj=raw.get("i"),
        kg_obj=raw.get("k"),
        reps_obj=raw.get("c"),
        ts_obj=raw.get("x"),
        rest_obj=raw.get("w"),
        difficulty_obj=difficulty_obj,
        duration_obj=raw.get("u"),
        index=index,
    )


def _build_set(
    *,
    ex_id_obj: object,
    kg_obj: object,
    reps_obj: object,
    ts_obj: object,
    rest_obj: object,
    difficulty_obj: object,
    duration_obj: object,
    index: int,
) -> SetEntry:
    if not isinstance(ex_id_obj, str) or not ex_id_obj.strip():
        raise HistoryParseError(f"Entry {index + 1}: exId must be a non-empty string")

    kg = _parse_float_field(raw=kg_obj, field_name="kg", index=index)
    reps = _parse_int_field(raw=reps_obj, field_name="reps", index=index)
    ts = _parse_int_field(raw=ts_obj, field_name="ts", index=index)
    if kg < 0:
        raise HistoryParseError(f"Entry {index + 1}: kg must be >= 0")
    if reps < 0:
        raise HistoryParseError(f"Entry {index + 1}: reps must be >= 0")

    rest = _parse_optional_int_field(raw=rest_obj, field_name="rest", index=index)
    duration = _parse_optional_int_field(raw=duration_obj, field_name="duration", index=index)

    difficulty: Difficulty | None
    if difficulty_obj is None:
        difficulty = None
    elif difficulty_obj in DIFFICULTIES:
        difficulty = difficulty_obj  # type: ignore[assignment]
    else:
        raise HistoryParseError(f"Entry {index + 1}: invalid difficulty {difficulty_obj!r}")

    return SetEntry(
        ex_id=ex_id_obj,
        kg=kg,
        reps=reps,
        ts=ts,
        rest=rest,
        difficulty=difficulty,
        duration=duration,
    )


def _parse_int_field(*, raw: object, field_name: str, index: int) -> int:
    if raw is None or isinstance(raw, bool):
        raise HistoryParseError(f"Entry {index + 1}: invalid {field_name}")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise HistoryParseError(f"Entry {index + 1}: invalid {field_name}")
        return int(raw)
    try:
        return int(str(raw).strip())
    except ValueError as exc:
        raise HistoryParseError(f"Entry {index + 1}: invalid {field_name}") from exc


def _parse_float_field(*, raw: object, field_name: str, index: int) -> float:
    if raw is None or isinstance(raw, bool):
        raise HistoryParseError(f"Entry {index + 1}: invalid {field_name}")
    if isinstance(raw, int):
        return raw
    try:
        value = float(str(raw).strip())
    except ValueError as exc:
        raise HistoryParseError(f"Entry {index + 1}: invalid {field_name}") from exc
    if not math.isfinite(value):
        raise HistoryParseError(f"Entry {index + 1}: invalid {field_name}")
    return value


def _parse_optional_int_field(*, raw: object, field_name: str, index: int) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, str) and raw.strip() == "":
        return None
    return _parse_int_field(raw=raw, field_name=field_name, index=index)
