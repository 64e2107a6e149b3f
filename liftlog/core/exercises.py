"""Exercise metadata lookup used to label history output."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExerciseMetadata:
    id: str
    name: str
    equipment: str | None = None


ExerciseLookup = Callable[[str], Optional[ExerciseMetadata]]


def exercise_label(lookup: ExerciseLookup | None, ex_id: str) -> str:
    if lookup is None:
        return ex_id
    meta = lookup(ex_id)
    return meta.name if meta is not None else ex_id


class ExerciseCatalog:
    """Exercise lookup backed by a JSON file, loaded on first use.

    The file holds either a list of ``{"id", "name", "equipment"?}`` objects
    or an ``{id: name}`` object. Call :meth:`invalidate` after the file
    changes.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._cache: dict[str, ExerciseMetadata] | None = None

    def __call__(self, exercise_id: str) -> ExerciseMetadata | None:
        return self.get(exercise_id)

    def get(self, exercise_id: str) -> ExerciseMetadata | None:
        if self._cache is None:
            self._cache = self._load()
        return self._cache.get(exercise_id)

    def invalidate(self) -> None:
        self._cache = None

    def _load(self) -> dict[str, ExerciseMetadata]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unreadable exercise catalog %s: %s", self._path, exc)
            return {}

        out: dict[str, ExerciseMetadata] = {}
        if isinstance(payload, dict):
            for ex_id, name in payload.items():
                out[str(ex_id)] = ExerciseMetadata(id=str(ex_id), name=str(name))
        elif isinstance(payload, list):
            for item in payload:
                if not isinstance(item, dict) or "id" not in item:
                    continue
                ex_id = str(item["id"])
                out[ex_id] = ExerciseMetadata(
                    id=ex_id,
                    name=str(item.get("name", ex_id)),
                    equipment=item.get("equipment"),
                )
        logger.debug("Loaded %d exercises from %s", len(out), self._path)
        return out
