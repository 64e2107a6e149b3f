"""Circuit (superset) detection within a session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from liftlog.history.entries import SetEntry


@dataclass(frozen=True)
class CircuitGroup:
    pattern: tuple[str, ...]
    rounds: tuple[tuple[SetEntry, ...], ...]
    is_circuit: bool

    @property
    def sets(self) -> tuple[SetEntry, ...]:
        return tuple(s for round_sets in self.rounds for s in round_sets)

    @property
    def timestamps(self) -> tuple[int, ...]:
        return tuple(s.ts for s in self.sets)


def detect_circuits(sets: Sequence[SetEntry]) -> list[CircuitGroup]:
    """Group a session's sets into circuits and straight-set runs.

    A circuit is found when the first exercise of a run of distinct
    exercises comes back (A, B, A). Rounds are then matched greedily
    against the pattern; a short final round is kept. Anything else is
    grouped as consecutive sets of one exercise.
    """
    groups: list[CircuitGroup] = []
    i = 0

    while i < len(sets):
        pattern: list[str] = []
        first_round: list[SetEntry] = []
        j = i
        repeated = False

        while j < len(sets):
            ex_id = sets[j].ex_id
            if pattern and ex_id == pattern[0]:
                repeated = True
                break
            if ex_id in pattern:
                # a later exercise repeated before the first one did
                break
            pattern.append(ex_id)
            first_round.append(sets[j])
            j += 1

        if repeated and len(pattern) > 1:
            rounds: list[tuple[SetEntry, ...]] = [tuple(first_round)]
            round_start = j
            while round_start < len(sets):
                round_sets: list[SetEntry] = []
                for position, expected in enumerate(pattern):
                    index = round_start + position
                    if index >= len(sets) or sets[index].ex_id != expected:
                        break
                    round_sets.append(sets[index])
                if not round_sets:
                    break
                rounds.append(tuple(round_sets))
                round_start += len(round_sets)

            groups.append(
                CircuitGroup(pattern=tuple(pattern), rounds=tuple(rounds), is_circuit=True)
            )
            i = round_start
            continue

        ex_id = sets[i].ex_id
        run: list[SetEntry] = []
        while i < len(sets) and sets[i].ex_id == ex_id:
            run.append(sets[i])
            i += 1
        groups.append(CircuitGroup(pattern=(ex_id,), rounds=(tuple(run),), is_circuit=False))

    return groups
