from __future__ import annotations

from liftlog.history.circuits import detect_circuits
from liftlog.history.entries import SetEntry


def _sets(ids: str) -> list[SetEntry]:
    return [SetEntry(ex_id=ex_id, kg=20.0, reps=10, ts=1000 + i) for i, ex_id in enumerate(ids)]


def _ids(rounds: tuple[tuple[SetEntry, ...], ...]) -> list[list[str]]:
    return [[s.ex_id for s in round_sets] for round_sets in rounds]


def test_alternating_pair_is_one_circuit() -> None:
    groups = detect_circuits(_sets("ABABAB"))

    assert len(groups) == 1
    assert groups[0].is_circuit is True
    assert groups[0].pattern == ("A", "B")
    assert _ids(groups[0].rounds) == [["A", "B"], ["A", "B"], ["A", "B"]]


def test_straight_sets_are_not_a_circuit() -> None:
    groups = detect_circuits(_sets("AAA"))

    assert len(groups) == 1
    assert groups[0].is_circuit is False
    assert groups[0].pattern == ("A",)
    assert _ids(groups[0].rounds) == [["A", "A", "A"]]


def test_mixed_sequence() -> None:
    groups = detect_circuits(_sets("AABCBCD"))

    assert [(g.pattern, g.is_circuit) for g in groups] == [
        (("A",), False),
        (("B", "C"), True),
        (("D",), False),
    ]
    assert _ids(groups[0].rounds) == [["A", "A"]]
    assert _ids(groups[1].rounds) == [["B", "C"], ["B", "C"]]
    assert _ids(groups[2].rounds) == [["D"]]


def test_partial_final_round_is_kept() -> None:
    groups = detect_circuits(_sets("ABABA"))

    assert len(groups) == 1
    assert _ids(groups[0].rounds) == [["A", "B"], ["A", "B"], ["A"]]


def test_empty_and_single_set() -> None:
    assert detect_circuits([]) == []

    groups = detect_circuits(_sets("A"))
    assert len(groups) == 1
    assert groups[0].is_circuit is False
    assert _ids(groups[0].rounds) == [["A"]]


def test_repeat_of_later_exercise_degrades_to_straight_sets() -> None:
    # A, B, B: B repeats before A comes back
    groups = detect_circuits(_sets("ABB"))

    assert [(g.pattern, g.is_circuit) for g in groups] == [
        (("A",), False),
        (("B",), False),
    ]
    assert _ids(groups[1].rounds) == [["B", "B"]]


def test_three_exercise_circuit_with_broken_round() -> None:
    groups = detect_circuits(_sets("ABCABDD"))

    assert groups[0].pattern == ("A", "B", "C")
    assert _ids(groups[0].rounds) == [["A", "B", "C"], ["A", "B"]]
    assert groups[1].pattern == ("D",)
    assert _ids(groups[1].rounds) == [["D", "D"]]


def test_groups_cover_sets_in_order() -> None:
    sets = _sets("AABACBCBCDDEFEFE")
    groups = detect_circuits(sets)

    flattened = [s for g in groups for s in g.sets]
    assert flattened == sets
    assert detect_circuits(sets) == groups
