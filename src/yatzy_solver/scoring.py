"""Scoring slots and the Scandinavian Yatzy slot catalogue.

Every scoring function takes an Outcome and returns a float. The catalogue
functions are written for any dice count and face count: straights cover
`num_dice` consecutive faces, the full house splits the dice into a larger
and a smaller group (odd dice counts only).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np

from .config import YATZY_SCORE
from .dice import Outcome

ScoreFn = Callable[[Outcome], float]


@dataclass(frozen=True)
class SlotDescription:
    name: str
    score_fn: ScoreFn
    bonus: bool = False


@dataclass(frozen=True)
class Slot:
    """A category bound to its position in the slot mask."""
    index: int
    name: str
    bonus: bool
    score_fn: ScoreFn

    @property
    def mask(self) -> int:
        return 1 << self.index

    @classmethod
    def from_description(cls, description: SlotDescription, index: int) -> Slot:
        return cls(index=index, name=description.name, bonus=description.bonus,
                   score_fn=description.score_fn)

    def score(self, outcome: Outcome) -> float:
        return float(self.score_fn(outcome))

    def __str__(self) -> str:
        return self.name


def build_score_table(slots: Sequence[Slot], outcomes: Sequence[Outcome]) -> np.ndarray:
    """Dense float64 matrix scores[slot][outcome]."""
    table = np.zeros((len(slots), len(outcomes)), dtype=np.float64)
    for slot in slots:
        for outcome in outcomes:
            table[slot.index, outcome.index] = slot.score(outcome)
    return table


# ── Catalogue ───────────────────────────────────────────────────────────────

def _highest_of_a_kind(o: Outcome, k: int) -> float:
    for face in range(o.num_sides, 0, -1):
        if o.count(face) >= k:
            return float(k * face)
    return 0.0


def upper(face: int, name: str) -> SlotDescription:
    return SlotDescription(name, lambda o: float(o.count(face) * face), bonus=True)


def ones() -> SlotDescription:
    return upper(1, "Ones")


def twos() -> SlotDescription:
    return upper(2, "Twos")


def threes() -> SlotDescription:
    return upper(3, "Threes")


def fours() -> SlotDescription:
    return upper(4, "Fours")


def fives() -> SlotDescription:
    return upper(5, "Fives")


def sixes() -> SlotDescription:
    return upper(6, "Sixes")


def one_pair() -> SlotDescription:
    return SlotDescription("One pair", lambda o: _highest_of_a_kind(o, 2))


def two_pairs() -> SlotDescription:
    def score(o: Outcome) -> float:
        pairs = []
        for face in range(o.num_sides, 0, -1):
            if o.count(face) >= 2:
                pairs.append(face)
                if len(pairs) == 2:
                    return float(2 * pairs[0] + 2 * pairs[1])
        return 0.0
    return SlotDescription("Two pairs", score)


def three_of_a_kind() -> SlotDescription:
    return SlotDescription("Three of a kind", lambda o: _highest_of_a_kind(o, 3))


def four_of_a_kind() -> SlotDescription:
    return SlotDescription("Four of a kind", lambda o: _highest_of_a_kind(o, 4))


def _straight(o: Outcome, first: int) -> float:
    faces = range(first, first + len(o.dice))
    if first < 1 or faces[-1] > o.num_sides:
        return 0.0
    if any(o.count(face) != 1 for face in faces):
        return 0.0
    return float(sum(faces))


def small_straight() -> SlotDescription:
    return SlotDescription("Small straight", lambda o: _straight(o, 1))


def large_straight() -> SlotDescription:
    return SlotDescription(
        "Large straight", lambda o: _straight(o, o.num_sides - len(o.dice) + 1)
    )


def full_house() -> SlotDescription:
    def score(o: Outcome) -> float:
        n = len(o.dice)
        if n % 2 == 0:
            return 0.0
        big = (n + 1) // 2
        big_face = 0
        for face in range(1, o.num_sides + 1):
            if o.count(face) == big:
                big_face = face
        if big_face == 0:
            return 0.0
        for face in range(1, o.num_sides + 1):
            if face != big_face and o.count(face) == big - 1:
                return float(big_face * big + face * (big - 1))
        return 0.0
    return SlotDescription("Full house", score)


def yatzy() -> SlotDescription:
    def score(o: Outcome) -> float:
        return YATZY_SCORE if o.count(o.dice[0]) == len(o.dice) else 0.0
    return SlotDescription("Yatzy", score)


def chance() -> SlotDescription:
    return SlotDescription("Chance", lambda o: float(o.total))


CATALOGUE: dict[str, Callable[[], SlotDescription]] = {
    "ones": ones,
    "twos": twos,
    "threes": threes,
    "fours": fours,
    "fives": fives,
    "sixes": sixes,
    "one_pair": one_pair,
    "two_pairs": two_pairs,
    "three_of_a_kind": three_of_a_kind,
    "four_of_a_kind": four_of_a_kind,
    "small_straight": small_straight,
    "large_straight": large_straight,
    "full_house": full_house,
    "yatzy": yatzy,
    "chance": chance,
}

UPPER_KEYS = ["ones", "twos", "threes", "fours", "fives", "sixes"]


def standard_slots(num_sides: int = 6) -> list[SlotDescription]:
    """Full Scandinavian Yatzy sheet; upper slots above `num_sides` are dropped."""
    return [
        factory()
        for key, factory in CATALOGUE.items()
        if key not in UPPER_KEYS or UPPER_KEYS.index(key) < num_sides
    ]


def slots_by_name(names: Sequence[str]) -> list[SlotDescription]:
    descriptions = []
    for name in names:
        key = name.strip().lower().replace(" ", "_").replace("-", "_")
        factory = CATALOGUE.get(key)
        if factory is None:
            raise ValueError(
                f"Unknown slot {name!r}; choose from {', '.join(CATALOGUE)}"
            )
        descriptions.append(factory())
    return descriptions
