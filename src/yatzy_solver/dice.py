"""Dice outcome and reroll enumeration, binomial coefficients and transition probabilities.

Outcomes are the C(num_dice + num_sides - 1, num_dice) sorted multisets of face
values, in lexicographic order. Moves are the 2**num_dice reroll selections;
bit b of a move index set means die position b (of the sorted outcome) is
rerolled. The transition table stores, per (outcome, move), the positive-mass
destinations, sharing one list between sources with the same kept multiset.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from itertools import combinations_with_replacement

import numpy as np
from scipy import sparse

from .config import DRAW_TOLERANCE, PROBABILITY_TOLERANCE

ProbabilityList = list[tuple[int, float]]


@dataclass(frozen=True)
class Outcome:
    """One unordered roll of all dice."""
    index: int
    dice: tuple[int, ...]
    num_sides: int
    initial_probability: float

    def count(self, value: int) -> int:
        return self.dice.count(value)

    @property
    def total(self) -> int:
        return sum(self.dice)

    def __str__(self) -> str:
        return "(" + ",".join(str(d) for d in self.dice) + ")"


@dataclass(frozen=True)
class Move:
    """Reroll selection: rerolled[b] is True when die position b is rerolled."""
    index: int
    rerolled: tuple[bool, ...]

    @property
    def num_rerolled(self) -> int:
        return sum(self.rerolled)

    def kept(self, outcome: Outcome) -> tuple[int, ...]:
        return tuple(d for d, r in zip(outcome.dice, self.rerolled) if not r)

    def __str__(self) -> str:
        return "(" + ",".join("x" if r else "-" for r in self.rerolled) + ")"


def generate_outcomes(num_dice: int, num_sides: int) -> list[Outcome]:
    """Enumerate sorted outcomes with their a-priori probability.

    The probability of an outcome is derived from its suffix (one die fewer):
    prepending face d multiplies by 1/num_sides and by the number of new
    orderings, n / (count of d in the suffix + 1).
    """
    inv_sides = 1.0 / num_sides
    probabilities: dict[tuple[int, ...], float] = {
        (d,): inv_sides for d in range(1, num_sides + 1)
    }
    for n in range(2, num_dice + 1):
        for dice in combinations_with_replacement(range(1, num_sides + 1), n):
            suffix = dice[1:]
            probabilities[dice] = (
                probabilities[suffix] * inv_sides * n / (suffix.count(dice[0]) + 1)
            )

    outcomes = [
        Outcome(index=i, dice=dice, num_sides=num_sides, initial_probability=probabilities[dice])
        for i, dice in enumerate(
            combinations_with_replacement(range(1, num_sides + 1), num_dice)
        )
    ]
    total = sum(o.initial_probability for o in outcomes)
    if abs(total - 1.0) > PROBABILITY_TOLERANCE:
        raise RuntimeError(f"Outcome probabilities sum to {total}, expected 1.0")
    return outcomes


def generate_moves(num_dice: int) -> list[Move]:
    return [
        Move(index=r, rerolled=tuple(bool(r & (1 << b)) for b in range(num_dice)))
        for r in range(2**num_dice)
    ]


_choose_table: list[list[int]] = [[1]]


def choose(n: int, k: int) -> int:
    """Binomial coefficient from a memoized Pascal's triangle."""
    if k < 0 or k > n:
        return 0
    while len(_choose_table) <= n:
        prev = _choose_table[-1]
        row = [1] + [prev[i - 1] + prev[i] for i in range(1, len(prev))] + [1]
        _choose_table.append(row)
    return _choose_table[n][k]


def _remaining_after_keep(kept: Sequence[int], to: Outcome) -> list[int] | None:
    """Remove the kept dice from `to`; None when a kept die is missing."""
    remaining = list(to.dice)
    for value in kept:
        try:
            remaining.remove(value)
        except ValueError:
            return None
    return remaining


def _reroll_probability(kept: Sequence[int], to: Outcome) -> float:
    remaining = _remaining_after_keep(kept, to)
    if remaining is None:
        return 0.0
    dice_left = len(remaining)
    p = (1.0 / to.num_sides) ** dice_left
    for value in range(1, to.num_sides + 1):
        c = remaining.count(value)
        if c > 0:
            p *= choose(dice_left, c)
            dice_left -= c
    return p


def transition_probability(move: Move, from_outcome: Outcome, to: Outcome) -> float:
    """Probability of landing on `to` when applying `move` to `from_outcome`."""
    if len(move.rerolled) != len(from_outcome.dice) or len(to.dice) != len(from_outcome.dice):
        raise ValueError("move and outcomes disagree on the number of dice")
    return _reroll_probability(move.kept(from_outcome), to)


class TransitionTable:
    """Sparse (outcome, move) -> [(outcome, probability)] table.

    `matrix` is the same table as a CSR matrix of shape
    (num_moves * num_outcomes, num_outcomes), row `move * num_outcomes + from`,
    so `matrix @ values` gives the expected value of every move from every
    outcome in one product.
    """

    def __init__(self, outcomes: Sequence[Outcome], moves: Sequence[Move]) -> None:
        self.num_outcomes = len(outcomes)
        self.num_moves = len(moves)
        self._entries: dict[tuple[int, int], ProbabilityList] = {}

        by_kept: dict[tuple[int, ...], ProbabilityList] = {}
        for from_outcome in outcomes:
            for move in moves:
                kept = move.kept(from_outcome)
                destinations = by_kept.get(kept)
                if destinations is None:
                    destinations = []
                    for to in outcomes:
                        p = _reroll_probability(kept, to)
                        if p > 0.0:
                            destinations.append((to.index, p))
                    total = sum(p for _, p in destinations)
                    if abs(total - 1.0) > PROBABILITY_TOLERANCE:
                        raise RuntimeError(
                            f"Transition probabilities for kept dice {kept} sum to {total}"
                        )
                    by_kept[kept] = destinations
                self._entries[(from_outcome.index, move.index)] = destinations
        self.num_kept_multisets = len(by_kept)
        self.matrix = self._build_matrix()

    def _build_matrix(self) -> sparse.csr_matrix:
        rows: list[int] = []
        cols: list[int] = []
        vals: list[float] = []
        for (from_index, move_index), destinations in self._entries.items():
            row = move_index * self.num_outcomes + from_index
            for to_index, p in destinations:
                rows.append(row)
                cols.append(to_index)
                vals.append(p)
        return sparse.csr_matrix(
            (np.array(vals, dtype=np.float64), (np.array(rows), np.array(cols))),
            shape=(self.num_moves * self.num_outcomes, self.num_outcomes),
        )

    def get(self, from_index: int, move_index: int) -> ProbabilityList:
        return self._entries[(from_index, move_index)]

    def __getitem__(self, key: tuple[int, int]) -> ProbabilityList:
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def nnz(self) -> int:
        return int(self.matrix.nnz)


def random_index_from_probabilities(
    probabilities: Iterable[float], rng: np.random.Generator
) -> int:
    """Pick an index with the given probabilities using one uniform draw."""
    r = float(rng.random())
    last_idx = -1
    for idx, p in enumerate(probabilities):
        if r < p:
            return idx
        r -= p
        last_idx = idx
    if last_idx >= 0 and r < DRAW_TOLERANCE:
        return last_idx
    raise RuntimeError("Probabilities did not sum to 1.0")
