"""DiceGame: the immutable tables every solver and simulation reads."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .config import (
    DEFAULT_BONUS_SCORE,
    DEFAULT_BONUS_THRESHOLD,
    MAX_SLOTS,
    GameConfig,
)
from .dice import (
    Move,
    Outcome,
    ProbabilityList,
    TransitionTable,
    generate_moves,
    generate_outcomes,
    random_index_from_probabilities,
)
from .logger import YatzyLogger
from .scoring import Slot, SlotDescription, build_score_table

logger = YatzyLogger(__name__).get_logger()


class DiceGame:
    """Outcomes, moves, slots, scores and transitions for one configuration.

    All tables are built in the constructor and never change afterwards, so a
    game can be shared freely between solver threads and simulations.
    """

    def __init__(
        self,
        num_dice: int,
        num_sides: int,
        num_rerolls: int,
        slot_descriptions: Sequence[SlotDescription],
        bonus_threshold: float = DEFAULT_BONUS_THRESHOLD,
        bonus_score: float = DEFAULT_BONUS_SCORE,
    ) -> None:
        self.config = GameConfig(
            num_dice=num_dice,
            num_sides=num_sides,
            num_rerolls=num_rerolls,
            bonus_threshold=bonus_threshold,
            bonus_score=bonus_score,
        )
        if not slot_descriptions:
            raise ValueError("A game needs at least one slot")
        if len(slot_descriptions) > MAX_SLOTS:
            raise ValueError(
                f"{len(slot_descriptions)} slots exceed the slot mask width of {MAX_SLOTS}"
            )

        self._outcomes = generate_outcomes(num_dice, num_sides)
        self._moves = generate_moves(num_dice)
        self._slots = [Slot.from_description(d, i) for i, d in enumerate(slot_descriptions)]
        self._scores = build_score_table(self._slots, self._outcomes)
        self._scores.setflags(write=False)
        self._initial_probabilities = np.array(
            [o.initial_probability for o in self._outcomes], dtype=np.float64
        )
        self._initial_probabilities.setflags(write=False)
        self._transitions = TransitionTable(self._outcomes, self._moves)
        self._outcome_by_dice = {o.dice: o for o in self._outcomes}
        logger.info(
            f"Generated game {self}: {len(self._outcomes)} outcomes, "
            f"{len(self._moves)} moves, {len(self._slots)} slots, "
            f"{self._transitions.nnz} transition entries"
        )

    @classmethod
    def from_config(
        cls, config: GameConfig, slot_descriptions: Sequence[SlotDescription]
    ) -> DiceGame:
        return cls(
            config.num_dice,
            config.num_sides,
            config.num_rerolls,
            slot_descriptions,
            bonus_threshold=config.bonus_threshold,
            bonus_score=config.bonus_score,
        )

    # ── Read-only accessors ────────────────────────────────────────────────

    @property
    def outcomes(self) -> list[Outcome]:
        return self._outcomes

    @property
    def moves(self) -> list[Move]:
        return self._moves

    @property
    def slots(self) -> list[Slot]:
        return self._slots

    @property
    def scores(self) -> np.ndarray:
        """Score table as scores[slot][outcome]."""
        return self._scores

    @property
    def transitions(self) -> TransitionTable:
        return self._transitions

    @property
    def initial_probabilities(self) -> np.ndarray:
        return self._initial_probabilities

    @property
    def num_dice(self) -> int:
        return self.config.num_dice

    @property
    def num_sides(self) -> int:
        return self.config.num_sides

    @property
    def num_rerolls(self) -> int:
        return self.config.num_rerolls

    @property
    def bonus_threshold(self) -> float:
        return self.config.bonus_threshold

    @property
    def bonus_score(self) -> float:
        return self.config.bonus_score

    @property
    def all_slots_mask(self) -> int:
        return (1 << len(self._slots)) - 1

    def score(self, slot: Slot | int, outcome: Outcome | int) -> float:
        slot_index = slot if isinstance(slot, int) else slot.index
        outcome_index = outcome if isinstance(outcome, int) else outcome.index
        return float(self._scores[slot_index, outcome_index])

    def move_probabilities(self, from_index: int, move_index: int) -> ProbabilityList:
        return self._transitions.get(from_index, move_index)

    # ── Lookups ────────────────────────────────────────────────────────────

    def find_outcome(self, dice: Sequence[int]) -> Outcome | None:
        return self._outcome_by_dice.get(tuple(sorted(dice)))

    def find_move(self, rerolled: Sequence[bool]) -> Move | None:
        rerolled = tuple(bool(r) for r in rerolled)
        if len(rerolled) != self.num_dice:
            return None
        index = sum(1 << b for b, r in enumerate(rerolled) if r)
        return self._moves[index]

    def random_initial_outcome(self, rng: np.random.Generator) -> Outcome:
        idx = random_index_from_probabilities(self._initial_probabilities, rng)
        return self._outcomes[idx]

    def __str__(self) -> str:
        return (
            f"#dice: {self.num_dice}, #sides/dice: {self.num_sides}, "
            f"#rerolls/slot: {self.num_rerolls}"
        )
