"""Backward-induction solver over (filled slots, rerolls remaining, outcome).

A stage holds every round with the same number of filled slots. Stages are
built from the end of the game (all slots filled, nothing left to score) back
to the start (no slots filled):

* Stage c is seeded from the solved stage c+1: every solved round can be
  reached by filling one of its filled slots, so un-filling slot s from round
  r proposes `score(s, outcome) + r.expected_score` for the predecessor mask
  `r.slots ^ bit(s)`. The best proposal per outcome is the value of selecting
  a slot once no rerolls remain.
* Each seeded round is then solved level by level: with r rerolls remaining
  the player either selects a slot now or applies a reroll move, whose value
  is the expectation over the outcomes it leads to at r-1.

Rounds inside a stage only read the game tables and the previous stage, so
they are solved concurrently; the next stage starts after all of them are
done.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from tqdm import tqdm

from .config import default_workers
from .game import DiceGame
from .logger import YatzyLogger

logger = YatzyLogger(__name__).get_logger()

UNKNOWN_ACTION = -1


class BestMoveKind(Enum):
    SELECT_SLOT = "select_slot"
    REROLL = "reroll"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class BestMove:
    kind: BestMoveKind
    index: int | None = None

    @classmethod
    def select_slot(cls, slot_index: int) -> BestMove:
        return cls(BestMoveKind.SELECT_SLOT, slot_index)

    @classmethod
    def reroll(cls, move_index: int) -> BestMove:
        return cls(BestMoveKind.REROLL, move_index)

    @classmethod
    def unknown(cls) -> BestMove:
        return cls(BestMoveKind.UNKNOWN)


@dataclass(frozen=True)
class BestMoveWithScore:
    best_move: BestMove
    expected_score: float


class Round:
    """Solved sub-problem for one slot mask.

    values[r][o] / actions[r][o] hold the optimal expected remaining score and
    the encoded action with r rerolls remaining and outcome o. Actions encode
    SelectSlot(s) as s, Reroll(m) as num_slots + m and Unknown as -1.
    """

    def __init__(self, slots: int, num_levels: int, num_outcomes: int) -> None:
        self.slots = slots
        self.values = np.zeros((num_levels, num_outcomes), dtype=np.float32)
        self.actions = np.full((num_levels, num_outcomes), UNKNOWN_ACTION, dtype=np.int32)
        self.expected_score: float | None = None

    @property
    def is_solved(self) -> bool:
        return self.expected_score is not None

    def __repr__(self) -> str:
        return f"Round(slots={self.slots:#b}, expected_score={self.expected_score})"


@dataclass
class Stage:
    """All rounds with `number` filled slots."""
    number: int
    rounds: dict[int, Round] = field(default_factory=dict)
    is_solved: bool = False


class GameSolver:
    """Computes the expected-score-maximizing policy for a DiceGame.

    Parameters
    ----------
    game:
        Fully constructed game whose tables the solver reads.
    workers:
        Threads used to solve the rounds of one stage (defaults to the CPU
        count); 1 solves every round on the calling thread.
    progress:
        Show a tqdm progress bar over stages.
    """

    def __init__(self, game: DiceGame, workers: int | None = None, progress: bool = False) -> None:
        self.game = game
        self.workers = default_workers() if workers is None else max(1, workers)
        self.progress = progress
        self.num_slots = len(game.slots)
        self.num_outcomes = len(game.outcomes)
        self.num_moves = len(game.moves)
        self.num_levels = game.num_rerolls + 1
        self._stages: list[Stage | None] = [None] * (self.num_slots + 1)
        self._is_solved = False

    # ── Solving ────────────────────────────────────────────────────────────

    def solve(self) -> float:
        """Build and solve every stage; return the optimal expected score."""
        all_slots_mask = self.game.all_slots_mask
        stage = self._terminal_stage(all_slots_mask)
        self._stages[stage.number] = stage

        pool = ThreadPoolExecutor(max_workers=self.workers) if self.workers > 1 else nullcontext()
        with pool as executor, tqdm(total=self.num_slots, desc="Stages", disable=not self.progress) as bar:
            while stage.number > 0:
                previous = self._stage_from_successor(stage)
                if not previous.rounds:
                    break
                self._solve_stage(previous, executor)
                self._stages[previous.number] = previous
                stage = previous
                bar.update(1)

        self._is_solved = True
        score = self.expected_score
        logger.info(f"Finished with optimal expected score {score}")
        return score

    def _terminal_stage(self, all_slots_mask: int) -> Stage:
        terminal = Round(all_slots_mask, self.num_levels, self.num_outcomes)
        terminal.expected_score = 0.0
        return Stage(number=self.num_slots, rounds={all_slots_mask: terminal}, is_solved=True)

    def _stage_from_successor(self, successor: Stage) -> Stage:
        """Seed the stage with one filled slot fewer than `successor`."""
        if not successor.is_solved:
            raise RuntimeError(f"Stage {successor.number} must be solved first")
        logger.info(f"Generating stage {successor.number - 1} from stage {successor.number}...")

        # Proposals arrive per predecessor in ascending slot order, so the
        # first maximum in argmax is also the first proposal seen.
        proposals: dict[int, list[tuple[int, float]]] = {}
        for mask in sorted(successor.rounds):
            succ = successor.rounds[mask]
            for slot in self.game.slots:
                if mask & slot.mask:
                    proposals.setdefault(mask ^ slot.mask, []).append(
                        (slot.index, succ.expected_score)
                    )

        scores = self.game.scores
        stage = Stage(number=successor.number - 1)
        for mask in sorted(proposals):
            slot_indices = np.array([s for s, _ in proposals[mask]], dtype=np.int32)
            expected = np.array([e for _, e in proposals[mask]], dtype=np.float64)
            candidates = scores[slot_indices] + expected[:, None]
            best = np.argmax(candidates, axis=0)
            new_round = Round(mask, self.num_levels, self.num_outcomes)
            new_round.values[0] = candidates[best, np.arange(self.num_outcomes)]
            new_round.actions[0] = slot_indices[best]
            stage.rounds[mask] = new_round
        return stage

    def _solve_stage(self, stage: Stage, executor: ThreadPoolExecutor | None) -> None:
        logger.info(f"Solving stage {stage.number} with #{len(stage.rounds)} rounds")
        if executor is None:
            for r in stage.rounds.values():
                self._solve_round(r)
        else:
            # Draining the iterator joins every task and re-raises failures.
            list(executor.map(self._solve_round, stage.rounds.values()))
        stage.is_solved = True

    def _solve_round(self, round_: Round) -> None:
        matrix = self.game.transitions.matrix
        columns = np.arange(self.num_outcomes)
        select_values = round_.values[0].astype(np.float64)
        select_actions = round_.actions[0]

        for level in range(1, self.num_levels):
            move_values = (matrix @ round_.values[level - 1]).reshape(
                self.num_moves, self.num_outcomes
            )
            # Row 0 is "select now", then moves by index: argmax keeps the
            # earliest action among equal values.
            candidates = np.vstack([select_values[None, :], move_values])
            best = np.argmax(candidates, axis=0)
            round_.values[level] = candidates[best, columns]
            round_.actions[level] = np.where(
                best == 0, select_actions, self.num_slots + best - 1
            )

        round_.expected_score = float(
            self.game.initial_probabilities @ round_.values[-1].astype(np.float64)
        )
        logger.debug(f"Solved round {round_.slots:b} with expected score {round_.expected_score}")

    # ── Queries ────────────────────────────────────────────────────────────

    @property
    def is_solved(self) -> bool:
        return self._is_solved

    @property
    def stages(self) -> list[Stage | None]:
        return self._stages

    @property
    def expected_score(self) -> float | None:
        """Optimal expected score of a whole game (None before solving)."""
        initial = self.find_round(0)
        return None if initial is None else initial.expected_score

    def find_round(self, slot_mask: int) -> Round | None:
        if not self._is_solved or slot_mask < 0 or slot_mask > self.game.all_slots_mask:
            return None
        stage = self._stages[bin(slot_mask).count("1")]
        if stage is None:
            return None
        return stage.rounds.get(slot_mask)

    def decode_action(self, code: int) -> BestMove:
        if code == UNKNOWN_ACTION:
            return BestMove.unknown()
        if code < self.num_slots:
            return BestMove.select_slot(code)
        return BestMove.reroll(code - self.num_slots)

    def best_move(
        self, slot_mask: int, rerolls_remaining: int, outcome_index: int
    ) -> BestMoveWithScore | None:
        """Recorded action and expected remaining score, None for unknown states."""
        round_ = self.find_round(slot_mask)
        if round_ is None or not round_.is_solved:
            return None
        if not 0 <= rerolls_remaining < self.num_levels:
            return None
        if not 0 <= outcome_index < self.num_outcomes:
            return None
        return BestMoveWithScore(
            best_move=self.decode_action(int(round_.actions[rerolls_remaining, outcome_index])),
            expected_score=float(round_.values[rerolls_remaining, outcome_index]),
        )
