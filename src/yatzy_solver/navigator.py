"""Walk a solved policy one decision at a time."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .dice import Outcome, random_index_from_probabilities
from .scoring import Slot
from .solver import BestMoveKind, GameSolver


@dataclass(frozen=True)
class State:
    """Position in a game: filled slots, rerolls left, current outcome and score so far."""
    slot_mask: int
    rerolls_remaining: int
    outcome_index: int
    score: float = 0.0


def initial_state(
    solver: GameSolver,
    outcome: Outcome | None = None,
    rng: np.random.Generator | None = None,
) -> State:
    """Start of a game; the first outcome is drawn when not given."""
    if outcome is None:
        rng = rng if rng is not None else np.random.default_rng()
        outcome = solver.game.random_initial_outcome(rng)
    return State(
        slot_mask=0,
        rerolls_remaining=solver.game.num_rerolls,
        outcome_index=outcome.index,
    )


def advance(
    solver: GameSolver,
    state: State,
    rng: np.random.Generator | None = None,
) -> State | None:
    """Apply the recorded best action; None once the game is over."""
    best = solver.best_move(state.slot_mask, state.rerolls_remaining, state.outcome_index)
    if best is None:
        return None
    game = solver.game
    move = best.best_move
    rng = rng if rng is not None else np.random.default_rng()

    if move.kind is BestMoveKind.SELECT_SLOT:
        slot = game.slots[move.index]
        return State(
            slot_mask=state.slot_mask | slot.mask,
            rerolls_remaining=game.num_rerolls,
            outcome_index=game.random_initial_outcome(rng).index,
            score=state.score + game.score(slot, state.outcome_index),
        )
    if move.kind is BestMoveKind.REROLL:
        probabilities = game.move_probabilities(state.outcome_index, move.index)
        idx = random_index_from_probabilities((p for _, p in probabilities), rng)
        return State(
            slot_mask=state.slot_mask,
            rerolls_remaining=state.rerolls_remaining - 1,
            outcome_index=probabilities[idx][0],
            score=state.score,
        )
    return None


def is_final(solver: GameSolver, state: State) -> bool:
    best = solver.best_move(state.slot_mask, state.rerolls_remaining, state.outcome_index)
    return best is None or best.best_move.kind is BestMoveKind.UNKNOWN


def filled_slots(solver: GameSolver, state: State) -> list[Slot]:
    return [s for s in solver.game.slots if s.mask & state.slot_mask]


def available_slots(solver: GameSolver, state: State) -> list[Slot]:
    return [s for s in solver.game.slots if not s.mask & state.slot_mask]


def describe_best_move(solver: GameSolver, state: State) -> str:
    best = solver.best_move(state.slot_mask, state.rerolls_remaining, state.outcome_index)
    if best is None:
        return "Unknown position!"
    move = best.best_move
    if move.kind is BestMoveKind.SELECT_SLOT:
        return f"Fill slot {solver.game.slots[move.index]} with expected score {best.expected_score:.4f}"
    if move.kind is BestMoveKind.REROLL:
        return f"Reroll {solver.game.moves[move.index]} with expected score {best.expected_score:.4f}"
    return f"Game over with score {state.score:g}"


def describe_state(solver: GameSolver, state: State) -> str:
    outcome = solver.game.outcomes[state.outcome_index]
    return (
        f"Filled slots: {', '.join(str(s) for s in filled_slots(solver, state))}\n"
        f"Available slots: {', '.join(str(s) for s in available_slots(solver, state))}\n"
        f"Rerolls remaining: {state.rerolls_remaining}\n"
        f"Outcome: {outcome}\n"
        f"Score: {state.score:g}\n"
        f"Best move: {describe_best_move(solver, state)}\n"
    )
