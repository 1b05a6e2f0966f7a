"""Play solved games and summarize the resulting score distribution.

The solver maximizes the sum of slot scores; the bonus (bonus-eligible slots
reaching the threshold) is applied here, per finished game.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from .config import DEFAULT_HISTOGRAM_BINS, DEFAULT_SEED
from .logger import YatzyLogger
from .navigator import advance, initial_state
from .scoring import Slot
from .solver import BestMoveKind, GameSolver

logger = YatzyLogger(__name__).get_logger()


@dataclass
class GameProtocol:
    """Record of one played game."""
    slot_scores: list[float]
    total_slot_score: float = 0.0
    bonus: bool = False
    total_game_score: float = 0.0
    fill_order: list[int] = field(default_factory=list)


def play_game(solver: GameSolver, rng: np.random.Generator) -> GameProtocol:
    """Follow the solved policy from a random first roll until every slot is filled."""
    game = solver.game
    protocol = GameProtocol(slot_scores=[0.0] * len(game.slots))

    state = initial_state(solver, rng=rng)
    while state is not None:
        best = solver.best_move(state.slot_mask, state.rerolls_remaining, state.outcome_index)
        if best is not None and best.best_move.kind is BestMoveKind.SELECT_SLOT:
            slot_index = best.best_move.index
            protocol.slot_scores[slot_index] = game.score(slot_index, state.outcome_index)
            protocol.fill_order.append(slot_index)
        state = advance(solver, state, rng)

    protocol.total_slot_score = sum(protocol.slot_scores)
    protocol.total_game_score = protocol.total_slot_score
    bonus_sum = sum(protocol.slot_scores[s.index] for s in game.slots if s.bonus)
    if any(s.bonus for s in game.slots) and bonus_sum >= game.bonus_threshold:
        protocol.bonus = True
        protocol.total_game_score += game.bonus_score
    return protocol


def simulate_many(
    solver: GameSolver,
    n_games: int,
    seed: int = DEFAULT_SEED,
) -> list[GameProtocol]:
    if not solver.is_solved:
        raise RuntimeError("Solve the game before simulating it")
    rng = np.random.default_rng(seed)
    logger.info(f"Simulating {n_games} games (seed={seed})")
    return [play_game(solver, rng) for _ in range(n_games)]


def total_scores(protocols: Sequence[GameProtocol]) -> np.ndarray:
    return np.array([p.total_game_score for p in protocols], dtype=np.float64)


def compute_stats(protocols: Sequence[GameProtocol], slots: Sequence[Slot]) -> dict:
    """Summary statistics of game totals plus per-slot mean and zero rate."""
    if not protocols:
        raise ValueError("No games to summarize")
    scores = total_scores(protocols)
    per_slot = np.array([p.slot_scores for p in protocols], dtype=np.float64)
    return {
        "n_games": len(scores),
        "mean": float(scores.mean()),
        "std": float(scores.std()),
        "min": float(scores.min()),
        "max": float(scores.max()),
        "median": float(np.median(scores)),
        "p5": float(np.percentile(scores, 5)),
        "p25": float(np.percentile(scores, 25)),
        "p75": float(np.percentile(scores, 75)),
        "p95": float(np.percentile(scores, 95)),
        "zero_rate": float((scores == 0).mean()),
        "bonus_rate": float(np.mean([p.bonus for p in protocols])),
        "slots": [
            {
                "name": slot.name,
                "mean": float(per_slot[:, slot.index].mean()),
                "zero_rate": float((per_slot[:, slot.index] == 0).mean()),
            }
            for slot in slots
        ],
    }


def score_histogram(
    scores: np.ndarray, bins: int = DEFAULT_HISTOGRAM_BINS
) -> tuple[np.ndarray, np.ndarray]:
    """Counts and bin edges of the score distribution."""
    return np.histogram(scores, bins=bins)


def format_histogram(counts: np.ndarray, edges: np.ndarray, width: int = 50) -> str:
    peak = int(counts.max()) if len(counts) else 0
    lines = []
    for count, lo, hi in zip(counts, edges[:-1], edges[1:]):
        bar = "#" * (round(width * int(count) / peak) if peak else 0)
        lines.append(f"{lo:7.1f} - {hi:7.1f} | {int(count):>7d} {bar}")
    return "\n".join(lines)
