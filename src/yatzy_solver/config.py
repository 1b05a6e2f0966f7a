"""Single source of truth for game defaults, limits and numeric tolerances."""
from __future__ import annotations

import os
from dataclasses import dataclass

# ── Limits ──────────────────────────────────────────────────────────────────
MAX_SLOTS = 32  # slot masks are treated as 32-bit sets

# ── Numeric tolerances ──────────────────────────────────────────────────────
PROBABILITY_TOLERANCE = 1e-6  # sum of a probability list must be 1 within this
DRAW_TOLERANCE = 0.01  # leftover mass accepted when drawing from a list

# ── Scandinavian Yatzy defaults ─────────────────────────────────────────────
DEFAULT_NUM_DICE = 5
DEFAULT_NUM_SIDES = 6
DEFAULT_NUM_REROLLS = 2  # three rolls per turn
DEFAULT_BONUS_THRESHOLD = 63.0
DEFAULT_BONUS_SCORE = 50.0
YATZY_SCORE = 50.0

# ── Simulation / reporting ──────────────────────────────────────────────────
DEFAULT_GAMES = 10_000
DEFAULT_SEED = 42
DEFAULT_HISTOGRAM_BINS = 20

LOG_LEVEL_ENV = "YATZY_LOG_LEVEL"


def default_workers() -> int:
    return os.cpu_count() or 1


def default_log_level() -> str:
    return os.environ.get(LOG_LEVEL_ENV, "INFO").upper()


@dataclass(frozen=True)
class GameConfig:
    """Dice mechanics and bonus rules for one game."""
    num_dice: int = DEFAULT_NUM_DICE
    num_sides: int = DEFAULT_NUM_SIDES
    num_rerolls: int = DEFAULT_NUM_REROLLS
    bonus_threshold: float = DEFAULT_BONUS_THRESHOLD
    bonus_score: float = DEFAULT_BONUS_SCORE

    def __post_init__(self) -> None:
        if self.num_dice < 1:
            raise ValueError(f"num_dice must be at least 1, got {self.num_dice}")
        if self.num_sides < 1:
            raise ValueError(f"num_sides must be at least 1, got {self.num_sides}")
        if self.num_rerolls < 0:
            raise ValueError(f"num_rerolls must be non-negative, got {self.num_rerolls}")
