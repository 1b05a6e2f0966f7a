"""Shared fixtures: small games that solve in milliseconds."""
from __future__ import annotations

import pytest

from yatzy_solver.game import DiceGame
from yatzy_solver.scoring import SlotDescription, chance, fours, one_pair, ones, threes, twos
from yatzy_solver.solver import GameSolver


def dice_sum() -> SlotDescription:
    return SlotDescription("Sum", lambda o: float(o.total))


@pytest.fixture(scope="session")
def coin_game() -> DiceGame:
    """1 die, 2 faces, no rerolls, one slot scoring the face value."""
    return DiceGame(1, 2, 0, [dice_sum()])


@pytest.fixture(scope="session")
def sum_game() -> DiceGame:
    """2 dice, 2 faces, 1 reroll, one slot scoring the sum."""
    return DiceGame(2, 2, 1, [dice_sum()])


@pytest.fixture(scope="session")
def sum_solver(sum_game: DiceGame) -> GameSolver:
    solver = GameSolver(sum_game, workers=1)
    solver.solve()
    return solver


@pytest.fixture(scope="session")
def small_game() -> DiceGame:
    """3 dice, 4 faces, 1 reroll and six slots (64 rounds)."""
    return DiceGame(
        3, 4, 1,
        [ones(), twos(), threes(), fours(), one_pair(), chance()],
        bonus_threshold=10,
        bonus_score=25,
    )


@pytest.fixture(scope="session")
def small_solver(small_game: DiceGame) -> GameSolver:
    solver = GameSolver(small_game, workers=2)
    solver.solve()
    return solver
