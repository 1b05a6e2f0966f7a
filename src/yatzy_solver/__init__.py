"""Optimal strategies for Yatzy-style dice games by backward induction."""

from .config import GameConfig
from .dice import Move, Outcome, TransitionTable, choose, transition_probability
from .game import DiceGame
from .navigator import State, advance, initial_state
from .scoring import Slot, SlotDescription, standard_slots
from .solver import BestMove, BestMoveKind, BestMoveWithScore, GameSolver

__all__ = [
    "BestMove",
    "BestMoveKind",
    "BestMoveWithScore",
    "DiceGame",
    "GameConfig",
    "GameSolver",
    "Move",
    "Outcome",
    "Slot",
    "SlotDescription",
    "State",
    "TransitionTable",
    "advance",
    "choose",
    "initial_state",
    "standard_slots",
    "transition_probability",
]
