"""Tests for solver.py — backward induction, tie-breaking and queries."""

from math import comb

import numpy as np
import pytest

from yatzy_solver.game import DiceGame
from yatzy_solver.scoring import SlotDescription
from yatzy_solver.solver import BestMove, BestMoveKind, GameSolver


def solved(game: DiceGame, workers: int = 1) -> GameSolver:
    solver = GameSolver(game, workers=workers)
    solver.solve()
    return solver


class TestEndToEnd:
    def test_single_die_no_rerolls(self, coin_game):
        solver = solved(coin_game)
        assert solver.expected_score == pytest.approx(1.5)

    def test_zero_rerolls_only_select(self, coin_game):
        solver = solved(coin_game)
        round_ = solver.find_round(0)
        assert round_.values.shape == (1, 2)
        for o in coin_game.outcomes:
            best = solver.best_move(0, 0, o.index)
            assert best.best_move == BestMove.select_slot(0)
            assert best.expected_score == pytest.approx(o.dice[0])

    def test_sum_game_beats_no_reroll(self, sum_solver):
        assert sum_solver.expected_score > 3.0
        assert sum_solver.expected_score == pytest.approx(3.5)

    def test_sum_game_rerolls_unless_max(self, sum_solver, sum_game):
        for o in sum_game.outcomes:
            best = sum_solver.best_move(0, 1, o.index)
            if o.total == 4:
                assert best.best_move.kind is BestMoveKind.SELECT_SLOT
            else:
                assert best.best_move.kind is BestMoveKind.REROLL

    def test_sum_game_chosen_rerolls(self, sum_solver, sum_game):
        low = sum_game.find_outcome([1, 1])
        mixed = sum_game.find_outcome([1, 2])
        # Both ones: reroll everything. One and two: reroll the one (position 0).
        best_low = sum_solver.best_move(0, 1, low.index)
        assert best_low.best_move == BestMove.reroll(3)
        assert best_low.expected_score == pytest.approx(3.0)
        best_mixed = sum_solver.best_move(0, 1, mixed.index)
        assert best_mixed.best_move == BestMove.reroll(1)
        assert best_mixed.expected_score == pytest.approx(3.5)

    def test_slot_choice_depends_on_future(self):
        # "Face" scores the die, "Lucky one" scores 10 for a one. With a one the
        # lucky slot is worth taking now; with a two the face slot is.
        face = SlotDescription("Face", lambda o: float(o.dice[0]))
        lucky = SlotDescription("Lucky one", lambda o: 10.0 if o.dice[0] == 1 else 0.0)
        game = DiceGame(1, 2, 0, [face, lucky])
        solver = solved(game)
        assert solver.expected_score == pytest.approx(9.25)
        one, two = game.outcomes
        assert solver.best_move(0, 0, one.index).best_move == BestMove.select_slot(1)
        assert solver.best_move(0, 0, two.index).best_move == BestMove.select_slot(0)
        assert solver.best_move(0, 0, one.index).expected_score == pytest.approx(11.5)


class TestTieBreaking:
    def test_select_before_keep_all(self, sum_solver, sum_game):
        # Keeping (2,2) is worth exactly as much as scoring it now.
        top = sum_game.find_outcome([2, 2])
        assert sum_solver.best_move(0, 1, top.index).best_move == BestMove.select_slot(0)

    def test_equal_slots_pick_lowest_index(self):
        same = [SlotDescription(f"Sum {i}", lambda o: float(o.total)) for i in range(3)]
        game = DiceGame(1, 3, 0, same)
        solver = solved(game)
        for o in game.outcomes:
            assert solver.best_move(0, 0, o.index).best_move == BestMove.select_slot(0)
            assert solver.best_move(0b001, 0, o.index).best_move == BestMove.select_slot(1)

    def test_equal_moves_pick_lowest_index(self):
        # From (1,1), rerolling die 0, die 1 or both all give one two with
        # probability 1/2.
        game = DiceGame(2, 2, 1, [SlotDescription("One two", lambda o: float(o.count(2) == 1))])
        solver = solved(game)
        low = game.find_outcome([1, 1])
        best = solver.best_move(0, 1, low.index)
        assert best.best_move == BestMove.reroll(1)
        assert best.expected_score == pytest.approx(0.5)


class TestInvariants:
    def test_monotone_in_rerolls(self, small_solver, small_game):
        for stage in small_solver.stages:
            for round_ in stage.rounds.values():
                for level in range(1, round_.values.shape[0]):
                    assert np.all(round_.values[level] >= round_.values[0])
                    assert np.all(round_.values[level] >= round_.values[level - 1])

    def test_round_expected_score(self, small_solver, small_game):
        for stage in small_solver.stages:
            for round_ in stage.rounds.values():
                expected = float(small_game.initial_probabilities @ round_.values[-1])
                assert round_.expected_score == pytest.approx(expected, rel=1e-6, abs=1e-9)

    def test_stage_sizes(self, small_solver, small_game):
        n = len(small_game.slots)
        assert len(small_solver.stages) == n + 1
        for count, stage in enumerate(small_solver.stages):
            assert stage.number == count
            assert stage.is_solved
            assert len(stage.rounds) == comb(n, count)
            assert all(bin(mask).count("1") == count for mask in stage.rounds)

    def test_actions_are_legal(self, small_solver, small_game):
        for stage in small_solver.stages[:-1]:
            for mask in stage.rounds:
                for level in range(small_game.num_rerolls + 1):
                    for o in small_game.outcomes:
                        move = small_solver.best_move(mask, level, o.index).best_move
                        if move.kind is BestMoveKind.SELECT_SLOT:
                            assert not mask & (1 << move.index)
                        else:
                            assert move.kind is BestMoveKind.REROLL
                            assert level > 0

    def test_select_value_matches_successor(self, small_solver, small_game):
        for o in small_game.outcomes:
            best = small_solver.best_move(0, 0, o.index)
            slot = best.best_move.index
            successor = small_solver.find_round(1 << slot)
            expected = small_game.score(slot, o.index) + successor.expected_score
            assert best.expected_score == pytest.approx(expected, rel=1e-6)

    def test_deterministic(self, small_game, small_solver):
        again = solved(small_game, workers=1)
        assert again.expected_score == small_solver.expected_score
        for stage in small_solver.stages:
            for mask, round_ in stage.rounds.items():
                other = again.find_round(mask)
                np.testing.assert_array_equal(other.actions, round_.actions)
                np.testing.assert_array_equal(other.values, round_.values)


class TestQueries:
    def test_unsolved(self, sum_game):
        solver = GameSolver(sum_game, workers=1)
        assert not solver.is_solved
        assert solver.expected_score is None
        assert solver.find_round(0) is None
        assert solver.best_move(0, 0, 0) is None

    def test_out_of_range(self, sum_solver):
        assert sum_solver.best_move(0, 2, 0) is None
        assert sum_solver.best_move(0, -1, 0) is None
        assert sum_solver.best_move(0, 0, 3) is None
        assert sum_solver.best_move(0b10, 0, 0) is None
        assert sum_solver.find_round(-1) is None

    def test_terminal_round(self, small_solver, small_game):
        full = small_game.all_slots_mask
        best = small_solver.best_move(full, small_game.num_rerolls, 0)
        assert best.best_move.kind is BestMoveKind.UNKNOWN
        assert best.expected_score == 0.0
        assert small_solver.find_round(full).expected_score == 0.0

    def test_decode_action(self, small_solver):
        assert small_solver.decode_action(-1) == BestMove.unknown()
        assert small_solver.decode_action(2) == BestMove.select_slot(2)
        assert small_solver.decode_action(6 + 5) == BestMove.reroll(5)

    def test_solve_returns_expected_score(self, small_game, small_solver):
        solver = GameSolver(small_game, workers=1)
        assert solver.solve() == small_solver.expected_score
