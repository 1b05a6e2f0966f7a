"""Tests for navigator.py — walking a solved policy."""

import numpy as np
import pytest

from yatzy_solver.navigator import (
    State,
    advance,
    available_slots,
    describe_state,
    filled_slots,
    initial_state,
    is_final,
)
from yatzy_solver.solver import GameSolver


class TestInitialState:
    def test_given_outcome(self, small_solver, small_game):
        o = small_game.find_outcome([2, 3, 3])
        state = initial_state(small_solver, o)
        assert state == State(slot_mask=0, rerolls_remaining=1, outcome_index=o.index, score=0.0)

    def test_drawn_outcome(self, small_solver, small_game):
        rng = np.random.default_rng(3)
        state = initial_state(small_solver, rng=rng)
        assert 0 <= state.outcome_index < len(small_game.outcomes)
        assert state.rerolls_remaining == small_game.num_rerolls

    def test_same_seed_same_draw(self, small_solver):
        a = initial_state(small_solver, rng=np.random.default_rng(11))
        b = initial_state(small_solver, rng=np.random.default_rng(11))
        assert a == b


class TestAdvance:
    def test_reroll_keeps_mask(self, sum_solver, sum_game):
        low = sum_game.find_outcome([1, 1])
        state = initial_state(sum_solver, low)
        nxt = advance(sum_solver, state, np.random.default_rng(0))
        assert nxt.slot_mask == 0
        assert nxt.rerolls_remaining == 0
        assert nxt.score == 0.0

    def test_select_fills_slot_and_scores(self, sum_solver, sum_game):
        top = sum_game.find_outcome([2, 2])
        state = initial_state(sum_solver, top)
        nxt = advance(sum_solver, state, np.random.default_rng(0))
        assert nxt.slot_mask == 1
        assert nxt.rerolls_remaining == sum_game.num_rerolls
        assert nxt.score == 4.0

    def test_terminal_returns_none(self, sum_solver):
        state = State(slot_mask=1, rerolls_remaining=1, outcome_index=0, score=4.0)
        assert is_final(sum_solver, state)
        assert advance(sum_solver, state, np.random.default_rng(0)) is None

    def test_unsolved_returns_none(self, sum_game):
        solver = GameSolver(sum_game, workers=1)
        state = State(slot_mask=0, rerolls_remaining=1, outcome_index=0)
        assert advance(solver, state) is None

    def test_full_walk(self, small_solver, small_game):
        rng = np.random.default_rng(5)
        state = initial_state(small_solver, rng=rng)
        selections = 0
        last = state
        while state is not None:
            assert state.rerolls_remaining >= 0
            nxt = advance(small_solver, state, rng)
            if nxt is not None and nxt.slot_mask != state.slot_mask:
                # Exactly one new slot per selection
                assert bin(nxt.slot_mask).count("1") == bin(state.slot_mask).count("1") + 1
                selections += 1
            last = state
            state = nxt
        assert selections == len(small_game.slots)
        assert last.slot_mask == small_game.all_slots_mask

    def test_walk_never_rerolls_with_none_left(self, sum_solver):
        rng = np.random.default_rng(9)
        for _ in range(50):
            state = initial_state(sum_solver, rng=rng)
            while state is not None:
                assert 0 <= state.rerolls_remaining <= 1
                state = advance(sum_solver, state, rng)


class TestDescribe:
    def test_slot_lists(self, small_solver, small_game):
        state = State(slot_mask=0b000011, rerolls_remaining=0, outcome_index=0)
        assert [s.name for s in filled_slots(small_solver, state)] == ["Ones", "Twos"]
        assert len(available_slots(small_solver, state)) == 4

    def test_describe_state(self, small_solver, small_game):
        o = small_game.find_outcome([1, 1, 1])
        text = describe_state(small_solver, initial_state(small_solver, o))
        assert "Outcome: (1,1,1)" in text
        assert "Rerolls remaining: 1" in text
        assert "Best move:" in text

    def test_describe_terminal(self, sum_solver):
        state = State(slot_mask=1, rerolls_remaining=1, outcome_index=0, score=4.0)
        assert "Game over with score 4" in describe_state(sum_solver, state)

    @pytest.mark.parametrize("dice", [[1, 2], [1, 1]])
    def test_describe_reroll(self, sum_solver, sum_game, dice):
        o = sum_game.find_outcome(dice)
        assert "Reroll (" in describe_state(sum_solver, initial_state(sum_solver, o))
