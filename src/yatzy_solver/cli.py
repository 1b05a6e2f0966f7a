"""CLI entry point: yatzy-solver solve / simulate / play / transitions.

Commands:
    yatzy-solver solve        Solve a game and print the optimal expected score
    yatzy-solver simulate     Solve, play N games with the policy, summarize
    yatzy-solver play         Walk one game state by state
    yatzy-solver transitions  Show where a reroll from given dice can land
"""
from __future__ import annotations

import time
from pathlib import Path

import click

from .config import (
    DEFAULT_BONUS_SCORE,
    DEFAULT_BONUS_THRESHOLD,
    DEFAULT_GAMES,
    DEFAULT_HISTOGRAM_BINS,
    DEFAULT_NUM_DICE,
    DEFAULT_NUM_REROLLS,
    DEFAULT_NUM_SIDES,
    DEFAULT_SEED,
)


GAME_OPTIONS = [
    click.option("--dice-count", default=DEFAULT_NUM_DICE, type=int, show_default=True),
    click.option("--sides", default=DEFAULT_NUM_SIDES, type=int, show_default=True),
    click.option("--rerolls", default=DEFAULT_NUM_REROLLS, type=int, show_default=True,
                 help="Rerolls allowed before a slot must be filled."),
    click.option("--slots", default=None,
                 help="Comma-separated slot names (default: full Yatzy sheet)."),
    click.option("--bonus-threshold", default=DEFAULT_BONUS_THRESHOLD, type=float, show_default=True),
    click.option("--bonus-score", default=DEFAULT_BONUS_SCORE, type=float, show_default=True),
]


def game_options(f):
    """Dice, slot and bonus options shared by every command."""
    for option in reversed(GAME_OPTIONS):
        f = option(f)
    return f


def _build_game(dice_count: int, sides: int, rerolls: int, slots: str | None,
                bonus_threshold: float, bonus_score: float):
    from .game import DiceGame
    from .scoring import slots_by_name, standard_slots

    try:
        descriptions = slots_by_name(slots.split(",")) if slots else standard_slots(sides)
        return DiceGame(dice_count, sides, rerolls, descriptions,
                        bonus_threshold=bonus_threshold, bonus_score=bonus_score)
    except ValueError as e:
        raise click.UsageError(str(e)) from e


def _solve(game, workers: int | None):
    from .solver import GameSolver

    solver = GameSolver(game, workers=workers, progress=True)
    t0 = time.time()
    solver.solve()
    click.echo(f"Solved in {time.time() - t0:.1f}s.")
    return solver


@click.group()
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Override YATZY_LOG_LEVEL.")
def cli(log_level: str | None) -> None:
    """Optimal strategies for Yatzy-style dice games."""
    if log_level:
        from .logger import set_log_level
        set_log_level(log_level)


@cli.command()
@game_options
@click.option("--workers", default=None, type=int, help="Threads per stage (default: CPU count).")
def solve(dice_count, sides, rerolls, slots, bonus_threshold, bonus_score, workers):
    """Solve the game and print the optimal expected score."""
    game = _build_game(dice_count, sides, rerolls, slots, bonus_threshold, bonus_score)
    click.echo(f"Game: {game}")
    solver = _solve(game, workers)
    click.echo(f"Optimal expected score (without bonus): {solver.expected_score:.4f}")


@cli.command()
@game_options
@click.option("--workers", default=None, type=int, help="Threads per stage (default: CPU count).")
@click.option("--games", default=DEFAULT_GAMES, type=int, show_default=True)
@click.option("--seed", default=DEFAULT_SEED, type=int, show_default=True)
@click.option("--bins", default=DEFAULT_HISTOGRAM_BINS, type=int, show_default=True)
@click.option("--plot", "plot_path", default=None, type=click.Path(dir_okay=False, path_type=Path),
              help="Write a histogram figure (png/svg) to this path.")
def simulate(dice_count, sides, rerolls, slots, bonus_threshold, bonus_score,
             workers, games, seed, bins, plot_path):
    """Play GAMES games with the optimal policy and summarize the scores."""
    from .simulation import compute_stats, format_histogram, score_histogram, simulate_many, total_scores

    if games < 1:
        raise click.BadParameter("must be at least 1", param_hint="--games")
    game = _build_game(dice_count, sides, rerolls, slots, bonus_threshold, bonus_score)
    click.echo(f"Game: {game}")
    solver = _solve(game, workers)

    t0 = time.time()
    protocols = simulate_many(solver, games, seed=seed)
    click.echo(f"Played {games:,d} games in {time.time() - t0:.1f}s.")

    stats = compute_stats(protocols, game.slots)
    click.echo(f"Expected score (solver): {solver.expected_score:.2f}")
    click.echo(f"Mean: {stats['mean']:.2f}  Std: {stats['std']:.2f}  "
               f"Min: {stats['min']:g}  Max: {stats['max']:g}  Median: {stats['median']:g}")
    click.echo(f"Bonus rate: {stats['bonus_rate']:.1%}  Zero rate: {stats['zero_rate']:.1%}")
    click.echo(f"\n{'Slot':<18s}{'Mean':>8s}{'Zero':>8s}")
    for row in stats["slots"]:
        click.echo(f"{row['name']:<18s}{row['mean']:>8.2f}{row['zero_rate']:>8.1%}")

    scores = total_scores(protocols)
    counts, edges = score_histogram(scores, bins=bins)
    click.echo("")
    click.echo(format_histogram(counts, edges))

    if plot_path is not None:
        import matplotlib
        matplotlib.use("Agg")
        from .plots import plot_score_histogram

        plot_score_histogram(scores, plot_path, expected_score=solver.expected_score)
        click.echo(f"Saved {plot_path}")


@cli.command()
@game_options
@click.option("--workers", default=None, type=int, help="Threads per stage (default: CPU count).")
@click.option("--seed", default=None, type=int, help="Seed for the dice (default: random).")
@click.option("--step", is_flag=True, help="Wait for a key press between states.")
def play(dice_count, sides, rerolls, slots, bonus_threshold, bonus_score, workers, seed, step):
    """Follow the optimal policy through one game, printing every state."""
    import numpy as np

    from .navigator import advance, describe_state, initial_state

    game = _build_game(dice_count, sides, rerolls, slots, bonus_threshold, bonus_score)
    solver = _solve(game, workers)
    rng = np.random.default_rng(seed)

    state = initial_state(solver, rng=rng)
    while state is not None:
        click.echo("Current position\n================")
        click.echo(describe_state(solver, state))
        if step:
            click.pause()
        state = advance(solver, state, rng)
    click.echo("Reached end of play")


@cli.command()
@game_options
@click.option("--dice", "dice_values", required=True, help="Current dice, e.g. 1,1,3,4,6.")
@click.option("--reroll", "reroll_pattern", required=True,
              help="One character per sorted die: x rerolls, - keeps (e.g. --x-x).")
def transitions(dice_count, sides, rerolls, slots, bonus_threshold, bonus_score,
                dice_values, reroll_pattern):
    """Print the outcome distribution after rerolling from DICE."""
    game = _build_game(dice_count, sides, rerolls, slots, bonus_threshold, bonus_score)
    try:
        dice = [int(v) for v in dice_values.split(",")]
    except ValueError as e:
        raise click.BadParameter("expected comma-separated integers", param_hint="--dice") from e
    outcome = game.find_outcome(dice)
    if outcome is None:
        raise click.BadParameter(f"{dice_values} is not an outcome of this game", param_hint="--dice")
    if set(reroll_pattern) - {"x", "-"}:
        raise click.BadParameter("use only 'x' and '-'", param_hint="--reroll")
    move = game.find_move([c == "x" for c in reroll_pattern])
    if move is None:
        raise click.BadParameter(f"expected {game.num_dice} characters", param_hint="--reroll")

    click.echo(f"Outcome: {outcome}  Reroll: {move}")
    for to_index, p in game.move_probabilities(outcome.index, move.index):
        click.echo(f"  {str(game.outcomes[to_index]):<20s} {p * 100:8.4f}%")


if __name__ == "__main__":
    cli()
