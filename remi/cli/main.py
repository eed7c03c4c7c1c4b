"""Typer entry-point wiring for the Remi CLI."""

from __future__ import annotations

import json
import logging

import numpy as np
import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .. import autoplay, scoreboard
from ..game import Game
from ..scoring import RoundResult
from .render import format_card, render_game

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _render_round_summary(result: RoundResult, names: dict[str, str]) -> Table:
    """Return a Rich table describing the outcome of a round."""

    title = f"Round {result.round_number} Summary ({result.reason.value.replace('_', ' ')})"
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("Player", justify="center")
    table.add_column("Result", justify="center")
    table.add_column("Hand", justify="right")
    table.add_column("Meld Bonus", justify="right")
    table.add_column("Total", justify="right")

    for entry in result.scores:
        label = names.get(entry.player_id, entry.player_id)
        outcome = "[bold green]Memukul[/bold green]" if entry.is_winner else "-"
        if entry.is_winner:
            label = f"[bold green]{label}[/bold green]"
            if entry.winning_card is not None:
                outcome += f" {format_card(entry.winning_card)}"
        if result.joker_grant == entry.player_id:
            label += " [magenta]★[/magenta]"
        table.add_row(
            label,
            outcome,
            str(entry.hand_score),
            str(entry.meld_bonus),
            str(entry.total_score),
        )

    return table


def _render_match_summary(history: scoreboard.MatchHistory, names: dict[str, str]) -> Table:
    """Return the aggregated match summary table."""

    table = Table(title="Match Summary", box=box.DOUBLE_EDGE)
    table.add_column("Player", justify="center")
    table.add_column("Wins", justify="right")
    table.add_column("Hand", justify="right")
    table.add_column("Meld Bonus", justify="right")
    table.add_column("Total", justify="right")

    leaders = set(history.leaders())
    for total in history.totals():
        label = names.get(total.player_id, total.player_id)
        total_str = str(total.total_points)
        if total.player_id in leaders:
            label = f"[bold blue]{label}[/bold blue]"
            total_str = f"[bold blue]{total_str}[/bold blue]"
        table.add_row(
            label,
            str(total.wins),
            str(total.hand_points),
            str(total.meld_bonus),
            total_str,
        )

    return table


def _new_game(seed: int | None) -> tuple[Game, np.random.Generator]:
    rng = np.random.default_rng(seed)
    game = Game(autoplay.DEFAULT_PLAYERS, [name.title() for name in autoplay.DEFAULT_PLAYERS], rng=rng)
    game.start()
    return game, rng


@app.command()
def deal(
    seed: int | None = typer.Option(None, help="Random seed for a reproducible deal (omit for randomness)."),
    reveal: bool = typer.Option(False, "--reveal", help="Show every player's hand."),
) -> None:
    """Deal a fresh round and show the table."""

    game, _ = _new_game(seed)
    reveal_players = [player.id for player in game.players] if reveal else []
    console.print(render_game(game, reveal_players=reveal_players))


@app.command()
def simulate(
    rounds: int = typer.Option(3, min=1, help="Number of rounds to auto-play."),
    seed: int | None = typer.Option(None, help="Random seed for reproducible matches (omit for randomness)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine decisions."),
) -> None:
    """Auto-play rounds with a greedy policy and print the results."""

    _configure_logging(verbose)
    report = autoplay.simulate_match(rounds, seed=seed)
    names = {player_id: player_id.title() for player_id in report.history.player_ids}

    for result in report.history.rounds:
        console.print(_render_round_summary(result, names))
    console.print(_render_match_summary(report.history, names))
    console.print(f"[cyan]{len(report.history.rounds)} round(s) simulated.[/cyan]")


@app.command()
def snapshot(
    seed: int | None = typer.Option(None, help="Random seed for the deal (omit for randomness)."),
    turns: int = typer.Option(0, min=0, help="Auto-played turns before the snapshot is taken."),
) -> None:
    """Print a JSON snapshot of a freshly dealt table."""

    game, rng = _new_game(seed)
    for _ in range(turns):
        if not game.is_playing():
            break
        autoplay.play_turn(game, rng)
    typer.echo(json.dumps(game.to_snapshot(), indent=2))


def main() -> None:
    """Entry-point for ``python -m remi.cli``."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    main()
