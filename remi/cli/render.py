"""Rendering helpers dedicated to the CLI experience."""

from __future__ import annotations

from typing import Iterable

from rich.console import RenderableType
from rich.panel import Panel

from ..cards import Card, Rank, Suit
from ..game import Game
from .views import TableView

_SUIT_COLORS = {
    Suit.SPADES: "cyan",
    Suit.HEARTS: "red",
    Suit.DIAMONDS: "magenta",
    Suit.CLUBS: "green",
}


def format_card(card: Card, joker_rank: Rank | None = None) -> str:
    """Return a Rich-rendered label for ``card``."""

    if card.is_wild(joker_rank):
        return f"[bold magenta]{card.rank.value}🃏[/bold magenta]"
    color = _SUIT_COLORS[card.suit]
    return f"[{color}]{card.rank.value}{card.suit.symbol}[/{color}]"


def render_game(
    game: Game,
    *,
    reveal_players: Iterable[str] | None = None,
    title: str = "Remi",
) -> RenderableType:
    """Return a Rich panel describing the current table."""

    view = TableView(
        game=game,
        reveal_players=set(reveal_players or set()),
        card_formatter=lambda card: format_card(card, game.joker_rank),
    )
    return Panel(view.render(), title=title, padding=(0, 1), border_style="cyan")
