"""Composable view primitives for the Remi CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Set

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table

from ..cards import Card
from ..game import Game


@dataclass(slots=True)
class TableView:
    """Renderable summarising the seats, piles and declared melds."""

    game: Game
    reveal_players: Set[str]
    card_formatter: Callable[[Card], str]

    def _cards_markup(self, cards: Sequence[Card], visible: bool) -> str:
        if not visible:
            return f"{len(cards)} cards"
        if not cards:
            return "-"
        return " ".join(self.card_formatter(card) for card in cards)

    def _metadata_panel(self) -> Panel:
        game = self.game
        grid = Table.grid(expand=True)
        grid.add_column(justify="left")
        grid.add_row(f"[cyan]Round[/cyan]: {game.current_round}")
        grid.add_row(f"[cyan]Turn[/cyan]: {game.turns.turn_number()}")
        grid.add_row(f"[cyan]Deck[/cyan]: {game.deck.remaining} card(s)")
        top = game.discard_pile.top_card()
        if top is not None:
            grid.add_row(f"[cyan]Discard[/cyan]: {self.card_formatter(top)} ({game.discard_pile.count} card(s))")
        else:
            grid.add_row("[cyan]Discard[/cyan]: -")
        reference = game.joker_reference_card
        if reference is not None:
            grid.add_row(f"[cyan]Joker[/cyan]: {reference.rank.value} (reference {reference.label()})")
        return Panel(grid, title="Table State", box=box.SQUARE, border_style="blue")

    def render(self) -> RenderableType:
        game = self.game
        table = Table(box=box.ROUNDED, expand=True)
        table.add_column("Player", justify="left", style="bold")
        table.add_column("Hand", justify="left")
        table.add_column("Melds", justify="right")
        table.add_column("Score", justify="right")
        table.add_column("Status", justify="left")

        for idx, player in enumerate(game.players):
            name = player.display_name
            if idx == game.current_player_index and game.is_playing():
                name = f"[bold yellow]{name}[/bold yellow]"
            status = game.phase.value.replace("_", " ").title() if idx == game.current_player_index else ""
            if game.winner == player.id:
                status = "[bold green]Winner[/bold green]"
            table.add_row(
                name,
                self._cards_markup(player.hand, player.id in self.reveal_players),
                str(player.meld_count),
                str(player.score),
                status,
            )

        components: list[RenderableType] = [table, self._metadata_panel()]

        melds = [meld for player in game.players for meld in player.melds]
        if melds:
            meld_table = Table(box=box.MINIMAL, expand=True)
            meld_table.add_column("Meld", justify="left", style="bold")
            meld_table.add_column("Owner", justify="left")
            meld_table.add_column("Kind", justify="left")
            meld_table.add_column("Cards", justify="left")
            for meld in melds:
                owner = game.get_player(meld.owner_id)
                meld_table.add_row(
                    meld.id,
                    owner.display_name if owner is not None else meld.owner_id,
                    meld.kind.value.title(),
                    self._cards_markup(meld.cards, True),
                )
            components.append(Panel(meld_table, title="Declared Melds", box=box.SQUARE, border_style="green"))

        return Group(*components)
