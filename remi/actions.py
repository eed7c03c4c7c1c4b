"""Legal action generation utilities for Remi gameplay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List

from . import rules
from .cards import Card, Rank
from .errors import RuleViolation
from .melds import find_pickup_meld, meld_suggestions
from .turns import TurnPhase

if TYPE_CHECKING:
    from .game import Game

__all__ = [
    "DrawAction",
    "MAX_DISCARD_CHOICES",
    "legal_draw_actions",
    "legal_melds",
    "legal_discards",
    "apply_draw_action",
]

MAX_DISCARD_CHOICES = 8


@dataclass(frozen=True)
class DrawAction:
    """Action describing how a player draws."""

    source: str  # "deck" or "discard_pile"
    count: int = 1


def legal_draw_actions(game: "Game", player_id: str) -> list[DrawAction]:
    """Return draw actions available to ``player_id``."""

    if game.turns.phase is not TurnPhase.DRAW:
        return []

    candidates = [DrawAction(source="deck")]
    for count in range(1, game.config.max_discard_pickup + 1):
        candidates.append(DrawAction(source="discard_pile", count=count))

    actions: list[DrawAction] = []
    for action in candidates:
        try:
            rules.validate_draw(game, player_id, action.source == "discard_pile", action.count)
        except RuleViolation:
            continue
        actions.append(action)
    return actions


def legal_melds(game: "Game", player_id: str) -> list[list[str]]:
    """Return card-id lists that ``player_id`` could declare right now."""

    player = game.get_player(player_id)
    if player is None or game.turns.phase is not TurnPhase.MELD:
        return []

    if game.turns.pending_pickup:
        taken = [card for card in player.hand if card.id in game.turns.pending_pickup]
        meld = find_pickup_meld(
            taken,
            player.hand,
            game.joker_rank,
            mode=game.config.pickup_meld_mode,
            require_run=not player.has_laid_run,
            max_size=game.config.max_meld_size,
        )
        candidates = [] if meld is None else [meld]
    else:
        candidates = meld_suggestions(player.hand, game.joker_rank, max_size=game.config.max_meld_size)

    melds: list[list[str]] = []
    for cards in candidates:
        card_ids = [card.id for card in cards]
        try:
            rules.validate_meld(game, player_id, card_ids)
        except RuleViolation:
            continue
        melds.append(card_ids)
    return melds


def _rank_discard_candidates(cards: List[Card], joker_rank: Rank | None) -> list[Card]:
    """Return discard candidates sorted by a heuristic preference."""

    def score(card: Card) -> tuple[float, str]:
        if card.is_wild(joker_rank):
            return (-100.0, card.id)
        same_rank = sum(1 for other in cards if other is not card and other.rank == card.rank)
        neighbours = sum(1 for other in cards if other is not card and other.forms_sequence_with(card))
        heuristic = float(card.value)
        heuristic -= same_rank * 4.0
        heuristic -= neighbours * 5.0
        return heuristic, card.id

    return sorted(cards, key=score, reverse=True)


def legal_discards(game: "Game", player_id: str, *, max_discards: int = MAX_DISCARD_CHOICES) -> list[Card]:
    """Return discardable cards for ``player_id``, most expendable first."""

    player = game.get_player(player_id)
    if player is None:
        return []

    ranked = _rank_discard_candidates(list(player.hand), game.joker_rank)
    discards: list[Card] = []
    for card in ranked:
        try:
            rules.validate_discard(game, player_id, card.id)
        except RuleViolation:
            continue
        discards.append(card)
        if len(discards) >= max_discards:
            break
    return discards


def apply_draw_action(game: "Game", player_id: str, action: DrawAction) -> list[Card]:
    """Apply the provided draw action through the game."""

    if action.source == "discard_pile":
        return game.draw_card(player_id, from_discard_pile=True, count=action.count)
    if action.source == "deck":
        return game.draw_card(player_id)
    raise ValueError(f"Unknown draw source {action.source}")
