"""Action validation and game-over detection (the game validator).

Every ``validate_*`` helper only reads state. It either returns what the
caller needs to perform the mutation or raises a
:class:`~remi.errors.RuleViolation`, so a rejected action never leaves
partial changes behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from . import errors
from .cards import Card
from .melds import MeldKind, find_pickup_meld, is_valid_meld
from .player import Player
from .turns import TurnPhase

if TYPE_CHECKING:
    from .game import Game

__all__ = [
    "GameStatus",
    "FinishReason",
    "DrawPlan",
    "MeldPlan",
    "DiscardPlan",
    "GameOver",
    "validate_player_count",
    "validate_draw",
    "validate_discard",
    "validate_meld",
    "validate_skip_meld",
    "can_player_win",
    "check_game_over",
]


class GameStatus(str, Enum):
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"


class FinishReason(str, Enum):
    MEMUKUL = "memukul"
    DECK_EMPTY = "deck_empty"


@dataclass(frozen=True, slots=True)
class DrawPlan:
    from_discard_pile: bool
    count: int
    cards: tuple[Card, ...]
    requires_meld: bool


@dataclass(frozen=True, slots=True)
class MeldPlan:
    kind: MeldKind
    cards: tuple[Card, ...]


@dataclass(frozen=True, slots=True)
class DiscardPlan:
    card: Card
    opening_discard: bool


@dataclass(frozen=True, slots=True)
class GameOver:
    reason: FinishReason
    winner_id: str | None = None


def validate_player_count(count: int, required: int = 4) -> None:
    if count != required:
        raise errors.InvalidPlayerCount(f"game requires exactly {required} players, got {count}")


def _acting_player(game: "Game", player_id: str) -> Player:
    if game.status is not GameStatus.PLAYING:
        raise errors.RoundNotInProgress(
            "round is over" if game.status is GameStatus.FINISHED else "game has not started"
        )
    player = game.get_player(player_id)
    if player is None:
        raise errors.UnknownPlayer(f"player {player_id} not found")
    if not game.turns.is_player_turn(player_id):
        raise errors.NotYourTurn()
    return player


def validate_draw(
    game: "Game",
    player_id: str,
    from_discard_pile: bool = False,
    count: int | None = None,
) -> DrawPlan:
    """Check a draw request and return the cards it would take."""

    player = _acting_player(game, player_id)
    turns = game.turns
    config = game.config

    if not turns.first_player_discarded:
        raise errors.MustDiscardFirst("first player must discard one card before drawing")
    if turns.phase is not TurnPhase.DRAW:
        raise errors.WrongPhase("can only draw cards during draw phase")

    discards = game.discard_pile.cards
    matching: list[Card] = []
    if config.require_matching_pickup:
        matching = player.matching_sequence(discards[-config.max_discard_pickup :])

    if not from_discard_pile:
        if count not in (None, 1):
            raise errors.InvalidDrawCount("can only draw one card from the deck")
        if matching:
            raise errors.MustTakeFromDiscardPile(
                f"{len(matching)} matching card(s) on the discard pile must be taken first"
            )
        if game.deck.is_empty():
            raise errors.EmptyDeck()
        return DrawPlan(from_discard_pile=False, count=1, cards=(), requires_meld=False)

    count = 1 if count is None else count
    if not 1 <= count <= config.max_discard_pickup:
        raise errors.InvalidDrawCount(f"can only take 1-{config.max_discard_pickup} cards from discard pile")
    if game.discard_pile.count < count:
        raise errors.NotEnoughDiscards(
            f"not enough cards in discard pile: {count} requested, {game.discard_pile.count} available"
        )
    if config.require_matching_pickup:
        if not matching:
            raise errors.NoMatchingCards()
        if count != len(matching):
            raise errors.MustTakeMatchingCards(f"must take all matching cards from discard pile ({len(matching)})")

    taken = tuple(game.discard_pile.get_last_cards(count))
    requires_meld = count > 1
    if requires_meld:
        meld = find_pickup_meld(
            taken,
            player.hand,
            game.joker_rank,
            mode=config.pickup_meld_mode,
            require_run=not player.has_laid_run,
            max_size=config.max_meld_size,
        )
        if meld is None:
            raise errors.PickupMeldUnavailable()
        if player.hand_size + count - len(meld) < config.min_cards_after_meld:
            raise errors.HandTooSmall("the required meld would leave too few cards in hand")
    return DrawPlan(from_discard_pile=True, count=count, cards=taken, requires_meld=requires_meld)


def validate_discard(game: "Game", player_id: str, card_id: str) -> DiscardPlan:
    player = _acting_player(game, player_id)
    turns = game.turns

    opening_discard = not turns.first_player_discarded
    if not opening_discard:
        if turns.pending_pickup:
            raise errors.MeldRequired()
        if turns.phase is not TurnPhase.DISCARD:
            raise errors.WrongPhase("can only discard cards during discard phase")

    card = player.find_card(card_id)
    if card is None:
        raise errors.CardNotInHand(f"card {card_id} is not in hand")
    return DiscardPlan(card=card, opening_discard=opening_discard)


def validate_meld(game: "Game", player_id: str, card_ids: Sequence[str]) -> MeldPlan:
    player = _acting_player(game, player_id)
    turns = game.turns
    config = game.config

    if turns.phase is not TurnPhase.MELD:
        raise errors.WrongPhase("can only create melds during meld phase")
    if not card_ids:
        raise errors.InvalidCombination("select cards to meld")
    if len(set(card_ids)) != len(card_ids):
        raise errors.DuplicateCard()

    cards: list[Card] = []
    for card_id in card_ids:
        card = player.find_card(card_id)
        if card is None:
            raise errors.CardNotInHand(f"card {card_id} is not in hand")
        cards.append(card)

    if not config.min_meld_size <= len(cards) <= config.max_meld_size:
        raise errors.InvalidCombination(
            f"a meld needs {config.min_meld_size}-{config.max_meld_size} cards, got {len(cards)}"
        )
    kind = is_valid_meld(cards, game.joker_rank, max_size=config.max_meld_size)
    if kind is None:
        raise errors.InvalidCombination()
    if kind is MeldKind.SET and not player.has_laid_run:
        raise errors.RunRequired()

    missing = [card_id for card_id in turns.pending_pickup if card_id not in card_ids]
    if missing:
        raise errors.MeldRequired(f"meld must include the cards taken from the discard pile: {', '.join(missing)}")
    if player.hand_size - len(cards) < config.min_cards_after_meld:
        raise errors.HandTooSmall()
    return MeldPlan(kind=kind, cards=tuple(cards))


def validate_skip_meld(game: "Game", player_id: str) -> None:
    _acting_player(game, player_id)
    turns = game.turns
    if turns.phase is not TurnPhase.MELD:
        raise errors.WrongPhase("can only skip melding during meld phase")
    if turns.pending_pickup:
        raise errors.MeldRequired()


def can_player_win(player: Player) -> tuple[bool, str | None]:
    """Return whether ``player`` meets the hit-out conditions, with the reason if not."""

    if player.hand_size != 1:
        return False, "player must hold exactly 1 card to win"
    if not player.melds:
        return False, "player must declare at least 1 meld to win"
    if not player.has_laid_run:
        return False, "player must declare at least 1 run to win"
    return True, None


def check_game_over(game: "Game") -> GameOver | None:
    if game.winner is not None:
        return GameOver(FinishReason.MEMUKUL, game.winner)
    if game.deck.is_empty():
        return GameOver(FinishReason.DECK_EMPTY)
    return None
