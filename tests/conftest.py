from __future__ import annotations

from typing import Callable, Mapping, Sequence

import pytest

from remi.cards import Card, Rank, card_from_code, create_standard_deck
from remi.config import RemiConfig
from remi.game import Game
from remi.melds import Meld, is_valid_meld
from remi.piles import Deck
from remi.player import Player
from remi.rules import GameStatus
from remi.turns import TurnManager, TurnPhase

PLAYERS = ("p1", "p2", "p3", "p4")


def make_card(code: str, joker_rank: Rank | None = None) -> Card:
    card = card_from_code(code)
    if joker_rank is not None and card.rank is joker_rank:
        return card.as_joker()
    return card


def build_game(
    *,
    hands: Mapping[str, Sequence[str]] | None = None,
    melds: Mapping[str, Sequence[Sequence[str]]] | None = None,
    discard: Sequence[str] = (),
    deck_top: Sequence[str] = (),
    deck_size: int | None = None,
    reference: str = "KC",
    current: int = 0,
    phase: TurnPhase = TurnPhase.DRAW,
    first_player_discarded: bool = True,
    config: RemiConfig | None = None,
    seed: int = 0,
    joker_privilege=None,
) -> Game:
    """Build a mid-round table with chosen cards.

    Seats without an explicit hand get 7 cards from the leftover stock. When
    ``deck_size`` is given, cards beyond it go to the bottom of the discard
    pile so the table still holds 51 cards.
    """

    hands = hands or {}
    melds = melds or {}
    reference_card = card_from_code(reference)
    joker_rank = reference_card.rank
    used = {reference_card.id}

    def take(codes: Sequence[str]) -> list[Card]:
        cards = [make_card(code, joker_rank) for code in codes]
        for card in cards:
            assert card.id not in used, f"{card.id} used twice"
            used.add(card.id)
        return cards

    players: list[Player] = []
    for pid in PLAYERS:
        player_melds = []
        for index, codes in enumerate(melds.get(pid, ()), start=1):
            cards = tuple(take(codes))
            kind = is_valid_meld(cards, joker_rank)
            assert kind is not None, f"invalid meld {codes}"
            player_melds.append(Meld(f"{pid}-meld-{index}", kind, cards, pid))
        player = Player(id=pid, display_name=pid.upper(), hand=take(hands.get(pid, ())))
        for meld in player_melds:
            player.add_meld(meld)
        players.append(player)

    discards = take(discard)
    top = take(deck_top)
    stock = [
        card.as_joker() if card.rank is joker_rank else card
        for card in create_standard_deck()
        if card.id not in used
    ]
    for pid, player in zip(PLAYERS, players):
        if pid not in hands:
            player.add_cards(stock[:7])
            del stock[:7]

    deck = top + stock
    bottom: list[Card] = []
    if deck_size is not None:
        deck, bottom = deck[:deck_size], deck[deck_size:]

    game = Game(PLAYERS, [player.display_name for player in players], config=config, seed=seed, joker_privilege=joker_privilege)
    game.status = GameStatus.PLAYING
    game.players = players
    game.deck = Deck(deck)
    game.discard_pile.restore([], {})
    for card in bottom:
        game.discard_pile.add_card(card, PLAYERS[-1])
    for card in discards:
        game.discard_pile.add_card(card, PLAYERS[(current - 1) % len(PLAYERS)])
    game.joker_reference_card = reference_card
    game.joker_cards = [
        card.as_joker() for card in create_standard_deck() if card.rank is joker_rank and card.id != reference_card.id
    ]
    turns = TurnManager(PLAYERS, current)
    turns.phase = phase
    turns.first_player_discarded = first_player_discarded
    game.turns = turns
    return game


@pytest.fixture
def rigged() -> Callable[..., Game]:
    return build_game
