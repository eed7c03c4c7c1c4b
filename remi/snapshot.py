"""JSON-compatible snapshots of a :class:`~remi.game.Game`.

A snapshot is the whole table as plain dicts and lists, hands included,
so it is meant for persistence and debugging rather than for sending to
other seats.
"""

from __future__ import annotations

import time
from collections import Counter
from typing import Any, Mapping

import numpy as np

from .cards import Card
from .config import RemiConfig
from .errors import InvalidPlayerCount, SnapshotError
from .game import CARDS_IN_CIRCULATION, Game, JokerPrivilegeHook
from .piles import Deck
from .player import Player
from .rules import FinishReason, GameStatus
from .scoreboard import MatchHistory
from .scoring import RoundResult
from .turns import Clock, TurnManager

__all__ = ["SNAPSHOT_VERSION", "to_snapshot", "from_snapshot", "validate_snapshot"]

SNAPSHOT_VERSION = 1

_REQUIRED_KEYS = (
    "id",
    "status",
    "current_round",
    "config",
    "players",
    "deck",
    "discard_pile",
    "joker_reference_card",
    "turn",
)


def to_snapshot(game: Game) -> dict[str, Any]:
    reference = game.joker_reference_card
    return {
        "version": SNAPSHOT_VERSION,
        "id": game.id,
        "status": game.status.value,
        "current_round": game.current_round,
        "config": game.config.to_dict(),
        "players": [player.to_dict() for player in game.players],
        "deck": [card.to_dict() for card in game.deck.cards],
        "discard_pile": [card.to_dict() for card in game.discard_pile.cards],
        "discarded_by": game.discard_pile.discarded_by,
        "joker_reference_card": None if reference is None else reference.to_dict(),
        "joker_cards": [card.to_dict() for card in game.joker_cards],
        "active_joker_rank": None if game.joker_rank is None else game.joker_rank.value,
        "current_player_index": game.turns.current_index,
        "current_turn_phase": game.turns.phase.value,
        "turn": game.turns.to_dict(),
        "winner": game.winner,
        "finish_reason": None if game.finish_reason is None else game.finish_reason.value,
        "last_action": None if game.last_action is None else dict(game.last_action),
        "rounds": [result.to_dict() for result in game.history.rounds],
        "start_time": game.start_time,
        "rng_state": game.rng.bit_generator.state,
    }


def _circulating(players: list[Player], deck: list[Card], discards: list[Card]) -> list[Card]:
    cards = list(deck) + list(discards)
    for player in players:
        cards.extend(player.hand)
        cards.extend(player.melded_cards())
    return cards


def validate_snapshot(
    status: GameStatus,
    players: list[Player],
    deck: list[Card],
    discards: list[Card],
    reference: Card | None,
) -> None:
    """Raise :class:`SnapshotError` if the card layout cannot be a real round."""

    if status is GameStatus.LOBBY:
        return
    if reference is None:
        raise SnapshotError("joker reference card is missing")

    cards = _circulating(players, deck, discards)
    if len(cards) != CARDS_IN_CIRCULATION:
        raise SnapshotError(f"expected {CARDS_IN_CIRCULATION} cards in play, found {len(cards)}")
    duplicates = [card_id for card_id, seen in Counter(card.id for card in cards).items() if seen > 1]
    if duplicates:
        raise SnapshotError(f"duplicate card ids: {', '.join(sorted(duplicates))}")
    if any(card.id == reference.id for card in cards):
        raise SnapshotError(f"joker reference card {reference.id} is still in play")
    for card in cards:
        if card.is_joker != (card.rank == reference.rank):
            raise SnapshotError(f"card {card.id} has a joker mark inconsistent with rank {reference.rank.value}")


def from_snapshot(
    data: Mapping[str, Any],
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    joker_privilege: JokerPrivilegeHook | None = None,
    clock: Clock = time.time,
) -> Game:
    """Rebuild a :class:`Game` from :func:`to_snapshot` output.

    The random generator resumes from the saved ``rng_state`` so later deals
    match the original game. Passing ``seed`` or ``rng`` replaces it.
    """

    missing = [key for key in _REQUIRED_KEYS if key not in data]
    if missing:
        raise SnapshotError(f"snapshot is missing keys: {', '.join(missing)}")

    try:
        status = GameStatus(data["status"])
        config = RemiConfig.from_dict(data["config"])
        players = [Player.from_dict(player) for player in data["players"]]
        deck = [Card.from_dict(card) for card in data["deck"]]
        discards = [Card.from_dict(card) for card in data["discard_pile"]]
        reference_data = data["joker_reference_card"]
        reference = None if reference_data is None else Card.from_dict(reference_data)
        turns = TurnManager.from_dict(data["turn"], clock=clock)
        rounds = [RoundResult.from_dict(result) for result in data.get("rounds", [])]
        finish_reason = data.get("finish_reason")
        reason = None if finish_reason is None else FinishReason(finish_reason)
    except (KeyError, TypeError, ValueError, InvalidPlayerCount) as exc:
        raise SnapshotError(f"malformed snapshot: {exc}") from exc

    validate_snapshot(status, players, deck, discards, reference)
    in_play_jokers = [card for card in _circulating(players, deck, discards) if card.is_joker]
    if "joker_cards" in data:
        joker_cards = [Card.from_dict(card) for card in data["joker_cards"]]
        if {card.id for card in joker_cards} != {card.id for card in in_play_jokers}:
            raise SnapshotError("joker card list does not match the marked cards in play")
    else:
        joker_cards = in_play_jokers
    player_ids = [player.id for player in players]
    if list(turns.player_ids) != player_ids:
        raise SnapshotError("turn order does not match the seated players")

    game = Game(
        player_ids,
        [player.display_name for player in players],
        config=config,
        seed=seed,
        rng=rng,
        game_id=str(data["id"]),
        joker_privilege=joker_privilege,
        clock=clock,
    )
    game.status = status
    game.current_round = int(data["current_round"])
    game.players = players
    game.deck = Deck(deck)
    game.discard_pile.restore(discards, dict(data.get("discarded_by", {})))
    game.joker_reference_card = reference
    game.joker_cards = joker_cards
    game.turns = turns
    game.winner = data.get("winner")
    game.finish_reason = reason
    last_action = data.get("last_action")
    game.last_action = None if last_action is None else dict(last_action)
    try:
        game.history = MatchHistory(player_ids, rounds)
    except ValueError as exc:
        raise SnapshotError(f"malformed round history: {exc}") from exc
    game.start_time = float(data.get("start_time", game.start_time))
    if seed is None and rng is None and data.get("rng_state") is not None:
        try:
            game.rng.bit_generator.state = data["rng_state"]
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"malformed rng state: {exc}") from exc
    return game
