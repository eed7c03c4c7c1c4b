"""Self-play harness that drives a :class:`~remi.game.Game` with a greedy policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from . import actions
from .config import RemiConfig
from .game import Game
from .scoreboard import MatchHistory, PlayerMatchTotal
from .scoring import RoundResult
from .turns import TurnPhase

__all__ = ["MatchReport", "DEFAULT_PLAYERS", "play_turn", "play_round", "simulate_match"]

logger = logging.getLogger(__name__)

DEFAULT_PLAYERS = ("north", "east", "south", "west")
TURN_LIMIT = 400


@dataclass(frozen=True, slots=True)
class MatchReport:
    """Summary of a simulated multi-round match."""

    history: MatchHistory
    totals: tuple[PlayerMatchTotal, ...]
    final_scores: dict[str, int]


def _choose_draw_action(options: Sequence[actions.DrawAction], rng: np.random.Generator) -> actions.DrawAction:
    pickups = [option for option in options if option.source == "discard_pile" and option.count > 1]
    if pickups and rng.random() < 0.9:
        return max(pickups, key=lambda option: option.count)
    deck = [option for option in options if option.source == "deck"]
    if deck:
        return deck[0]
    return options[0]


def play_turn(game: Game, rng: np.random.Generator) -> None:
    """Play out the current seat's turn, or its opening discard."""

    player = game.current_player
    if game.must_discard_first():
        game.discard_card(player.id, actions.legal_discards(game, player.id)[0].id)
        return

    options = actions.legal_draw_actions(game, player.id)
    if not options:
        raise RuntimeError(f"no legal draw for {player.id}")
    actions.apply_draw_action(game, player.id, _choose_draw_action(options, rng))
    if not game.is_playing():
        return

    while game.turns.phase is TurnPhase.MELD:
        melds = actions.legal_melds(game, player.id)
        if melds:
            game.create_meld(player.id, melds[0])
        else:
            game.skip_meld_phase(player.id)

    discards = actions.legal_discards(game, player.id)
    if not discards:
        raise RuntimeError(f"no legal discard for {player.id}")
    game.discard_card(player.id, discards[0].id)


def play_round(game: Game, rng: np.random.Generator, *, turn_limit: int = TURN_LIMIT) -> RoundResult:
    """Play the current round to completion and return its result."""

    for _ in range(turn_limit):
        if not game.is_playing():
            break
        play_turn(game, rng)
    else:
        raise RuntimeError(f"round did not finish within {turn_limit} turns")

    result = game.last_round
    if result is None:
        raise RuntimeError("round finished without a recorded result")
    logger.debug("round %d finished after %d turns", result.round_number, game.turns.turn_number())
    return result


def simulate_match(
    rounds: int,
    *,
    seed: int | None = None,
    player_ids: Sequence[str] = DEFAULT_PLAYERS,
    config: RemiConfig | None = None,
) -> MatchReport:
    """Auto-play ``rounds`` consecutive rounds on one table."""

    if rounds <= 0:
        raise ValueError("rounds must be positive")

    rng = np.random.default_rng(seed)
    game = Game(player_ids, config=config, rng=rng)
    game.start()
    for round_number in range(1, rounds + 1):
        if round_number > 1:
            game.start_next_round()
        play_round(game, rng)

    return MatchReport(
        history=game.history,
        totals=tuple(game.history.totals()),
        final_scores={player.id: player.score for player in game.players},
    )
