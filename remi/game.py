"""The Remi game orchestrator.

:class:`Game` owns the deck, discard pile, players and turn manager for one
table. ``draw_card``, ``discard_card``, ``create_meld`` and
``skip_meld_phase`` are the only mutating entry points during a round; each
validates through :mod:`remi.rules` before touching any state.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Protocol, Sequence

import numpy as np

from . import rules, scoring
from .cards import Card, Rank
from .config import DEFAULT_CONFIG, RemiConfig
from .errors import GameAlreadyStarted, RoundNotInProgress, RuleViolation, SetupError
from .melds import Meld
from .piles import Deck, DiscardPile
from .player import Player
from .rules import FinishReason, GameStatus
from .scoreboard import MatchHistory
from .scoring import DEFAULT_SCORING, RoundResult, ScoringRules
from .turns import ActionType, Clock, TurnManager, TurnPhase

__all__ = ["Game", "JokerPrivilegeHook", "ignore_joker_privilege"]

logger = logging.getLogger(__name__)

CARDS_IN_CIRCULATION = 51


class JokerPrivilegeHook(Protocol):
    """Called after a follow-up round is dealt with the previous round's grantee."""

    def __call__(self, game: "Game", grantee_id: str | None) -> None: ...


def ignore_joker_privilege(game: "Game", grantee_id: str | None) -> None:
    # What the privilege grants is undecided, so nothing is applied.
    if grantee_id is not None:
        logger.debug("game %s: joker privilege for %s not applied", game.id, grantee_id)


class Game:
    """One four-seat Remi table and its current round."""

    def __init__(
        self,
        player_ids: Sequence[str],
        display_names: Sequence[str] | None = None,
        *,
        config: RemiConfig | None = None,
        scoring_rules: ScoringRules = DEFAULT_SCORING,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        game_id: str | None = None,
        joker_privilege: JokerPrivilegeHook | None = None,
        clock: Clock = time.time,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        rules.validate_player_count(len(player_ids))
        if len(set(player_ids)) != len(player_ids):
            raise SetupError("player ids must be unique")
        if display_names is None:
            display_names = list(player_ids)
        if len(display_names) != len(player_ids):
            raise SetupError("one display name is required per player")

        self.id = game_id or uuid.uuid4().hex[:8]
        self.scoring_rules = scoring_rules
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.joker_privilege: JokerPrivilegeHook = joker_privilege or ignore_joker_privilege
        self._clock = clock

        self.status = GameStatus.LOBBY
        self.current_round = 1
        self.players: list[Player] = [
            Player(id=player_id, display_name=name) for player_id, name in zip(player_ids, display_names)
        ]
        self.deck = Deck.standard()
        self.discard_pile = DiscardPile()
        self.turns = TurnManager(player_ids, 0, clock=clock)
        self.joker_reference_card: Card | None = None
        self.joker_cards: list[Card] = []
        self.winner: str | None = None
        self.finish_reason: FinishReason | None = None
        self.last_action: dict[str, Any] | None = None
        self.history = MatchHistory(tuple(player_ids))
        self.start_time = clock()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def joker_rank(self) -> Rank | None:
        if self.joker_reference_card is None:
            return None
        return self.joker_reference_card.rank

    @property
    def phase(self) -> TurnPhase:
        return self.turns.phase

    @property
    def current_player_index(self) -> int:
        return self.turns.current_index

    @property
    def current_player(self) -> Player:
        return self.players[self.turns.current_index]

    @property
    def last_round(self) -> RoundResult | None:
        return self.history.last_round

    def get_player(self, player_id: str) -> Player | None:
        return next((player for player in self.players if player.id == player_id), None)

    def is_playing(self) -> bool:
        return self.status is GameStatus.PLAYING

    def is_finished(self) -> bool:
        return self.status is GameStatus.FINISHED

    def must_discard_first(self) -> bool:
        """Whether the starting seat still owes its opening discard."""

        return self.is_playing() and not self.turns.first_player_discarded

    def total_cards_in_play(self) -> int:
        in_hands = sum(player.hand_size for player in self.players)
        in_melds = sum(meld.size for player in self.players for meld in player.melds)
        return in_hands + in_melds + self.deck.remaining + self.discard_pile.count

    def duration(self) -> float:
        return self._clock() - self.start_time

    def is_turn_idle(self) -> bool:
        return self.turns.is_turn_idle(self.config.idle_turn_seconds)

    # ------------------------------------------------------------------
    # Round lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self.status is not GameStatus.LOBBY:
            raise GameAlreadyStarted()
        self._deal_round()
        self.status = GameStatus.PLAYING

    def start_next_round(self) -> None:
        """Deal a new round, keeping every player's running score."""

        if self.status is not GameStatus.FINISHED:
            raise RoundNotInProgress("current round is not finished")
        last_round = self.history.last_round
        grantee = last_round.joker_grant if last_round is not None else None
        self.current_round += 1
        for player in self.players:
            player.reset_for_round()
        self._deal_round()
        self.status = GameStatus.PLAYING
        self.joker_privilege(self, grantee)

    def _deal_round(self) -> None:
        deck = Deck.standard()
        deck.shuffle(self.rng)
        self._determine_jokers(deck)

        num_players = len(self.players)
        starting_index = int(self.rng.integers(num_players))
        self.turns.reset(starting_index)
        for offset in range(num_players):
            seat = (starting_index + offset) % num_players
            player = self.players[seat]
            player.add_cards(self.deck.draw(self.config.hand_size_for(seat, starting_index)))
            player.sort_hand()

        # The starting seat holds the extra card and opens by discarding it.
        self.turns.phase = TurnPhase.DISCARD
        self.discard_pile.clear()
        self.winner = None
        self.finish_reason = None
        self.last_action = None
        self._log_state()

    def _determine_jokers(self, shuffled: Deck) -> None:
        cards = shuffled.cards
        reference = cards[int(self.rng.integers(len(cards)))]
        remaining = [
            card.as_joker() if card.rank == reference.rank else card
            for card in cards
            if card.id != reference.id
        ]
        self.deck = Deck(remaining)
        self.deck.shuffle(self.rng)
        self.joker_reference_card = reference
        self.joker_cards = [card for card in remaining if card.is_joker]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    @contextmanager
    def _action(self, action: str, player_id: str) -> Iterator[None]:
        try:
            yield
        except RuleViolation as exc:
            logger.debug("game %s: %s by %s rejected [%s] %s", self.id, action, player_id, exc.code, exc)
            raise

    def draw_card(self, player_id: str, from_discard_pile: bool = False, count: int | None = None) -> list[Card]:
        """Draw one card from the deck, or 1-3 cards from the top of the discard pile."""

        with self._action("draw", player_id):
            plan = rules.validate_draw(self, player_id, from_discard_pile, count)

        player = self.players[self.turns.current_index]
        if plan.from_discard_pile:
            drawn = self.discard_pile.take_cards(plan.count)
            self.turns.last_draw_from_discard = True
            if plan.requires_meld:
                self.turns.pending_pickup = tuple(card.id for card in drawn)
        else:
            drawn = self.deck.draw(1)
            self.turns.last_draw_from_discard = False
        player.add_cards(drawn)

        source = "discard_pile" if plan.from_discard_pile else "deck"
        details: dict[str, Any] = {"source": source, "draw_count": len(drawn)}
        if plan.from_discard_pile:
            details["card_ids"] = [card.id for card in drawn]
        self.turns.record_action(ActionType.DRAW, player_id, **details)
        self.last_action = {"type": ActionType.DRAW.value, "player_id": player_id, **details}
        self.turns.phase = TurnPhase.MELD
        logger.debug("game %s: %s drew %d card(s) from %s", self.id, player_id, len(drawn), source)

        self._check_game_over()
        return drawn

    def discard_card(self, player_id: str, card_id: str) -> Card:
        with self._action("discard", player_id):
            plan = rules.validate_discard(self, player_id, card_id)

        player = self.players[self.turns.current_index]
        card = player.remove_card(plan.card.id)
        self.discard_pile.add_card(card, player_id)
        self.turns.record_action(ActionType.DISCARD, player_id, card_id=card.id)
        self.last_action = {"type": ActionType.DISCARD.value, "player_id": player_id, "card_id": card.id}
        logger.debug("game %s: %s discarded %s", self.id, player_id, card.id)

        if plan.opening_discard:
            self.turns.first_player_discarded = True
            self.turns.phase = TurnPhase.DRAW
        elif player.can_win():
            self._finish_memukul(player)
        else:
            self.turns.next_turn()

        self._check_game_over()
        return card

    def create_meld(self, player_id: str, card_ids: Sequence[str]) -> Meld:
        with self._action("meld", player_id):
            plan = rules.validate_meld(self, player_id, list(card_ids))

        player = self.players[self.turns.current_index]
        cards = player.remove_cards([card.id for card in plan.cards])
        meld = Meld(
            id=f"{player_id}-meld-{player.meld_count + 1}",
            kind=plan.kind,
            cards=tuple(cards),
            owner_id=player_id,
        )
        player.add_meld(meld)
        self.turns.record_action(ActionType.MELD, player_id, meld_id=meld.id, card_ids=[card.id for card in cards])
        self.last_action = {"type": ActionType.MELD.value, "player_id": player_id, "meld_id": meld.id}
        logger.debug("game %s: %s declared %s %s", self.id, player_id, meld.kind.value, meld.id)

        if self.turns.pending_pickup:
            self.turns.pending_pickup = ()
            self.turns.phase = TurnPhase.DISCARD

        self._check_game_over()
        return meld

    def skip_meld_phase(self, player_id: str) -> None:
        with self._action("skip_meld", player_id):
            rules.validate_skip_meld(self, player_id)

        self.turns.record_action(ActionType.SKIP_MELD, player_id)
        self.turns.phase = TurnPhase.DISCARD
        logger.debug("game %s: %s skipped melding", self.id, player_id)

    # ------------------------------------------------------------------
    # Round end
    # ------------------------------------------------------------------
    def _check_game_over(self) -> None:
        if self.status is not GameStatus.PLAYING:
            return
        outcome = rules.check_game_over(self)
        if outcome is not None and outcome.reason is FinishReason.DECK_EMPTY:
            result = scoring.deck_empty_result(self.players, self.current_round, self.scoring_rules)
            self._finish(result)

    def _finish_memukul(self, winner: Player) -> None:
        self._finish(scoring.memukul_result(self.players, winner, self.current_round))

    def _finish(self, result: RoundResult) -> None:
        for score in result.scores:
            player = self.get_player(score.player_id)
            if player is not None:
                player.add_score(score.total_score)
        self.status = GameStatus.FINISHED
        self.winner = result.winner_id
        self.finish_reason = result.reason
        self.history.record(result)
        logger.info(
            "game %s: round %d finished (%s), winner=%s",
            self.id,
            result.round_number,
            result.reason.value,
            result.winner_id,
        )

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def to_snapshot(self) -> dict[str, Any]:
        from .snapshot import to_snapshot

        return to_snapshot(self)

    @classmethod
    def from_snapshot(cls, data: dict[str, Any], **kwargs: Any) -> "Game":
        from .snapshot import from_snapshot

        return from_snapshot(data, **kwargs)

    def _log_state(self) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug(
            "game %s round %d: deck=%d discard=%d joker=%s phase=%s current=%d in_play=%d/%d",
            self.id,
            self.current_round,
            self.deck.remaining,
            self.discard_pile.count,
            self.joker_rank.value if self.joker_rank else None,
            self.turns.phase.value,
            self.turns.current_index,
            self.total_cards_in_play(),
            CARDS_IN_CIRCULATION,
        )
        for index, player in enumerate(self.players):
            logger.debug(
                "  seat %d (%s): %d cards, %d melds",
                index,
                player.display_name,
                player.hand_size,
                player.meld_count,
            )
