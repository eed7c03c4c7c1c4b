from __future__ import annotations

from typing import Callable

import pytest

from remi import errors
from remi.config import PickupMeldMode, RemiConfig
from remi.game import Game
from remi.melds import MeldKind
from remi.rules import FinishReason, GameStatus
from remi.turns import TurnPhase

PLAYERS = ("p1", "p2", "p3", "p4")

Rigged = Callable[..., Game]


def _started(seed: int = 7) -> Game:
    game = Game(PLAYERS, seed=seed)
    game.start()
    return game


def test_start_deals_eight_to_the_first_player() -> None:
    game = _started()
    start = game.current_player_index

    sizes = [game.players[(start + offset) % 4].hand_size for offset in range(4)]

    assert sizes == [8, 7, 7, 7]
    assert game.deck.remaining == 51 - 29
    assert game.discard_pile.is_empty()
    assert game.total_cards_in_play() == 51
    assert game.status is GameStatus.PLAYING
    assert game.phase is TurnPhase.DISCARD
    assert game.must_discard_first()


def test_start_marks_three_jokers_and_removes_reference() -> None:
    game = _started()
    reference = game.joker_reference_card
    assert reference is not None

    in_play = list(game.deck.cards) + [card for player in game.players for card in player.hand]
    jokers = [card for card in in_play if card.is_joker]

    assert len(game.joker_cards) == 3
    assert {card.id for card in jokers} == {card.id for card in game.joker_cards}
    assert all(card.rank is reference.rank for card in jokers)
    assert reference.id not in {card.id for card in in_play}
    assert game.joker_rank is reference.rank


def test_same_seed_deals_same_table() -> None:
    first = _started(seed=11)
    second = _started(seed=11)

    assert first.joker_reference_card == second.joker_reference_card
    assert first.current_player_index == second.current_player_index
    assert [player.hand for player in first.players] == [player.hand for player in second.players]


def test_start_twice_is_rejected() -> None:
    game = _started()

    with pytest.raises(errors.GameAlreadyStarted):
        game.start()


@pytest.mark.parametrize("player_ids", [("a", "b", "c"), ("a", "b", "c", "d", "e")])
def test_game_requires_four_players(player_ids: tuple[str, ...]) -> None:
    with pytest.raises(errors.InvalidPlayerCount):
        Game(player_ids)


@pytest.mark.parametrize("num_players", [2, 3, 5])
def test_config_cannot_change_player_count(num_players: int) -> None:
    with pytest.raises(errors.InvalidPlayerCount):
        RemiConfig(num_players=num_players)


def test_actions_before_start_are_rejected() -> None:
    game = Game(PLAYERS)

    with pytest.raises(errors.RoundNotInProgress):
        game.draw_card("p1")


def test_first_player_must_discard_before_drawing() -> None:
    game = _started()
    starter = game.current_player

    with pytest.raises(errors.MustDiscardFirst):
        game.draw_card(starter.id)
    assert starter.hand_size == 8


def test_other_players_cannot_act_out_of_turn() -> None:
    game = _started()
    other = game.players[(game.current_player_index + 1) % 4]

    with pytest.raises(errors.NotYourTurn):
        game.discard_card(other.id, other.hand[0].id)
    with pytest.raises(errors.UnknownPlayer):
        game.draw_card("nobody")


def test_opening_discard_then_full_turn() -> None:
    game = _started()
    starter = game.current_player
    start = game.current_player_index

    opening = game.discard_card(starter.id, starter.hand[0].id)

    assert starter.hand_size == 7
    assert game.discard_pile.top_card() == opening
    assert game.discard_pile.who_discarded(opening.id) == starter.id
    assert game.current_player_index == start
    assert game.phase is TurnPhase.DRAW
    assert not game.must_discard_first()
    assert game.last_action == {"type": "discard", "player_id": starter.id, "card_id": opening.id}

    drawn = game.draw_card(starter.id)
    assert len(drawn) == 1
    assert starter.hand_size == 8
    assert game.phase is TurnPhase.MELD
    assert game.deck.remaining == 21

    game.skip_meld_phase(starter.id)
    assert game.phase is TurnPhase.DISCARD

    game.discard_card(starter.id, starter.hand[-1].id)
    assert game.current_player_index == (start + 1) % 4
    assert game.phase is TurnPhase.DRAW
    assert game.total_cards_in_play() == 51


def test_wrong_phase_actions(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2C", "3D", "9H"]})

    with pytest.raises(errors.WrongPhase):
        game.discard_card("p1", "clubs-2")
    with pytest.raises(errors.WrongPhase):
        game.skip_meld_phase("p1")
    with pytest.raises(errors.WrongPhase):
        game.create_meld("p1", ["clubs-2"])


def test_draw_count_limits(rigged: Rigged) -> None:
    game = rigged(discard=["2C"])

    with pytest.raises(errors.InvalidDrawCount):
        game.draw_card("p1", count=2)
    with pytest.raises(errors.InvalidDrawCount):
        game.draw_card("p1", from_discard_pile=True, count=4)
    with pytest.raises(errors.NotEnoughDiscards):
        game.draw_card("p1", from_discard_pile=True, count=2)


def test_single_discard_draw_keeps_meld_optional(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2C", "3D", "9H"]}, discard=["5S"])

    drawn = game.draw_card("p1", from_discard_pile=True)

    assert [card.code for card in drawn] == ["5S"]
    assert game.turns.last_draw_from_discard
    assert game.turns.meld_optional
    game.skip_meld_phase("p1")
    assert game.phase is TurnPhase.DISCARD


def test_three_card_pickup_forces_meld(rigged: Rigged) -> None:
    game = rigged(
        hands={"p1": ["2C", "3D", "9H", "JS", "QD", "4H", "8S"]},
        discard=["10C", "5H", "6H", "7H"],
    )

    taken = game.draw_card("p1", from_discard_pile=True, count=3)

    assert [card.code for card in taken] == ["5H", "6H", "7H"]
    assert game.get_player("p1").hand_size == 10
    assert game.discard_pile.count == 1
    assert set(game.turns.pending_pickup) == {"hearts-5", "hearts-6", "hearts-7"}

    with pytest.raises(errors.MeldRequired):
        game.skip_meld_phase("p1")
    with pytest.raises(errors.MeldRequired):
        game.create_meld("p1", ["hearts-4", "hearts-5", "hearts-6"])

    meld = game.create_meld("p1", ["hearts-5", "hearts-6", "hearts-7"])

    assert meld.kind is MeldKind.RUN
    assert meld.id == "p1-meld-1"
    assert game.get_player("p1").has_laid_run
    assert game.phase is TurnPhase.DISCARD
    assert game.turns.pending_pickup == ()


def test_two_card_pickup_needs_a_meld(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2C", "3D", "7H", "JS"]}, discard=["5H", "6H"])
    before = game.to_snapshot()

    with pytest.raises(errors.PickupMeldUnavailable):
        game.draw_card("p1", from_discard_pile=True, count=2)

    assert game.to_snapshot() == before


def test_two_card_pickup_with_hand_completion(rigged: Rigged) -> None:
    config = RemiConfig(pickup_meld_mode=PickupMeldMode.WITH_HAND)
    game = rigged(hands={"p1": ["2C", "3D", "7H", "JS"]}, discard=["5H", "6H"], config=config)

    game.draw_card("p1", from_discard_pile=True, count=2)
    meld = game.create_meld("p1", ["hearts-5", "hearts-6", "hearts-7"])

    assert meld.is_run()
    assert game.get_player("p1").hand_size == 3


def test_pickup_set_before_first_run_is_rejected(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2C", "3D", "7H", "JS"]}, discard=["5H", "5D", "5S"])

    with pytest.raises(errors.PickupMeldUnavailable):
        game.draw_card("p1", from_discard_pile=True, count=3)


def test_pickup_set_after_run_is_allowed(rigged: Rigged) -> None:
    game = rigged(
        hands={"p1": ["2C", "3D", "7H", "JS"]},
        melds={"p1": [["8C", "9C", "10C"]]},
        discard=["5H", "5D", "5S"],
    )

    game.draw_card("p1", from_discard_pile=True, count=3)
    meld = game.create_meld("p1", ["hearts-5", "diamonds-5", "spades-5"])

    assert meld.is_set()
    assert meld.id == "p1-meld-2"


def test_pickup_rejected_when_hand_would_be_too_small(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2C"]}, melds={"p1": [["8C", "9C", "10C"]]}, discard=["5H", "6H", "7H"])

    with pytest.raises(errors.HandTooSmall):
        game.draw_card("p1", from_discard_pile=True, count=3)


def test_first_meld_must_be_a_run(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["9C", "9D", "9H", "2S", "4D", "6H"]}, phase=TurnPhase.MELD)

    with pytest.raises(errors.RunRequired):
        game.create_meld("p1", ["clubs-9", "diamonds-9", "hearts-9"])
    assert game.get_player("p1").hand_size == 6


def test_meld_validation_errors(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2S", "3S", "4S", "9D", "6H"]}, phase=TurnPhase.MELD)

    with pytest.raises(errors.InvalidCombination):
        game.create_meld("p1", ["spades-2", "spades-3", "diamonds-9"])
    with pytest.raises(errors.DuplicateCard):
        game.create_meld("p1", ["spades-2", "spades-2", "spades-3"])
    with pytest.raises(errors.CardNotInHand):
        game.create_meld("p1", ["spades-2", "spades-3", "spades-5"])
    with pytest.raises(errors.InvalidCombination):
        game.create_meld("p1", [])


def test_meld_must_leave_two_cards(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2S", "3S", "4S", "9D"]}, phase=TurnPhase.MELD)

    with pytest.raises(errors.HandTooSmall):
        game.create_meld("p1", ["spades-2", "spades-3", "spades-4"])


def test_optional_melds_stay_in_meld_phase(rigged: Rigged) -> None:
    game = rigged(
        hands={"p1": ["2S", "3S", "4S", "9C", "9D", "9H", "6H", "QD"]},
        phase=TurnPhase.MELD,
    )

    game.create_meld("p1", ["spades-2", "spades-3", "spades-4"])
    assert game.phase is TurnPhase.MELD

    game.create_meld("p1", ["clubs-9", "diamonds-9", "hearts-9"])
    game.skip_meld_phase("p1")

    player = game.get_player("p1")
    assert [meld.id for meld in player.melds] == ["p1-meld-1", "p1-meld-2"]
    assert player.hand_size == 2
    assert game.phase is TurnPhase.DISCARD


def test_joker_fills_a_declared_run(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["5H", "KD", "7H", "2C", "9S"]}, phase=TurnPhase.MELD)

    meld = game.create_meld("p1", ["hearts-5", "diamonds-K", "hearts-7"])

    assert meld.is_run()
    assert meld.joker_count() == 1


@pytest.mark.parametrize(("last_card", "payout"), [("9S", 50), ("KH", 250), ("AD", 150)])
def test_memukul_pays_remaining_card(rigged: Rigged, last_card: str, payout: int) -> None:
    game = rigged(
        hands={"p1": [last_card, "2C"]},
        melds={"p1": [["5S", "6S", "7S"]]},
        phase=TurnPhase.DISCARD,
    )

    game.discard_card("p1", "clubs-2")

    assert game.status is GameStatus.FINISHED
    assert game.finish_reason is FinishReason.MEMUKUL
    assert game.winner == "p1"
    assert [player.score for player in game.players] == [payout, 0, 0, 0]
    result = game.last_round
    assert result is not None
    assert result.score_for("p1").winning_card.code == last_card
    assert result.joker_grant == "p1"


def test_no_memukul_without_a_run(rigged: Rigged) -> None:
    game = rigged(
        hands={"p1": ["9S", "2C"]},
        melds={"p1": [["5C", "5D", "5S"]]},
        phase=TurnPhase.DISCARD,
    )

    game.discard_card("p1", "clubs-2")

    assert game.status is GameStatus.PLAYING
    assert game.current_player_index == 1


def test_finished_round_rejects_every_action(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["9S", "2C"]}, melds={"p1": [["5S", "6S", "7S"]]}, phase=TurnPhase.DISCARD)
    game.discard_card("p1", "clubs-2")

    with pytest.raises(errors.RoundNotInProgress):
        game.draw_card("p1")
    with pytest.raises(errors.RoundNotInProgress):
        game.discard_card("p1", "spades-9")
    with pytest.raises(errors.RoundNotInProgress):
        game.skip_meld_phase("p1")
    with pytest.raises(errors.RoundNotInProgress):
        game.create_meld("p1", ["spades-9"])


def test_drawing_last_card_ends_round(rigged: Rigged) -> None:
    game = rigged(
        hands={"p1": ["AH", "KD"], "p2": ["QH", "JH"], "p3": ["2D", "3D"], "p4": ["4D", "6D"]},
        melds={"p1": [["5S", "6S", "7S"]]},
        deck_top=["2C"],
        deck_size=1,
    )

    game.draw_card("p1")

    assert game.deck.is_empty()
    assert game.status is GameStatus.FINISHED
    assert game.finish_reason is FinishReason.DECK_EMPTY
    assert game.winner is None
    result = game.last_round
    assert result is not None
    p1 = result.score_for("p1")
    assert (p1.hand_score, p1.meld_bonus, p1.total_score) == (15 - 25 + 5, 10, 5)
    assert result.score_for("p2").total_score == 20
    assert result.score_for("p3").total_score == 10
    assert result.joker_grant == "p2"
    assert [player.score for player in game.players] == [5, 20, 10, 10]
    assert game.total_cards_in_play() == 51


def test_start_next_round_keeps_scores_and_calls_joker_hook(rigged: Rigged) -> None:
    calls: list[str | None] = []
    game = rigged(
        hands={"p1": ["9S", "2C"]},
        melds={"p1": [["5S", "6S", "7S"]]},
        phase=TurnPhase.DISCARD,
        joker_privilege=lambda game, grantee: calls.append(grantee),
    )
    game.discard_card("p1", "clubs-2")

    game.start_next_round()

    assert calls == ["p1"]
    assert game.current_round == 2
    assert game.status is GameStatus.PLAYING
    assert game.winner is None
    assert [player.score for player in game.players] == [50, 0, 0, 0]
    assert all(player.melds == [] and not player.has_laid_run for player in game.players)
    assert sorted(player.hand_size for player in game.players) == [7, 7, 7, 8]
    assert game.total_cards_in_play() == 51
    assert game.must_discard_first()


def test_start_next_round_requires_finished_round() -> None:
    game = _started()

    with pytest.raises(errors.RoundNotInProgress):
        game.start_next_round()


def test_matching_rule_forces_discard_pickup(rigged: Rigged) -> None:
    config = RemiConfig(require_matching_pickup=True)
    game = rigged(hands={"p1": ["7S", "QD", "4H"]}, discard=["2C", "7H"], config=config)

    with pytest.raises(errors.MustTakeFromDiscardPile):
        game.draw_card("p1")
    with pytest.raises(errors.MustTakeMatchingCards):
        game.draw_card("p1", from_discard_pile=True, count=2)

    taken = game.draw_card("p1", from_discard_pile=True)
    assert [card.code for card in taken] == ["7H"]


def test_matching_rule_without_match_uses_deck(rigged: Rigged) -> None:
    config = RemiConfig(require_matching_pickup=True)
    game = rigged(hands={"p1": ["10S", "QD", "4H"]}, discard=["2C", "7H"], config=config)

    with pytest.raises(errors.NoMatchingCards):
        game.draw_card("p1", from_discard_pile=True)
    assert len(game.draw_card("p1")) == 1


def test_rejected_action_leaves_state_untouched(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2S", "3S", "4S", "9D"]}, phase=TurnPhase.MELD)
    before = game.to_snapshot()

    for attempt in (
        lambda: game.create_meld("p1", ["spades-2", "spades-3", "spades-4"]),
        lambda: game.discard_card("p1", "spades-2"),
        lambda: game.draw_card("p1"),
        lambda: game.skip_meld_phase("p2"),
    ):
        with pytest.raises(errors.RuleViolation):
            attempt()

    assert game.to_snapshot() == before


def test_turn_actions_are_recorded(rigged: Rigged) -> None:
    game = rigged(hands={"p1": ["2C", "3D", "9H"]}, discard=["5S"])

    game.draw_card("p1", from_discard_pile=True)
    game.skip_meld_phase("p1")
    game.discard_card("p1", "clubs-2")

    actions = game.turns.history[-1].actions
    assert [action.type.value for action in actions] == ["draw", "skip_meld", "discard"]
    assert actions[0].details["card_ids"] == ["spades-5"]


def test_idle_turn_uses_configured_threshold() -> None:
    now = [100.0]
    game = Game(PLAYERS, seed=1, config=RemiConfig(idle_turn_seconds=10.0), clock=lambda: now[0])
    game.start()

    now[0] += 5
    assert not game.is_turn_idle()
    now[0] += 6
    assert game.is_turn_idle()
    assert game.duration() == pytest.approx(11.0)
