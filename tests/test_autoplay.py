from __future__ import annotations

import numpy as np
import pytest

from remi import autoplay
from remi.game import Game
from remi.rules import GameStatus


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_play_round_conserves_cards(seed: int) -> None:
    rng = np.random.default_rng(seed)
    game = Game(autoplay.DEFAULT_PLAYERS, rng=rng)
    game.start()

    while game.is_playing():
        autoplay.play_turn(game, rng)
        assert game.total_cards_in_play() == 51
        assert all(player.hand_size >= 1 for player in game.players)

    result = game.last_round
    assert result is not None
    assert game.status is GameStatus.FINISHED
    assert result.reason is game.finish_reason


def test_simulate_match_totals_match_scores() -> None:
    report = autoplay.simulate_match(3, seed=5)

    assert len(report.history.rounds) == 3
    assert [result.round_number for result in report.history.rounds] == [1, 2, 3]
    for total in report.totals:
        assert report.final_scores[total.player_id] == total.total_points


def test_simulate_match_is_reproducible() -> None:
    first = autoplay.simulate_match(2, seed=21)
    second = autoplay.simulate_match(2, seed=21)

    assert first.final_scores == second.final_scores


def test_simulate_match_requires_rounds() -> None:
    with pytest.raises(ValueError):
        autoplay.simulate_match(0)
