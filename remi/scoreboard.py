"""Helpers for tracking multi-round Remi match results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .scoring import RoundResult

__all__ = ["PlayerMatchTotal", "MatchHistory"]


@dataclass(frozen=True, slots=True)
class PlayerMatchTotal:
    """Aggregate match totals accumulated across all recorded rounds."""

    player_id: str
    wins: int
    hand_points: int
    meld_bonus: int
    total_points: int


@dataclass(slots=True)
class MatchHistory:
    """Mutable tracker that accumulates round results for a match."""

    player_ids: Sequence[str]
    rounds: list[RoundResult] = field(default_factory=list)
    _wins: dict[str, int] = field(init=False, repr=False)
    _hand: dict[str, int] = field(init=False, repr=False)
    _bonus: dict[str, int] = field(init=False, repr=False)
    _total: dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.player_ids:
            raise ValueError("player_ids must not be empty")
        self.player_ids = tuple(self.player_ids)
        self._wins = {player_id: 0 for player_id in self.player_ids}
        self._hand = {player_id: 0 for player_id in self.player_ids}
        self._bonus = {player_id: 0 for player_id in self.player_ids}
        self._total = {player_id: 0 for player_id in self.player_ids}
        recorded, self.rounds = self.rounds, []
        for result in recorded:
            self.record(result)

    def record(self, result: RoundResult) -> None:
        """Record ``result`` and update cumulative totals."""

        if len(result.scores) != len(self.player_ids):
            raise ValueError("score count does not match number of players")
        for score in result.scores:
            if score.player_id not in self._total:
                raise ValueError(f"unknown player {score.player_id}")
        self.rounds.append(result)
        for score in result.scores:
            player_id = score.player_id
            self._hand[player_id] += score.hand_score
            self._bonus[player_id] += score.meld_bonus
            self._total[player_id] += score.total_score
            if score.is_winner:
                self._wins[player_id] += 1

    def totals(self) -> list[PlayerMatchTotal]:
        """Return the cumulative totals for each player in seating order."""

        return [
            PlayerMatchTotal(
                player_id=player_id,
                wins=self._wins[player_id],
                hand_points=self._hand[player_id],
                meld_bonus=self._bonus[player_id],
                total_points=self._total[player_id],
            )
            for player_id in self.player_ids
        ]

    def leaders(self) -> list[str]:
        if not self.rounds:
            return []
        best = max(self._total.values())
        return [player_id for player_id in self.player_ids if self._total[player_id] == best]

    @property
    def last_round(self) -> RoundResult | None:
        return self.rounds[-1] if self.rounds else None
