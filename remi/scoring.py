"""Round scoring (the score manager)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Mapping, Sequence

from .cards import Card
from .melds import Meld
from .player import Player
from .rules import FinishReason

__all__ = [
    "ScoringRules",
    "DEFAULT_SCORING",
    "RoundScore",
    "RoundResult",
    "ScoreBreakdown",
    "hand_score",
    "meld_bonus",
    "winning_score",
    "joker_grant",
    "deck_empty_result",
    "memukul_result",
    "score_breakdown",
    "has_negative_score",
    "potential_score",
    "score_advice",
]


@dataclass(frozen=True, slots=True)
class ScoringRules:
    """Point values applied at round end."""

    meld_bonus: int = 10
    four_card_meld_bonus: int = 5
    melded_joker_value: int = 10
    unmelded_joker_penalty: int = -25

    def bonus_for(self, meld: Meld) -> int:
        return self.meld_bonus + (self.four_card_meld_bonus if meld.size == 4 else 0)


DEFAULT_SCORING: Final[ScoringRules] = ScoringRules()


@dataclass(frozen=True, slots=True)
class RoundScore:
    """Per-player scoring breakdown captured at the end of a round."""

    player_id: str
    hand_score: int
    meld_bonus: int
    total_score: int
    is_winner: bool = False
    winning_card: Card | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "hand_score": self.hand_score,
            "meld_bonus": self.meld_bonus,
            "total_score": self.total_score,
            "is_winner": self.is_winner,
            "winning_card": None if self.winning_card is None else self.winning_card.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoundScore":
        card = data.get("winning_card")
        return cls(
            player_id=str(data["player_id"]),
            hand_score=int(data["hand_score"]),
            meld_bonus=int(data["meld_bonus"]),
            total_score=int(data["total_score"]),
            is_winner=bool(data.get("is_winner", False)),
            winning_card=None if card is None else Card.from_dict(card),
        )


@dataclass(frozen=True, slots=True)
class RoundResult:
    """Outcome of a finished round.

    ``joker_grant`` names the seat with the single highest round score. It is
    reported for the joker privilege hook and has no effect by itself.
    """

    round_number: int
    reason: FinishReason
    winner_id: str | None
    scores: tuple[RoundScore, ...]
    joker_grant: str | None

    def score_for(self, player_id: str) -> RoundScore:
        for score in self.scores:
            if score.player_id == player_id:
                return score
        raise KeyError(player_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "round_number": self.round_number,
            "reason": self.reason.value,
            "winner_id": self.winner_id,
            "scores": [score.to_dict() for score in self.scores],
            "joker_grant": self.joker_grant,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoundResult":
        return cls(
            round_number=int(data["round_number"]),
            reason=FinishReason(data["reason"]),
            winner_id=data.get("winner_id"),
            scores=tuple(RoundScore.from_dict(score) for score in data["scores"]),
            joker_grant=data.get("joker_grant"),
        )


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    hand_cards: tuple[tuple[Card, int], ...]
    melds: tuple[tuple[Meld, int], ...]
    total_hand_value: int
    total_meld_bonus: int


def _hand_card_value(card: Card, rules: ScoringRules) -> int:
    if card.is_joker:
        return rules.unmelded_joker_penalty
    return card.value


def hand_score(hand: Sequence[Card], melds: Sequence[Meld] = (), rules: ScoringRules = DEFAULT_SCORING) -> int:
    """Score cards left in hand; jokers in hand cost points, melded jokers earn them."""

    total = sum(_hand_card_value(card, rules) for card in hand)
    melded_jokers = sum(1 for meld in melds for card in meld.cards if card.is_joker)
    return total + melded_jokers * rules.melded_joker_value


def meld_bonus(melds: Sequence[Meld], rules: ScoringRules = DEFAULT_SCORING) -> int:
    return sum(rules.bonus_for(meld) for meld in melds)


def winning_score(final_card: Card) -> int:
    return final_card.winning_value


def joker_grant(scores: Sequence[RoundScore]) -> str | None:
    """Return the seat with the unique highest round score, if any."""

    if not scores:
        return None
    best = max(score.total_score for score in scores)
    leaders = [score.player_id for score in scores if score.total_score == best]
    return leaders[0] if len(leaders) == 1 else None


def deck_empty_result(
    players: Sequence[Player],
    round_number: int,
    rules: ScoringRules = DEFAULT_SCORING,
) -> RoundResult:
    scores = []
    for player in players:
        hand_points = hand_score(player.hand, player.melds, rules)
        bonus = meld_bonus(player.melds, rules)
        scores.append(
            RoundScore(
                player_id=player.id,
                hand_score=hand_points,
                meld_bonus=bonus,
                total_score=hand_points + bonus,
            )
        )
    return RoundResult(
        round_number=round_number,
        reason=FinishReason.DECK_EMPTY,
        winner_id=None,
        scores=tuple(scores),
        joker_grant=joker_grant(scores),
    )


def memukul_result(players: Sequence[Player], winner: Player, round_number: int) -> RoundResult:
    """Only the winner scores: the last-card value of the card left in hand."""

    if winner.hand_size != 1:
        raise ValueError("memukul winner must hold exactly one card")
    final_card = winner.hand[0]
    scores = []
    for player in players:
        if player.id == winner.id:
            points = winning_score(final_card)
            scores.append(
                RoundScore(
                    player_id=player.id,
                    hand_score=0,
                    meld_bonus=0,
                    total_score=points,
                    is_winner=True,
                    winning_card=final_card,
                )
            )
        else:
            scores.append(RoundScore(player_id=player.id, hand_score=0, meld_bonus=0, total_score=0))
    return RoundResult(
        round_number=round_number,
        reason=FinishReason.MEMUKUL,
        winner_id=winner.id,
        scores=tuple(scores),
        joker_grant=joker_grant(scores),
    )


def score_breakdown(player: Player, rules: ScoringRules = DEFAULT_SCORING) -> ScoreBreakdown:
    hand_cards = tuple((card, _hand_card_value(card, rules)) for card in player.hand)
    melds = tuple((meld, rules.bonus_for(meld)) for meld in player.melds)
    return ScoreBreakdown(
        hand_cards=hand_cards,
        melds=melds,
        total_hand_value=hand_score(player.hand, player.melds, rules),
        total_meld_bonus=sum(bonus for _, bonus in melds),
    )


def has_negative_score(player: Player) -> bool:
    return any(card.is_joker for card in player.hand)


def potential_score(player: Player, rules: ScoringRules = DEFAULT_SCORING) -> tuple[int, int, int]:
    """Return ``(current, potential, reduction)`` if every hand joker were melded."""

    current = hand_score(player.hand, player.melds, rules)
    swing = rules.melded_joker_value - rules.unmelded_joker_penalty
    reduction = sum(swing for card in player.hand if card.is_joker)
    return current, current + reduction, reduction


def score_advice(player: Player, rules: ScoringRules = DEFAULT_SCORING) -> list[str]:
    """Short hints about the cards still weighing on ``player``'s score."""

    advice = []
    jokers = sum(1 for card in player.hand if card.is_joker)
    if jokers:
        advice.append(
            f"{jokers} unused joker(s) in hand worth {rules.unmelded_joker_penalty} points each; "
            "try to use them in melds"
        )
    high_cards = sum(1 for card in player.hand if not card.is_joker and card.value >= 10)
    if high_cards:
        advice.append(f"{high_cards} high-value card(s) (10+ points) in hand; meld or discard them")
    if player.can_win():
        advice.append("one card left with a run laid down: this seat can hit out")
    return advice
