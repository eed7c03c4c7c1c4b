"""Card abstractions and helpers for Remi."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Final, Iterable, Mapping

__all__ = [
    "Suit",
    "Rank",
    "Card",
    "HAND_VALUES",
    "WINNING_VALUES",
    "JOKER_WINNING_VALUE",
    "DECK_SIZE",
    "create_standard_deck",
    "card_from_code",
    "format_cards",
]


class Suit(str, Enum):
    """Enumeration of the four suits in a standard deck."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]

    @property
    def letter(self) -> str:
        return self.value[0].upper()


class Rank(str, Enum):
    """Enumeration of ranks, aces low."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @classmethod
    def ordered(cls) -> tuple["Rank", ...]:
        """Return ranks in run order."""

        return tuple(cls)

    @property
    def order(self) -> int:
        """Position used for run adjacency (A=1 ... K=13)."""

        return _RANK_ORDER[self]


_SUIT_SYMBOLS: Final[dict[Suit, str]] = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}
_RANK_ORDER: Final[dict[Rank, int]] = {rank: idx for idx, rank in enumerate(Rank, start=1)}

# Value of a card left in hand at round end.
HAND_VALUES: Final[dict[Rank, int]] = {
    rank: (15 if rank is Rank.ACE else 10 if rank in (Rank.JACK, Rank.QUEEN, Rank.KING) else 5)
    for rank in Rank
}
# Value of the last card standing when a player hits out.
WINNING_VALUES: Final[dict[Rank, int]] = {rank: value * 10 for rank, value in HAND_VALUES.items()}
JOKER_WINNING_VALUE: Final[int] = 250
DECK_SIZE: Final[int] = 52


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable value object describing a physical card.

    A joker keeps its printed suit and rank; ``is_joker`` only makes it wild.
    """

    suit: Suit
    rank: Rank
    is_joker: bool = False

    @property
    def id(self) -> str:
        return f"{self.suit.value}-{self.rank.value}"

    @property
    def value(self) -> int:
        """Hand-scoring value of the printed rank."""

        return HAND_VALUES[self.rank]

    @property
    def winning_value(self) -> int:
        """Payout when this is the last card in a winning hand."""

        if self.is_joker:
            return JOKER_WINNING_VALUE
        return WINNING_VALUES[self.rank]

    @property
    def code(self) -> str:
        return f"{self.rank.value}{self.suit.letter}"

    def is_active_joker(self, joker_rank: Rank | str | None) -> bool:
        """Return ``True`` when the card shares the round's joker rank."""

        if joker_rank is None:
            return False
        return self.rank == Rank(joker_rank)

    def is_wild(self, joker_rank: Rank | str | None = None) -> bool:
        return self.is_joker or self.is_active_joker(joker_rank)

    def matches_by_rank(self, other: "Card") -> bool:
        """Same rank, different suit: a pair candidate for a pickup."""

        return self.rank == other.rank and self.suit != other.suit

    def forms_sequence_with(self, other: "Card") -> bool:
        """Same suit and neighbouring rank."""

        return self.suit == other.suit and abs(self.rank.order - other.rank.order) == 1

    def as_joker(self) -> "Card":
        return replace(self, is_joker=True)

    def label(self) -> str:
        """Create a display label suitable for CLI representations."""

        if self.is_joker:
            return f"{self.rank.value}🃏"
        return f"{self.rank.value}{self.suit.symbol}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "suit": self.suit.value,
            "rank": self.rank.value,
            "value": self.value,
            "is_joker": self.is_joker,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Card":
        return cls(Suit(data["suit"]), Rank(data["rank"]), bool(data.get("is_joker", False)))


def create_standard_deck() -> list[Card]:
    """Return the 52 cards of a standard deck in suit-then-rank order."""

    return [Card(suit, rank) for suit in Suit for rank in Rank.ordered()]


def card_from_code(code: str, *, joker: bool = False) -> Card:
    """Parse a short code such as ``"9S"``, ``"10H"`` or ``"AC"``."""

    text = code.strip().upper()
    if len(text) < 2:
        raise ValueError(f"invalid card code '{code}'")
    rank_text, suit_letter = text[:-1], text[-1]
    for suit in Suit:
        if suit.letter == suit_letter:
            return Card(suit, Rank(rank_text), joker)
    raise ValueError(f"invalid card code '{code}'")


def format_cards(cards: Iterable[Card]) -> str:
    return " ".join(card.label() for card in cards)
