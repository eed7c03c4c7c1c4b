"""Per-seat player state."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from .cards import Card, Suit
from .errors import CardNotInHand
from .melds import Meld

__all__ = ["HandStats", "Player"]

_SUIT_ORDER = {suit: idx for idx, suit in enumerate(Suit)}


@dataclass(frozen=True, slots=True)
class HandStats:
    total_cards: int
    joker_count: int
    suits: dict[str, int]
    ranks: dict[str, int]


@dataclass(slots=True)
class Player:
    """State tracked for each seat at the table."""

    id: str
    display_name: str
    hand: list[Card] = field(default_factory=list)
    melds: list[Meld] = field(default_factory=list)
    score: int = 0
    ready: bool = False
    connected: bool = True
    has_laid_run: bool = False

    @property
    def hand_size(self) -> int:
        return len(self.hand)

    @property
    def meld_count(self) -> int:
        return len(self.melds)

    def add_cards(self, cards: Iterable[Card]) -> None:
        self.hand.extend(cards)

    def find_card(self, card_id: str) -> Card | None:
        return next((card for card in self.hand if card.id == card_id), None)

    def has_card(self, card_id: str) -> bool:
        return self.find_card(card_id) is not None

    def has_cards(self, card_ids: Iterable[str]) -> bool:
        return all(self.has_card(card_id) for card_id in card_ids)

    def remove_card(self, card_id: str) -> Card:
        for index, card in enumerate(self.hand):
            if card.id == card_id:
                return self.hand.pop(index)
        raise CardNotInHand(f"card {card_id} is not in hand")

    def remove_cards(self, card_ids: Sequence[str]) -> list[Card]:
        if not self.has_cards(card_ids):
            missing = [card_id for card_id in card_ids if not self.has_card(card_id)]
            raise CardNotInHand(f"cards not in hand: {', '.join(missing)}")
        return [self.remove_card(card_id) for card_id in card_ids]

    def add_meld(self, meld: Meld) -> None:
        """Record a declared meld; laying a run is never undone."""

        self.melds.append(meld)
        if meld.is_run():
            self.has_laid_run = True

    def melded_cards(self) -> list[Card]:
        return [card for meld in self.melds for card in meld.cards]

    def can_win(self) -> bool:
        """One card left, at least one meld, and a run among them."""

        return len(self.hand) == 1 and bool(self.melds) and self.has_laid_run

    def has_matching_pair(self, top_card: Card | None) -> bool:
        if top_card is None:
            return False
        return any(
            card.matches_by_rank(top_card) or card.forms_sequence_with(top_card) for card in self.hand
        )

    def matching_cards(self, top_card: Card | None) -> list[Card]:
        if top_card is None:
            return []
        return [
            card
            for card in self.hand
            if card.matches_by_rank(top_card) or card.forms_sequence_with(top_card)
        ]

    def matching_sequence(self, discards: Sequence[Card]) -> list[Card]:
        """Return the unbroken run of matching cards at the top of ``discards``."""

        matching: list[Card] = []
        for card in reversed(discards):
            if not self.has_matching_pair(card):
                break
            matching.insert(0, card)
        return matching

    def sort_hand(self) -> None:
        self.hand.sort(key=lambda card: (card.rank.order, _SUIT_ORDER[card.suit]))

    def hand_stats(self) -> HandStats:
        return HandStats(
            total_cards=len(self.hand),
            joker_count=sum(1 for card in self.hand if card.is_joker),
            suits=dict(Counter(card.suit.value for card in self.hand)),
            ranks=dict(Counter(card.rank.value for card in self.hand)),
        )

    def set_ready(self, ready: bool) -> None:
        self.ready = ready

    def toggle_ready(self) -> None:
        self.ready = not self.ready

    def set_connected(self, connected: bool) -> None:
        self.connected = connected

    def add_score(self, points: int) -> None:
        self.score += points

    def reset_for_round(self) -> None:
        """Clear round-scoped state; the running score is kept."""

        self.hand = []
        self.melds = []
        self.has_laid_run = False

    def copy(self) -> "Player":
        return Player(
            id=self.id,
            display_name=self.display_name,
            hand=list(self.hand),
            melds=list(self.melds),
            score=self.score,
            ready=self.ready,
            connected=self.connected,
            has_laid_run=self.has_laid_run,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "hand": [card.to_dict() for card in self.hand],
            "melds": [meld.to_dict() for meld in self.melds],
            "score": self.score,
            "ready": self.ready,
            "connected": self.connected,
            "has_laid_run": self.has_laid_run,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Player":
        return cls(
            id=str(data["id"]),
            display_name=str(data.get("display_name", data["id"])),
            hand=[Card.from_dict(card) for card in data.get("hand", [])],
            melds=[Meld.from_dict(meld) for meld in data.get("melds", [])],
            score=int(data.get("score", 0)),
            ready=bool(data.get("ready", False)),
            connected=bool(data.get("connected", True)),
            has_laid_run=bool(data.get("has_laid_run", False)),
        )
