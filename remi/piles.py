"""Draw deck and discard pile containers."""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .cards import Card, create_standard_deck
from .errors import EmptyDeck, NotEnoughDiscards

__all__ = ["Deck", "DiscardPile"]


class Deck:
    """Ordered stock of face-down cards; index 0 is the top."""

    __slots__ = ("_cards",)

    def __init__(self, cards: Iterable[Card] | None = None) -> None:
        self._cards: list[Card] = list(cards) if cards is not None else []

    @classmethod
    def standard(cls) -> "Deck":
        return cls(create_standard_deck())

    def shuffle(self, rng: np.random.Generator) -> None:
        """Shuffle in place with a Fisher-Yates pass driven by ``rng``."""

        cards = self._cards
        for i in range(len(cards) - 1, 0, -1):
            j = int(rng.integers(0, i + 1))
            cards[i], cards[j] = cards[j], cards[i]

    def draw(self, count: int = 1) -> list[Card]:
        """Remove and return the top ``count`` cards."""

        if count < 0:
            raise ValueError("count must be non-negative")
        if count > len(self._cards):
            raise EmptyDeck(f"deck is empty: {count} card(s) requested, {len(self._cards)} left")
        drawn = self._cards[:count]
        del self._cards[:count]
        return drawn

    def remove(self, card_id: str) -> Card:
        """Remove the card with ``card_id`` wherever it sits in the deck."""

        for index, card in enumerate(self._cards):
            if card.id == card_id:
                return self._cards.pop(index)
        raise KeyError(card_id)

    def add_cards(self, cards: Iterable[Card]) -> None:
        self._cards.extend(cards)

    @property
    def remaining(self) -> int:
        return len(self._cards)

    def is_empty(self) -> bool:
        return not self._cards

    @property
    def cards(self) -> list[Card]:
        return list(self._cards)

    def copy(self) -> "Deck":
        return Deck(self._cards)

    def __len__(self) -> int:
        return len(self._cards)


class DiscardPile:
    """Face-up pile; the last pushed card is the top.

    Tracks which player discarded each card for history and display.
    """

    __slots__ = ("_cards", "_discarded_by")

    def __init__(self) -> None:
        self._cards: list[Card] = []
        self._discarded_by: dict[str, str] = {}

    def add_card(self, card: Card, player_id: str) -> None:
        self._cards.append(card)
        self._discarded_by[card.id] = player_id

    def top_card(self) -> Card | None:
        return self._cards[-1] if self._cards else None

    def get_last_cards(self, count: int) -> list[Card]:
        """Peek at the most recent ``count`` cards, oldest first."""

        if count <= 0:
            return []
        return self._cards[-count:]

    def take_cards(self, count: int) -> list[Card]:
        """Remove the most recent ``count`` cards, keeping their pile order."""

        if count <= 0:
            raise ValueError("count must be positive")
        if count > len(self._cards):
            raise NotEnoughDiscards(
                f"not enough cards in discard pile: {count} requested, {len(self._cards)} available"
            )
        taken = self._cards[-count:]
        del self._cards[-count:]
        for card in taken:
            self._discarded_by.pop(card.id, None)
        return taken

    def who_discarded(self, card_id: str) -> str | None:
        return self._discarded_by.get(card_id)

    def cards_by_player(self, player_id: str) -> list[Card]:
        return [card for card in self._cards if self._discarded_by.get(card.id) == player_id]

    @property
    def cards(self) -> list[Card]:
        return list(self._cards)

    @property
    def discarded_by(self) -> dict[str, str]:
        return dict(self._discarded_by)

    @property
    def count(self) -> int:
        return len(self._cards)

    def is_empty(self) -> bool:
        return not self._cards

    def clear(self) -> None:
        self._cards.clear()
        self._discarded_by.clear()

    def restore(self, cards: Iterable[Card], discarded_by: dict[str, str]) -> None:
        """Replace the pile contents, used when loading a snapshot."""

        self._cards = list(cards)
        self._discarded_by = {card.id: discarded_by[card.id] for card in self._cards if card.id in discarded_by}

    def __len__(self) -> int:
        return len(self._cards)
