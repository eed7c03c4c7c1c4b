"""Meld representation and the run/set validators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Any, Iterable, Mapping, Sequence

from .cards import Card, Rank
from .config import PickupMeldMode

__all__ = [
    "MeldKind",
    "Meld",
    "MIN_MELD_SIZE",
    "MAX_MELD_SIZE",
    "is_valid_run",
    "is_valid_set",
    "is_valid_meld",
    "meld_suggestions",
    "find_pickup_meld",
]

MIN_MELD_SIZE = 3
MAX_MELD_SIZE = 4
_LOWEST_ORDER = Rank.ACE.order
_HIGHEST_ORDER = Rank.KING.order


class MeldKind(str, Enum):
    RUN = "run"
    SET = "set"


@dataclass(frozen=True, slots=True)
class Meld:
    """A declared, face-up combination owned by one player."""

    id: str
    kind: MeldKind
    cards: tuple[Card, ...]
    owner_id: str

    def is_run(self) -> bool:
        return self.kind is MeldKind.RUN

    def is_set(self) -> bool:
        return self.kind is MeldKind.SET

    @property
    def size(self) -> int:
        return len(self.cards)

    @property
    def value(self) -> int:
        return sum(card.value for card in self.cards)

    def contains_card(self, card_id: str) -> bool:
        return any(card.id == card_id for card in self.cards)

    def joker_count(self, joker_rank: Rank | str | None = None) -> int:
        return sum(1 for card in self.cards if card.is_wild(joker_rank))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "cards": [card.to_dict() for card in self.cards],
            "owner_id": self.owner_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Meld":
        return cls(
            id=str(data["id"]),
            kind=MeldKind(data["type"]),
            cards=tuple(Card.from_dict(card) for card in data["cards"]),
            owner_id=str(data["owner_id"]),
        )


def _split_wild(cards: Sequence[Card], joker_rank: Rank | str | None) -> tuple[list[Card], int]:
    natural = [card for card in cards if not card.is_wild(joker_rank)]
    return natural, len(cards) - len(natural)


def is_valid_run(
    cards: Sequence[Card],
    joker_rank: Rank | str | None = None,
    *,
    max_size: int = MAX_MELD_SIZE,
) -> bool:
    """Return ``True`` when ``cards`` form a same-suit consecutive run.

    Wild cards fill gaps or extend either end. Four natural aces of any
    suits also count as a run.
    """

    size = len(cards)
    if size < MIN_MELD_SIZE or size > max_size:
        return False

    natural, _ = _split_wild(cards, joker_rank)
    if not natural:
        return False
    if size == 4 and len(natural) == 4 and all(card.rank is Rank.ACE for card in natural):
        return True

    if len({card.suit for card in natural}) != 1:
        return False
    orders = sorted(card.rank.order for card in natural)
    if len(set(orders)) != len(orders):
        return False

    low, high = orders[0], orders[-1]
    if high - low + 1 > size:
        return False
    # Some window of ``size`` ranks inside A..K must cover every natural card.
    first_start = max(_LOWEST_ORDER, high - size + 1)
    last_start = min(low, _HIGHEST_ORDER - size + 1)
    return first_start <= last_start


def is_valid_set(
    cards: Sequence[Card],
    joker_rank: Rank | str | None = None,
    *,
    max_size: int = MAX_MELD_SIZE,
) -> bool:
    """Return ``True`` when ``cards`` share one rank with no repeated suit."""

    size = len(cards)
    if size < MIN_MELD_SIZE or size > max_size:
        return False

    natural, _ = _split_wild(cards, joker_rank)
    if not natural:
        return False
    if len({card.rank for card in natural}) != 1:
        return False
    suits = [card.suit for card in natural]
    return len(set(suits)) == len(suits)


def is_valid_meld(
    cards: Sequence[Card],
    joker_rank: Rank | str | None = None,
    *,
    max_size: int = MAX_MELD_SIZE,
) -> MeldKind | None:
    """Return the meld kind formed by ``cards`` or ``None`` if invalid.

    Runs are checked first so four aces classify as a run.
    """

    if is_valid_run(cards, joker_rank, max_size=max_size):
        return MeldKind.RUN
    if is_valid_set(cards, joker_rank, max_size=max_size):
        return MeldKind.SET
    return None


def meld_suggestions(
    hand: Sequence[Card],
    joker_rank: Rank | str | None = None,
    *,
    max_size: int = MAX_MELD_SIZE,
) -> list[list[Card]]:
    """Return disjoint melds found in ``hand``, runs before sets, larger first."""

    suggestions: list[list[Card]] = []
    used: set[str] = set()
    checks = ((MeldKind.RUN, is_valid_run), (MeldKind.SET, is_valid_set))
    for _kind, predicate in checks:
        for size in range(max_size, MIN_MELD_SIZE - 1, -1):
            for combo in combinations(hand, size):
                if any(card.id in used for card in combo):
                    continue
                if predicate(combo, joker_rank, max_size=max_size):
                    suggestions.append(list(combo))
                    used.update(card.id for card in combo)
    return suggestions


def find_pickup_meld(
    taken: Sequence[Card],
    hand: Iterable[Card],
    joker_rank: Rank | str | None = None,
    *,
    mode: PickupMeldMode = PickupMeldMode.TAKEN_ONLY,
    require_run: bool = False,
    max_size: int = MAX_MELD_SIZE,
) -> list[Card] | None:
    """Return a meld containing every ``taken`` card, or ``None``.

    In ``WITH_HAND`` mode the meld may be completed with cards from ``hand``.
    When ``require_run`` is set only runs qualify.
    """

    def acceptable(cards: Sequence[Card]) -> bool:
        kind = is_valid_meld(cards, joker_rank, max_size=max_size)
        if kind is None:
            return False
        return kind is MeldKind.RUN or not require_run

    if acceptable(taken):
        return list(taken)
    if mode is PickupMeldMode.TAKEN_ONLY:
        return None

    taken_ids = {card.id for card in taken}
    candidates = [card for card in hand if card.id not in taken_ids]
    for extra in range(1, max_size - len(taken) + 1):
        for combo in combinations(candidates, extra):
            cards = [*taken, *combo]
            if acceptable(cards):
                return cards
    return None
