"""Runtime configuration for a Remi table."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Mapping

from .errors import InvalidPlayerCount

__all__ = ["PickupMeldMode", "RemiConfig", "DEFAULT_CONFIG"]


class PickupMeldMode(str, Enum):
    """How cards taken from the discard pile must combine into a meld.

    ``TAKEN_ONLY`` requires the taken cards to form a meld on their own.
    ``WITH_HAND`` lets the seat complete the meld with cards from hand.
    """

    TAKEN_ONLY = "taken_only"
    WITH_HAND = "with_hand"


@dataclass(frozen=True, slots=True)
class RemiConfig:
    """Table rules for a single Remi game."""

    num_players: int = 4
    hand_size: int = 7
    first_player_hand_size: int = 8
    max_discard_pickup: int = 3
    min_meld_size: int = 3
    max_meld_size: int = 4
    min_cards_after_meld: int = 2
    pickup_meld_mode: PickupMeldMode = PickupMeldMode.TAKEN_ONLY
    require_matching_pickup: bool = False
    idle_turn_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.num_players != 4:
            raise InvalidPlayerCount(f"game requires exactly 4 players, got {self.num_players}")

    def hand_size_for(self, seat_index: int, starting_index: int) -> int:
        """Return the number of cards dealt to ``seat_index``."""

        if seat_index == starting_index:
            return self.first_player_hand_size
        return self.hand_size

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["pickup_meld_mode"] = self.pickup_meld_mode.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RemiConfig":
        values = dict(data)
        if "pickup_meld_mode" in values:
            values["pickup_meld_mode"] = PickupMeldMode(values["pickup_meld_mode"])
        return cls(**values)


DEFAULT_CONFIG = RemiConfig()
