"""Turn sequencing and the per-turn phase state machine."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

__all__ = [
    "TurnPhase",
    "ActionType",
    "TurnAction",
    "TurnRecord",
    "TurnManager",
    "Clock",
]

Clock = Callable[[], float]


class TurnPhase(str, Enum):
    """Micro-state inside a single player's turn."""

    DRAW = "draw_phase"
    MELD = "meld_phase"
    DISCARD = "discard_phase"


class ActionType(str, Enum):
    DRAW = "draw"
    DISCARD = "discard"
    MELD = "meld"
    SKIP_MELD = "skip_meld"


@dataclass(frozen=True, slots=True)
class TurnAction:
    """A single accepted action, stamped with the clock time."""

    type: ActionType
    player_id: str
    timestamp: float
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "player_id": self.player_id,
            "timestamp": self.timestamp,
            "details": _plain(self.details),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TurnAction":
        return cls(
            type=ActionType(data["type"]),
            player_id=str(data["player_id"]),
            timestamp=float(data["timestamp"]),
            details=dict(data.get("details", {})),
        )


@dataclass(slots=True)
class TurnRecord:
    player_index: int
    start_time: float
    end_time: float | None = None
    actions: list[TurnAction] = field(default_factory=list)

    def copy(self) -> "TurnRecord":
        return TurnRecord(self.player_index, self.start_time, self.end_time, list(self.actions))

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_index": self.player_index,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "actions": [action.to_dict() for action in self.actions],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TurnRecord":
        end_time = data.get("end_time")
        return cls(
            player_index=int(data["player_index"]),
            start_time=float(data["start_time"]),
            end_time=None if end_time is None else float(end_time),
            actions=[TurnAction.from_dict(action) for action in data.get("actions", [])],
        )


def _plain(details: Mapping[str, Any]) -> dict[str, Any]:
    plain: dict[str, Any] = {}
    for key, value in details.items():
        plain[key] = list(value) if isinstance(value, tuple) else value
    return plain


class TurnManager:
    """Tracks whose turn it is, the current phase, and the turn log.

    Two flags survive across turns: ``first_player_discarded`` is set once by
    the opening discard and never cleared for the round, while
    ``last_draw_from_discard`` is cleared whenever a new turn starts.
    ``pending_pickup`` lists the cards taken from the discard pile that the
    current player still has to meld.
    """

    def __init__(
        self,
        player_ids: Sequence[str],
        starting_index: int = 0,
        *,
        clock: Clock = time.time,
    ) -> None:
        if not player_ids:
            raise ValueError("turn manager needs at least one player")
        self.player_ids: tuple[str, ...] = tuple(player_ids)
        self._clock = clock
        self.direction = 1
        self.current_index = starting_index
        self.phase = TurnPhase.DRAW
        self.first_player_discarded = False
        self.last_draw_from_discard = False
        self.pending_pickup: tuple[str, ...] = ()
        self.history: list[TurnRecord] = []
        self.current_turn = TurnRecord(player_index=starting_index, start_time=self._clock())

    @property
    def num_players(self) -> int:
        return len(self.player_ids)

    @property
    def current_player_id(self) -> str:
        return self.player_ids[self.current_index]

    def is_player_turn(self, player_id: str) -> bool:
        return self.current_player_id == player_id

    def set_current_index(self, index: int) -> None:
        if not 0 <= index < self.num_players:
            raise ValueError(f"player index {index} out of range")
        self.current_index = index
        self.current_turn = TurnRecord(player_index=index, start_time=self._clock())

    def next_player_index(self) -> int:
        return (self.current_index + self.direction) % self.num_players

    def previous_player_index(self) -> int:
        return (self.current_index - self.direction) % self.num_players

    def reverse_direction(self) -> None:
        self.direction = -self.direction

    def next_turn(self) -> str:
        """Close the current turn and hand play to the next seat in draw phase."""

        now = self._clock()
        self.current_turn.end_time = now
        self.history.append(self.current_turn)
        self.current_index = self.next_player_index()
        self.current_turn = TurnRecord(player_index=self.current_index, start_time=now)
        self.phase = TurnPhase.DRAW
        self.last_draw_from_discard = False
        self.pending_pickup = ()
        return self.current_player_id

    def record_action(self, action_type: ActionType, player_id: str, **details: Any) -> TurnAction:
        action = TurnAction(type=action_type, player_id=player_id, timestamp=self._clock(), details=details)
        self.current_turn.actions.append(action)
        return action

    def current_actions(self) -> list[TurnAction]:
        return list(self.current_turn.actions)

    @property
    def meld_optional(self) -> bool:
        return self.phase is TurnPhase.MELD and not self.pending_pickup

    def turn_number(self) -> int:
        return len(self.history) + 1

    def round_number(self) -> int:
        """Number of the current lap around the table."""

        return len(self.history) // self.num_players + 1

    def turn_order(self) -> list[str]:
        return [
            self.player_ids[(self.current_index + offset * self.direction) % self.num_players]
            for offset in range(self.num_players)
        ]

    def player_turn_count(self, player_id: str) -> int:
        return sum(1 for turn in self.history if self.player_ids[turn.player_index] == player_id)

    def current_turn_duration(self) -> float:
        return self._clock() - self.current_turn.start_time

    def average_turn_duration(self) -> float:
        if not self.history:
            return 0.0
        now = self._clock()
        total = sum((turn.end_time or now) - turn.start_time for turn in self.history)
        return total / len(self.history)

    def time_since_last_action(self) -> float:
        if not self.current_turn.actions:
            return self.current_turn_duration()
        return self._clock() - self.current_turn.actions[-1].timestamp

    def is_turn_idle(self, max_idle_seconds: float = 60.0) -> bool:
        """Advisory only: the engine never acts on an idle turn."""

        return self.time_since_last_action() > max_idle_seconds

    def turn_summary(self, display_name: str | None = None) -> str:
        name = display_name or self.current_player_id
        minutes, seconds = divmod(int(self.current_turn_duration()), 60)
        return f"{name}'s turn ({minutes}:{seconds:02d})"

    def reset(self, starting_index: int = 0) -> None:
        self.direction = 1
        self.history = []
        self.phase = TurnPhase.DRAW
        self.first_player_discarded = False
        self.last_draw_from_discard = False
        self.pending_pickup = ()
        self.set_current_index(starting_index)

    def copy(self) -> "TurnManager":
        clone = TurnManager(self.player_ids, self.current_index, clock=self._clock)
        clone.direction = self.direction
        clone.phase = self.phase
        clone.first_player_discarded = self.first_player_discarded
        clone.last_draw_from_discard = self.last_draw_from_discard
        clone.pending_pickup = self.pending_pickup
        clone.history = [turn.copy() for turn in self.history]
        clone.current_turn = self.current_turn.copy()
        return clone

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_ids": list(self.player_ids),
            "current_player_index": self.current_index,
            "phase": self.phase.value,
            "direction": self.direction,
            "first_player_discarded": self.first_player_discarded,
            "last_draw_from_discard": self.last_draw_from_discard,
            "pending_pickup": list(self.pending_pickup),
            "current_turn": self.current_turn.to_dict(),
            "history": [turn.to_dict() for turn in self.history],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, clock: Clock = time.time) -> "TurnManager":
        manager = cls(data["player_ids"], int(data["current_player_index"]), clock=clock)
        manager.phase = TurnPhase(data["phase"])
        manager.direction = int(data.get("direction", 1))
        manager.first_player_discarded = bool(data.get("first_player_discarded", False))
        manager.last_draw_from_discard = bool(data.get("last_draw_from_discard", False))
        manager.pending_pickup = tuple(data.get("pending_pickup", ()))
        if "current_turn" in data:
            manager.current_turn = TurnRecord.from_dict(data["current_turn"])
        manager.history = [TurnRecord.from_dict(turn) for turn in data.get("history", [])]
        return manager
