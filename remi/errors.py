"""Rule violations raised by the Remi engine.

Every rejected action raises a :class:`RuleViolation` subclass. The
``code`` attribute is stable and machine readable; ``str(exc)`` is the
human-readable reason shown to players.
"""

from __future__ import annotations

__all__ = [
    "RuleViolation",
    "TurnOwnershipError",
    "PhaseError",
    "ResourceError",
    "CombinationError",
    "StateInvariantError",
    "SetupError",
    "NotYourTurn",
    "WrongPhase",
    "MustDiscardFirst",
    "MeldRequired",
    "RoundNotInProgress",
    "EmptyDeck",
    "NotEnoughDiscards",
    "InvalidDrawCount",
    "InvalidCombination",
    "RunRequired",
    "PickupMeldUnavailable",
    "MustTakeMatchingCards",
    "MustTakeFromDiscardPile",
    "NoMatchingCards",
    "CardNotInHand",
    "UnknownPlayer",
    "DuplicateCard",
    "HandTooSmall",
    "InvalidPlayerCount",
    "GameAlreadyStarted",
    "SnapshotError",
]


class RuleViolation(RuntimeError):
    """Base class for every rejected engine action."""

    code = "RULE_VIOLATION"
    default_reason = "action not allowed"

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class TurnOwnershipError(RuleViolation):
    """Raised when someone other than the current seat acts."""


class PhaseError(RuleViolation):
    """Raised when an action is attempted in the wrong turn phase."""


class ResourceError(RuleViolation):
    """Raised when a pile cannot supply the requested cards."""


class CombinationError(RuleViolation):
    """Raised when cards do not satisfy meld or pickup rules."""


class StateInvariantError(RuleViolation):
    """Raised when an action references cards or seats that do not exist."""


class SetupError(RuleViolation):
    """Raised when a game cannot be created or started."""


class NotYourTurn(TurnOwnershipError):
    code = "NOT_YOUR_TURN"
    default_reason = "not your turn"


class WrongPhase(PhaseError):
    code = "WRONG_PHASE"
    default_reason = "action not allowed in the current turn phase"


class MustDiscardFirst(PhaseError):
    code = "MUST_DISCARD_FIRST"
    default_reason = "must discard before drawing"


class MeldRequired(PhaseError):
    code = "MELD_REQUIRED"
    default_reason = "must meld the cards taken from the discard pile"


class RoundNotInProgress(PhaseError):
    code = "ROUND_NOT_IN_PROGRESS"
    default_reason = "game is not in progress"


class EmptyDeck(ResourceError):
    code = "EMPTY_DECK"
    default_reason = "deck is empty"


class NotEnoughDiscards(ResourceError):
    code = "NOT_ENOUGH_DISCARDS"
    default_reason = "not enough cards in discard pile"


class InvalidDrawCount(ResourceError):
    code = "INVALID_DRAW_COUNT"
    default_reason = "can only take 1-3 cards from the discard pile"


class InvalidCombination(CombinationError):
    code = "INVALID_COMBINATION"
    default_reason = "cards do not form a valid run or set"


class RunRequired(CombinationError):
    code = "RUN_REQUIRED"
    default_reason = "first meld must be a run"


class PickupMeldUnavailable(CombinationError):
    code = "PICKUP_MELD_UNAVAILABLE"
    default_reason = "must be able to form a valid meld when taking multiple cards"


class MustTakeMatchingCards(CombinationError):
    code = "MUST_TAKE_MATCHING_CARDS"
    default_reason = "must take all matching cards from discard pile"


class MustTakeFromDiscardPile(CombinationError):
    code = "MUST_TAKE_FROM_DISCARD_PILE"
    default_reason = "matching cards are waiting on the discard pile"


class NoMatchingCards(CombinationError):
    code = "NO_MATCHING_CARDS"
    default_reason = "no matching cards on the discard pile, draw from the deck"


class CardNotInHand(StateInvariantError):
    code = "CARD_NOT_IN_HAND"
    default_reason = "card is not in hand"


class UnknownPlayer(StateInvariantError):
    code = "UNKNOWN_PLAYER"
    default_reason = "player not found"


class DuplicateCard(StateInvariantError):
    code = "DUPLICATE_CARD"
    default_reason = "the same card was selected twice"


class HandTooSmall(StateInvariantError):
    code = "HAND_TOO_SMALL"
    default_reason = "a meld must leave at least two cards in hand"


class InvalidPlayerCount(SetupError):
    code = "INVALID_PLAYER_COUNT"
    default_reason = "game requires exactly 4 players"


class GameAlreadyStarted(SetupError):
    code = "GAME_ALREADY_STARTED"
    default_reason = "game is already started"


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be turned back into a game."""
