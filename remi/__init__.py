"""Top-level package for the Remi rule engine."""

from . import actions, cards, config, errors, game, melds, rules, scoring, snapshot
from .game import Game

__all__ = [
    "Game",
    "actions",
    "cards",
    "config",
    "errors",
    "game",
    "melds",
    "rules",
    "scoring",
    "snapshot",
]
