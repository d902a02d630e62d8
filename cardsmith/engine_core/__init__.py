"""
Engine Core - Schema-driven card game sessions.

The engine is the runtime that:
1. Loads a GameRules schema and classifies it once
2. Builds decks, hands and table zones
3. Validates actions against the schema and the live state
4. Applies actions and advances phases and turns
5. Evaluates win conditions after every action
"""

from .action import ActionResult
from .cards import Card, CardDeck, HandScheme, calculate_hand_value, matches_pattern
from .classifier import SchemaProfile, SchemaTag, classify_rules
from .custom_actions import ActionTemplate, TemplateRegistry, template_from_request
from .engine import GameEngine
from .errors import (
    EngineError,
    GameAlreadyStartedError,
    NotEnoughPlayersError,
    PlayerNotFoundError,
    RosterFullError,
)
from .scheduler import DeferredScheduler
from .state import GameState, GameStatus, Player, PlayerKind, TableType, Zone, ZoneType
from .validation import ActionValidator
from .win_conditions import WinOutcome, find_winner

__all__ = [
    "ActionResult",
    "Card",
    "CardDeck",
    "HandScheme",
    "calculate_hand_value",
    "matches_pattern",
    "SchemaProfile",
    "SchemaTag",
    "classify_rules",
    "ActionTemplate",
    "TemplateRegistry",
    "template_from_request",
    "GameEngine",
    "EngineError",
    "GameAlreadyStartedError",
    "NotEnoughPlayersError",
    "PlayerNotFoundError",
    "RosterFullError",
    "DeferredScheduler",
    "GameState",
    "GameStatus",
    "Player",
    "PlayerKind",
    "TableType",
    "Zone",
    "ZoneType",
    "ActionValidator",
    "WinOutcome",
    "find_winner",
]
