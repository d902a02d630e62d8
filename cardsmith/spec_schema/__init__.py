"""
Spec Schema - The game schema consumed by the engine.

A GameRules document describes setup, turn phases, actions and win
conditions. It is data only; the engine interprets it.
"""

from .game_rules import (
    GameRules,
    PlayerBounds,
    DealerConfig,
    BettingConfig,
    Blinds,
    GameSetup,
    TableLayout,
    ZoneSpec,
    ProgressiveDeal,
    DrawUntil,
    EliminateOnMissRank,
    Objective,
    TurnStructure,
    TurnPhase,
    WinCondition,
)
from .validation import validate_rules, ValidationResult, RulesValidationError

__all__ = [
    "GameRules",
    "PlayerBounds",
    "DealerConfig",
    "BettingConfig",
    "Blinds",
    "GameSetup",
    "TableLayout",
    "ZoneSpec",
    "ProgressiveDeal",
    "DrawUntil",
    "EliminateOnMissRank",
    "Objective",
    "TurnStructure",
    "TurnPhase",
    "WinCondition",
    "validate_rules",
    "ValidationResult",
    "RulesValidationError",
]
