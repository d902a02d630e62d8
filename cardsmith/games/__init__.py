"""
Games module - Predefined schemas.

Hand-authored GameRules documents used for template selection, demos and
tests. Generated schemas go through exactly the same engine.
"""

from .catalog import PREDEFINED_GAMES, PredefinedGame, get_game, get_game_rules, list_games

__all__ = [
    "PREDEFINED_GAMES",
    "PredefinedGame",
    "get_game",
    "get_game_rules",
    "list_games",
]
