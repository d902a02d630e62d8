"""
Bots module - Automated players for any schema.

Provides:
- BotPolicy: Interface for bot decision-making
- HeuristicBot: Validator-probing default bot
- FirstDeclaredPolicy: Naive baseline
- get_bot_action: One-shot move selection
"""

from .policy import BotMove, BotPolicy, FirstDeclaredPolicy
from .heuristic import HeuristicBot, get_bot_action, rank_actions

__all__ = [
    "BotMove",
    "BotPolicy",
    "FirstDeclaredPolicy",
    "HeuristicBot",
    "get_bot_action",
    "rank_actions",
]
