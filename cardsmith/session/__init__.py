"""
Session Module - Manages ephemeral game sessions.

A session represents one play-through of a game:
- Created from a schema (enriched and validated first)
- Holds the engine and the loop that drives bot turns
- Destroyed when the game ends or the caller ends it

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import Session, SessionManager, SessionNotFoundError, SessionState
from .game_loop import GameLoop, LoopState, TurnResult

__all__ = [
    "SessionManager",
    "Session",
    "SessionNotFoundError",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TurnResult",
]
