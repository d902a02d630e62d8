"""
API Module - HTTP interface for game clients.

A client:
1. Picks a predefined game or submits a schema document
2. Creates a session with human and bot seats
3. Submits actions and reads per-viewer state
4. Pumps bot turns and deferred effects when it uses think delays

All state is session-scoped and in-memory.
"""

from .schemas import (
    # Requests
    ActionRequest,
    CreateSessionRequest,
    RulesRequest,
    # Responses
    ErrorResponse,
    GameStateResponse,
    IRResponse,
    RulesResponse,
    SessionResponse,
    TurnResponse,
    ValidateResponse,
    # Shared
    CardInfo,
    PlayerInfo,
    ZoneInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "ActionRequest",
    "CreateSessionRequest",
    "RulesRequest",
    # Responses
    "ErrorResponse",
    "GameStateResponse",
    "IRResponse",
    "RulesResponse",
    "SessionResponse",
    "TurnResponse",
    "ValidateResponse",
    # Shared
    "CardInfo",
    "PlayerInfo",
    "ZoneInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
