"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between UI clients and the engine.
Schemas themselves travel as raw camelCase documents (dicts) and are parsed
into GameRules by the service, so a malformed schema is reported with a
structured error instead of a framework validation failure.

Error Codes:
- INVALID_RULES: Schema document could not be parsed or failed validation
- GAME_NOT_FOUND: Predefined game id is unknown
- SESSION_NOT_FOUND: Session does not exist or has ended
- INVALID_SETUP: Roster does not fit the schema (too few / too many players)
- PLAYER_NOT_FOUND: Action names a player that is not seated
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    YOUR_TURN = "your_turn"
    BOT_TURN = "bot_turn"
    PAUSED = "paused"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    INVALID_RULES = "INVALID_RULES"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_SETUP = "INVALID_SETUP"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A card as a viewer may see it: hidden cards carry only their id."""
    card_id: str
    suit: Optional[str] = None
    rank: Optional[str] = None
    face_up: bool = False
    synthetic: bool = False

    model_config = {"from_attributes": True}


class ZoneInfo(BaseModel):
    """A table zone."""
    zone_id: str
    zone_type: str = Field(description="pile, sequence, grid, suit, custom")
    label: Optional[str] = None
    card_count: int = 0
    face_down: bool = False
    cards: list[CardInfo] = Field(default_factory=list)


class PlayerInfo(BaseModel):
    """A seat at the table."""
    player_id: str
    name: str
    kind: str = Field(description="human, bot, dealer")
    is_current_turn: bool = False
    score: int = 0
    eliminated: bool = False
    hand_count: int = 0
    hand: Optional[list[CardInfo]] = Field(None, description="Omitted when hidden from the viewer")
    chips: Optional[int] = None


class ActionResultInfo(BaseModel):
    """Outcome of one executed or rejected action."""
    player_id: str
    action: str
    success: bool
    message: str = ""
    cards: Optional[list[str]] = None
    target: Optional[str] = None
    timestamp: float = 0.0
    error_code: Optional[str] = None

    model_config = {"from_attributes": True}


class GameSummary(BaseModel):
    """A predefined game in the catalog."""
    id: str
    name: str
    summary: str
    difficulty: str
    player_count: str
    duration: str
    featured: bool = False


# =============================================================================
# Request Models
# =============================================================================

class RulesRequest(BaseModel):
    """A schema document to enrich, validate or translate."""
    rules: dict[str, Any] = Field(..., description="camelCase GameRules document")


class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    game_id: Optional[str] = Field(None, description="Predefined game id")
    rules: Optional[dict[str, Any]] = Field(None, description="Schema document; used when game_id is absent")
    human_names: list[str] = Field(default_factory=lambda: ["You"], description="One human seat per name")
    bot_count: int = Field(1, ge=0, le=7, description="Number of bot opponents")
    enrich: bool = Field(True, description="Run the enrichment pipeline first")
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")


class ActionRequest(BaseModel):
    """An action by a seated player."""
    player_id: str
    action: str
    card_ids: list[str] = Field(default_factory=list)
    target_id: Optional[str] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameListResponse(BaseModel):
    games: list[GameSummary]
    count: int


class RulesResponse(BaseModel):
    """A schema document, optionally with the enrichments applied to it."""
    rules: dict[str, Any]
    applied: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class ValidateResponse(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class IRResponse(BaseModel):
    """Emitted IR plus emitter issues and static validation results."""
    ir: dict[str, Any]
    issues: list[str] = Field(default_factory=list)
    valid: bool = True
    validation_errors: list[str] = Field(default_factory=list)
    validation_warnings: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    game_id: str
    game_name: str
    players: list[PlayerInfo] = Field(default_factory=list)
    human_player_ids: list[str] = Field(default_factory=list)
    current_turn_player_id: Optional[str] = None
    applied_enrichments: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    created_at: float = 0.0
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    """Game state as a given viewer may see it."""
    session_id: str
    status: SessionStatus
    phase: str
    turn: int
    round: int
    players: list[PlayerInfo] = Field(default_factory=list)
    current_turn_player_id: Optional[str] = None
    zones: list[ZoneInfo] = Field(default_factory=list)
    deck_size: int = 0
    discard_count: int = 0
    discard_top: Optional[CardInfo] = None
    community_cards: list[CardInfo] = Field(default_factory=list)
    scores: dict[str, int] = Field(default_factory=dict)
    pot: int = 0
    winner: Optional[str] = None
    last_action: Optional[ActionResultInfo] = None
    api_version: str = "v1"


class TurnResponse(BaseModel):
    """Everything that happened while advancing the session."""
    session_id: str
    success: bool
    status: SessionStatus
    results: list[ActionResultInfo] = Field(default_factory=list)
    bot_actions: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    winner: Optional[str] = None
    game_state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class ValidActionsResponse(BaseModel):
    session_id: str
    player_id: Optional[str] = None
    actions: list[str] = Field(default_factory=list)


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
