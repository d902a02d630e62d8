"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /api/v1/health                         Health check
    GET    /api/v1/games                          List predefined games
    GET    /api/v1/games/{id}                     Schema document of a predefined game
    POST   /api/v1/rules/enrich                   Run the enrichment pipeline
    POST   /api/v1/rules/validate                 Validate a schema
    POST   /api/v1/rules/ir                       Emit and validate the IR
    POST   /api/v1/sessions                       Create game session
    GET    /api/v1/sessions                       List active sessions
    GET    /api/v1/sessions/{id}                  Get session status
    DELETE /api/v1/sessions/{id}                  End session
    GET    /api/v1/sessions/{id}/state            Get game state (per viewer)
    POST   /api/v1/sessions/{id}/actions          Execute a player action
    GET    /api/v1/sessions/{id}/valid-actions    Actions open to the current player
    POST   /api/v1/sessions/{id}/bot-turns        Play bot turns until a human is up
    POST   /api/v1/sessions/{id}/tick             Run due flips, peeks and bot turns

Rejected actions are not HTTP errors: the response carries success=false
and the engine's message, exactly like the engine API.
"""

from typing import Annotated, Optional, Union
import os

from .. import __version__

# Environment configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        ActionRequest,
        CreateSessionRequest,
        RulesRequest,
        # Response models
        EndSessionResponse,
        ErrorResponse,
        GameListResponse,
        GameStateResponse,
        HealthResponse,
        IRResponse,
        RulesResponse,
        SessionListResponse,
        SessionResponse,
        TurnResponse,
        ValidActionsResponse,
        ValidateResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Cardsmith Engine API",
        description="""
Schema-driven card game engine with heuristic bots.

## Error Codes

| Code | Description |
|------|-------------|
| `INVALID_RULES` | Schema document is malformed or failed validation |
| `GAME_NOT_FOUND` | Predefined game id is unknown |
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_SETUP` | Roster does not fit the schema |
| `PLAYER_NOT_FOUND` | Action names an unknown player |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.INVALID_RULES: 422,
        ErrorCode.GAME_NOT_FOUND: 404,
        ErrorCode.SESSION_NOT_FOUND: 404,
        ErrorCode.PLAYER_NOT_FOUND: 404,
        ErrorCode.INVALID_SETUP: 400,
        ErrorCode.VALIDATION_ERROR: 400,
        ErrorCode.INTERNAL_ERROR: 500,
    }

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code or status_codes.get(error_code, 400),
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def respond(response):
        if hasattr(response, "error"):
            return make_error_response(response.error_code, response.error, details=response.details)
        return response

    # =========================================================================
    # Health & catalog
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="cardsmith", version=__version__)

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List predefined games",
    )
    async def list_games() -> GameListResponse:
        return api_service.list_games()

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=RulesResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get the schema of a predefined game",
    )
    async def get_game(game_id: str) -> Union[RulesResponse, JSONResponse]:
        return respond(api_service.get_game_rules(game_id))

    # =========================================================================
    # Rules endpoints
    # =========================================================================

    @app.post(
        "/api/v1/rules/enrich",
        response_model=RulesResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["Rules"],
        summary="Turn free-text directives into structured setup fields",
    )
    async def enrich_rules(body: RulesRequest) -> Union[RulesResponse, JSONResponse]:
        return respond(api_service.enrich_rules(body))

    @app.post(
        "/api/v1/rules/validate",
        response_model=ValidateResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["Rules"],
        summary="Validate a schema",
    )
    async def validate_rules(body: RulesRequest) -> Union[ValidateResponse, JSONResponse]:
        return respond(api_service.validate_rules(body))

    @app.post(
        "/api/v1/rules/ir",
        response_model=IRResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["Rules"],
        summary="Emit the effect/predicate IR for a schema",
    )
    async def emit_ir(body: RulesRequest) -> Union[IRResponse, JSONResponse]:
        """
        Emit the IR and run static validation over it.

        `issues` are advisory: they name the parts of the schema the IR
        could not express faithfully.
        """
        return respond(api_service.emit_ir(body))

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Roster does not fit the schema"},
            404: {"model": ErrorResponse, "description": "Unknown game id"},
            422: {"model": ErrorResponse, "description": "Invalid schema"},
        },
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Create and start a game session.

        Use `game_id` for a predefined game or send a full `rules` document.
        """
        return respond(api_service.create_session(body))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session and cancel its pending effects."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Get game state",
    )
    async def get_state(
        session_id: str,
        viewer_id: Annotated[Optional[str], Query(description="Player whose hand may be shown")] = None,
    ) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game_state(session_id, viewer_id))

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=TurnResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Execute a player action",
    )
    async def submit_action(session_id: str, body: ActionRequest) -> Union[TurnResponse, JSONResponse]:
        """
        Execute an action for a seated player.

        With a zero think delay, bot turns that follow run before the
        response is returned and appear in `results`.
        """
        return respond(api_service.submit_action(session_id, body))

    @app.get(
        "/api/v1/sessions/{session_id}/valid-actions",
        response_model=ValidActionsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="List actions open to the current player",
    )
    async def valid_actions(session_id: str) -> Union[ValidActionsResponse, JSONResponse]:
        return respond(api_service.get_valid_actions(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/bot-turns",
        response_model=TurnResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Play bot turns until a human is up",
    )
    async def run_bots(
        session_id: str,
        max_actions: Annotated[Optional[int], Query(ge=1, le=1000)] = None,
    ) -> Union[TurnResponse, JSONResponse]:
        return respond(api_service.run_bots(session_id, max_actions))

    @app.post(
        "/api/v1/sessions/{session_id}/tick",
        response_model=TurnResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Run due deferred effects and scheduled bot turns",
    )
    async def tick(session_id: str) -> Union[TurnResponse, JSONResponse]:
        return respond(api_service.tick(session_id))

    return app
