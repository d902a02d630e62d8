"""
API Service - Business logic layer between API and engine.

The service:
1. Parses schema documents into GameRules
2. Runs enrichment, validation and IR emission on request
3. Manages sessions and routes actions into their game loops
4. Formats engine state for clients, hiding what a viewer may not see

This layer is framework-agnostic. Methods return a response model or an
ErrorResponse; they do not raise for caller mistakes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Any

from pydantic import ValidationError

from ..engine_core.action import ActionResult
from ..engine_core.cards import Card
from ..engine_core.errors import EngineError, PlayerNotFoundError
from ..engine_core.state import GameState, Player
from ..enrichment import enrich_rules_with_report
from ..games import get_game, list_games
from ..ir import emit_ir, validate_ir
from ..session import LoopState, Session, SessionManager, TurnResult
from ..spec_schema import GameRules, RulesValidationError, validate_rules
from .schemas import (
    # Requests
    ActionRequest,
    CreateSessionRequest,
    RulesRequest,
    # Responses
    ErrorResponse,
    GameListResponse,
    GameStateResponse,
    IRResponse,
    RulesResponse,
    SessionResponse,
    TurnResponse,
    ValidActionsResponse,
    ValidateResponse,
    # Shared
    ActionResultInfo,
    CardInfo,
    GameSummary,
    PlayerInfo,
    ZoneInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        response = service.create_session(CreateSessionRequest(game_id="crazy-8s"))
        turn = service.submit_action(response.session_id, ActionRequest(...))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Schemas
    # =========================================================================

    def list_games(self) -> GameListResponse:
        games = [GameSummary(**game.to_dict()) for game in list_games()]
        return GameListResponse(games=games, count=len(games))

    def get_game_rules(self, game_id: str) -> RulesResponse | ErrorResponse:
        game = get_game(game_id)
        if game is None:
            return _error(ErrorCode.GAME_NOT_FOUND, f"Unknown game '{game_id}'")
        return RulesResponse(rules=game.rules().to_document())

    def enrich_rules(self, request: RulesRequest) -> RulesResponse | ErrorResponse:
        rules = self._parse_rules(request.rules)
        if isinstance(rules, ErrorResponse):
            return rules
        report = enrich_rules_with_report(rules)
        return RulesResponse(rules=report.rules.to_document(), applied=report.applied)

    def validate_rules(self, request: RulesRequest) -> ValidateResponse | ErrorResponse:
        rules = self._parse_rules(request.rules)
        if isinstance(rules, ErrorResponse):
            return rules
        result = validate_rules(rules)
        return ValidateResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)

    def emit_ir(self, request: RulesRequest) -> IRResponse | ErrorResponse:
        rules = self._parse_rules(request.rules)
        if isinstance(rules, ErrorResponse):
            return rules
        emitted = emit_ir(rules)
        check = validate_ir(emitted.ir)
        return IRResponse(
            ir=emitted.ir.to_dict(),
            issues=emitted.issues,
            valid=check.valid,
            validation_errors=check.errors,
            validation_warnings=check.warnings,
        )

    def _parse_rules(self, document: dict[str, Any]) -> GameRules | ErrorResponse:
        try:
            return GameRules.from_document(document)
        except ValidationError as e:
            return _error(
                ErrorCode.INVALID_RULES,
                "Schema document is not a valid game schema",
                details={"errors": e.errors(include_url=False, include_context=False)},
            )

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        if request.game_id:
            game = get_game(request.game_id)
            if game is None:
                return _error(ErrorCode.GAME_NOT_FOUND, f"Unknown game '{request.game_id}'")
            rules = game.rules()
        elif request.rules is not None:
            rules = self._parse_rules(request.rules)
            if isinstance(rules, ErrorResponse):
                return rules
        else:
            return _error(ErrorCode.VALIDATION_ERROR, "Provide either game_id or rules")

        try:
            session = self.session_manager.create_session(
                rules,
                human_names=request.human_names,
                bot_count=request.bot_count,
                enrich=request.enrich,
                seed=request.random_seed,
            )
        except RulesValidationError as e:
            return _error(ErrorCode.INVALID_RULES, str(e), details={"errors": e.errors})
        except EngineError as e:
            return _error(ErrorCode.INVALID_SETUP, str(e))
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Game loop
    # =========================================================================

    def get_game_state(self, session_id: str, viewer_id: str | None = None) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        return self._build_game_state(session, viewer_id)

    def submit_action(self, session_id: str, request: ActionRequest) -> TurnResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        try:
            turn = session.loop.submit_action(
                request.player_id, request.action, request.card_ids, request.target_id,
            )
        except PlayerNotFoundError as e:
            return _error(ErrorCode.PLAYER_NOT_FOUND, str(e))
        return self._turn_to_response(session, turn, viewer_id=request.player_id)

    def run_bots(self, session_id: str, max_actions: int | None = None) -> TurnResponse | ErrorResponse:
        """Play bot turns now until a human is up (ignores the think delay)."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        return self._turn_to_response(session, session.loop.run_until_human(max_actions))

    def tick(self, session_id: str) -> TurnResponse | ErrorResponse:
        """Run due deferred effects and scheduled bot turns."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        return self._turn_to_response(session, session.loop.step())

    def get_valid_actions(self, session_id: str) -> ValidActionsResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        current = session.engine.get_current_player()
        return ValidActionsResponse(
            session_id=session_id,
            player_id=current.player_id if current else None,
            actions=session.engine.get_valid_actions_for_current_player(),
        )

    # =========================================================================
    # Conversion helpers
    # =========================================================================

    def _session_to_response(self, session: Session) -> SessionResponse:
        state = session.engine.get_game_state()
        current = state.current_player
        return SessionResponse(
            session_id=session.session_id,
            status=_status(session.loop.state),
            game_id=session.rules.id,
            game_name=session.rules.name,
            players=[_player_info(p, state, reveal=False) for p in state.players],
            human_player_ids=list(session.human_player_ids),
            current_turn_player_id=current.player_id if current else None,
            applied_enrichments=list(session.applied_enrichments),
            warnings=list(session.warnings),
            created_at=session.created_at,
        )

    def _build_game_state(self, session: Session, viewer_id: str | None) -> GameStateResponse:
        state = session.engine.get_game_state()
        current = state.current_player
        return GameStateResponse(
            session_id=session.session_id,
            status=_status(session.loop.state),
            phase=state.current_phase,
            turn=state.turn,
            round=state.round,
            players=[
                _player_info(p, state, reveal=viewer_id is not None and p.player_id == viewer_id)
                for p in state.players
            ],
            current_turn_player_id=current.player_id if current else None,
            zones=[
                ZoneInfo(
                    zone_id=zone.zone_id,
                    zone_type=zone.zone_type.value,
                    label=zone.label,
                    card_count=len(zone.cards),
                    face_down=zone.face_down,
                    cards=[_card_info(card) for card in zone.cards],
                )
                for zone in state.table_zones.values()
            ],
            deck_size=len(state.deck),
            discard_count=len(state.discard_pile),
            discard_top=_card_info(state.discard_pile[-1]) if state.discard_pile else None,
            community_cards=[_card_info(card) for card in state.community_cards],
            scores=dict(state.scores),
            pot=state.pot,
            winner=state.winner,
            last_action=_result_info(state.last_action) if state.last_action else None,
        )

    def _turn_to_response(
        self,
        session: Session,
        turn: TurnResult,
        viewer_id: str | None = None,
    ) -> TurnResponse:
        return TurnResponse(
            session_id=session.session_id,
            success=turn.success,
            status=_status(turn.loop_state),
            results=[_result_info(result) for result in turn.results],
            bot_actions=turn.bot_actions,
            errors=turn.errors,
            warnings=turn.warnings,
            winner=turn.winner,
            game_state=self._build_game_state(session, viewer_id),
        )


def _error(code: ErrorCode, message: str, details: dict[str, Any] | None = None) -> ErrorResponse:
    return ErrorResponse(error=message, error_code=code, details=details)


def _session_not_found(session_id: str) -> ErrorResponse:
    return _error(ErrorCode.SESSION_NOT_FOUND, f"Session {session_id} not found")


def _status(loop_state: LoopState) -> SessionStatus:
    return {
        LoopState.WAITING_HUMAN_ACTION: SessionStatus.YOUR_TURN,
        LoopState.BOT_TURN: SessionStatus.BOT_TURN,
        LoopState.PAUSED: SessionStatus.PAUSED,
        LoopState.GAME_OVER: SessionStatus.GAME_OVER,
    }[loop_state]


def _card_info(card: Card) -> CardInfo:
    if not card.face_up:
        return CardInfo(card_id=card.card_id, face_up=False)
    return CardInfo.model_validate(card)


def _player_info(player: Player, state: GameState, reveal: bool) -> PlayerInfo:
    current = state.current_player
    return PlayerInfo(
        player_id=player.player_id,
        name=player.name,
        kind=player.kind.value,
        is_current_turn=current is not None and current.player_id == player.player_id,
        score=state.scores.get(player.player_id, player.score),
        eliminated=player.eliminated,
        hand_count=len(player.hand),
        hand=[CardInfo.model_validate(card) for card in player.hand] if reveal else None,
        chips=player.chips,
    )


def _result_info(result: ActionResult) -> ActionResultInfo:
    return ActionResultInfo.model_validate(result)
