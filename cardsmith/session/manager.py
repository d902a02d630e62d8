"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Caller supplies a schema (generated elsewhere or picked from the catalog)
2. The schema is enriched and validated
3. An engine is created, players are seated and the game starts
4. Turns run through the session's GameLoop
5. Game ends or the caller ends it -> session destroyed

PERSISTENCE RULES:
- Sessions are in-memory only
- Ending a session cancels every deferred effect and forgets the state
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import time
from typing import Sequence
import uuid

from ..config import EngineSettings
from ..engine_core.engine import GameEngine
from ..engine_core.state import GameStatus, PlayerKind
from ..enrichment import enrich_rules_with_report
from ..spec_schema import GameRules, validate_rules
from .game_loop import GameLoop

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or already ended."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The (enriched) schema the game runs under
    - The engine and the loop driving it
    - Which seats are human
    """
    session_id: str
    rules: GameRules
    engine: GameEngine
    loop: GameLoop
    created_at: float
    human_player_ids: list[str] = field(default_factory=list)
    applied_enrichments: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    state: SessionState = SessionState.ACTIVE

    def is_active(self) -> bool:
        """Check if session is still active."""
        if self.state != SessionState.ACTIVE:
            return False
        return self.engine.get_game_state().status != GameStatus.FINISHED

    def is_human_turn(self) -> bool:
        current = self.engine.get_current_player()
        return current is not None and current.player_id in self.human_player_ids


def is_bot_only(rules: GameRules) -> bool:
    return any("bot-only" in rule.lower() for rule in rules.special_rules)


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions from schemas
    - Track active sessions
    - Clean up completed sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings.from_env()
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        rules: GameRules,
        human_names: Sequence[str] = ("You",),
        bot_count: int = 1,
        enrich: bool = True,
        seed: int | None = None,
    ) -> Session:
        """
        Create and start a game session.

        Args:
            rules: Game schema
            human_names: One human seat per name (ignored for bot-only schemas)
            bot_count: Number of bot seats
            enrich: Run the enrichment pipeline first
            seed: Seed for shuffling and bot tie-breaks

        Returns:
            A started Session; bots who move first have already played
            when the think delay is 0.

        Raises:
            RulesValidationError: the schema has structural errors
            EngineError: the roster does not fit the schema
        """
        applied: list[str] = []
        if enrich:
            report = enrich_rules_with_report(rules)
            rules, applied = report.rules, report.applied
        validation = validate_rules(rules, strict=True)

        session_id = str(uuid.uuid4())
        engine = GameEngine(
            rules,
            settings=self.settings,
            rng=random.Random(seed),
            game_id=session_id,
        )

        human_ids = []
        if not is_bot_only(rules):
            for name in human_names:
                human_ids.append(engine.add_player(name, PlayerKind.HUMAN).player_id)
        for index in range(bot_count):
            engine.add_player(f"Bot {index + 1}", PlayerKind.BOT)
        engine.start_game()

        loop = GameLoop(engine)
        session = Session(
            session_id=session_id,
            rules=rules,
            engine=engine,
            loop=loop,
            created_at=time.time(),
            human_player_ids=human_ids,
            applied_enrichments=applied,
            warnings=list(validation.warnings),
        )
        self._sessions[session_id] = session
        logger.info(
            "Created session %s for %s (%d human, %d bot)",
            session_id, rules.id, len(human_ids), bot_count,
        )

        # Bots seated before the first human move straight away
        if human_ids and loop.think_delay <= 0:
            loop.run_until_human()
        elif human_ids:
            loop.step()
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and clean up.

        Pending flips, peeks and bot turns are cancelled. Returns False if
        the session was unknown.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.engine.end_session()
        finished = session.engine.get_game_state().status == GameStatus.FINISHED
        session.state = SessionState.GAME_OVER if finished or reason == "completed" else SessionState.ABANDONED
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """End finished sessions older than max_age. Returns how many ended."""
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds and not session.is_active()
        ]
        for sid in stale:
            self.end_session(sid, reason="stale")
        return len(stale)
