"""
Game Loop - Drives turns between humans and bots.

The loop:
1. A human submits an action through the engine
2. If the next seat is a bot, its turn is scheduled after a think delay
3. Each step pumps the scheduler: due flips, peeks and bot turns run
4. A bot move the engine rejects falls back to a forced draw
5. Repeat until it is a human's turn or the game is over

With a think delay of 0 (headless) bot turns run immediately, inside the
call that handed them the turn.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import TYPE_CHECKING

from ..bots import BotPolicy, HeuristicBot
from ..engine_core.action import ActionResult
from ..engine_core.state import GameStatus

if TYPE_CHECKING:
    from ..engine_core.engine import GameEngine

logger = logging.getLogger(__name__)

DEFAULT_MAX_BOT_ACTIONS = 200


class LoopState(Enum):
    """State of the game loop."""
    WAITING_HUMAN_ACTION = "waiting_human_action"
    BOT_TURN = "bot_turn"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of advancing the loop.

    Contains every action result produced, human and bot alike.
    """
    success: bool
    loop_state: LoopState

    # Engine results in the order they happened
    results: list[ActionResult] = field(default_factory=list)

    # Human-readable summaries of bot moves
    bot_actions: list[str] = field(default_factory=list)

    # Errors/warnings
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    # Game over info
    winner: str | None = None

    def merge(self, other: TurnResult) -> TurnResult:
        self.results.extend(other.results)
        self.bot_actions.extend(other.bot_actions)
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.loop_state = other.loop_state
        self.winner = other.winner
        return self


class GameLoop:
    """
    The turn driver for one engine.

    Usage:
        loop = GameLoop(engine)
        result = loop.submit_action("player-1", "play", ["hearts-7"])

        # With a think delay, pump periodically:
        result = loop.step()
    """

    def __init__(
        self,
        engine: GameEngine,
        policy: BotPolicy | None = None,
        think_delay: float | None = None,
        max_bot_actions: int = DEFAULT_MAX_BOT_ACTIONS,
    ):
        self.engine = engine
        self.scheduler = engine.scheduler
        self.policy = policy or HeuristicBot(
            max_combination_size=engine.settings.max_bot_combination_size,
            templates=engine.templates,
            rng=engine.rng,
        )
        self.think_delay = engine.settings.bot_think_delay if think_delay is None else think_delay
        self.max_bot_actions = max_bot_actions
        self._completed: list[TurnResult] = []

    @property
    def state(self) -> LoopState:
        engine_state = self.engine.get_game_state()
        if engine_state.ended or engine_state.status == GameStatus.FINISHED:
            return LoopState.GAME_OVER
        if engine_state.status == GameStatus.PAUSED:
            return LoopState.PAUSED
        current = self.engine.get_current_player()
        if current is not None and current.is_bot:
            return LoopState.BOT_TURN
        return LoopState.WAITING_HUMAN_ACTION

    # =========================================================================
    # Human input
    # =========================================================================

    def submit_action(
        self,
        player_id: str,
        action: str,
        card_ids: list[str] | None = None,
        target_id: str | None = None,
    ) -> TurnResult:
        """Execute a human action, then hand over to bots if they are next."""
        result = self.engine.execute_action(player_id, action, card_ids, target_id)
        turn = self._result([result], success=result.success)
        if not result.success:
            turn.errors.append(result.message)
            return turn
        return turn.merge(self._hand_over())

    # =========================================================================
    # Bots
    # =========================================================================

    def step(self) -> TurnResult:
        """Run whatever is due (flips, peeks, bot turns) and collect results."""
        self.engine.tick()
        turn = self._result([])
        for completed in self._completed:
            turn.merge(completed)
        self._completed.clear()
        turn.loop_state = self.state
        turn.winner = self.engine.get_game_state().winner
        self._schedule_bot_turn()
        return turn

    def play_bot_turn(self) -> TurnResult:
        """Let the current bot move once, now."""
        current = self.engine.get_current_player()
        if current is None or not current.is_bot:
            return self._result([], success=False, errors=["It is not a bot's turn"])
        if self.state != LoopState.BOT_TURN:
            return self._result([], success=False, errors=[f"Loop is {self.state.value}"])

        state = self.engine.get_game_state()
        move = self.policy.select_move(state, self.engine.rules, current.player_id)
        turn = self._result([])
        if move.forced:
            result = self.engine.force_draw(current.player_id)
        else:
            result = self.engine.execute_action(current.player_id, move.action, move.card_ids)
            if not result.success:
                logger.warning(
                    "Bot %s move %s rejected (%s); forcing a draw",
                    current.player_id, move.action, result.message,
                )
                turn.warnings.append(result.message)
                turn.results.append(result)
                result = self.engine.force_draw(current.player_id)

        turn.results.append(result)
        label = move.action if result.action == move.action else f"{move.action} -> {result.action}"
        turn.bot_actions.append(f"{current.name}: {label}")
        turn.loop_state = self.state
        turn.winner = state.winner
        return turn

    def run_until_human(self, max_actions: int | None = None) -> TurnResult:
        """Play bot turns until a human is up or the game ends."""
        limit = self.max_bot_actions if max_actions is None else max_actions
        turn = self._result([])
        for _ in range(limit):
            if self.state != LoopState.BOT_TURN:
                break
            turn.merge(self.play_bot_turn())
        else:
            if self.state == LoopState.BOT_TURN:
                turn.warnings.append(f"Stopped after {limit} bot actions")
        turn.loop_state = self.state
        turn.winner = self.engine.get_game_state().winner
        return turn

    def _hand_over(self) -> TurnResult:
        if self.think_delay <= 0:
            return self.run_until_human()
        self._schedule_bot_turn()
        return self._result([])

    def _schedule_bot_turn(self) -> None:
        if self.think_delay <= 0 or self.state != LoopState.BOT_TURN:
            return
        current = self.engine.get_current_player()
        key = ("bot", current.player_id)
        if key in self.scheduler:
            return
        self.scheduler.schedule(key, self.think_delay, lambda: self._scheduled_turn(current.player_id), label="bot-turn")

    def _scheduled_turn(self, player_id: str) -> None:
        current = self.engine.get_current_player()
        # The turn may have moved on (pause, end of game) since scheduling
        if current is None or current.player_id != player_id or self.state != LoopState.BOT_TURN:
            return
        self._completed.append(self.play_bot_turn())

    def _result(
        self,
        results: list[ActionResult],
        success: bool = True,
        errors: list[str] | None = None,
    ) -> TurnResult:
        return TurnResult(
            success=success,
            loop_state=self.state,
            results=list(results),
            errors=list(errors or []),
            winner=self.engine.get_game_state().winner,
        )
