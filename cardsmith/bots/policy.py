"""
Bot Policy - Interface for bot decision-making.

A BotPolicy inspects a game state and returns one move for a bot seat.
It never mutates the state: the caller feeds the move back through
GameEngine.execute_action.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..spec_schema import GameRules


@dataclass
class BotMove:
    """
    A move chosen by a bot.

    Contains:
    - The action name and the selected card ids
    - A short reason (for logs and UI)
    - Whether the move came from the last-resort fallback
    """
    action: str
    card_ids: list[str] = field(default_factory=list)
    reason: str = ""
    forced: bool = False

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "card_ids": list(self.card_ids),
            "reason": self.reason,
            "forced": self.forced,
        }


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    Implementations must be total: for any reachable state they return a
    move instead of raising.
    """

    @abstractmethod
    def select_move(self, state: GameState, rules: GameRules, bot_id: str) -> BotMove:
        """
        Choose the next move for a bot.

        Args:
            state: Current game state (read only)
            rules: The schema the game runs under
            bot_id: Seat to move for

        Returns:
            BotMove naming an action and any cards
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class FirstDeclaredPolicy(BotPolicy):
    """
    Always picks the first action the current phase declares.

    Used for:
    - Deterministic testing
    - Baseline comparison against HeuristicBot
    """

    def select_move(self, state: GameState, rules: GameRules, bot_id: str) -> BotMove:
        actions = rules.allowed_actions(state.current_phase)
        if actions:
            return BotMove(action=actions[0], reason="First declared action")
        return BotMove(action="pass", reason="No declared actions", forced=True)
