"""
Action Results - The record returned for every attempted action.

Invalid player input is a normal outcome: callers get success=False with a
message, never an exception.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import time
from typing import Any


@dataclass
class ActionResult:
    """Outcome of an executed (or rejected) action."""
    player_id: str
    action: str
    success: bool
    message: str = ""
    cards: list[str] | None = None
    target: str | None = None
    timestamp: float = field(default_factory=time.time)
    error_code: str | None = None

    @classmethod
    def failure(
        cls,
        player_id: str,
        action: str,
        message: str,
        cards: list[str] | None = None,
        target: str | None = None,
        error_code: str = "INVALID_ACTION",
    ) -> ActionResult:
        """Create a failure result."""
        return cls(
            player_id=player_id,
            action=action,
            success=False,
            message=message,
            cards=cards,
            target=target,
            error_code=error_code,
        )

    @classmethod
    def ok(
        cls,
        player_id: str,
        action: str,
        message: str,
        cards: list[str] | None = None,
        target: str | None = None,
    ) -> ActionResult:
        """Create a success result."""
        return cls(
            player_id=player_id,
            action=action,
            success=True,
            message=message,
            cards=cards,
            target=target,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "action": self.action,
            "cards": self.cards,
            "target": self.target,
            "success": self.success,
            "message": self.message,
            "timestamp": self.timestamp,
            "error_code": self.error_code,
        }
