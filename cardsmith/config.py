"""
Runtime configuration.

Settings come from CARDSMITH_* environment variables so the engine, the
session layer and the API share one set of timing and scoring knobs.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


@dataclass
class EngineSettings:
    """
    Tunables for a game session.

    Delays are in seconds. A think delay of 0 runs bots headless.
    """
    flip_revert_delay: float = 1.0
    peek_reveal_delay: float = 2.0
    peek_cost: int = 1
    match_points: int = 1
    bot_think_delay: float = 0.8
    max_bot_combination_size: int = 3
    memory_grid_size: int = 16

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Build settings from the environment, falling back to defaults."""
        return cls(
            flip_revert_delay=_env_float("CARDSMITH_FLIP_REVERT_DELAY", 1.0),
            peek_reveal_delay=_env_float("CARDSMITH_PEEK_REVEAL_DELAY", 2.0),
            peek_cost=_env_int("CARDSMITH_PEEK_COST", 1),
            match_points=_env_int("CARDSMITH_MATCH_POINTS", 1),
            bot_think_delay=_env_float("CARDSMITH_BOT_THINK_DELAY", 0.8),
            max_bot_combination_size=_env_int("CARDSMITH_MAX_BOT_COMBINATION", 3),
            memory_grid_size=_env_int("CARDSMITH_MEMORY_GRID_SIZE", 16),
        )

    @classmethod
    def headless(cls) -> EngineSettings:
        """Settings for tests and simulations: no cosmetic delays."""
        return cls(flip_revert_delay=0.0, peek_reveal_delay=0.0, bot_think_delay=0.0)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for CLI and server entry points."""
    level_name = (level or os.getenv("CARDSMITH_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
