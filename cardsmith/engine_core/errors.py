"""Exceptions for structural misconfiguration of a session."""


class EngineError(Exception):
    """Base class for errors that make a session unusable."""


class RosterFullError(EngineError):
    """Raised by add_player when the schema maximum is reached."""


class NotEnoughPlayersError(EngineError):
    """Raised by start_game when the schema minimum is not met."""


class PlayerNotFoundError(EngineError):
    """Raised when an operation names a player that does not exist."""

    def __init__(self, player_id: str):
        self.player_id = player_id
        super().__init__(f"Player {player_id} not found")


class GameAlreadyStartedError(EngineError):
    """Raised when setup operations are attempted after start_game."""


class ActionRejected(Exception):
    """
    Raised by an action handler before it mutates anything.

    The engine converts it into a failure result; it never reaches callers.
    """
