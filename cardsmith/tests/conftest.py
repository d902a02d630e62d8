"""
Pytest fixtures for Cardsmith tests.
"""

import copy
import random

import pytest

from ..config import EngineSettings
from ..engine_core.cards import Card, HandScheme, calculate_hand_value
from ..engine_core.engine import GameEngine
from ..engine_core.state import GameState, PlayerKind
from ..session import SessionManager
from ..spec_schema import GameRules


BASE_DOCUMENT = {
    "id": "test-game",
    "name": "Test Game",
    "description": "A plain shedding game used by the tests.",
    "players": {"min": 2, "max": 4},
    "setup": {"cardsPerPlayer": 5},
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "playing", "actions": ["play", "draw", "discard", "pass"]}],
    },
    "actions": ["play", "draw", "discard", "pass"],
    "winConditions": [
        {"type": "first_to_empty", "description": "First player to empty their hand wins"},
    ],
}


class FakeClock:
    """Manually advanced clock for the deferred scheduler."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """A clock that only moves when told to."""
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def settings() -> EngineSettings:
    """Headless settings: no cosmetic delays."""
    return EngineSettings.headless()


@pytest.fixture
def manager(settings: EngineSettings) -> SessionManager:
    """Session manager whose bots move immediately."""
    return SessionManager(settings=settings)


@pytest.fixture
def make_document():
    """
    Build a schema document from BASE_DOCUMENT.

    Dict overrides are merged one level deep; anything else replaces the key.
    """
    def build(**overrides) -> dict:
        document = copy.deepcopy(BASE_DOCUMENT)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(document.get(key), dict):
                document[key].update(value)
            else:
                document[key] = value
        return document
    return build


@pytest.fixture
def make_rules(make_document):
    """Build GameRules from BASE_DOCUMENT plus overrides."""
    def build(**overrides) -> GameRules:
        return GameRules.from_document(make_document(**overrides))
    return build


@pytest.fixture
def make_engine(settings: EngineSettings):
    """
    Create an engine with a human and a bot seated.

    Pass players=[(name, kind), ...] to change the roster and start=False
    to stop before dealing.
    """
    def build(
        rules: GameRules,
        players=(("Ana", PlayerKind.HUMAN), ("Bot", PlayerKind.BOT)),
        seed: int = 7,
        engine_settings: EngineSettings | None = None,
        clock=None,
        start: bool = True,
    ) -> GameEngine:
        engine = GameEngine(
            rules,
            settings=engine_settings or settings,
            rng=random.Random(seed),
            clock=clock,
            game_id="test-session",
        )
        for name, kind in players:
            engine.add_player(name, kind)
        if start:
            engine.start_game()
        return engine
    return build


def move_to_top(state: GameState, predicate) -> Card:
    """Move the first deck card matching predicate to the top of the deck."""
    index = next(i for i, card in enumerate(state.deck) if predicate(card))
    card = state.deck.pop(index)
    state.deck.insert(0, card)
    return card


def give_card(state: GameState, player_id: str, predicate) -> Card:
    """Move the first deck card matching predicate into a player's hand."""
    card = next(card for card in state.deck if predicate(card))
    state.deck.remove(card)
    state.get_player(player_id).receive(card)
    return card


def set_hand(state: GameState, player_id: str, *cards: Card) -> None:
    """Replace a hand and keep the blackjack score in step with it."""
    player = state.get_player(player_id)
    player.hand = list(cards)
    state.scores[player_id] = player.score = calculate_hand_value(player.hand, HandScheme.BLACKJACK)
