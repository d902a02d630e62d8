"""
IR Runtime - Execute an IRSkeleton against a concrete context.

IRExecutionContext holds the state slice the interpreter needs (hands,
scores, zones, flags, phase) plus the operations effects are allowed to
perform. EngineAdapter builds a context over a live GameEngine whose card
lists are shared with the engine, so moves made by IR effects are real
moves, and sync_back() copies scores, eliminations and new zones back.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random
from typing import Callable, TYPE_CHECKING

from ..engine_core.cards import Card
from ..engine_core.state import Zone, ZoneType
from .registry import EffectExecutor, PredicateEngine, legacy_wrap_to_ir, validate_ir
from .schema import (
    CardSelector, IRSkeleton, IRValidationResult, MoveTarget, PlayerRef, WinConditionIR,
)

if TYPE_CHECKING:
    from ..engine_core.engine import GameEngine

logger = logging.getLogger(__name__)

ELIMINATED_ZONE = "eliminated"


@dataclass
class IRPlayerState:
    hand: list[Card] = field(default_factory=list)
    score: int = 0
    eliminated: bool = False


@dataclass
class IRExecutionContext:
    """State and operations available to the effect executor."""
    ir: IRSkeleton
    current_player_id: str = ""
    player_states: dict[str, IRPlayerState] = field(default_factory=dict)
    zones: dict[str, list[Card]] = field(default_factory=dict)
    zone_types: dict[str, str] = field(default_factory=dict)
    deck: list[Card] = field(default_factory=list)
    discard: list[Card] = field(default_factory=list)
    flags: dict[str, object] = field(default_factory=dict)
    phase: str = "playing"
    winner: str | None = None
    end_turn: bool = False
    end_game: str | None = None
    provided_selection: list[Card] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random)

    # Draws into a hand; defaults to popping the context's own deck
    drawer: Callable[[str], Card | None] | None = None

    def resolve_players(self, ref: PlayerRef | None) -> list[str]:
        ids = list(self.player_states)
        ref = ref or PlayerRef.current()
        if ref.type == "current":
            return [self.current_player_id] if self.current_player_id in self.player_states else []
        if ref.type == "all":
            return ids
        if ref.type == "others":
            return [pid for pid in ids if pid != self.current_player_id]
        if ref.type == "player":
            return [ref.id] if ref.id in self.player_states else []
        return []

    # -------------------------------------------------------------------------
    # Operations used by effects
    # -------------------------------------------------------------------------

    def draw_card_to_player(self, player_id: str, destination: str = "hand", face_up: bool = True) -> Card | None:
        """Draw one card. A context with nothing to draw from does nothing."""
        if player_id not in self.player_states:
            return None
        if self.drawer is not None:
            card = self.drawer(player_id)
        elif self.deck:
            card = self.deck.pop(0)
            self.player_states[player_id].hand.append(card)
        else:
            return None
        if card is None:
            return None
        card.face_up = face_up
        if destination == "discard":
            self._detach(card)
            self.discard.append(card)
        return card

    def select_cards(
        self,
        selector: CardSelector,
        player: PlayerRef | None = None,
        zone: str | None = None,
    ) -> list[Card]:
        source = selector.source
        if source == "hand":
            pool = [
                card for pid in self.resolve_players(player)
                for card in self.player_states[pid].hand
            ]
        elif source == "zone":
            pool = list(self.zones.get(selector.zone_id or zone or "", []))
        elif source == "deck":
            pool = list(self.deck)
        elif source == "discard":
            pool = list(self.discard)
        elif source == "table":
            pool = [card for cards in self.zones.values() for card in cards]
        elif source == "selection":
            pool = list(self.provided_selection)
        else:
            pool = []

        if selector.ranks:
            pool = [card for card in pool if card.rank in selector.ranks]
        if selector.suits:
            pool = [card for card in pool if card.suit in selector.suits]
        if selector.random:
            self.rng.shuffle(pool)
        if selector.quantity is not None:
            pool = pool[:selector.quantity]
        return pool

    def move_card_to(self, card: Card, target: MoveTarget) -> None:
        """Transfer a card from wherever it is to the target container."""
        if not self._detach(card):
            return
        if target.face_up is not None:
            card.face_up = target.face_up
        card.selected = False

        if target.destination == "hand":
            self.player_states[self.current_player_id].hand.append(card)
        elif target.destination == "zone" and target.zone_id:
            self.zones.setdefault(target.zone_id, []).append(card)
        elif target.destination == "eliminate":
            self.zones.setdefault(ELIMINATED_ZONE, []).append(card)
        else:
            self.discard.append(card)

    def _detach(self, card: Card) -> bool:
        containers = [state.hand for state in self.player_states.values()]
        containers.extend(self.zones.values())
        containers.extend([self.deck, self.discard])
        for cards in containers:
            if card in cards:
                cards.remove(card)
                return True
        return False


@dataclass
class IRActionOutcome:
    success: bool
    message: str
    end_turn: bool = False
    end_game: str | None = None


class IRRuntime:
    """
    Executes actions described by an IRSkeleton.

    Usage:
        runtime = IRRuntime(IRExecutionContext(ir=emit_ir(rules).ir))
        runtime.validate()
        runtime.run_setup()
        outcome = runtime.execute_action("draw")
    """

    def __init__(self, context: IRExecutionContext):
        self.context = context
        self.predicates = PredicateEngine(lambda: self.context)
        self.executor = EffectExecutor(lambda: self.context, self.predicates)

    @classmethod
    def from_legacy(cls, actions: list[str]) -> IRRuntime:
        return cls(IRExecutionContext(ir=legacy_wrap_to_ir(actions)))

    def validate(self) -> IRValidationResult:
        return validate_ir(self.context.ir)

    def run_setup(self) -> None:
        self.executor.run(self.context.ir.setup_effects)

    def get_context(self) -> IRExecutionContext:
        return self.context

    def execute_action(self, name: str, selection: list[Card] | None = None) -> IRActionOutcome:
        ctx = self.context
        spec = ctx.ir.get_action(name)
        if spec is None:
            return IRActionOutcome(False, f"Unknown action {name}")
        ctx.end_turn = False
        ctx.provided_selection = list(selection or [])
        try:
            if not all(self.predicates.evaluate(p) for p in spec.validate):
                return IRActionOutcome(False, "Validation failed")
            self.executor.run(spec.effects)
        finally:
            ctx.provided_selection = []
        return IRActionOutcome(True, "OK", end_turn=ctx.end_turn, end_game=ctx.end_game)

    def check_win(self) -> WinConditionIR | None:
        """First win condition whose predicate holds; records the winner."""
        for condition in self.context.ir.win_conditions:
            if self.predicates.evaluate(condition.predicate):
                self.context.winner = self.context.current_player_id or None
                return condition
        return None


class EngineAdapter(IRRuntime):
    """An IRRuntime whose context is a live view over a GameEngine."""

    def __init__(self, engine: GameEngine, context: IRExecutionContext):
        super().__init__(context)
        self.engine = engine

    @classmethod
    def from_engine(cls, engine: GameEngine, ir: IRSkeleton) -> EngineAdapter:
        state = engine.get_game_state()
        current = state.current_player
        context = IRExecutionContext(
            ir=ir,
            current_player_id=current.player_id if current else "",
            player_states={
                p.player_id: IRPlayerState(
                    hand=p.hand,
                    score=state.scores.get(p.player_id, 0),
                    eliminated=p.eliminated,
                )
                for p in state.players
            },
            zones={zone_id: zone.cards for zone_id, zone in state.table_zones.items()},
            zone_types={zone_id: zone.zone_type.value for zone_id, zone in state.table_zones.items()},
            deck=state.deck,
            discard=state.discard_pile,
            phase=state.current_phase,
            winner=state.winner,
            rng=engine.rng,
        )
        adapter = cls(engine, context)
        context.drawer = adapter._draw
        return adapter

    def _draw(self, player_id: str) -> Card:
        card = self.engine.draw_card(player_id)
        # A reshuffle replaces the engine's deck and discard lists
        state = self.engine.get_game_state()
        self.context.deck = state.deck
        self.context.discard = state.discard_pile
        return card

    def sync_back(self) -> None:
        """Copy scores, eliminations and IR-created zones into the engine state."""
        state = self.engine.get_game_state()
        ctx = self.context
        for player in state.players:
            ir_state = ctx.player_states.get(player.player_id)
            if ir_state is None:
                continue
            state.scores[player.player_id] = ir_state.score
            player.score = ir_state.score
            player.eliminated = player.eliminated or ir_state.eliminated
        for zone_id, cards in ctx.zones.items():
            if zone_id not in state.table_zones:
                state.table_zones[zone_id] = Zone(
                    zone_id=zone_id,
                    zone_type=ZoneType.from_schema(ctx.zone_types.get(zone_id, "custom")),
                    cards=cards,
                    label=zone_id,
                )
