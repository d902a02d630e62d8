"""
IR Registry - Predicate evaluation, effect execution and static checks.

PredicateEngine is pure: it only reads the context, so predicates can be
evaluated speculatively. EffectExecutor mutates nothing but the context it
is handed; every card movement goes through context operations.
"""

from __future__ import annotations
import logging
import operator
from typing import Any, Callable, Iterable, TYPE_CHECKING

from .schema import (
    ActionSpec, Always, And, Composite, Conditional, CreateZone, Draw, Effect,
    EliminatePlayer, EndGame, EndTurn, Flag, HandCount, HasCard, IRSkeleton,
    IRValidationIssue, IRValidationResult, IssueLevel, Loop, ModifyScore,
    MoveCard, Never, Not, Or, PhaseIs, PhaseSpec, PlayerRef, Predicate, Reveal,
    ScoreCompare, SetFlag, WinConditionIR, WinnerExists, ZoneCount,
)

if TYPE_CHECKING:
    from .runtime import IRExecutionContext

logger = logging.getLogger(__name__)

DEFAULT_LOOP_CAP = 100

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def compare(left: float, op: str, right: float) -> bool:
    """Apply a comparison operator; unknown operators are false."""
    fn = _OPERATORS.get(op)
    return fn(left, right) if fn else False


class PredicateEngine:
    """Evaluates predicates against a context."""

    def __init__(self, context: Callable[[], IRExecutionContext]):
        self._context = context
        self._evaluators: dict[type, Callable[[Any], bool]] = {
            Always: lambda p: True,
            Never: lambda p: False,
            Not: lambda p: not self.evaluate(p.predicate),
            And: lambda p: all(self.evaluate(item) for item in p.predicates),
            Or: lambda p: any(self.evaluate(item) for item in p.predicates),
            HandCount: self._hand_count,
            ZoneCount: self._zone_count,
            ScoreCompare: self._score_compare,
            Flag: self._flag,
            PhaseIs: lambda p: self._context().phase == p.phase,
            WinnerExists: lambda p: bool(self._context().winner),
            HasCard: self._has_card,
        }

    def evaluate(self, predicate: Predicate) -> bool:
        evaluator = self._evaluators.get(type(predicate))
        if evaluator is None:
            return False
        return evaluator(predicate)

    def _hand_count(self, p: HandCount) -> bool:
        ctx = self._context()
        ids = ctx.resolve_players(p.player)
        return bool(ids) and all(
            compare(len(ctx.player_states[pid].hand), p.op, p.value) for pid in ids
        )

    def _zone_count(self, p: ZoneCount) -> bool:
        return compare(len(self._context().zones.get(p.zone, [])), p.op, p.value)

    def _score_compare(self, p: ScoreCompare) -> bool:
        ctx = self._context()
        ids = ctx.resolve_players(p.player)
        return bool(ids) and all(
            compare(ctx.player_states[pid].score, p.op, p.value) for pid in ids
        )

    def _flag(self, p: Flag) -> bool:
        flags = self._context().flags
        if p.equals is None:
            return bool(flags.get(p.name))
        return flags.get(p.name) == p.equals

    def _has_card(self, p: HasCard) -> bool:
        return len(self._context().select_cards(p.selector, p.player, p.zone)) > 0


class EffectExecutor:
    """
    Runs effect lists sequentially against a context.

    Stops early once end_turn or end_game is set. Loops run at most `max`
    times, or the executor's loop cap when a loop declares no bound.
    """

    def __init__(
        self,
        context: Callable[[], IRExecutionContext],
        predicates: PredicateEngine,
        loop_cap: int = DEFAULT_LOOP_CAP,
    ):
        self._context = context
        self.predicates = predicates
        self.loop_cap = loop_cap
        self._handlers: dict[type, Callable[[Any], None]] = {
            Draw: self._draw,
            ModifyScore: self._modify_score,
            SetFlag: self._set_flag,
            EliminatePlayer: self._eliminate,
            MoveCard: self._move_card,
            Reveal: self._reveal,
            Conditional: self._conditional,
            Loop: self._loop,
            CreateZone: self._create_zone,
            Composite: lambda effect: self.run(effect.effects),
            EndTurn: self._end_turn,
            EndGame: self._end_game,
        }

    def run(self, effects: Iterable[Effect]) -> None:
        ctx = self._context()
        for effect in effects:
            if effect is None:
                continue
            handler = self._handlers.get(type(effect))
            if handler is None:
                logger.debug("No handler for effect %s", getattr(effect, "kind", effect))
            else:
                handler(effect)
            if ctx.end_game or ctx.end_turn:
                break

    def _draw(self, effect: Draw) -> None:
        ctx = self._context()
        for pid in ctx.resolve_players(effect.player):
            for _ in range(effect.count):
                ctx.draw_card_to_player(pid, effect.to, effect.face_up)

    def _modify_score(self, effect: ModifyScore) -> None:
        ctx = self._context()
        for pid in ctx.resolve_players(effect.player):
            ctx.player_states[pid].score += effect.delta

    def _set_flag(self, effect: SetFlag) -> None:
        self._context().flags[effect.name] = effect.value

    def _eliminate(self, effect: EliminatePlayer) -> None:
        ctx = self._context()
        for pid in ctx.resolve_players(effect.player):
            ctx.player_states[pid].eliminated = True

    def _move_card(self, effect: MoveCard) -> None:
        ctx = self._context()
        for card in ctx.select_cards(effect.selector):
            ctx.move_card_to(card, effect.to)

    def _reveal(self, effect: Reveal) -> None:
        for card in self._context().select_cards(effect.selector):
            card.face_up = True

    def _conditional(self, effect: Conditional) -> None:
        if self.predicates.evaluate(effect.condition):
            self.run(effect.then)
        elif effect.otherwise:
            self.run(effect.otherwise)

    def _loop(self, effect: Loop) -> None:
        ctx = self._context()
        bound = effect.max if effect.max is not None else self.loop_cap
        steps = 0
        while steps < bound and self.predicates.evaluate(effect.condition):
            self.run(effect.body)
            steps += 1
            if ctx.end_turn or ctx.end_game:
                break
        if effect.max is None and steps >= bound:
            logger.warning("Unbounded loop stopped at the %d-iteration cap", bound)

    def _create_zone(self, effect: CreateZone) -> None:
        ctx = self._context()
        ctx.zones.setdefault(effect.zone_id, [])
        ctx.zone_types.setdefault(effect.zone_id, effect.zone_type)

    def _end_turn(self, effect: EndTurn) -> None:
        self._context().end_turn = True

    def _end_game(self, effect: EndGame) -> None:
        self._context().end_game = effect.reason or "ended"


# =============================================================================
# Static validation
# =============================================================================

def validate_ir(ir: IRSkeleton) -> IRValidationResult:
    """
    Pre-flight checks independent of execution.

    Errors: phases referencing unknown actions or undefined next phases,
    loops without an iteration bound. Warning: no win conditions.
    """
    issues: list[IRValidationIssue] = []
    action_names = {action.name for action in ir.actions}
    phase_names = {phase.name for phase in ir.phases}

    for phase in ir.phases:
        for action_name in phase.actions:
            if action_name not in action_names:
                issues.append(IRValidationIssue(
                    IssueLevel.ERROR,
                    f"Phase '{phase.name}' references unknown action '{action_name}'",
                ))
        if phase.next_phase and phase.next_phase not in phase_names:
            issues.append(IRValidationIssue(
                IssueLevel.ERROR,
                f"Phase '{phase.name}' nextPhase '{phase.next_phase}' not defined",
            ))

    for where, effects in _effect_lists(ir):
        for loop in _find_loops(effects):
            if loop.max is None:
                issues.append(IRValidationIssue(
                    IssueLevel.ERROR, f"Loop in {where} has no max iteration bound",
                ))

    if not ir.win_conditions:
        issues.append(IRValidationIssue(IssueLevel.WARNING, "No win conditions defined"))

    return IRValidationResult(
        valid=not any(issue.level == IssueLevel.ERROR for issue in issues),
        issues=issues,
    )


def _effect_lists(ir: IRSkeleton) -> Iterable[tuple[str, list[Effect]]]:
    yield "setup", ir.setup_effects
    for action in ir.actions:
        yield f"action '{action.name}'", action.effects
    for phase in ir.phases:
        yield f"phase '{phase.name}'", phase.entry_effects


def _find_loops(effects: Iterable[Effect]) -> Iterable[Loop]:
    for effect in effects:
        if isinstance(effect, Loop):
            yield effect
            yield from _find_loops(effect.body)
        elif isinstance(effect, Conditional):
            yield from _find_loops(effect.then)
            yield from _find_loops(effect.otherwise)
        elif isinstance(effect, Composite):
            yield from _find_loops(effect.effects)


# =============================================================================
# Legacy wrapping
# =============================================================================

def legacy_wrap_to_ir(actions: list[str]) -> IRSkeleton:
    """Wrap a bare action list: one 'playing' phase, empty-hand win."""
    return IRSkeleton(
        phases=[PhaseSpec(name="playing", actions=list(actions))],
        actions=[_wrap_action(name) for name in actions],
        setup_effects=[],
        win_conditions=[WinConditionIR(
            id="empty-hand",
            description="First to empty hand",
            predicate=HandCount(PlayerRef.current(), "==", 0),
        )],
    )


def _wrap_action(name: str) -> ActionSpec:
    if name == "draw":
        return ActionSpec(name=name, effects=[Draw(PlayerRef.current(), 1)])
    if name == "pass":
        return ActionSpec(name=name, effects=[EndTurn()])
    return ActionSpec(name=name)
