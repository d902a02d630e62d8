"""
IR Emitter - Translate a GameRules schema into an IRSkeleton.

Known action names get canonical effect lists; anything else becomes an
empty placeholder. Win conditions that cannot be expressed faithfully are
replaced by an always/never placeholder and reported as an issue instead of
being guessed. Issues are advisory strings, never exceptions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..engine_core.cards import SUIT_BY_SYMBOL, RANKS
from ..engine_core.classifier import classify_rules
from ..engine_core.state import TableType
from ..spec_schema import GameRules, WinCondition
from .schema import (
    ActionSpec, Always, And, CardSelector, CreateZone, Draw, Effect, EndTurn,
    HandCount, HasCard, IRSkeleton, MoveCard, MoveTarget, Never, PhaseSpec,
    PlayerRef, Predicate, ScoreCompare, SetFlag, WinConditionIR,
)

logger = logging.getLogger(__name__)

EMITTER_NAME = "emitter-v0"
PLAY_AREA_ZONE = "play-area"
CENTRAL_PILE_ZONE = "central-pile"


@dataclass
class EmitResult:
    ir: IRSkeleton
    issues: list[str] = field(default_factory=list)


def emit_ir(rules: GameRules) -> EmitResult:
    """Build the IR for a schema, collecting issues along the way."""
    issues: list[str] = []
    sequence_table = classify_rules(rules).table_type == TableType.SEQUENCE

    actions = [_emit_action(name, sequence_table, issues) for name in rules.actions]

    phases = [
        PhaseSpec(name=phase.name, actions=list(phase.actions))
        for phase in rules.turn_structure.phases
    ]
    if len(phases) > 1:
        for index, phase in enumerate(phases):
            phase.next_phase = phases[(index + 1) % len(phases)].name
    if not phases:
        phases.append(PhaseSpec(name="playing", actions=list(rules.actions)))

    win_conditions = [
        _map_win_condition(condition, index, issues)
        for index, condition in enumerate(rules.win_conditions)
    ]
    if not win_conditions:
        win_conditions.append(WinConditionIR(
            id="fallback-empty-hand",
            description="First to empty hand",
            predicate=HandCount(PlayerRef.current(), "==", 0),
        ))

    ir = IRSkeleton(
        phases=phases,
        actions=actions,
        setup_effects=_setup_effects(rules, sequence_table),
        win_conditions=win_conditions,
        meta={"source_transforms": [EMITTER_NAME], "notes": list(issues)},
    )
    if issues:
        logger.debug("Emitted IR for %s with %d issue(s)", rules.id, len(issues))
    return EmitResult(ir=ir, issues=issues)


def _emit_action(name: str, sequence_table: bool, issues: list[str]) -> ActionSpec:
    has_cards = HandCount(PlayerRef.current(), ">", 0)
    selection = CardSelector(source="selection")

    if name in ("draw", "hit"):
        return ActionSpec(name=name, effects=[Draw(PlayerRef.current(), 1)])
    if name in ("pass", "skip", "stand"):
        return ActionSpec(name=name, effects=[EndTurn()])
    if name == "play":
        if sequence_table:
            target = MoveTarget(destination="zone", zone_id=PLAY_AREA_ZONE, face_up=True)
        else:
            target = MoveTarget(destination="discard", face_up=True)
        return ActionSpec(name=name, validate=[has_cards], effects=[MoveCard(selection, target)])
    if name == "discard":
        return ActionSpec(
            name=name,
            validate=[has_cards],
            effects=[MoveCard(selection, MoveTarget(destination="discard", face_up=True))],
        )

    issues.append(f"action '{name}' has no IR mapping yet")
    return ActionSpec(name=name)


def _setup_effects(rules: GameRules, sequence_table: bool) -> list[Effect]:
    setup = rules.setup
    effects: list[Effect] = []
    if setup.progressive_deal is not None:
        effects.append(SetFlag(
            "progressiveDeal",
            setup.progressive_deal.model_dump(by_alias=True, exclude_none=True),
        ))
    if setup.all_cards_start_in_pile:
        effects.append(CreateZone(
            CENTRAL_PILE_ZONE, "pile", face_down=not setup.central_pile_face_up,
        ))
    if setup.arithmetic_target is not None:
        effects.append(SetFlag("arithmeticTarget", setup.arithmetic_target))
    if sequence_table:
        effects.append(CreateZone(PLAY_AREA_ZONE, "sequence"))
    return effects


def _map_win_condition(condition: WinCondition, index: int, issues: list[str]) -> WinConditionIR:
    wc_id = f"wc-{index}"
    description = condition.description

    if condition.type == "first_to_empty":
        predicate: Predicate = HandCount(PlayerRef.current(), "==", 0)
    elif condition.type == "highest_score":
        if isinstance(condition.target, (int, float)) and not isinstance(condition.target, bool):
            predicate = ScoreCompare(PlayerRef.current(), ">=", int(condition.target))
        else:
            issues.append("highest_score win condition without a numeric target")
            predicate = Always()
    elif condition.type == "lowest_score":
        issues.append("lowest_score win condition has no IR comparator yet")
        predicate = Always()
    elif condition.type == "specific_cards":
        predicate = _specific_cards(condition.target, issues)
    else:
        issues.append(f"{condition.type} win condition '{description}' not yet mapped")
        predicate = Always()
    return WinConditionIR(id=wc_id, description=description, predicate=predicate)


def _specific_cards(target: object, issues: list[str]) -> Predicate:
    if not isinstance(target, list) or not target:
        issues.append("specific_cards without target array")
        return Never()

    checks: list[Predicate] = []
    for pattern in target:
        selector = pattern_selector(str(pattern))
        if selector is None:
            issues.append(f"specific_cards pattern '{pattern}' not understood")
            return Never()
        checks.append(HasCard(selector=selector, player=PlayerRef.current()))
    return And(checks)


def pattern_selector(pattern: str) -> CardSelector | None:
    """'A♥' -> rank A of hearts, 'K*' -> any K, '*♠' -> any spade."""
    pattern = pattern.strip()
    if len(pattern) < 2:
        return None
    rank, symbol = pattern[:-1], pattern[-1]
    ranks = [] if rank == "*" else [rank.upper()]
    suits = [] if symbol == "*" else [SUIT_BY_SYMBOL.get(symbol, "")]
    if ranks and ranks[0] not in RANKS:
        return None
    if suits and not suits[0]:
        return None
    if not ranks and not suits:
        return None
    return CardSelector(source="hand", ranks=ranks, suits=suits)
