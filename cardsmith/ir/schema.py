"""
IR Schema - Declarative predicates, effects, actions, phases and wins.

Everything here is pure data. Evaluation lives in ir.registry and all
mutation goes through an IRExecutionContext, so an IR document can be
emitted, validated and serialized without a running game.

Key design decisions:
- Each node type is a dataclass with a `kind` tag used for serialization
- Loops carry an explicit iteration bound (validated as an error if absent)
- Card selections are abstract (CardSelector), resolved by the context
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar

IR_VERSION = 0

COMPARISON_OPS = ("==", "!=", "<", "<=", ">", ">=")


class IssueLevel(Enum):
    ERROR = "error"
    WARNING = "warning"


# =============================================================================
# References
# =============================================================================

@dataclass(frozen=True)
class PlayerRef:
    """Who an effect or predicate applies to: current, all, others or player."""
    type: str = "current"
    id: str | None = None

    @classmethod
    def current(cls) -> PlayerRef:
        return cls("current")

    @classmethod
    def all(cls) -> PlayerRef:
        return cls("all")

    @classmethod
    def others(cls) -> PlayerRef:
        return cls("others")

    @classmethod
    def player(cls, player_id: str) -> PlayerRef:
        return cls("player", player_id)


@dataclass
class CardSelector:
    """
    Abstract reference to cards.

    source: hand, zone, deck, discard, table (every zone) or selection
    (the cards a player chose for the current action).
    """
    source: str = "hand"
    zone_id: str | None = None
    ranks: list[str] = field(default_factory=list)
    suits: list[str] = field(default_factory=list)
    quantity: int | None = None
    random: bool = False


@dataclass
class MoveTarget:
    destination: str = "discard"  # hand, discard, zone, eliminate
    zone_id: str | None = None
    face_up: bool | None = None


# =============================================================================
# Predicates
# =============================================================================

@dataclass
class Predicate:
    kind: ClassVar[str] = "predicate"

    def to_dict(self) -> dict[str, Any]:
        return ir_to_dict(self)


@dataclass
class HandCount(Predicate):
    kind: ClassVar[str] = "handCount"
    player: PlayerRef = field(default_factory=PlayerRef.current)
    op: str = "=="
    value: int = 0


@dataclass
class ZoneCount(Predicate):
    kind: ClassVar[str] = "zoneCount"
    zone: str = ""
    op: str = "=="
    value: int = 0


@dataclass
class HasCard(Predicate):
    kind: ClassVar[str] = "hasCard"
    selector: CardSelector = field(default_factory=CardSelector)
    player: PlayerRef | None = None
    zone: str | None = None


@dataclass
class ScoreCompare(Predicate):
    kind: ClassVar[str] = "scoreCompare"
    player: PlayerRef = field(default_factory=PlayerRef.current)
    op: str = ">="
    value: int = 0


@dataclass
class Flag(Predicate):
    """Truthiness of a flag, or equality when `equals` is given."""
    kind: ClassVar[str] = "flag"
    name: str = ""
    equals: Any = None


@dataclass
class PhaseIs(Predicate):
    kind: ClassVar[str] = "phaseIs"
    phase: str = ""


@dataclass
class Not(Predicate):
    kind: ClassVar[str] = "not"
    predicate: Predicate = field(default_factory=lambda: Always())


@dataclass
class And(Predicate):
    kind: ClassVar[str] = "and"
    predicates: list[Predicate] = field(default_factory=list)


@dataclass
class Or(Predicate):
    kind: ClassVar[str] = "or"
    predicates: list[Predicate] = field(default_factory=list)


@dataclass
class WinnerExists(Predicate):
    kind: ClassVar[str] = "winnerExists"


@dataclass
class Always(Predicate):
    kind: ClassVar[str] = "always"


@dataclass
class Never(Predicate):
    kind: ClassVar[str] = "never"


# =============================================================================
# Effects
# =============================================================================

@dataclass
class Effect:
    kind: ClassVar[str] = "effect"

    def to_dict(self) -> dict[str, Any]:
        return ir_to_dict(self)


@dataclass
class MoveCard(Effect):
    kind: ClassVar[str] = "moveCard"
    selector: CardSelector = field(default_factory=CardSelector)
    to: MoveTarget = field(default_factory=MoveTarget)


@dataclass
class Draw(Effect):
    kind: ClassVar[str] = "draw"
    player: PlayerRef = field(default_factory=PlayerRef.current)
    count: int = 1
    to: str = "hand"  # hand, discard
    face_up: bool = True


@dataclass
class Reveal(Effect):
    kind: ClassVar[str] = "reveal"
    selector: CardSelector = field(default_factory=CardSelector)


@dataclass
class ModifyScore(Effect):
    kind: ClassVar[str] = "modifyScore"
    player: PlayerRef = field(default_factory=PlayerRef.current)
    delta: int = 0


@dataclass
class SetFlag(Effect):
    kind: ClassVar[str] = "setFlag"
    name: str = ""
    value: Any = True


@dataclass
class EliminatePlayer(Effect):
    kind: ClassVar[str] = "eliminatePlayer"
    player: PlayerRef = field(default_factory=PlayerRef.current)


@dataclass
class CreateZone(Effect):
    kind: ClassVar[str] = "createZone"
    zone_id: str = ""
    zone_type: str = "pile"  # pile, sequence, grid, custom
    face_down: bool = False


@dataclass
class Conditional(Effect):
    kind: ClassVar[str] = "conditional"
    condition: Predicate = field(default_factory=lambda: Always())
    then: list[Effect] = field(default_factory=list)
    otherwise: list[Effect] = field(default_factory=list)


@dataclass
class Loop(Effect):
    """Repeat body while the condition holds, at most `max` times."""
    kind: ClassVar[str] = "loop"
    condition: Predicate = field(default_factory=lambda: Never())
    body: list[Effect] = field(default_factory=list)
    max: int | None = None


@dataclass
class Composite(Effect):
    kind: ClassVar[str] = "composite"
    effects: list[Effect] = field(default_factory=list)


@dataclass
class EndTurn(Effect):
    kind: ClassVar[str] = "endTurn"


@dataclass
class EndGame(Effect):
    kind: ClassVar[str] = "endGame"
    reason: str | None = None


# =============================================================================
# Actions, phases, win conditions
# =============================================================================

@dataclass
class ActionSpec:
    """A player-invoked action: all `validate` predicates must hold."""
    name: str
    effects: list[Effect] = field(default_factory=list)
    validate: list[Predicate] = field(default_factory=list)
    description: str = ""
    hidden: bool = False


@dataclass
class PhaseSpec:
    name: str
    actions: list[str] = field(default_factory=list)
    entry_effects: list[Effect] = field(default_factory=list)
    exit_condition: Predicate | None = None
    next_phase: str | None = None


@dataclass
class WinConditionIR:
    id: str
    description: str
    predicate: Predicate
    ranking: str | None = None  # highestScore, lowestScore


@dataclass
class IRSkeleton:
    """A complete, self-contained executable description of a game."""
    phases: list[PhaseSpec] = field(default_factory=list)
    actions: list[ActionSpec] = field(default_factory=list)
    setup_effects: list[Effect] = field(default_factory=list)
    win_conditions: list[WinConditionIR] = field(default_factory=list)
    version: int = IR_VERSION
    meta: dict[str, Any] = field(default_factory=dict)

    def get_action(self, name: str) -> ActionSpec | None:
        for action in self.actions:
            if action.name == name:
                return action
        return None

    def to_dict(self) -> dict[str, Any]:
        return ir_to_dict(self)


@dataclass
class IRValidationIssue:
    level: IssueLevel
    message: str
    context: Any = None


@dataclass
class IRValidationResult:
    valid: bool
    issues: list[IRValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        return [i.message for i in self.issues if i.level == IssueLevel.ERROR]

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.level == IssueLevel.WARNING]


def ir_to_dict(value: Any) -> Any:
    """Serialize IR nodes to plain JSON-compatible data, tagging kinds."""
    if is_dataclass(value) and not isinstance(value, type):
        data: dict[str, Any] = {}
        kind = getattr(type(value), "kind", None)
        if isinstance(kind, str):
            data["kind"] = kind
        for f in fields(value):
            data[f.name] = ir_to_dict(getattr(value, f.name))
        return data
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [ir_to_dict(item) for item in value]
    if isinstance(value, dict):
        return {key: ir_to_dict(item) for key, item in value.items()}
    return value
