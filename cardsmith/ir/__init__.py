"""
IR - An explicit intermediate representation of a game.

Emitter -> schema types -> registry (predicates + effects) -> runtime.
The IR consumes the same GameRules as the engine but describes actions,
effects and win conditions as data evaluated by a small total interpreter.
"""

from .emitter import EmitResult, emit_ir
from .registry import EffectExecutor, PredicateEngine, legacy_wrap_to_ir, validate_ir
from .runtime import EngineAdapter, IRActionOutcome, IRExecutionContext, IRPlayerState, IRRuntime
from .schema import (
    ActionSpec,
    IRSkeleton,
    IRValidationIssue,
    IRValidationResult,
    PhaseSpec,
    WinConditionIR,
    ir_to_dict,
)

__all__ = [
    "EmitResult",
    "emit_ir",
    "EffectExecutor",
    "PredicateEngine",
    "legacy_wrap_to_ir",
    "validate_ir",
    "EngineAdapter",
    "IRActionOutcome",
    "IRExecutionContext",
    "IRPlayerState",
    "IRRuntime",
    "ActionSpec",
    "IRSkeleton",
    "IRValidationIssue",
    "IRValidationResult",
    "PhaseSpec",
    "WinConditionIR",
    "ir_to_dict",
]
