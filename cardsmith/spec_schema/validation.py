"""
Rules Validation - Static checks on a game schema.

Validates that:
1. Player bounds are sane (1 <= min <= max)
2. Phases only reference declared actions
3. Per-position deal arrays fit the roster
4. The deal fits the deck

Schemas are untrusted, so problems that the engine can tolerate are
reported as warnings and never raised.
"""

from __future__ import annotations
from dataclasses import dataclass

from .game_rules import GameRules

KNOWN_WIN_CONDITION_TYPES = frozenset({
    "first_to_empty",
    "highest_score",
    "lowest_score",
    "specific_cards",
    "custom",
})


class RulesValidationError(Exception):
    """Raised when a caller asks for strict validation and it fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Rules validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def validate_rules(rules: GameRules, strict: bool = False) -> ValidationResult:
    """
    Validate a game schema.

    Returns ValidationResult with errors and warnings.
    Raises RulesValidationError if strict=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []

    players = rules.players
    if players.min < 1:
        errors.append("players.min must be >= 1")
    if players.max < players.min:
        errors.append("players.max must be >= players.min")

    action_names = set(rules.actions)
    for phase in rules.turn_structure.phases:
        if not phase.actions:
            warnings.append(f"Phase '{phase.name}' allows no actions")
        for action_name in phase.actions:
            if action_name not in action_names:
                errors.append(
                    f"Phase '{phase.name}' references unknown action '{action_name}'"
                )

    setup = rules.setup
    if setup.cards_per_player < 0:
        errors.append("setup.cardsPerPlayer must be >= 0")
    if setup.cards_per_player_position is not None:
        if len(setup.cards_per_player_position) < players.max:
            warnings.append(
                "setup.cardsPerPlayerPosition is shorter than players.max; "
                "extra seats fall back to cardsPerPlayer"
            )
        if any(count < 0 for count in setup.cards_per_player_position):
            errors.append("setup.cardsPerPlayerPosition entries must be >= 0")
    if setup.random_hand_range is not None and len(setup.random_hand_range) != 2:
        errors.append("setup.randomHandRange must have exactly two entries")

    deck_cards = 52 * setup.deck_count
    if _max_dealt(rules) > deck_cards:
        warnings.append(
            f"Initial deal may need more than {deck_cards} cards; hands will be short"
        )

    for condition in rules.win_conditions:
        if condition.type not in KNOWN_WIN_CONDITION_TYPES:
            warnings.append(f"Unknown win condition type '{condition.type}'")

    if not rules.actions:
        warnings.append("No actions defined")
    if not rules.win_conditions:
        warnings.append("No win conditions defined")
    if not rules.turn_structure.phases:
        warnings.append("No turn phases defined; all actions allowed every turn")

    result = ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )
    if strict and not result.valid:
        raise RulesValidationError(errors)
    return result


def _max_dealt(rules: GameRules) -> int:
    """Upper bound on cards dealt to hands at the start."""
    setup = rules.setup
    seats = rules.players.max
    if setup.all_cards_start_in_pile or setup.deal_all_cards:
        return 0
    if setup.random_hand_range and len(setup.random_hand_range) == 2:
        return max(setup.random_hand_range) * seats
    if setup.cards_per_player_position:
        positions = setup.cards_per_player_position[:seats]
        missing = max(0, seats - len(positions))
        return sum(positions) + missing * setup.cards_per_player
    return setup.cards_per_player * seats
