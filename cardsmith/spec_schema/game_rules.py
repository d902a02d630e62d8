"""
GameRules - The declarative game schema.

A schema arrives as a camelCase JSON document from template selection or an
external text-to-schema generator. It is untrusted and frequently
incomplete, so:
- every numeric and list field has a default
- explicit nulls fall back to the default
- unknown keys are preserved rather than rejected
"""

from __future__ import annotations
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel


class RulesModel(BaseModel):
    """Base for schema models: camelCase aliases, lenient about extras."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "allow",
    }

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# =============================================================================
# Players
# =============================================================================

class DealerConfig(RulesModel):
    """Dealer behaviour for dealer-style games."""
    is_bot: bool = True
    name: str | None = None
    must_hit_on: int = 16
    must_stand_on: int = 17
    reveals_card_at: str = "end"
    plays_after_all_players: bool = True


class Blinds(RulesModel):
    small: int = 1
    big: int = 2


class BettingConfig(RulesModel):
    """Chip configuration for betting games."""
    initial_chips: int = 100
    blinds: Blinds | None = None
    ante: int = 0
    max_bet: int | None = None

    @property
    def base_stake(self) -> int:
        """Smallest meaningful bet for this table."""
        if self.ante:
            return self.ante
        if self.blinds:
            return self.blinds.big
        return max(1, self.initial_chips // 20)


class PlayerBounds(RulesModel):
    min: int = 1
    max: int = 8
    recommended: int | None = None
    requires_dealer: bool = False
    dealer_config: DealerConfig | None = None
    betting_config: BettingConfig | None = None


# =============================================================================
# Setup
# =============================================================================

class ZoneSpec(RulesModel):
    """A table zone declared by the schema layout."""
    id: str
    type: str = "pile"
    initial_cards: int = 0
    face_down: bool = False
    max_cards: int | None = None
    accepted_suits: list[str] = Field(default_factory=list)
    accepted_ranks: list[str] = Field(default_factory=list)
    build_direction: str | None = None


class TableLayout(RulesModel):
    type: str = "custom"
    allow_flexible_placement: bool = True
    zones: list[ZoneSpec] = Field(default_factory=list)


class ProgressiveDeal(RulesModel):
    """Deal cards every round until a rank shows up."""
    cards_per_round: int = 1
    until: str | None = None  # all_have_rank, any_has_rank
    rank: str | None = None
    max_rounds: int | None = None


class DrawUntil(RulesModel):
    rank: str | None = None
    suit: str | None = None


class EliminateOnMissRank(RulesModel):
    rank: str = "K"
    eliminate_if_not_rank: bool = True
    win_on_rank: bool = True


class GameSetup(RulesModel):
    cards_per_player: int = 7
    cards_per_player_position: list[int] | None = None
    deck_size: int = 52
    special_cards: list[str] = Field(default_factory=list)
    keep_drawn_card: bool | None = None
    multiple_decks: bool = False
    number_of_decks: int = 1
    deal_all_cards: bool = False
    table_layout: TableLayout | None = None

    # Directives written by the enrichment pipeline
    random_hand_range: list[int] | None = None
    progressive_deal: ProgressiveDeal | None = None
    arithmetic_target: int | None = None
    noop_game: bool = False
    single_player_draw_until: DrawUntil | None = None
    all_cards_start_in_pile: bool = False
    central_pile_face_up: bool = False
    eliminate_on_miss_rank: EliminateOnMissRank | None = None

    @property
    def deck_count(self) -> int:
        if self.multiple_decks or self.number_of_decks > 1:
            return max(1, self.number_of_decks)
        return 1

    @property
    def keeps_drawn_card(self) -> bool:
        """Drawn cards go to the hand unless the schema says otherwise."""
        return self.keep_drawn_card is not False


# =============================================================================
# Turns, objective, win conditions
# =============================================================================

class Objective(RulesModel):
    type: str = "custom"
    description: str = ""
    target: int | None = None


class TurnPhase(RulesModel):
    name: str = "playing"
    required: bool = True
    actions: list[str] = Field(default_factory=list)


class TurnStructure(RulesModel):
    order: str = "clockwise"
    phases: list[TurnPhase] = Field(default_factory=list)
    time_limit: int | None = None


class WinCondition(RulesModel):
    type: str = "custom"
    description: str = ""
    target: Any = None


class GameRules(RulesModel):
    """
    A complete game schema.

    Usage:
        rules = GameRules.from_document(json.loads(text))
        rules.setup.cards_per_player
        rules.to_document()  # back to camelCase
    """
    id: str = "custom-game"
    name: str = "Custom Game"
    description: str = ""
    players: PlayerBounds = Field(default_factory=PlayerBounds)
    setup: GameSetup = Field(default_factory=GameSetup)
    objective: Objective = Field(default_factory=Objective)
    turn_structure: TurnStructure = Field(default_factory=TurnStructure)
    actions: list[str] = Field(default_factory=list)
    win_conditions: list[WinCondition] = Field(default_factory=list)
    special_rules: list[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> GameRules:
        """Parse a camelCase schema document."""
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        """Serialize back to the camelCase document shape."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def text_corpus(self, include_conditions: bool = False) -> str:
        """Lower-cased free text used by the heuristic matchers."""
        parts = [self.name, self.description, " ".join(self.special_rules)]
        if include_conditions:
            parts.append(self.objective.description)
            parts.extend(w.description for w in self.win_conditions)
        return " ".join(parts).lower()

    def phase_names(self) -> list[str]:
        return [phase.name for phase in self.turn_structure.phases]

    def allowed_actions(self, phase_name: str | None) -> list[str]:
        """Actions permitted in a phase; the global list when the phase is undeclared."""
        for phase in self.turn_structure.phases:
            if phase.name == phase_name:
                return list(phase.actions)
        return list(self.actions)
