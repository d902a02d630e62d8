"""
Schema Classifier - Archetype tags from loosely structured rule text.

All free-text heuristics the engine and bots rely on live here. A schema is
classified once into a SchemaProfile (a closed set of tags, a table type and
any sequence-difference rule) and the result is cached.

The pattern table is plain data: swap TAG_PATTERNS to change behaviour
without touching control flow.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
import logging
import re

from .state import TableType
from ..spec_schema import GameRules

logger = logging.getLogger(__name__)


class SchemaTag(Enum):
    CARD_REQUEST = "card-request"  # "play" means take another card
    SEQUENCE_BUILD = "sequence-build"
    SUIT_BUILD = "suit-build"
    MEMORY_MATCH = "memory-match"
    COMBAT = "combat"
    BETTING = "betting"
    DEALER = "dealer"
    CENTRAL_PILE = "central-pile"


TAG_PATTERNS: tuple[tuple[SchemaTag, str], ...] = (
    (SchemaTag.CARD_REQUEST, r"blackjack|twenty[- ]one|hit or stand|closest to \d+ without"),
    (SchemaTag.SEQUENCE_BUILD, r"sequence|in order|bigger or smaller|higher or lower|ascending|descending|previous card"),
    (SchemaTag.SUIT_BUILD, r"sevens|build(?:ing)? up (?:and|or|/) ?down|from the 7s|same suit.{0,30}(?:up|down)"),
    (SchemaTag.MEMORY_MATCH, r"memory|concentration|matching pairs?|find (?:the )?pairs|flip (?:two|2) cards"),
    (SchemaTag.COMBAT, r"attack|defend|battle|combat|damage|health"),
    (SchemaTag.BETTING, r"\bbets?\b|betting|chips|poker|wager|\bante\b|blinds"),
    (SchemaTag.DEALER, r"\bdealer\b"),
    (SchemaTag.CENTRAL_PILE, r"central pile|middle pile|center pile|pile on the table|one pile"),
)

# "3, 6, or 9 numbers bigger or smaller than the previous card"
SEQUENCE_DIFFERENCE_PATTERN = re.compile(
    r"((?:\d+\s*,\s*)*\d+\s*,?\s*(?:or|and)\s*\d+)\s+(?:numbers?\s+|points?\s+|ranks?\s+)?"
    r"(?:bigger|smaller|higher|lower|greater|less|more|above|below)"
)
SINGLE_DIFFERENCE_PATTERN = re.compile(r"difference of (\d+)|exactly (\d+) (?:higher|lower|apart)")


@dataclass(frozen=True)
class SchemaProfile:
    """Cached classification of a schema."""
    tags: frozenset[SchemaTag]
    table_type: TableType
    sequence_differences: tuple[int, ...] = ()

    def has(self, tag: SchemaTag) -> bool:
        return tag in self.tags

    @property
    def is_card_request(self) -> bool:
        return SchemaTag.CARD_REQUEST in self.tags


def classify_rules(rules: GameRules) -> SchemaProfile:
    """Classify a schema; identical inputs hit the cache."""
    layout = rules.setup.table_layout
    return _classify(
        rules.id.lower(),
        rules.text_corpus(include_conditions=True),
        tuple(rules.actions),
        rules.players.betting_config is not None,
        rules.players.requires_dealer,
        layout.type if layout else None,
        bool(layout and layout.zones),
        rules.setup.all_cards_start_in_pile,
    )


@lru_cache(maxsize=256)
def _classify(
    rules_id: str,
    text: str,
    actions: tuple[str, ...],
    has_betting: bool,
    requires_dealer: bool,
    layout_type: str | None,
    has_layout_zones: bool,
    all_in_pile: bool,
) -> SchemaProfile:
    tags = {tag for tag, pattern in TAG_PATTERNS if re.search(pattern, text)}

    if rules_id == "blackjack" or "hit" in actions:
        tags.add(SchemaTag.CARD_REQUEST)
    if has_betting:
        tags.add(SchemaTag.BETTING)
    if requires_dealer:
        tags.add(SchemaTag.DEALER)
    if "flip" in actions:
        tags.add(SchemaTag.MEMORY_MATCH)
    if all_in_pile:
        tags.add(SchemaTag.CENTRAL_PILE)

    differences = sequence_differences(text)
    if differences:
        tags.add(SchemaTag.SEQUENCE_BUILD)

    table_type = _table_type(tags, layout_type, has_layout_zones)
    profile = SchemaProfile(
        tags=frozenset(tags),
        table_type=table_type,
        sequence_differences=differences,
    )
    logger.debug(
        "Classified %s: tags=%s table=%s",
        rules_id, sorted(t.value for t in tags), table_type.value,
    )
    return profile


def sequence_differences(text: str) -> tuple[int, ...]:
    """Allowed rank gaps between consecutive played cards, if the text sets any."""
    match = SEQUENCE_DIFFERENCE_PATTERN.search(text)
    if match:
        return tuple(sorted({int(n) for n in re.findall(r"\d+", match.group(1))}))
    match = SINGLE_DIFFERENCE_PATTERN.search(text)
    if match:
        return (int(match.group(1) or match.group(2)),)
    return ()


def _table_type(
    tags: set[SchemaTag],
    layout_type: str | None,
    has_layout_zones: bool,
) -> TableType:
    if has_layout_zones:
        return TableType.CUSTOM
    if layout_type == "sequence":
        return TableType.SEQUENCE
    if layout_type == "grid" or layout_type == "scattered":
        return TableType.SCATTERED
    if SchemaTag.MEMORY_MATCH in tags:
        return TableType.SCATTERED
    if SchemaTag.SUIT_BUILD in tags:
        return TableType.SUIT_BASED
    if SchemaTag.SEQUENCE_BUILD in tags:
        return TableType.SEQUENCE
    if SchemaTag.CENTRAL_PILE in tags:
        return TableType.PILE
    if layout_type == "custom":
        return TableType.CUSTOM
    return TableType.NONE
