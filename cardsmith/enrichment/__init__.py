"""
Enrichment - Heuristic schema enrichment.

Runs a fixed, ordered list of transforms over a GameRules schema. Each one
turns a known free-text phrasing into a structured setup directive.

Usage:
    rules = enrich_rules(rules)

    result = enrich_rules_with_report(rules)
    result.applied  # ["random_hand_range", ...]
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Callable

from ..spec_schema import GameRules
from .transforms import (
    arithmetic_target,
    bot_only,
    central_pile,
    elimination_on_rank,
    noop,
    progressive_deal,
    random_hand_range,
    specific_card_reveal_win,
)

logger = logging.getLogger(__name__)

RulesTransform = Callable[[GameRules], GameRules]

ENRICHMENT_TRANSFORMS: tuple[tuple[str, RulesTransform], ...] = (
    ("random_hand_range", random_hand_range),
    ("progressive_deal", progressive_deal),
    ("central_pile", central_pile),
    ("elimination_on_rank", elimination_on_rank),
    ("arithmetic_target", arithmetic_target),
    ("noop", noop),
    ("bot_only", bot_only),
    ("specific_card_reveal_win", specific_card_reveal_win),
)


@dataclass
class EnrichmentResult:
    """An enriched schema and the transforms that changed it."""
    rules: GameRules
    applied: list[str] = field(default_factory=list)


def enrich_rules_with_report(rules: GameRules) -> EnrichmentResult:
    current = rules
    applied = []
    for name, transform in ENRICHMENT_TRANSFORMS:
        before = current.to_document()
        current = transform(current)
        if current.to_document() != before:
            applied.append(name)
    if applied:
        logger.info("Enriched %s with %s", rules.id, ", ".join(applied))
    return EnrichmentResult(rules=current, applied=applied)


def enrich_rules(rules: GameRules) -> GameRules:
    """Run every transform in order. The input schema is not modified."""
    return enrich_rules_with_report(rules).rules


__all__ = [
    "ENRICHMENT_TRANSFORMS",
    "EnrichmentResult",
    "enrich_rules",
    "enrich_rules_with_report",
]
