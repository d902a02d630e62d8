"""
Tests for heuristic schema enrichment.

Tests:
- Each transform's phrasing and the directive it writes
- The input schema is never modified
- Enrichment is idempotent
- The applied report
"""

import pytest

from ..enrichment import enrich_rules, enrich_rules_with_report
from ..enrichment.transforms import (
    BOT_ONLY_RULE,
    arithmetic_target,
    central_pile,
    elimination_on_rank,
    progressive_deal,
    random_hand_range,
)


class TestTransforms:
    """One test per transform family."""

    def test_random_hand_range(self, make_rules):
        rules = random_hand_range(make_rules(description="Deal a random 3 to 6 cards each"))
        assert rules.setup.random_hand_range == [3, 6]
        assert rules.setup.cards_per_player == 0

    def test_random_range_is_sorted(self, make_rules):
        rules = random_hand_range(make_rules(description="random between 9 and 4"))
        assert rules.setup.random_hand_range == [4, 9]

    def test_progressive_any_player(self, make_rules):
        rules = progressive_deal(make_rules(description="Deal one card at a time until someone gets a king"))
        deal = rules.setup.progressive_deal
        assert (deal.rank, deal.until, deal.cards_per_round) == ("K", "any_has_rank", 1)
        assert "draw" in rules.actions and "pass" in rules.actions

    def test_progressive_needs_a_rank(self, make_rules):
        rules = progressive_deal(make_rules(description="Deal more cards each round"))
        assert rules.setup.progressive_deal is None

    def test_central_pile_face_down(self, make_rules):
        rules = central_pile(make_rules(description="Deal every card into a face down pile on the table"))
        assert rules.setup.all_cards_start_in_pile
        assert not rules.setup.central_pile_face_up

    def test_elimination_rank_from_text(self, make_rules):
        rules = elimination_on_rank(make_rules(description="You need to draw a 7 to stay in"))
        directive = rules.setup.eliminate_on_miss_rank
        assert directive.rank == "7"
        assert directive.eliminate_if_not_rank and directive.win_on_rank
        assert rules.win_conditions[-1].description == "First player to reveal a 7 wins."

    def test_elimination_defaults_to_king(self, make_rules):
        rules = elimination_on_rank(make_rules(description="Draw or go home"))
        assert rules.setup.eliminate_on_miss_rank.rank == "K"

    def test_arithmetic_target(self, make_rules):
        rules = arithmetic_target(make_rules(description="Make a total of 31", actions=["draw"]))
        assert rules.setup.arithmetic_target == 31
        assert rules.actions == ["draw", "play"]

    def test_noop(self, make_rules):
        assert enrich_rules(make_rules(description="Nothing happens here")).setup.noop_game

    def test_bot_only(self, make_rules):
        rules = enrich_rules(make_rules(description="Only bots play this one", actions=[]))
        assert BOT_ONLY_RULE in rules.special_rules
        assert rules.actions == ["draw", "play"]

    def test_specific_card_reveal(self, make_rules):
        rules = enrich_rules(make_rules(description="Whoever reveals the queen of spades wins"))
        assert rules.win_conditions[-1].type == "custom"
        assert rules.win_conditions[-1].description == "Reveal the Q of Spades to win."


class TestEnrichRules:
    """Tests for the ordered pipeline."""

    @pytest.mark.parametrize("description", [
        "Deal a random 2 to 5 cards. You must draw a K or go home.",
        "All cards in one pile. Reveal the ace of hearts to win.",
        "Deal one card per round until everyone has a queen.",
        "Play cards to reach 15. Only bots play.",
    ])
    def test_idempotent(self, make_rules, description):
        once = enrich_rules(make_rules(description=description))
        twice = enrich_rules(once)
        assert twice.to_document() == once.to_document()

    def test_input_not_modified(self, make_rules):
        rules = make_rules(description="Deal a random 2 to 5 cards. You must draw a K or go home.")
        before = rules.to_document()
        enrich_rules(rules)
        assert rules.to_document() == before

    def test_report(self, make_rules):
        result = enrich_rules_with_report(make_rules(description="All cards in one pile. Play cards to reach 20."))
        assert result.applied == ["central_pile", "arithmetic_target"]
        assert result.rules.setup.arithmetic_target == 20

    def test_nothing_to_do(self, make_rules):
        rules = make_rules()
        result = enrich_rules_with_report(rules)
        assert result.applied == []
        assert result.rules.to_document() == rules.to_document()
