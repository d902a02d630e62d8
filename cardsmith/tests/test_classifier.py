"""
Tests for schema classification.

Tests:
- Archetype tags from text, ids and actions
- Table type priority
- Sequence difference extraction
"""

import pytest

from ..engine_core.classifier import SchemaTag, classify_rules, sequence_differences
from ..engine_core.state import TableType
from ..games import get_game_rules


class TestClassifyRules:
    """Tests for classify_rules."""

    @pytest.mark.parametrize("game_id, table_type", [
        ("sevens", TableType.SUIT_BASED),
        ("memory", TableType.SCATTERED),
        ("sequence-369", TableType.SEQUENCE),
        ("crazy-8s", TableType.NONE),
    ])
    def test_predefined_table_types(self, game_id, table_type):
        assert classify_rules(get_game_rules(game_id)).table_type == table_type

    def test_blackjack_is_card_request(self):
        profile = classify_rules(get_game_rules("blackjack"))
        assert profile.is_card_request
        assert profile.has(SchemaTag.DEALER)

    def test_hit_action_implies_card_request(self, make_rules):
        rules = make_rules(actions=["hit", "stand"])
        assert classify_rules(rules).is_card_request

    def test_point_target_of_21_is_not_card_request(self, make_rules):
        rules = make_rules(
            description="Play cards from your hand; first to a total of 21 points wins.",
            winConditions=[{"type": "highest_score", "description": "Reach 21 points"}],
        )
        assert not classify_rules(rules).is_card_request

    def test_twenty_one_phrase_is_card_request(self, make_rules):
        assert classify_rules(make_rules(description="A quick game of twenty-one")).is_card_request

    def test_betting_config_tag(self, make_rules):
        rules = make_rules(players={"bettingConfig": {"initialChips": 100}})
        assert classify_rules(rules).has(SchemaTag.BETTING)

    def test_flip_action_means_memory(self, make_rules):
        rules = make_rules(actions=["flip"])
        assert classify_rules(rules).table_type == TableType.SCATTERED

    def test_layout_zones_win(self, make_rules):
        rules = make_rules(
            description="Find the pairs in sequence",
            setup={"tableLayout": {"type": "custom", "zones": [{"id": "row", "type": "pile"}]}},
        )
        assert classify_rules(rules).table_type == TableType.CUSTOM

    def test_memory_beats_sequence(self, make_rules):
        rules = make_rules(description="Find the pairs, then lay cards in sequence")
        assert classify_rules(rules).table_type == TableType.SCATTERED

    def test_central_pile_directive(self, make_rules):
        rules = make_rules(setup={"allCardsStartInPile": True})
        assert classify_rules(rules).table_type == TableType.PILE

    def test_identical_rules_share_a_profile(self, make_rules):
        assert classify_rules(make_rules()) is classify_rules(make_rules())


class TestSequenceDifferences:
    """Tests for sequence_differences."""

    def test_list_of_differences(self):
        text = "each card must be 3, 6, or 9 numbers bigger or smaller than the previous card"
        assert sequence_differences(text) == (3, 6, 9)

    def test_pair_of_differences(self):
        assert sequence_differences("play a card 1 or 2 ranks higher") == (1, 2)

    def test_single_difference(self):
        assert sequence_differences("cards must have a difference of 4") == (4,)
        assert sequence_differences("exactly 2 apart") == (2,)

    def test_no_rule(self):
        assert sequence_differences("play any card you like") == ()
