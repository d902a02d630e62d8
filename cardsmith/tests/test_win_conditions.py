"""
Tests for win condition evaluation.

Tests:
- Custom rule table: first matching rule decides
- Declared condition types
- Card-request outcomes and rule directives
"""

import pytest

from ..engine_core.cards import make_card
from ..engine_core.classifier import classify_rules
from ..engine_core.state import GameState, Player
from ..engine_core.win_conditions import evaluate_condition, find_winner, match_custom_rule
from ..games import get_game_rules
from ..spec_schema import WinCondition


def table(*hands) -> GameState:
    """A state with one player per hand; every player has held cards."""
    state = GameState(game_id="win-test")
    for index, hand in enumerate(hands):
        player = Player(player_id=f"player-{index + 1}", name=f"P{index + 1}", position=index)
        for card in hand:
            player.receive(card)
        state.players.append(player)
        state.scores[player.player_id] = 0
    return state


class TestCustomRuleMatching:
    """Tests for match_custom_rule."""

    @pytest.mark.parametrize("description, rule_name", [
        ("I will lift cards from the deck, if the card is black I will win.", "color-card"),
        ("Reveal the K of Hearts to win.", "rank-of-suit"),
        ("First player to reveal a K wins.", "rank-to-win"),
        ("Collect 10 cards to win", "collect-cards"),
        ("First to reach 50 points", "reach-points"),
        ("Get rid of all your cards", "empty-hand"),
        ("Hold a hand of the same suit", "single-suit"),
        ("Four of a kind wins", "single-rank"),
    ])
    def test_rule_selected(self, description, rule_name):
        rule, _ = match_custom_rule(description)
        assert rule.name == rule_name

    def test_card_is_not_a_rank(self):
        assert match_custom_rule("Draw a card each turn") is None

    def test_specific_card_beats_bare_rank(self):
        """'Reveal the King of Spades' must not be satisfied by any king."""
        state = table([make_card("hearts", "K")])
        condition = WinCondition(type="custom", description="Reveal the King of Spades to win.")
        assert not evaluate_condition(condition, state.players[0], state)

        state.players[0].receive(make_card("spades", "K"))
        assert evaluate_condition(condition, state.players[0], state)


class TestEvaluateCondition:
    """Tests for the declared condition types."""

    def test_first_to_empty_needs_a_dealt_hand(self):
        state = table([])
        condition = WinCondition(type="first_to_empty")
        assert not evaluate_condition(condition, state.players[0], state)

        state.players[0].receive(make_card("hearts", "2"))
        state.players[0].hand.clear()
        assert evaluate_condition(condition, state.players[0], state)

    def test_highest_score_target(self):
        state = table([])
        state.scores["player-1"] = 3
        assert evaluate_condition(WinCondition(type="highest_score", target=3), state.players[0], state)
        assert not evaluate_condition(WinCondition(type="highest_score", target=4), state.players[0], state)

    def test_highest_score_falls_back_to_table_target(self):
        state = table([])
        condition = WinCondition(type="highest_score")
        state.scores["player-1"] = 15
        assert not evaluate_condition(condition, state.players[0], state)

        state.target_value = 15
        assert evaluate_condition(condition, state.players[0], state)

    def test_specific_cards(self):
        state = table([make_card("hearts", "A"), make_card("clubs", "K")])
        held = WinCondition(type="specific_cards", target=["A♥", "K*"])
        missing = WinCondition(type="specific_cards", target=["A♥", "Q*"])
        assert evaluate_condition(held, state.players[0], state)
        assert not evaluate_condition(missing, state.players[0], state)
        assert not evaluate_condition(WinCondition(type="specific_cards"), state.players[0], state)

    def test_drawn_card_counts_for_the_drawer_only(self):
        state = table([], [])
        state.last_drawn_card = make_card("spades", "4")
        state.last_drawn_by = "player-2"
        condition = WinCondition(type="custom", description="Draw a black card to win")

        assert not evaluate_condition(condition, state.players[0], state)
        assert evaluate_condition(condition, state.players[1], state)

    def test_unmatched_and_deferred_types(self):
        state = table([])
        assert not evaluate_condition(WinCondition(type="custom", description="Be nice"), state.players[0], state)
        assert not evaluate_condition(WinCondition(type="lowest_score"), state.players[0], state)


class TestFindWinner:
    """Tests for find_winner ordering."""

    def test_declared_order_and_seat_order(self, make_rules):
        rules = make_rules(winConditions=[
            {"type": "custom", "description": "Collect 3 cards"},
            {"type": "first_to_empty", "description": "First player to empty their hand wins"},
        ])
        state = table(
            [make_card("hearts", "2")],
            [make_card("hearts", "3"), make_card("hearts", "4"), make_card("hearts", "5")],
        )
        state.players[0].hand.clear()

        outcome = find_winner(state, rules, classify_rules(rules))

        assert outcome.winner == "player-2"
        assert outcome.reason == "Collect 3 cards"

    def test_eliminated_players_cannot_win(self, make_rules):
        rules = make_rules(players={"min": 1})
        state = table([make_card("hearts", "2")], [make_card("hearts", "3")], [make_card("hearts", "4")])
        state.players[0].hand.clear()
        state.players[0].eliminated = True

        assert find_winner(state, rules, classify_rules(rules)) is None

    def test_last_player_standing(self, make_rules):
        rules = make_rules()
        state = table([make_card("hearts", "2")], [make_card("hearts", "3")])
        state.players[0].eliminated = True

        outcome = find_winner(state, rules, classify_rules(rules))
        assert (outcome.winner, outcome.reason) == ("player-2", "Last player standing")

    def test_everyone_eliminated(self, make_rules):
        rules = make_rules()
        state = table([make_card("hearts", "2")], [make_card("hearts", "3")])
        for player in state.players:
            player.eliminated = True

        assert find_winner(state, rules, classify_rules(rules)).winner is None

    def test_draw_until_directive(self, make_rules):
        rules = make_rules(setup={"singlePlayerDrawUntil": {"rank": "Q"}}, winConditions=[])
        state = table([make_card("hearts", "2")], [make_card("hearts", "3")])
        state.last_drawn_card = make_card("clubs", "Q")
        state.last_drawn_by = "player-2"

        outcome = find_winner(state, rules, classify_rules(rules))
        assert outcome.winner == "player-2"

    def test_card_request_outcomes(self):
        rules = get_game_rules("blackjack")
        profile = classify_rules(rules)

        state = table(
            [make_card("hearts", "K"), make_card("hearts", "A")],
            [make_card("clubs", "10"), make_card("clubs", "9")],
        )
        assert find_winner(state, rules, profile).reason == "Hit 21"

        state = table(
            [make_card("hearts", "K"), make_card("hearts", "8")],
            [make_card("clubs", "10"), make_card("clubs", "9")],
        )
        assert find_winner(state, rules, profile) is None
        for player in state.players:
            player.stood = True
        outcome = find_winner(state, rules, profile)
        assert outcome.winner == "player-2"

        for player in state.players:
            player.eliminated = True
        assert find_winner(state, rules, profile).reason == "Everyone went bust"
