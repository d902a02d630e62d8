"""
Tests for bot policies.

Tests:
- Action ranking with tag biases
- Hit/stand and betting specialisations
- Memory flips and sequence-aware plays
- Fallback tiers
- Totality: bots never stall any predefined game
"""

import pytest

from ..bots import FirstDeclaredPolicy, HeuristicBot, get_bot_action, rank_actions
from ..engine_core.cards import make_card
from ..engine_core.classifier import classify_rules
from ..engine_core.state import GameStatus, PlayerKind
from ..games import PREDEFINED_GAMES, get_game_rules
from .conftest import set_hand

BOT = PlayerKind.BOT


@pytest.fixture
def bot(rng):
    return HeuristicBot(rng=rng)


class TestRankActions:
    """Tests for rank_actions."""

    def test_base_priorities(self, make_rules):
        profile = classify_rules(make_rules())
        assert rank_actions(["pass", "draw", "play", "discard"], profile) == ["play", "discard", "draw", "pass"]

    def test_unknown_actions_between_discard_and_draw(self, make_rules):
        profile = classify_rules(make_rules())
        assert rank_actions(["draw", "shout", "discard"], profile) == ["discard", "shout", "draw"]

    def test_memory_bias(self):
        profile = classify_rules(get_game_rules("memory"))
        assert rank_actions(["peek", "play", "flip"], profile)[0] == "flip"

    def test_duplicates_removed(self, make_rules):
        profile = classify_rules(make_rules())
        assert rank_actions(["draw", "draw"], profile) == ["draw"]


class TestHeuristicBot:
    """Tests for HeuristicBot move selection."""

    def test_plays_a_card(self, bot, make_rules, make_engine):
        engine = make_engine(make_rules())
        move = bot.select_move(engine.get_game_state(), engine.rules, "player-1")

        assert move.action == "play"
        assert len(move.card_ids) == 1
        assert engine.is_valid_action("player-1", move.action, move.card_ids)

    def test_never_mutates_state(self, bot, make_rules, make_engine):
        engine = make_engine(make_rules())
        before = engine.get_game_state().to_dict()
        bot.select_move(engine.get_game_state(), engine.rules, "player-1")
        assert engine.get_game_state().to_dict() == before

    def test_hit_or_stand(self, bot, make_engine):
        engine = make_engine(get_game_rules("blackjack"), players=[("Ana", PlayerKind.HUMAN)])
        state = engine.get_game_state()

        set_hand(state, "player-1", make_card("hearts", "10"), make_card("clubs", "2"))
        assert bot.select_move(state, engine.rules, "player-1").action == "play"

        set_hand(state, "player-1", make_card("hearts", "10"), make_card("clubs", "8"))
        assert bot.select_move(state, engine.rules, "player-1").action == "pass"

    def test_dealer_thresholds(self, bot, make_engine):
        engine = make_engine(get_game_rules("blackjack"), players=[("Ana", PlayerKind.HUMAN)])
        state = engine.get_game_state()
        set_hand(state, "player-1", make_card("hearts", "10"), make_card("clubs", "8"))
        set_hand(state, "player-2", make_card("spades", "10"), make_card("diamonds", "6"))
        assert engine.execute_action("player-1", "pass").success

        assert bot.select_move(state, engine.rules, "player-2").action == "play"

        set_hand(state, "player-2", make_card("spades", "10"), make_card("diamonds", "7"))
        assert bot.select_move(state, engine.rules, "player-2").action == "pass"

    def test_betting(self, bot, make_rules, make_engine):
        actions = ["bet", "raise", "call", "check", "fold"]
        rules = make_rules(
            players={"bettingConfig": {"initialChips": 100, "ante": 5}},
            actions=actions,
            turnStructure={"phases": [{"name": "betting", "actions": actions}]},
            winConditions=[],
        )
        engine = make_engine(rules)
        state = engine.get_game_state()

        assert bot.select_move(state, rules, "player-1").action == "check"

        engine.execute_action("player-1", "bet")
        assert bot.select_move(state, rules, "player-2").action == "call"

        state.current_bet = 50
        assert bot.select_move(state, rules, "player-2").action == "fold"

    def test_memory_flips_a_hidden_card(self, bot, make_engine):
        engine = make_engine(get_game_rules("memory"))
        state = engine.get_game_state()

        move = bot.select_move(state, engine.rules, "player-1")

        assert move.action == "flip"
        _, card = state.find_table_card(move.card_ids[0])
        assert not card.face_up

    def test_sequence_play(self, bot, make_engine):
        engine = make_engine(get_game_rules("sequence-369"))
        state = engine.get_game_state()
        state.table_zones["play-area"].cards.append(make_card("spades", "2"))
        state.players[0].hand = [make_card("clubs", "4"), make_card("hearts", "5")]

        move = bot.select_move(state, engine.rules, "player-1")

        assert (move.action, move.card_ids) == ("play", ["hearts-5"])

    def test_forced_draw_when_nothing_validates(self, bot, make_rules, make_engine):
        rules = make_rules(actions=["discard"], turnStructure={"phases": [{"name": "playing", "actions": ["discard"]}]})
        engine = make_engine(rules)
        state = engine.get_game_state()
        state.players[0].hand = []

        move = bot.select_move(state, rules, "player-1")

        assert move.forced
        assert move.action == "draw"

    def test_inactive_game(self, bot, make_rules, make_engine):
        engine = make_engine(make_rules(), start=False)
        move = bot.select_move(engine.get_game_state(), engine.rules, "player-2")
        assert move.forced

    def test_get_bot_action(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        move = get_bot_action(engine.get_game_state(), engine.rules, "player-1")
        assert engine.is_valid_action("player-1", move.action, move.card_ids)


class TestFirstDeclaredPolicy:
    """Tests for the naive baseline policy."""

    def test_first_phase_action(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        move = FirstDeclaredPolicy().select_move(engine.get_game_state(), engine.rules, "player-1")
        assert move.action == "play"
        assert FirstDeclaredPolicy().get_name() == "FirstDeclaredPolicy"

    def test_no_actions(self, make_rules, make_engine):
        rules = make_rules(actions=[], turnStructure={"phases": []})
        engine = make_engine(rules)
        move = FirstDeclaredPolicy().select_move(engine.get_game_state(), rules, "player-1")
        assert move.forced


class TestBotTotality:
    """Bots keep every predefined game moving."""

    @pytest.mark.parametrize("game", PREDEFINED_GAMES, ids=lambda g: g.game_id)
    def test_bots_never_stall(self, game, make_engine):
        rules = game.rules()
        seats = min(max(rules.players.min, 2), rules.players.max)
        engine = make_engine(rules, players=[(f"Bot {i + 1}", BOT) for i in range(seats)])
        state = engine.get_game_state()
        bot = HeuristicBot(templates=engine.templates, rng=engine.rng)

        for _ in range(60):
            if state.status != GameStatus.ACTIVE:
                break
            current = engine.get_current_player()
            move = bot.select_move(state, rules, current.player_id)
            if move.forced:
                result = engine.force_draw(current.player_id)
            else:
                assert engine.is_valid_action(current.player_id, move.action, move.card_ids)
                result = engine.execute_action(current.player_id, move.action, move.card_ids)
            assert result.success
            assert state.total_cards() == state.emergency_cards + (54 if rules.setup.deck_size > 52 else 52)
