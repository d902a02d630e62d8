"""
Tests for the game engine.

Tests:
- Roster, dealing and setup directives
- Invalid actions leave the state untouched
- Card conservation, reshuffles and emergency cards
- Phase and turn advancement
- Archetype behaviour: memory, sequences, suit building, blackjack, betting
- Template and schema-defined actions
"""

import pytest

from ..config import EngineSettings
from ..engine_core.cards import make_card
from ..engine_core.errors import (
    GameAlreadyStartedError,
    NotEnoughPlayersError,
    PlayerNotFoundError,
    RosterFullError,
)
from ..engine_core.state import GameStatus, PlayerKind, TableType, ZoneType
from ..enrichment import enrich_rules
from ..games import get_game_rules
from .conftest import give_card, move_to_top, set_hand

HUMAN = PlayerKind.HUMAN
BOT = PlayerKind.BOT


def hand_sizes(engine):
    return [len(p.hand) for p in engine.get_game_state().players]


class TestRosterAndSetup:
    """Tests for seating and dealing."""

    def test_start_deals_hands(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        state = engine.get_game_state()

        assert state.status == GameStatus.ACTIVE
        assert hand_sizes(engine) == [5, 5]
        assert len(state.deck) == 42
        assert state.current_player.player_id == "player-1"
        assert state.current_phase == "playing"
        assert state.total_cards() == 52

    def test_not_enough_players(self, make_rules, make_engine):
        engine = make_engine(make_rules(), players=[("Solo", HUMAN)], start=False)
        with pytest.raises(NotEnoughPlayersError):
            engine.start_game()

    def test_roster_full(self, make_rules, make_engine):
        engine = make_engine(make_rules(), players=[(f"P{i}", BOT) for i in range(4)], start=False)
        with pytest.raises(RosterFullError):
            engine.add_player("Late", HUMAN)

    def test_no_setup_after_start(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        with pytest.raises(GameAlreadyStartedError):
            engine.add_player("Late", HUMAN)
        with pytest.raises(GameAlreadyStartedError):
            engine.start_game()

    def test_per_position_deal(self, make_engine):
        """First seat gets 3 cards, the others 7."""
        rules = get_game_rules("fresh-start")
        engine = make_engine(rules, players=[("Ana", HUMAN), ("B1", BOT), ("B2", BOT), ("B3", BOT)])

        assert hand_sizes(engine) == [3, 7, 7, 7]
        assert len(engine.get_game_state().deck) == 28
        assert engine.get_game_state().total_cards() == 52

    def test_random_hand_range(self, make_rules, make_engine):
        rules = enrich_rules(make_rules(description="Everyone gets a random between 2 and 5 cards."))
        assert rules.setup.random_hand_range == [2, 5]
        assert rules.setup.cards_per_player == 0

        for seed in range(5):
            engine = make_engine(rules, seed=seed)
            assert all(2 <= size <= 5 for size in hand_sizes(engine))
            assert engine.get_game_state().total_cards() == 52

    def test_deal_all_cards(self, make_engine):
        engine = make_engine(get_game_rules("war"))
        assert hand_sizes(engine) == [26, 26]
        assert engine.get_game_state().deck == []

    def test_multiple_decks(self, make_rules, make_engine):
        engine = make_engine(make_rules(setup={"numberOfDecks": 2}))
        state = engine.get_game_state()
        ids = [c.card_id for c in state.deck] + [c.card_id for p in state.players for c in p.hand]
        assert len(ids) == 104
        assert len(set(ids)) == 104

    def test_two_decks_of_104_have_no_jokers(self, make_rules, make_engine):
        engine = make_engine(make_rules(setup={"deckSize": 104, "numberOfDecks": 2}))
        state = engine.get_game_state()
        assert state.total_cards() == 104
        assert not any(c.card_id.startswith("joker") for c in state.deck)

    def test_jokers_with_54_card_deck(self, make_rules, make_engine):
        engine = make_engine(make_rules(setup={"deckSize": 54}))
        assert engine.get_game_state().total_cards() == 54

    def test_auto_dealer(self, make_engine):
        engine = make_engine(get_game_rules("blackjack"), players=[("Ana", HUMAN)])
        dealer = engine.get_game_state().players[1]

        assert dealer.kind == PlayerKind.DEALER
        assert dealer.name == "Dealer"
        assert dealer.dealer_rules.must_hit_on == 16
        assert hand_sizes(engine) == [2, 2]

    def test_layout_zones(self, make_rules, make_engine):
        rules = make_rules(setup={"tableLayout": {"type": "custom", "zones": [
            {"id": "hearts-row", "type": "pile", "acceptedSuits": ["hearts"]},
            {"id": "foundation", "type": "foundation", "initialCards": 1},
        ]}})
        state = make_engine(rules).get_game_state()

        assert state.table_type == TableType.CUSTOM
        assert state.table_zones["foundation"].zone_type == ZoneType.SEQUENCE
        assert len(state.table_zones["foundation"].cards) == 1
        assert state.table_zones["foundation"].cards[0].face_up
        assert state.total_cards() == 52


class TestQueries:
    """Tests for read-only engine queries."""

    def test_public_state_masks_other_hands(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        public = engine.get_public_game_state("player-1")

        assert public["players"][0]["hand"][0]["card_id"] != "hidden"
        assert all(card["card_id"] == "hidden" for card in public["players"][1]["hand"])
        assert public["players"][1]["hand_size"] == 5

    def test_valid_actions_for_current_player(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        assert engine.get_valid_actions_for_current_player() == ["play", "draw", "discard", "pass"]

    def test_unknown_player(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        with pytest.raises(PlayerNotFoundError):
            engine.get_player_hand("player-9")

        result = engine.execute_action("player-9", "pass")
        assert not result.success

    def test_update_score(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        assert engine.update_score("player-2", 4) == 4
        assert engine.update_score("player-2", -6) == -2
        assert engine.get_game_state().players[1].score == -2


class TestInvalidActions:
    """Rejected actions are results, and change nothing."""

    def test_out_of_turn_leaves_state_unchanged(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        before = engine.get_game_state().to_dict()
        card_id = engine.get_player_hand("player-2")[0].card_id

        result = engine.execute_action("player-2", "play", [card_id])

        assert not result.success
        assert result.error_code == "INVALID_ACTION"
        assert "turn" in result.message
        assert engine.get_game_state().to_dict() == before

    def test_card_not_in_hand(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        foreign = engine.get_player_hand("player-2")[0].card_id
        before = hand_sizes(engine)

        assert not engine.execute_action("player-1", "play", [foreign]).success
        assert not engine.execute_action("player-1", "play", []).success
        assert hand_sizes(engine) == before
        assert engine.get_current_player().player_id == "player-1"

    def test_action_not_in_phase(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        result = engine.execute_action("player-1", "flip", ["hearts-A"])
        assert not result.success
        assert "not allowed in phase" in result.message

    def test_discard_needs_exactly_one_card(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        hand = engine.get_player_hand("player-1")
        result = engine.execute_action("player-1", "discard", [hand[0].card_id, hand[1].card_id])
        assert not result.success
        assert result.message == "Select exactly one card"

    def test_paused_game_rejects_actions(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        assert engine.pause()
        assert not engine.pause()
        assert not engine.execute_action("player-1", "pass").success
        assert engine.resume()
        assert engine.execute_action("player-1", "pass").success


class TestCardMovement:
    """Tests for conservation, reshuffles and emergency cards."""

    def test_play_without_table_goes_to_discard(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        card = engine.get_player_hand("player-1")[0]

        result = engine.execute_action("player-1", "play", [card.card_id])

        state = engine.get_game_state()
        assert result.success
        assert state.discard_pile == [card]
        assert card.face_up
        assert state.total_cards() == 52

    def test_points_target_of_21_still_plays_from_hand(self, make_rules, make_engine):
        rules = make_rules(
            description="Play cards from your hand; first to a total of 21 points wins.",
            actions=["play", "draw"],
            turnStructure={"phases": [{"name": "playing", "actions": ["play", "draw"]}]},
        )
        engine = make_engine(rules)
        card = engine.get_player_hand("player-1")[0]

        result = engine.execute_action("player-1", "play", [card.card_id])

        assert result.success
        assert engine.get_game_state().discard_pile == [card]

    def test_draw_adds_to_hand(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        top = engine.get_game_state().deck[0]

        engine.execute_action("player-1", "draw")

        assert top in engine.get_player_hand("player-1")
        assert engine.get_game_state().last_drawn_card == top
        assert engine.get_game_state().total_cards() == 52

    def test_draw_reshuffles_discard_pile(self, make_rules, make_engine):
        engine = make_engine(make_rules(setup={"cardsPerPlayer": 26}))
        state = engine.get_game_state()
        assert state.deck == []

        discarded = engine.get_player_hand("player-1")[0]
        assert engine.execute_action("player-1", "discard", [discarded.card_id]).success
        assert engine.execute_action("player-2", "draw").success

        assert discarded in engine.get_player_hand("player-2")
        assert not discarded.face_up
        assert state.discard_pile == []
        assert state.total_cards() == 52

    def test_emergency_card_when_everything_is_empty(self, make_rules, make_engine):
        engine = make_engine(make_rules(setup={"cardsPerPlayer": 26}))
        state = engine.get_game_state()

        result = engine.execute_action("player-1", "draw")
        assert not result.success
        assert result.message == "No cards left to draw"

        forced = engine.force_draw("player-1")
        assert forced.success
        drawn = engine.get_player_hand("player-1")[-1]
        assert drawn.synthetic
        assert state.emergency_cards == 1
        assert state.total_cards() == 53
        assert state.current_player.player_id == "player-2"

    def test_conservation_over_many_actions(self, make_rules, make_engine):
        engine = make_engine(make_rules(winConditions=[]), seed=11)
        state = engine.get_game_state()
        for step in range(60):
            player = state.current_player
            if step % 3 == 0 and player.hand:
                engine.execute_action(player.player_id, "discard", [player.hand[0].card_id])
            else:
                engine.execute_action(player.player_id, "draw")
            assert state.total_cards() == 52 + state.emergency_cards


class TestTurnOrder:
    """Tests for phase and turn advancement."""

    def test_phases_advance_before_turns(self, make_rules, make_engine):
        rules = make_rules(turnStructure={"phases": [
            {"name": "draw", "actions": ["draw"]},
            {"name": "play", "actions": ["play", "discard", "pass"]},
        ]})
        engine = make_engine(rules)
        state = engine.get_game_state()
        assert state.current_phase == "draw"
        assert engine.get_valid_actions_for_current_player() == ["draw"]

        assert engine.execute_action("player-1", "draw").success
        assert state.current_phase == "play"
        assert state.current_player.player_id == "player-1"
        assert not engine.execute_action("player-1", "draw").success

        assert engine.execute_action("player-1", "pass").success
        assert state.current_phase == "draw"
        assert state.current_player.player_id == "player-2"

    def test_rounds_and_turns(self, make_rules, make_engine):
        engine = make_engine(make_rules())
        state = engine.get_game_state()

        engine.execute_action("player-1", "pass")
        assert (state.turn, state.round) == (2, 1)
        engine.execute_action("player-2", "pass")
        assert (state.turn, state.round) == (3, 2)
        assert state.current_player.player_id == "player-1"

    def test_counterclockwise(self, make_rules, make_engine):
        engine = make_engine(
            make_rules(turnStructure={"order": "counterclockwise"}),
            players=[("A", HUMAN), ("B", BOT), ("C", BOT)],
        )
        state = engine.get_game_state()

        engine.execute_action("player-1", "pass")
        assert state.current_player.player_id == "player-3"
        engine.execute_action("player-3", "pass")
        assert state.current_player.player_id == "player-2"

    def test_only_one_active_player(self, make_rules, make_engine):
        engine = make_engine(make_rules(), players=[("A", HUMAN), ("B", BOT), ("C", BOT)])
        for _ in range(5):
            current = engine.get_current_player()
            engine.execute_action(current.player_id, "pass")
            assert [p.is_active for p in engine.get_game_state().players].count(True) == 1


class TestWinning:
    """Tests for win detection inside the engine."""

    def test_first_to_empty(self, make_rules, make_engine):
        engine = make_engine(make_rules(setup={"cardsPerPlayerPosition": [1, 5]}))
        state = engine.get_game_state()
        last_card = engine.get_player_hand("player-1")[0]

        result = engine.execute_action("player-1", "play", [last_card.card_id])

        assert result.success
        assert state.status == GameStatus.FINISHED
        assert state.winner == "player-1"
        assert not any(p.is_active for p in state.players)
        assert not engine.execute_action("player-2", "pass").success
        assert not engine.force_draw("player-2").success

    def test_noop_game_never_ends(self, make_rules, make_engine):
        rules = enrich_rules(make_rules(
            description="Nothing happens in this sandbox.",
            setup={"cardsPerPlayerPosition": [1, 5]},
        ))
        engine = make_engine(rules)
        last_card = engine.get_player_hand("player-1")[0]

        engine.execute_action("player-1", "play", [last_card.card_id])

        assert engine.get_game_state().status == GameStatus.ACTIVE
        assert engine.get_game_state().winner is None

    def test_arithmetic_target(self, make_rules, make_engine):
        rules = enrich_rules(make_rules(
            description="Play cards to reach 15.",
            winConditions=[{"type": "highest_score", "description": "First to the target"}],
        ))
        assert rules.setup.arithmetic_target == 15
        engine = make_engine(rules)
        state = engine.get_game_state()
        king = give_card(state, "player-1", lambda c: c.rank == "K")
        two = give_card(state, "player-1", lambda c: c.rank == "2")

        engine.execute_action("player-1", "play", [king.card_id, two.card_id])

        assert state.scores["player-1"] == 15
        assert state.winner == "player-1"

    def test_black_card_challenge(self, make_engine):
        engine = make_engine(get_game_rules("black-card-challenge"), players=[("Ana", HUMAN)])
        state = engine.get_game_state()

        for _ in range(52):
            if state.status == GameStatus.FINISHED:
                break
            assert engine.execute_action("player-1", "draw").success

        assert state.winner == "player-1"
        assert state.last_drawn_card.color == "black"
        assert engine.get_player_hand("player-1") == []
        assert all(card.color == "red" for card in state.discard_pile[:-1])


class TestSetupDirectives:
    """Tests for the enrichment directives as the engine applies them."""

    @pytest.fixture
    def elimination_rules(self, make_rules):
        return enrich_rules(make_rules(
            description="You must draw a K or go home.",
            setup={"cardsPerPlayer": 0},
            winConditions=[],
        ))

    def test_miss_eliminates(self, elimination_rules, make_engine):
        engine = make_engine(elimination_rules)
        state = engine.get_game_state()
        move_to_top(state, lambda c: c.rank != "K")

        result = engine.execute_action("player-1", "draw")

        assert result.success
        assert "eliminated" in result.message
        assert state.players[0].eliminated
        assert state.winner == "player-2"

    def test_hit_wins(self, elimination_rules, make_engine):
        engine = make_engine(elimination_rules)
        state = engine.get_game_state()
        move_to_top(state, lambda c: c.rank == "K")

        engine.execute_action("player-1", "draw")

        assert state.winner == "player-1"
        assert not state.players[0].eliminated

    def test_central_pile(self, make_rules, make_engine):
        rules = enrich_rules(make_rules(
            description="Put all cards in one pile on the table and take turns drawing.",
            setup={"cardsPerPlayer": 0},
        ))
        engine = make_engine(rules)
        state = engine.get_game_state()
        pile = state.table_zones["central-pile"]

        assert len(pile.cards) == 52
        assert all(card.face_up for card in pile.cards)
        assert state.deck == []
        assert hand_sizes(engine) == [0, 0]

        top = pile.top_card
        assert engine.execute_action("player-1", "draw").success
        assert engine.get_player_hand("player-1") == [top]
        assert len(pile.cards) == 51

    def test_progressive_deal(self, make_rules, make_engine):
        rules = enrich_rules(make_rules(
            description="Deal one card per round until everyone has an ace.",
            setup={"cardsPerPlayer": 0},
            winConditions=[],
        ))
        deal = rules.setup.progressive_deal
        assert (deal.rank, deal.until) == ("A", "all_have_rank")

        engine = make_engine(rules)
        state = engine.get_game_state()
        assert state.progressive_rounds == 1
        assert hand_sizes(engine) == [1, 1]

        for _ in range(200):
            if state.progressive_complete:
                break
            engine.execute_action(state.current_player.player_id, "pass")

        assert state.progressive_complete
        assert all(any(c.rank == "A" for c in p.hand) for p in state.players) or not state.deck
        assert state.total_cards() == 52


class TestMemoryGame:
    """Tests for flip and peek on a face-down grid."""

    @pytest.fixture
    def engine(self, make_engine, clock):
        return make_engine(get_game_rules("memory"), engine_settings=EngineSettings(), clock=clock)

    def grid(self, engine):
        return engine.get_game_state().table_zones["memory-grid"].cards

    def test_grid_is_dealt_face_down(self, engine):
        state = engine.get_game_state()
        assert state.table_type == TableType.SCATTERED
        assert len(self.grid(engine)) == 16
        assert not any(card.face_up for card in self.grid(engine))
        assert state.total_cards() == 52

    def test_matching_pair_scores(self, engine):
        by_rank = {}
        for card in self.grid(engine):
            by_rank.setdefault(card.rank, []).append(card)
        first, second = next(cards for cards in by_rank.values() if len(cards) >= 2)[:2]

        assert engine.execute_action("player-1", "flip", [first.card_id]).success
        result = engine.execute_action("player-2", "flip", [second.card_id])

        state = engine.get_game_state()
        assert "pair" in result.message
        assert state.scores["player-2"] == 1
        assert first in state.discard_pile and second in state.discard_pile
        assert len(self.grid(engine)) == 14
        assert state.flipped_cards == []

    def test_mismatch_reverts_after_delay(self, engine, clock):
        first = self.grid(engine)[0]
        second = next(c for c in self.grid(engine) if c.rank != first.rank)

        engine.execute_action("player-1", "flip", [first.card_id])
        result = engine.execute_action("player-2", "flip", [second.card_id])

        assert "no match" in result.message
        assert first.face_up and second.face_up
        assert engine.tick() == 0

        clock.advance(1.0)
        assert engine.tick() == 2
        assert not first.face_up and not second.face_up
        assert engine.get_game_state().flipped_cards == []

    def test_third_flip_resolves_pending_pair(self, engine):
        first = self.grid(engine)[0]
        second = next(c for c in self.grid(engine) if c.rank != first.rank)
        third = next(c for c in self.grid(engine) if c.card_id not in (first.card_id, second.card_id))

        engine.execute_action("player-1", "flip", [first.card_id])
        engine.execute_action("player-2", "flip", [second.card_id])
        engine.execute_action("player-1", "flip", [third.card_id])

        state = engine.get_game_state()
        assert not first.face_up and not second.face_up
        assert third.face_up
        assert state.flipped_cards == [third.card_id]
        assert ("flip", first.card_id) not in engine.scheduler

    def test_cannot_flip_twice(self, engine):
        card = self.grid(engine)[0]
        engine.execute_action("player-1", "flip", [card.card_id])
        result = engine.execute_action("player-2", "flip", [card.card_id])
        assert not result.success
        assert result.message == "That card is already flipped"

    def test_cannot_flip_a_peeked_card(self, engine):
        card = self.grid(engine)[0]
        engine.execute_action("player-1", "peek", [card.card_id])

        result = engine.execute_action("player-2", "flip", [card.card_id])

        assert not result.success
        assert result.message == "That card is already visible"
        assert card.face_up

    def test_peek_costs_and_hides(self, engine, clock):
        card = self.grid(engine)[0]

        assert engine.execute_action("player-1", "peek", [card.card_id]).success
        assert card.face_up
        assert engine.get_game_state().scores["player-1"] == -1

        clock.advance(2.0)
        engine.tick()
        assert not card.face_up

    def test_end_session_cancels_effects(self, engine):
        first = self.grid(engine)[0]
        second = next(c for c in self.grid(engine) if c.rank != first.rank)
        engine.execute_action("player-1", "flip", [first.card_id])
        engine.execute_action("player-2", "flip", [second.card_id])

        engine.end_session()

        assert len(engine.scheduler) == 0
        assert engine.get_game_state().ended
        result = engine.execute_action("player-1", "flip", [first.card_id])
        assert result.message == "Session has ended"


class TestTableBuilding:
    """Tests for sequence, suit and layout zones."""

    def test_sequence_differences(self, make_engine):
        engine = make_engine(get_game_rules("sequence-369"))
        state = engine.get_game_state()
        assert engine.profile.sequence_differences == (3, 6, 9)

        state.table_zones["play-area"].cards.append(make_card("spades", "2"))
        state.players[0].hand = [make_card("hearts", "5"), make_card("clubs", "6")]

        assert engine.is_valid_action("player-1", "play", ["hearts-5"])
        assert not engine.is_valid_action("player-1", "play", ["clubs-6"])
        assert not engine.is_valid_action("player-1", "play", ["hearts-5", "clubs-6"])

    def test_sevens_open_with_seven(self, make_engine):
        engine = make_engine(get_game_rules("sevens"), players=[("A", HUMAN), ("B", BOT), ("C", BOT)])
        state = engine.get_game_state()
        assert hand_sizes(engine) == [18, 17, 17]
        assert state.table_type == TableType.SUIT_BASED

        state.players[0].hand = [make_card("hearts", "7"), make_card("hearts", "8"), make_card("spades", "2")]
        assert not engine.is_valid_action("player-1", "play", ["hearts-8"])
        assert not engine.is_valid_action("player-1", "play", ["hearts-7", "hearts-8"])
        assert engine.execute_action("player-1", "play", ["hearts-7"]).success
        assert [c.rank for c in state.table_zones["suit-hearts"].cards] == ["7"]

        state.players[1].hand = [make_card("hearts", "8"), make_card("hearts", "9")]
        assert engine.is_valid_action("player-2", "play", ["hearts-8"])
        assert not engine.is_valid_action("player-2", "play", ["hearts-9"])

    def test_play_to_table(self, make_rules, make_engine):
        rules = make_rules(
            actions=["playToTable", "pass"],
            turnStructure={"phases": [{"name": "playing", "actions": ["playToTable", "pass"]}]},
            setup={"tableLayout": {"type": "custom", "zones": [
                {"id": "hearts-row", "type": "pile", "acceptedSuits": ["hearts"]},
                {"id": "foundation", "type": "foundation"},
            ]}},
        )
        engine = make_engine(rules)
        state = engine.get_game_state()
        heart = give_card(state, "player-1", lambda c: c.suit == "hearts")
        spade = give_card(state, "player-2", lambda c: c.suit == "spades")

        assert engine.execute_action("player-1", "playToTable", [heart.card_id], "hearts-row").success
        assert state.table_zones["hearts-row"].cards == [heart]

        rejected = engine.execute_action("player-2", "playToTable", [spade.card_id], "hearts-row")
        assert not rejected.success
        assert rejected.error_code == "REJECTED"
        assert spade in state.players[1].hand

        assert engine.execute_action("player-2", "playToTable", [spade.card_id]).success
        assert state.table_zones["foundation"].cards == [spade]
        assert state.total_cards() == 52


class TestCardRequest:
    """Tests for blackjack-style games."""

    @pytest.fixture
    def engine(self, make_engine):
        return make_engine(get_game_rules("blackjack"), players=[("Ana", HUMAN)])

    def test_hit_to_21_wins(self, engine):
        state = engine.get_game_state()
        set_hand(state, "player-1", make_card("hearts", "K"), make_card("clubs", "5"))
        set_hand(state, "player-2", make_card("spades", "10"), make_card("clubs", "7"))
        move_to_top(state, lambda c: c.rank == "6")

        result = engine.execute_action("player-1", "play")

        assert result.success
        assert state.scores["player-1"] == 21
        assert state.winner == "player-1"

    def test_request_takes_no_selection(self, engine):
        card_id = engine.get_player_hand("player-1")[0].card_id
        result = engine.execute_action("player-1", "play", [card_id])
        assert not result.success

    def test_dealer_bust(self, engine):
        state = engine.get_game_state()
        set_hand(state, "player-1", make_card("hearts", "K"), make_card("clubs", "9"))
        set_hand(state, "player-2", make_card("spades", "10"), make_card("clubs", "6"))

        assert engine.execute_action("player-1", "pass").success
        assert state.players[0].stood
        assert state.current_player.player_id == "player-2"

        move_to_top(state, lambda c: c.rank in ("10", "J", "Q", "K"))
        result = engine.execute_action("player-2", "play")

        assert "bust" in result.message
        assert state.players[1].eliminated
        assert state.winner == "player-1"

    def test_closest_after_everyone_stands(self, engine):
        state = engine.get_game_state()
        set_hand(state, "player-1", make_card("hearts", "K"), make_card("clubs", "9"))
        set_hand(state, "player-2", make_card("spades", "10"), make_card("clubs", "8"))

        engine.execute_action("player-1", "pass")
        assert state.status == GameStatus.ACTIVE
        engine.execute_action("player-2", "pass")

        assert state.winner == "player-1"


class TestBetting:
    """Tests for chip handling."""

    @pytest.fixture
    def engine(self, make_rules, make_engine):
        actions = ["bet", "raise", "call", "check", "fold"]
        rules = make_rules(
            players={"bettingConfig": {"initialChips": 100, "ante": 5}},
            actions=actions,
            turnStructure={"phases": [{"name": "betting", "actions": actions}]},
            winConditions=[],
        )
        return make_engine(rules)

    def test_bet_call_fold(self, engine):
        state = engine.get_game_state()
        assert [p.chips for p in state.players] == [100, 100]

        assert not engine.execute_action("player-1", "raise").success
        assert engine.execute_action("player-1", "bet").success
        assert (state.pot, state.current_bet, state.players[0].chips) == (5, 5, 95)

        checked = engine.execute_action("player-2", "check")
        assert checked.message == "Cannot check facing a bet"
        assert engine.execute_action("player-2", "call").success
        assert state.pot == 10

        assert engine.execute_action("player-1", "fold").success
        assert state.winner == "player-2"
        assert state.players[1].chips == 105
        assert state.pot == 0


class TestTemplateActions:
    """Tests for template and schema-defined actions."""

    @pytest.fixture
    def engine(self, make_rules, make_engine):
        actions = ["steal", "extra_turn", "shout", "pass"]
        rules = make_rules(
            actions=actions,
            turnStructure={"phases": [{"name": "playing", "actions": actions}]},
            setup={"cardsPerPlayer": 3},
        )
        return make_engine(rules)

    def test_steal(self, engine):
        result = engine.execute_action("player-1", "steal")
        assert result.success
        assert "stole" in result.message
        assert hand_sizes(engine) == [4, 2]
        assert engine.get_game_state().total_cards() == 52

    def test_steal_needs_an_opponent_with_cards(self, engine):
        engine.get_game_state().players[1].hand = []
        assert not engine.is_valid_action("player-1", "steal")

    def test_extra_turn(self, engine):
        engine.execute_action("player-1", "extra_turn")
        assert engine.get_current_player().player_id == "player-1"
        engine.execute_action("player-1", "pass")
        assert engine.get_current_player().player_id == "player-2"

    def test_schema_defined_action_uses_community_area(self, engine):
        card = engine.get_player_hand("player-1")[0]
        result = engine.execute_action("player-1", "shout", [card.card_id])

        assert result.success
        assert engine.get_game_state().community_cards == [card]
        assert hand_sizes(engine) == [2, 3]
