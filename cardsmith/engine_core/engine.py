"""
Game Engine - Interprets a GameRules schema as a playable session.

The engine is the single point of state mutation for a session:
1. add_player / start_game build the roster, deck(s), hands and zones
2. execute_action validates, dispatches to a handler, then checks wins
3. Phase and turn pointers advance after every successful action

Design principles:
- Caller-triggered invalid input is a failure ActionResult, never an exception
- Structural misconfiguration (roster full, too few players) raises EngineError
- Cards move between containers; only emergency cards are ever created
- Deferred cosmetic effects go through the DeferredScheduler, keyed by card
"""

from __future__ import annotations
import logging
import random
from typing import Any, Callable, TYPE_CHECKING
import uuid

from .action import ActionResult
from .cards import (
    Card, HandScheme, RANKS, SUITS, build_standard_cards, calculate_hand_value,
    rank_value, shuffle_cards,
)
from .classifier import SchemaProfile, classify_rules
from .custom_actions import ActionTemplate, TemplateRegistry
from .errors import (
    ActionRejected, GameAlreadyStartedError, NotEnoughPlayersError,
    PlayerNotFoundError, RosterFullError,
)
from .scheduler import DeferredScheduler
from .state import (
    DealerRules, GameState, GameStatus, Player, PlayerKind, TableType, Zone, ZoneType,
)
from .validation import BETTING_ACTIONS, CENTRAL_PILE_ZONE, PLAY_AREA_ZONE, ActionValidator
from .win_conditions import WinOutcome, find_winner
from ..config import EngineSettings

if TYPE_CHECKING:
    from ..spec_schema import GameRules

logger = logging.getLogger(__name__)

MEMORY_GRID_ZONE = "memory-grid"

Handler = Callable[..., str]


class GameEngine:
    """
    One engine per session.

    Usage:
        engine = GameEngine(rules, rng=random.Random(7))
        engine.add_player("Ana")
        engine.add_player("Bot", PlayerKind.BOT)
        engine.start_game()
        result = engine.execute_action("player-1", "draw")
    """

    def __init__(
        self,
        rules: GameRules,
        settings: EngineSettings | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] | None = None,
        scheduler: DeferredScheduler | None = None,
        templates: TemplateRegistry | None = None,
        game_id: str | None = None,
    ):
        self.rules = rules
        self.settings = settings or EngineSettings()
        self.rng = rng or random.Random()
        self.scheduler = scheduler or DeferredScheduler(clock)
        self.templates = templates or TemplateRegistry()
        self.profile: SchemaProfile = classify_rules(rules)
        self.validator = ActionValidator(rules, self.profile, self.templates)
        self.state = GameState(game_id=game_id or f"game-{uuid.uuid4().hex[:8]}")
        self._handlers: dict[str, Handler] = {
            "draw": self._handle_draw,
            "hit": self._handle_request,
            "play": self._handle_play,
            "playToTable": self._handle_play_to_table,
            "discard": self._handle_discard,
            "pass": self._handle_pass,
            "skip": self._handle_pass,
            "stand": self._handle_pass,
            "flip": self._handle_flip,
            "peek": self._handle_peek,
        }

    # =========================================================================
    # Roster and setup
    # =========================================================================

    def add_player(self, name: str, kind: PlayerKind | str = PlayerKind.HUMAN) -> Player:
        """Seat a player. Raises RosterFullError at the schema maximum."""
        if self.state.status != GameStatus.WAITING:
            raise GameAlreadyStartedError("Players cannot join a started game")
        if len(self.state.players) >= self.rules.players.max:
            raise RosterFullError(
                f"{self.rules.name} allows at most {self.rules.players.max} players"
            )
        return self._seat(name, PlayerKind(kind))

    def _seat(self, name: str, kind: PlayerKind) -> Player:
        player = Player(
            player_id=f"player-{len(self.state.players) + 1}",
            name=name,
            kind=kind,
            position=len(self.state.players),
        )
        if kind == PlayerKind.DEALER:
            config = self.rules.players.dealer_config
            if config is not None:
                player.dealer_rules = DealerRules(
                    must_hit_on=config.must_hit_on,
                    must_stand_on=config.must_stand_on,
                    reveals_card_at=config.reveals_card_at,
                    plays_after_all_players=config.plays_after_all_players,
                )
            else:
                player.dealer_rules = DealerRules()
        betting = self.rules.players.betting_config
        if betting is not None:
            player.chips = betting.initial_chips
            player.betting_status = "active"

        self.state.players.append(player)
        self.state.scores[player.player_id] = 0
        logger.debug("Seated %s as %s (%s)", name, player.player_id, kind.value)
        return player

    def start_game(self) -> GameState:
        """
        Deal and activate the first player.

        Raises NotEnoughPlayersError below the schema minimum (dealers do not
        count) and GameAlreadyStartedError on a second call.
        """
        state = self.state
        if state.status != GameStatus.WAITING:
            raise GameAlreadyStartedError("Game already started")

        seated = [p for p in state.players if not p.is_dealer]
        if len(seated) < self.rules.players.min:
            raise NotEnoughPlayersError(
                f"{self.rules.name} needs at least {self.rules.players.min} players, "
                f"got {len(seated)}"
            )
        if self.rules.players.requires_dealer and not any(p.is_dealer for p in state.players):
            config = self.rules.players.dealer_config
            self._seat((config.name if config else None) or "Dealer", PlayerKind.DEALER)

        state.deck = self._build_deck()
        self._deal_hands()
        self._build_zones()

        state.table_type = self.profile.table_type
        state.target_value = self.rules.setup.arithmetic_target
        if self.profile.is_card_request:
            for player in state.players:
                self._set_score(player, calculate_hand_value(player.hand, HandScheme.BLACKJACK))
        if self.rules.setup.progressive_deal is not None:
            self._progressive_round()

        state.current_player_index = 0
        for index, player in enumerate(state.players):
            player.is_active = index == 0
        phases = self.rules.phase_names()
        state.current_phase = phases[0] if phases else "playing"
        state.status = GameStatus.ACTIVE
        logger.info(
            "Started %s (%s) with %d players, %d cards in deck, table=%s",
            self.rules.name, state.game_id, len(state.players), len(state.deck),
            state.table_type.value,
        )
        return state

    def _build_deck(self) -> list[Card]:
        setup = self.rules.setup
        include_jokers = setup.deck_size > 52 * setup.deck_count
        cards = build_standard_cards(include_jokers)
        for number in range(2, setup.deck_count + 1):
            cards.extend(build_standard_cards(include_jokers, id_suffix=f"-d{number}"))
        shuffle_cards(cards, self.rng)
        return cards

    def _deal_hands(self) -> None:
        setup = self.rules.setup
        state = self.state
        players = state.players

        if setup.all_cards_start_in_pile:
            face_up = setup.central_pile_face_up
            for card in state.deck:
                card.face_up = face_up
            state.table_zones[CENTRAL_PILE_ZONE] = Zone(
                zone_id=CENTRAL_PILE_ZONE,
                zone_type=ZoneType.PILE,
                cards=state.deck,
                face_down=not face_up,
                label="Central pile",
            )
            state.deck = []
            return

        if setup.random_hand_range and len(setup.random_hand_range) == 2:
            low, high = sorted(setup.random_hand_range)
            counts = [self.rng.randint(max(0, low), max(0, high)) for _ in players]
        elif setup.cards_per_player_position:
            positions = setup.cards_per_player_position
            counts = [
                positions[i] if i < len(positions) else setup.cards_per_player
                for i in range(len(players))
            ]
        elif setup.deal_all_cards:
            seat = 0
            while state.deck and players:
                players[seat].receive(state.deck.pop(0))
                seat = (seat + 1) % len(players)
            return
        else:
            counts = [setup.cards_per_player] * len(players)

        # Round-robin, one card per player per pass
        for rnd in range(max(counts, default=0)):
            for player, count in zip(players, counts):
                if rnd < count and state.deck:
                    player.receive(state.deck.pop(0))

    def _build_zones(self) -> None:
        state = self.state
        layout = self.rules.setup.table_layout
        if layout is not None and layout.zones:
            for zone_config in layout.zones:
                zone = Zone(
                    zone_id=zone_config.id,
                    zone_type=ZoneType.from_schema(zone_config.type),
                    face_down=zone_config.face_down,
                    accepted_suits=list(zone_config.accepted_suits),
                    accepted_ranks=list(zone_config.accepted_ranks),
                    max_cards=zone_config.max_cards,
                    build_direction=zone_config.build_direction,
                    label=zone_config.id,
                )
                for card in state.deck[:zone_config.initial_cards]:
                    card.face_up = not zone_config.face_down
                    zone.cards.append(card)
                del state.deck[:zone_config.initial_cards]
                state.table_zones[zone.zone_id] = zone
            return

        table_type = self.profile.table_type
        if table_type == TableType.SEQUENCE:
            state.table_zones[PLAY_AREA_ZONE] = Zone(
                zone_id=PLAY_AREA_ZONE, zone_type=ZoneType.SEQUENCE, label="Play area",
            )
        elif table_type == TableType.SUIT_BASED:
            for suit in SUITS:
                state.table_zones[f"suit-{suit}"] = Zone(
                    zone_id=f"suit-{suit}",
                    zone_type=ZoneType.SEQUENCE,
                    accepted_suits=[suit],
                    label=suit.capitalize(),
                )
        elif table_type == TableType.SCATTERED:
            grid = state.deck[:self.settings.memory_grid_size]
            del state.deck[:self.settings.memory_grid_size]
            for card in grid:
                card.face_up = False
            state.table_zones[MEMORY_GRID_ZONE] = Zone(
                zone_id=MEMORY_GRID_ZONE,
                zone_type=ZoneType.GRID,
                cards=grid,
                face_down=True,
                allow_drop=False,
                label="Memory grid",
            )
        elif table_type == TableType.PILE and CENTRAL_PILE_ZONE not in state.table_zones:
            state.table_zones[CENTRAL_PILE_ZONE] = Zone(
                zone_id=CENTRAL_PILE_ZONE, zone_type=ZoneType.PILE, label="Central pile",
            )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_game_state(self) -> GameState:
        """The live session state. Callers must not leak other players' hands."""
        return self.state

    def get_public_game_state(self, viewer_id: str | None = None) -> dict[str, Any]:
        """Serialized state with every hand masked except human hands the viewer may see."""
        hidden = {
            p.player_id for p in self.state.players
            if p.is_bot or (viewer_id is not None and p.player_id != viewer_id)
        }
        return self.state.to_dict(hide_hands_of=hidden)

    def get_current_player(self) -> Player | None:
        return self.state.current_player

    def get_player_hand(self, player_id: str) -> list[Card]:
        player = self._require_player(player_id)
        return list(player.hand)

    def is_valid_action(
        self,
        player_id: str,
        action: str,
        card_ids: list[str] | None = None,
        target_id: str | None = None,
    ) -> bool:
        return self.validator.check(self.state, player_id, action, card_ids, target_id) is None

    def get_valid_actions_for_current_player(self) -> list[str]:
        """Phase actions whose card-less preconditions hold right now."""
        player = self.state.current_player
        if player is None:
            return []
        return [
            action for action in self.validator.allowed_actions(self.state)
            if self.validator.check_basic(self.state, player.player_id, action) is None
        ]

    def update_score(self, player_id: str, delta: int) -> int:
        player = self._require_player(player_id)
        self._add_score(player, delta)
        return self.state.scores[player_id]

    def _require_player(self, player_id: str) -> Player:
        player = self.state.get_player(player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player

    # =========================================================================
    # Session control
    # =========================================================================

    def tick(self) -> int:
        """Run deferred effects that are due. Returns how many ran."""
        return self.scheduler.run_due()

    def pause(self) -> bool:
        if self.state.status != GameStatus.ACTIVE:
            return False
        self.state.status = GameStatus.PAUSED
        return True

    def resume(self) -> bool:
        if self.state.status != GameStatus.PAUSED:
            return False
        self.state.status = GameStatus.ACTIVE
        return True

    def end_session(self) -> None:
        """Stop the session; pending deferred effects become no-ops."""
        cancelled = self.scheduler.cancel_all()
        self.state.ended = True
        logger.info("Ended session %s (%d deferred effects cancelled)", self.state.game_id, cancelled)

    # =========================================================================
    # Actions
    # =========================================================================

    def execute_action(
        self,
        player_id: str,
        action: str,
        card_ids: list[str] | None = None,
        target_id: str | None = None,
    ) -> ActionResult:
        """
        Validate and apply an action.

        Returns a failure result (and leaves the state untouched) for any
        illegal request. On success, wins are checked and the phase/turn
        pointer advances.
        """
        self.scheduler.run_due()
        card_ids = list(card_ids or [])

        error = self.validator.check(self.state, player_id, action, card_ids, target_id)
        if error:
            return ActionResult.failure(player_id, action, error, cards=card_ids or None, target=target_id)

        player = self._require_player(player_id)
        handler = self._resolve_handler(action)
        try:
            message = handler(player, card_ids, target_id)
        except ActionRejected as e:
            return ActionResult.failure(
                player_id, action, str(e),
                cards=card_ids or None, target=target_id, error_code="REJECTED",
            )

        result = ActionResult.ok(player_id, action, message, cards=card_ids or None, target=target_id)
        self._record(result)
        self._after_action(player)
        return result

    def force_draw(self, player_id: str) -> ActionResult:
        """
        Last-resort draw that ignores phase permissions and cannot fail.

        Used by the game loop when a bot's chosen move is rejected, so a
        session can never stall.
        """
        player = self._require_player(player_id)
        if self.state.ended or self.state.status != GameStatus.ACTIVE:
            return ActionResult.failure(player_id, "draw", f"Game is {self.state.status.value}")

        card = self._draw_card()
        self._note_draw(player, card)
        player.receive(card)
        result = ActionResult.ok(player_id, "draw", f"{player.name} drew a card", cards=[card.card_id])
        self._record(result)
        logger.info("Forced draw for %s", player_id)
        self._after_action(player)
        return result

    def draw_card(self, player_id: str) -> Card:
        """Draw into a player's hand outside the action flow (templates, IR adapter)."""
        player = self._require_player(player_id)
        card = self._draw_card()
        player.receive(card)
        return card

    def _resolve_handler(self, action: str) -> Handler:
        if action in self._handlers:
            return self._handlers[action]
        if action in BETTING_ACTIONS and self.rules.players.betting_config is not None:
            return lambda player, card_ids, target_id: self._handle_betting(player, action)
        template = self.templates.resolve(action)
        if template is not None:
            return lambda player, card_ids, target_id: self._handle_template(
                template, player, card_ids, target_id,
            )
        return lambda player, card_ids, target_id: self._handle_generic(
            action, player, card_ids, target_id,
        )

    def _record(self, result: ActionResult) -> None:
        self.state.last_action = result
        self.state.action_log.append(result)

    def _after_action(self, player: Player) -> None:
        self._check_win()
        if self.state.status == GameStatus.ACTIVE:
            self._advance()

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _handle_draw(self, player: Player, card_ids: list[str], target_id: str | None) -> str:
        setup = self.rules.setup
        card = self._draw_card()
        self._note_draw(player, card)

        if setup.keeps_drawn_card:
            player.receive(card)
            message = f"{player.name} drew a card"
        else:
            card.face_up = True
            self.state.discard_pile.append(card)
            message = f"{player.name} revealed {card.display_name}"

        elimination = setup.eliminate_on_miss_rank
        if elimination is not None and elimination.eliminate_if_not_rank and card.rank != elimination.rank:
            player.eliminated = True
            player.is_active = False
            logger.info("%s eliminated: drew %s, needed %s", player.player_id, card.display_name, elimination.rank)
            message += f" and is eliminated (needed a {elimination.rank})"
        return message

    def _handle_request(self, player: Player, card_ids: list[str], target_id: str | None) -> str:
        """Take one more card (card-request games)."""
        card = self._draw_card()
        self._note_draw(player, card)
        player.receive(card)
        if not self.profile.is_card_request:
            return f"{player.name} took a card"

        value = calculate_hand_value(player.hand, HandScheme.BLACKJACK)
        self._set_score(player, value)
        if value > 21:
            player.eliminated = True
            logger.info("%s bust with %d", player.player_id, value)
            return f"{player.name} drew {card.display_name} and bust with {value}"
        return f"{player.name} drew {card.display_name} ({value})"

    def _handle_play(self, player: Player, card_ids: list[str], target_id: str | None) -> str:
        if self.profile.is_card_request:
            return self._handle_request(player, card_ids, target_id)

        cards = player.take_cards(card_ids)
        for card in cards:
            card.face_up = True
            card.selected = False
            self._cancel_card_tasks(card.card_id)

        state = self.state
        if state.table_type == TableType.SUIT_BASED and f"suit-{cards[0].suit}" in state.table_zones:
            zone = state.table_zones[f"suit-{cards[0].suit}"]
            zone.cards.extend(cards)
            zone.cards.sort(key=lambda c: rank_value(c.rank))
            where = zone.label or zone.zone_id
        elif PLAY_AREA_ZONE in state.table_zones:
            state.table_zones[PLAY_AREA_ZONE].cards.extend(cards)
            where = "the play area"
        else:
            state.discard_pile.extend(cards)
            where = "the pile"

        if state.target_value is not None:
            self._add_score(player, sum(card.value for card in cards))
        names = ", ".join(card.display_name for card in cards)
        return f"{player.name} played {names} to {where}"

    def _handle_play_to_table(self, player: Player, card_ids: list[str], target_id: str | None) -> str:
        card = player.find_card(card_ids[0])
        zone = self._target_zone(card, target_id)
        if zone is None:
            raise ActionRejected("No table zone accepts that card")

        player.take_cards(card_ids)
        card.face_up = not zone.face_down
        card.selected = False
        self._cancel_card_tasks(card.card_id)
        zone.cards.append(card)
        return f"{player.name} placed {card.display_name} on {zone.label or zone.zone_id}"

    def _target_zone(self, card: Card, target_id: str | None) -> Zone | None:
        zones = self.state.table_zones
        if target_id is not None:
            zone = zones.get(target_id)
            return zone if zone is not None and zone.accepts(card) else None
        for zone_id in (PLAY_AREA_ZONE, CENTRAL_PILE_ZONE):
            if zone_id in zones and zones[zone_id].accepts(card):
                return zones[zone_id]
        for zone in zones.values():
            if zone.accepts(card):
                return zone
        return None

    def _handle_discard(self, player: Player, card_ids: list[str], target_id: str | None) -> str:
        card = player.take_cards(card_ids)[0]
        card.face_up = True
        card.selected = False
        self._cancel_card_tasks(card.card_id)
        self.state.discard_pile.append(card)
        return f"{player.name} discarded {card.display_name}"

    def _handle_pass(self, player: Player, card_ids: list[str], target_id: str | None) -> str:
        if self.profile.is_card_request:
            player.stood = True
            return f"{player.name} stands on {self.state.scores.get(player.player_id, 0)}"
        return f"{player.name} passed"

    def _handle_flip(self, player: Player, card_ids: list[str], target_id: str | None) -> str:
        state = self.state
        card_id = card_ids[0]

        # A third flip resolves the pending unmatched pair first
        if len(state.flipped_cards) >= 2:
            for pending in list(state.flipped_cards):
                self.scheduler.run_now(("flip", pending))
            for pending in list(state.flipped_cards):
                self._revert_flip(pending)

        _, card = state.find_table_card(card_id)
        card.face_up = True
        state.flipped_cards.append(card_id)
        if len(state.flipped_cards) < 2:
            return f"{player.name} flipped {card.display_name}"

        first_id, second_id = state.flipped_cards[:2]
        first_zone, first = state.find_table_card(first_id)
        second_zone, second = state.find_table_card(second_id)
        if first.rank == second.rank:
            first_zone.remove(first_id)
            second_zone.remove(second_id)
            self._cancel_card_tasks(first_id)
            self._cancel_card_tasks(second_id)
            state.discard_pile.extend([first, second])
            state.flipped_cards.clear()
            self._add_score(player, self.settings.match_points)
            return f"{player.name} found a pair of {first.rank}s"

        for pending in (first_id, second_id):
            self.scheduler.schedule(
                ("flip", pending),
                self.settings.flip_revert_delay,
                lambda cid=pending: self._revert_flip(cid),
                label="flip-revert",
            )
        return f"{player.name} flipped {card.display_name}: no match"

    def _revert_flip(self, card_id: str) -> None:
        state = self.state
        if card_id in state.flipped_cards:
            state.flipped_cards.remove(card_id)
        located = state.find_table_card(card_id)
        if located is not None:
            located[1].face_up = False

    def _handle_peek(self, player: Player, card_ids: list[str], target_id: str | None) -> str:
        card_id = card_ids[0]
        _, card = self.state.find_table_card(card_id)
        card.face_up = True
        self._add_score(player, -self.settings.peek_cost)
        self.scheduler.schedule(
            ("peek", card_id),
            self.settings.peek_reveal_delay,
            lambda: self._hide_peeked(card_id),
            label="peek-hide",
        )
        return f"{player.name} peeked at {card.display_name}"

    def _hide_peeked(self, card_id: str) -> None:
        located = self.state.find_table_card(card_id)
        if located is not None and card_id not in self.state.flipped_cards:
            located[1].face_up = False

    def _handle_betting(self, player: Player, action: str) -> str:
        state = self.state
        config = self.rules.players.betting_config
        chips = player.chips or 0
        stake = config.base_stake
        if config.max_bet is not None:
            stake = min(stake, config.max_bet)
        to_call = max(0, state.current_bet - player.current_bet)

        if action == "fold":
            player.betting_status = "folded"
            player.eliminated = True
            return f"{player.name} folded"
        if action == "check":
            return f"{player.name} checked"

        if action == "bet":
            amount = min(stake, chips)
        elif action == "raise":
            amount = min(to_call + stake, chips)
        elif action == "call":
            amount = min(to_call, chips)
        else:  # all-in
            amount = chips

        player.chips = chips - amount
        player.current_bet += amount
        state.pot += amount
        state.current_bet = max(state.current_bet, player.current_bet)
        if player.chips == 0:
            player.betting_status = "all-in"
        return f"{player.name} {action} {amount} (pot {state.pot})"

    def _handle_template(
        self,
        template: ActionTemplate,
        player: Player,
        card_ids: list[str],
        target_id: str | None,
    ) -> str:
        for card_id in card_ids:
            self._cancel_card_tasks(card_id)
        return self.templates.execute(
            template, self.state, player, card_ids, target_id, self.rng,
            draw=lambda who: self.draw_card(who.player_id),
        )

    def _handle_generic(
        self,
        action: str,
        player: Player,
        card_ids: list[str],
        target_id: str | None,
    ) -> str:
        """Schema-defined action: selected cards go to the community area."""
        if not card_ids:
            return f"{player.name} used {action}"
        cards = player.take_cards(card_ids)
        for card in cards:
            card.face_up = True
            card.selected = False
            self._cancel_card_tasks(card.card_id)
        self.state.community_cards.extend(cards)
        if self.state.target_value is not None:
            self._add_score(player, sum(card.value for card in cards))
        return f"{player.name} used {action} with {len(cards)} card(s)"

    # -------------------------------------------------------------------------
    # Deck
    # -------------------------------------------------------------------------

    def _draw_card(self) -> Card:
        """
        Take the top card, never failing.

        Empty deck: the discard pile is reshuffled into the deck. Both empty:
        the top of the central pile, if the table has one. Otherwise a
        synthetic emergency card is minted and logged.
        """
        state = self.state
        if not state.deck and state.discard_pile:
            recycled = state.discard_pile
            state.discard_pile = []
            for card in recycled:
                card.face_up = False
                self._cancel_card_tasks(card.card_id)
            shuffle_cards(recycled, self.rng)
            state.deck = recycled
            logger.info("Reshuffled %d discarded cards into the deck", len(recycled))

        if state.deck:
            return state.deck.pop(0)
        pile = state.table_zones.get(CENTRAL_PILE_ZONE)
        if pile is not None and pile.cards:
            return pile.cards.pop()

        state.emergency_cards += 1
        rank = self.rng.choice(RANKS)
        card = Card(
            card_id=f"emergency-{state.emergency_cards}",
            suit=self.rng.choice(SUITS),
            rank=rank,
            value=rank_value(rank),
            synthetic=True,
        )
        logger.warning(
            "Deck and discard pile exhausted in %s; minted emergency card %s",
            state.game_id, card.card_id,
        )
        return card

    def _note_draw(self, player: Player, card: Card) -> None:
        self.state.last_drawn_card = card
        self.state.last_drawn_by = player.player_id

    def _cancel_card_tasks(self, card_id: str) -> None:
        self.scheduler.cancel(("flip", card_id))
        self.scheduler.cancel(("peek", card_id))
        if card_id in self.state.flipped_cards:
            self.state.flipped_cards.remove(card_id)

    # -------------------------------------------------------------------------
    # Scores
    # -------------------------------------------------------------------------

    def _add_score(self, player: Player, delta: int) -> None:
        self._set_score(player, self.state.scores.get(player.player_id, 0) + delta)

    def _set_score(self, player: Player, value: int) -> None:
        self.state.scores[player.player_id] = value
        player.score = value

    # =========================================================================
    # Wins and turn order
    # =========================================================================

    def _check_win(self) -> WinOutcome | None:
        if self.rules.setup.noop_game:
            return None
        outcome = find_winner(self.state, self.rules, self.profile)
        if outcome is not None:
            self._finish(outcome)
        return outcome

    def _finish(self, outcome: WinOutcome) -> None:
        state = self.state
        state.status = GameStatus.FINISHED
        state.winner = outcome.winner
        for player in state.players:
            player.is_active = False
        winner = state.get_player(outcome.winner) if outcome.winner else None
        if winner is not None and state.pot and winner.chips is not None:
            winner.chips += state.pot
            state.pot = 0
        self.scheduler.cancel_all()
        logger.info("Game %s finished: winner=%s (%s)", state.game_id, outcome.winner, outcome.reason)

    def _advance(self) -> None:
        """Move to the next phase, or to the next player after the last phase."""
        state = self.state
        phases = self.rules.phase_names()
        if state.current_phase in phases:
            index = phases.index(state.current_phase)
            if index + 1 < len(phases):
                state.current_phase = phases[index + 1]
                return
        state.current_phase = phases[0] if phases else "playing"
        self._next_turn()

    def _next_turn(self) -> None:
        state = self.state
        state.turn += 1
        current = state.current_player
        if state.extra_turns > 0 and current is not None and not current.eliminated:
            state.extra_turns -= 1
            return
        state.extra_turns = 0

        count = len(state.players)
        step = -1 if self.rules.turn_structure.order == "counterclockwise" else 1
        index = state.current_player_index
        wrapped = False
        for _ in range(count):
            index = (index + step) % count
            if (step == 1 and index == 0) or (step == -1 and index == count - 1):
                wrapped = True
            if self._can_take_turn(state.players[index]):
                break
        else:
            logger.debug("No player can take a turn in %s", state.game_id)
            return

        for player in state.players:
            player.is_active = False
        state.players[index].is_active = True
        state.current_player_index = index

        if wrapped:
            state.round += 1
            self._progressive_round()

    def _can_take_turn(self, player: Player) -> bool:
        if player.eliminated:
            return False
        if self.profile.is_card_request and player.stood:
            return False
        return True

    def _progressive_round(self) -> None:
        """Deal one progressive round, then test the stop condition."""
        config = self.rules.setup.progressive_deal
        state = self.state
        if config is None or state.progressive_complete:
            return
        if config.max_rounds is not None and state.progressive_rounds >= config.max_rounds:
            state.progressive_complete = True
            return

        for player in state.active_players:
            for _ in range(config.cards_per_round):
                if not state.deck:
                    break
                player.receive(state.deck.pop(0))
        state.progressive_rounds += 1

        if config.rank:
            holders = [any(c.rank == config.rank for c in p.hand) for p in state.active_players]
            if config.until == "all_have_rank":
                done = bool(holders) and all(holders)
            else:
                done = any(holders)
            if done:
                state.progressive_complete = True
                logger.info("Progressive deal complete after %d rounds", state.progressive_rounds)
        if not state.deck:
            state.progressive_complete = True
