"""
Action Validation - Shared legality checks for the engine and the bots.

The schema decides which action names exist, so validation has two layers:
1. Generic gates: session active, player's turn, action allowed in phase
2. Action-specific preconditions from the table below

Action names absent from the table are provisionally valid so schemas can
declare their own actions, unless a template or betting rule vetoes them.
Every check returns an error message, or None when the action is legal.
"""

from __future__ import annotations
from typing import Callable, TYPE_CHECKING

from .cards import Card, rank_value
from .classifier import SchemaProfile
from .custom_actions import TemplateRegistry
from .state import GameState, GameStatus, Player, TableType, Zone

if TYPE_CHECKING:
    from ..spec_schema import GameRules

PLAY_AREA_ZONE = "play-area"
CENTRAL_PILE_ZONE = "central-pile"
BETTING_ACTIONS = frozenset({"bet", "raise", "call", "check", "fold", "all-in"})
DECK_SAFE_ACTIONS = ("draw", "pass", "skip", "stand")


class ActionValidator:
    """
    Validates actions against a schema and a live state.

    One instance per engine; bots build their own over the same schema so
    they probe with exactly the checks the engine will apply.
    """

    def __init__(
        self,
        rules: GameRules,
        profile: SchemaProfile,
        templates: TemplateRegistry | None = None,
    ):
        self.rules = rules
        self.profile = profile
        self.templates = templates or TemplateRegistry()
        self._checks: dict[str, Callable[[GameState, Player, list[str]], str | None]] = {
            "draw": self._check_draw,
            "hit": self._check_draw,
            "play": self._check_play,
            "playToTable": self._check_single_card,
            "discard": self._check_single_card,
            "flip": self._check_flip,
            "peek": self._check_peek,
            "pass": self._check_free,
            "skip": self._check_free,
            "stand": self._check_free,
        }

    def is_known(self, action: str) -> bool:
        return action in self._checks or action in BETTING_ACTIONS

    def allowed_actions(self, state: GameState) -> list[str]:
        """Action names the schema permits in the current phase."""
        return self.rules.allowed_actions(state.current_phase)

    def check(
        self,
        state: GameState,
        player_id: str,
        action: str,
        card_ids: list[str] | None = None,
        target_id: str | None = None,
    ) -> str | None:
        """Full validation including card-specific preconditions."""
        card_ids = list(card_ids or [])
        player, error = self._gate(state, player_id, action)
        if error:
            return error

        if action in self._checks:
            return self._checks[action](state, player, card_ids)
        if action in BETTING_ACTIONS and self.rules.players.betting_config is not None:
            return self._check_betting(state, player, action)

        template = self.templates.resolve(action)
        if template is not None:
            return self.templates.check(template, state, player, card_ids, target_id)

        # Schema-defined action: cards, if any, must come from the hand
        if card_ids and not player.owns_all(card_ids):
            return "Selected cards are not in your hand"
        return None

    def check_basic(self, state: GameState, player_id: str, action: str) -> str | None:
        """Card-less precondition check, used to list candidate actions."""
        player, error = self._gate(state, player_id, action)
        if error:
            return error
        if action in ("draw", "hit"):
            return self._check_draw(state, player, [])
        if action in ("play", "discard", "playToTable") and not player.hand:
            if not (action == "play" and self.profile.is_card_request):
                return "No cards in hand"
        if action in ("flip", "peek") and not state.table_zones:
            return "No table cards"
        if action in BETTING_ACTIONS and self.rules.players.betting_config is not None:
            return self._check_betting(state, player, action)
        return None

    # =========================================================================
    # Gates
    # =========================================================================

    def _gate(self, state: GameState, player_id: str, action: str) -> tuple[Player | None, str | None]:
        if state.ended:
            return None, "Session has ended"
        if state.status != GameStatus.ACTIVE:
            return None, f"Game is {state.status.value}"
        player = state.get_player(player_id)
        if player is None:
            return None, f"Unknown player {player_id}"
        if not player.is_active or player.eliminated:
            return player, f"Not {player.name}'s turn"
        allowed = self.allowed_actions(state)
        if action not in allowed:
            return player, f"'{action}' is not allowed in phase '{state.current_phase}'"
        return player, None

    # =========================================================================
    # Action-specific checks
    # =========================================================================

    def _check_free(self, state: GameState, player: Player, card_ids: list[str]) -> str | None:
        return None

    def _check_draw(self, state: GameState, player: Player, card_ids: list[str]) -> str | None:
        if not state.deck and not state.discard_pile:
            pile = state.table_zones.get(CENTRAL_PILE_ZONE)
            if pile is None or not pile.cards:
                return "No cards left to draw"
        return None

    def _check_single_card(self, state: GameState, player: Player, card_ids: list[str]) -> str | None:
        if len(card_ids) != 1:
            return "Select exactly one card"
        if player.find_card(card_ids[0]) is None:
            return "You don't have that card"
        return None

    def _check_play(self, state: GameState, player: Player, card_ids: list[str]) -> str | None:
        if self.profile.is_card_request:
            # "play" asks for another card
            if card_ids:
                return "Requesting a card takes no selection"
            if player.stood:
                return "You already stood"
            return self._check_draw(state, player, card_ids)

        if not card_ids:
            return "Select at least one card to play"
        if not player.owns_all(card_ids):
            return "Selected cards are not in your hand"

        cards = [player.find_card(card_id) for card_id in card_ids]
        if state.table_type == TableType.SUIT_BASED:
            return self._check_suit_build(state, cards)

        zone = state.table_zones.get(PLAY_AREA_ZONE)
        if zone is not None and self.profile.sequence_differences:
            return self._check_sequence(zone, cards)
        return None

    def _check_sequence(self, zone: Zone, cards: list[Card]) -> str | None:
        differences = self.profile.sequence_differences
        previous = zone.top_card
        for card in cards:
            if previous is not None and abs(card.value - previous.value) not in differences:
                allowed = ", ".join(str(d) for d in differences)
                return f"{card.display_name} must differ by {allowed} from {previous.display_name}"
            previous = card
        return None

    def _check_suit_build(self, state: GameState, cards: list[Card]) -> str | None:
        if len(cards) != 1:
            return "Play one card at a time"
        card = cards[0]
        zone = state.table_zones.get(f"suit-{card.suit}")
        if zone is None:
            return None
        if not zone.cards:
            return None if card.rank == "7" else "A suit must be opened with its 7"
        values = [rank_value(c.rank) for c in zone.cards]
        value = rank_value(card.rank)
        if value == min(values) - 1 or value == max(values) + 1:
            return None
        return f"{card.display_name} does not extend the {card.suit} row"

    def _check_flip(self, state: GameState, player: Player, card_ids: list[str]) -> str | None:
        if len(card_ids) != 1:
            return "Select exactly one table card"
        if player.find_card(card_ids[0]) is not None:
            return "Flip a table card, not a card from your hand"
        located = state.find_table_card(card_ids[0])
        if located is None:
            return "That card is not on the table"
        if card_ids[0] in state.flipped_cards:
            return "That card is already flipped"
        if located[1].face_up:
            return "That card is already visible"
        return None

    def _check_peek(self, state: GameState, player: Player, card_ids: list[str]) -> str | None:
        if len(card_ids) != 1:
            return "Select exactly one table card"
        located = state.find_table_card(card_ids[0])
        if located is None:
            return "That card is not on the table"
        if located[1].face_up:
            return "That card is already visible"
        return None

    def _check_betting(self, state: GameState, player: Player, action: str) -> str | None:
        if player.betting_status == "folded":
            return "You folded this hand"
        chips = player.chips or 0
        to_call = state.current_bet - player.current_bet
        if action in ("bet", "raise", "all-in") and chips <= 0:
            return "No chips left"
        if action == "call" and (to_call <= 0 or chips <= 0):
            return "Nothing to call"
        if action == "check" and to_call > 0:
            return "Cannot check facing a bet"
        if action == "raise" and state.current_bet <= 0:
            return "Nothing to raise; bet instead"
        return None
