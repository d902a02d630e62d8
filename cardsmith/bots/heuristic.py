"""
Heuristic Bot - Schema-agnostic move selection by probing the validator.

The engine's legality rules come from the schema, so the bot cannot know
them ahead of time. Instead it ranks candidate actions and probes each
(action, cards) combination against the same ActionValidator the engine
uses, returning the first combination that validates.

Order of attempts:
1. Specialisations: card-request/dealer thresholds, betting heuristic
2. Ranked actions x card combinations (none, singles, pairs, triples)
3. Fallback tiers: deck-safe actions, any card with play/discard,
   every declared action, then a forced draw

The bot does NOT:
- Look ahead or simulate opponents
- Remember cards seen in memory games
"""

from __future__ import annotations
from dataclasses import dataclass
from itertools import combinations
import logging
import random
from typing import Iterable, TYPE_CHECKING

from ..engine_core.cards import HandScheme, calculate_hand_value
from ..engine_core.classifier import SchemaProfile, SchemaTag, classify_rules
from ..engine_core.custom_actions import TemplateRegistry
from ..engine_core.state import DealerRules, GameStatus
from ..engine_core.validation import (
    BETTING_ACTIONS, DECK_SAFE_ACTIONS, PLAY_AREA_ZONE, ActionValidator,
)
from .policy import BotMove, BotPolicy

if TYPE_CHECKING:
    from ..engine_core.state import GameState, Player
    from ..spec_schema import GameRules

logger = logging.getLogger(__name__)


# ============================================================================
# Priority table
# ============================================================================

BASE_PRIORITIES: dict[str, float] = {
    "play": 10.0,
    "playToTable": 9.0,
    "discard": 6.0,
    "draw": 5.0,
    "hit": 5.0,
    "flip": 4.0,
    "peek": 2.0,
    "pass": 1.0,
    "skip": 1.0,
    "stand": 1.0,
}

# Unknown (schema-defined) actions sit between discard and draw
DEFAULT_PRIORITY = 5.5

TAG_BIASES: dict[SchemaTag, dict[str, float]] = {
    SchemaTag.MEMORY_MATCH: {"flip": 12.0, "peek": 3.0},
    SchemaTag.COMBAT: {"attack": 12.0, "defend": 8.0},
    SchemaTag.SUIT_BUILD: {"play": 4.0, "pass": 2.0},
    SchemaTag.CENTRAL_PILE: {"draw": 3.0},
}

# Actions whose cards come from the table rather than the hand
TABLE_CARD_ACTIONS = ("flip", "peek")


def rank_actions(actions: Iterable[str], profile: SchemaProfile) -> list[str]:
    """Order actions by base priority plus the schema's tag biases."""
    def priority(action: str) -> float:
        score = BASE_PRIORITIES.get(action, DEFAULT_PRIORITY)
        for tag in profile.tags:
            score += TAG_BIASES.get(tag, {}).get(action, 0.0)
        return score

    unique = list(dict.fromkeys(actions))
    return sorted(unique, key=priority, reverse=True)


@dataclass
class HeuristicBot(BotPolicy):
    """
    Default bot for any schema.

    Usage:
        bot = HeuristicBot(templates=engine.templates)
        move = bot.select_move(engine.get_game_state(), rules, "player-2")
        engine.execute_action("player-2", move.action, move.card_ids)
    """
    max_combination_size: int = 3
    templates: TemplateRegistry = None  # type: ignore
    rng: random.Random = None  # type: ignore

    def __post_init__(self):
        if self.templates is None:
            self.templates = TemplateRegistry()
        if self.rng is None:
            self.rng = random.Random()

    def select_move(self, state: GameState, rules: GameRules, bot_id: str) -> BotMove:
        """Pick a move; failures inside the search degrade to a forced draw."""
        try:
            return self._select(state, rules, bot_id)
        except Exception:
            logger.exception("Bot %s failed to choose a move; forcing a draw", bot_id)
            return BotMove(action="draw", reason="Bot error", forced=True)

    # ========================================================================
    # Selection
    # ========================================================================

    def _select(self, state: GameState, rules: GameRules, bot_id: str) -> BotMove:
        player = state.get_player(bot_id)
        if player is None or state.status != GameStatus.ACTIVE:
            return BotMove(action="pass", reason="Not in an active game", forced=True)

        profile = classify_rules(rules)
        validator = ActionValidator(rules, profile, self.templates)
        allowed = validator.allowed_actions(state)

        move = self._specialised(state, rules, player, profile, validator, allowed)
        if move is not None:
            return move

        candidates = [
            action for action in allowed
            if validator.check_basic(state, bot_id, action) is None
        ]
        preferred = self._preferred_play_card(state, player, profile)
        for action in rank_actions(candidates, profile):
            for card_ids in self._combinations(state, player, action, preferred):
                if validator.check(state, bot_id, action, card_ids) is None:
                    return BotMove(action=action, card_ids=card_ids, reason=f"Best ranked legal {action}")

        return self._fallback(state, rules, player, validator, allowed)

    def _specialised(
        self,
        state: GameState,
        rules: GameRules,
        player: Player,
        profile: SchemaProfile,
        validator: ActionValidator,
        allowed: list[str],
    ) -> BotMove | None:
        if profile.is_card_request or player.is_dealer:
            move = self._hit_or_stand(state, player, allowed)
        elif rules.players.betting_config is not None and BETTING_ACTIONS.intersection(allowed):
            move = self._betting_move(state, rules, player)
        else:
            return None
        if move is not None and validator.check(state, player.player_id, move.action, move.card_ids) is None:
            return move
        return None

    def _hit_or_stand(self, state: GameState, player: Player, allowed: list[str]) -> BotMove | None:
        thresholds = player.dealer_rules or DealerRules()
        value = calculate_hand_value(player.hand, HandScheme.BLACKJACK)
        if value <= thresholds.must_hit_on:
            for action in ("hit", "play", "draw"):
                if action in allowed:
                    return BotMove(action=action, reason=f"Hit on {value}")
        for action in ("stand", "pass", "skip"):
            if action in allowed:
                return BotMove(action=action, reason=f"Stand on {value}")
        return None

    def _betting_move(self, state: GameState, rules: GameRules, player: Player) -> BotMove:
        """Conservative: check when free, call small bets, fold otherwise."""
        config = rules.players.betting_config
        chips = player.chips or 0
        to_call = max(0, state.current_bet - player.current_bet)
        low_on_chips = chips < config.base_stake * 2

        if to_call == 0:
            return BotMove(action="check", reason="Free to check")
        if not low_on_chips and to_call <= max(config.base_stake, chips // 10):
            return BotMove(action="call", reason=f"Calling {to_call}")
        return BotMove(action="fold", reason=f"Folding to {to_call}")

    # ========================================================================
    # Card combinations
    # ========================================================================

    def _preferred_play_card(
        self,
        state: GameState,
        player: Player,
        profile: SchemaProfile,
    ) -> str | None:
        """A hand card that keeps a fixed-difference sequence going."""
        if not profile.sequence_differences:
            return None
        zone = state.table_zones.get(PLAY_AREA_ZONE)
        top = zone.top_card if zone else None
        for card in player.hand:
            if top is None or abs(card.value - top.value) in profile.sequence_differences:
                return card.card_id
        return None

    def _combinations(
        self,
        state: GameState,
        player: Player,
        action: str,
        preferred: str | None,
    ) -> Iterable[list[str]]:
        yield []

        if action in TABLE_CARD_ACTIONS:
            hidden = [
                card.card_id
                for zone in state.table_zones.values()
                for card in zone.cards
                if not card.face_up
            ]
            self.rng.shuffle(hidden)
            for card_id in hidden:
                yield [card_id]
            return

        hand_ids = [card.card_id for card in player.hand]
        if action == "play" and preferred in hand_ids:
            hand_ids.remove(preferred)
            hand_ids.insert(0, preferred)
        for size in range(1, min(self.max_combination_size, len(hand_ids)) + 1):
            for combo in combinations(hand_ids, size):
                yield list(combo)

    # ========================================================================
    # Fallback tiers
    # ========================================================================

    def _fallback(
        self,
        state: GameState,
        rules: GameRules,
        player: Player,
        validator: ActionValidator,
        allowed: list[str],
    ) -> BotMove:
        bot_id = player.player_id

        for action in DECK_SAFE_ACTIONS:
            if action in allowed and validator.check(state, bot_id, action) is None:
                return BotMove(action=action, reason="Deck-safe fallback")

        for action in ("play", "discard"):
            if action not in allowed:
                continue
            for card in player.hand:
                if validator.check(state, bot_id, action, [card.card_id]) is None:
                    return BotMove(action=action, card_ids=[card.card_id], reason="Any-card fallback")

        first_card = [player.hand[0].card_id] if player.hand else None
        for action in rules.actions:
            if validator.check(state, bot_id, action) is None:
                return BotMove(action=action, reason="Emergency fallback")
            if first_card and validator.check(state, bot_id, action, first_card) is None:
                return BotMove(action=action, card_ids=first_card, reason="Emergency fallback")

        logger.warning("Bot %s found no legal move in phase %s; forcing a draw", bot_id, state.current_phase)
        return BotMove(action="draw", reason="Nothing validated", forced=True)


def get_bot_action(
    state: GameState,
    rules: GameRules,
    bot_id: str,
    templates: TemplateRegistry | None = None,
) -> BotMove:
    """Choose a move for `bot_id` with a default HeuristicBot."""
    return HeuristicBot(templates=templates).select_move(state, rules, bot_id)
