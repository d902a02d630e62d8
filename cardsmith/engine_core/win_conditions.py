"""
Win Conditions - Decide whether a session has been won.

Evaluation order:
1. Card-request games (blackjack-style): 21 wins, the last player not bust
   wins, and once everyone has stood the closest to 21 wins
2. Rule directives: draw-until and last player standing after eliminations
3. Declared conditions, in schema order, scanning players in seat order;
   the first player that satisfies a condition wins

Custom conditions are free text. They are matched against CUSTOM_WIN_RULES,
an ordered table where the first rule whose pattern matches the description
decides the outcome for that condition. Overlapping phrasings therefore
resolve by table order.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import re
from typing import Callable, TYPE_CHECKING

from .cards import Card, calculate_hand_value, matches_pattern, normalize_rank, HandScheme
from .classifier import SchemaProfile
from .state import GameState, Player

if TYPE_CHECKING:
    from ..spec_schema import GameRules, WinCondition

logger = logging.getLogger(__name__)

RANK_ALTERNATION = r"ace|king|queen|jack|two|three|four|five|six|seven|eight|nine|ten|10|[2-9]|[akqj]"


@dataclass
class WinOutcome:
    """A finished game. winner is None when nobody won (everyone bust)."""
    winner: str | None
    reason: str


@dataclass(frozen=True)
class CustomWinRule:
    name: str
    pattern: re.Pattern
    check: Callable[[re.Match, Player, GameState], bool]


def _drawn_by(player: Player, state: GameState) -> Card | None:
    if state.last_drawn_by == player.player_id:
        return state.last_drawn_card
    return None


def _color_card(match: re.Match, player: Player, state: GameState) -> bool:
    card = _drawn_by(player, state)
    color = match.group(1) or match.group(2)
    return card is not None and card.color == color


def _rank_of_suit(match: re.Match, player: Player, state: GameState) -> bool:
    rank = normalize_rank(match.group(1))
    suit = match.group(2)
    drawn = _drawn_by(player, state)
    if drawn is not None and drawn.rank == rank and drawn.suit == suit:
        return True
    return any(c.rank == rank and c.suit == suit for c in player.hand)


def _rank_to_win(match: re.Match, player: Player, state: GameState) -> bool:
    rank = normalize_rank(match.group(1))
    drawn = _drawn_by(player, state)
    if drawn is not None and drawn.rank == rank:
        return True
    return any(c.rank == rank for c in player.hand)


def _collect_cards(match: re.Match, player: Player, state: GameState) -> bool:
    return len(player.hand) >= int(match.group(1))


def _reach_points(match: re.Match, player: Player, state: GameState) -> bool:
    return state.scores.get(player.player_id, 0) >= int(match.group(1))


def _empty_hand(match: re.Match, player: Player, state: GameState) -> bool:
    return not player.hand and player.had_cards


def _single_suit(match: re.Match, player: Player, state: GameState) -> bool:
    return len(player.hand) >= 2 and len({c.suit for c in player.hand}) == 1


def _single_rank(match: re.Match, player: Player, state: GameState) -> bool:
    return len(player.hand) >= 2 and len({c.rank for c in player.hand}) == 1


CUSTOM_WIN_RULES: tuple[CustomWinRule, ...] = (
    CustomWinRule(
        "color-card",
        re.compile(r"\b(black|red) card|\bcard is (black|red)\b"),
        _color_card,
    ),
    CustomWinRule(
        "rank-of-suit",
        re.compile(rf"\b({RANK_ALTERNATION}) of (hearts|diamonds|clubs|spades)\b"),
        _rank_of_suit,
    ),
    CustomWinRule(
        "rank-to-win",
        re.compile(rf"\b(?:reveal|draw|get|find|flip|pull)s? (?:an? |the )?({RANK_ALTERNATION})\b(?! card)"),
        _rank_to_win,
    ),
    CustomWinRule(
        "collect-cards",
        re.compile(r"collect (\d+) cards?"),
        _collect_cards,
    ),
    CustomWinRule(
        "reach-points",
        re.compile(r"(?:reach|score|get|earn) (\d+) points?"),
        _reach_points,
    ),
    CustomWinRule(
        "empty-hand",
        re.compile(
            r"empty (?:their |your |the )?hand|no cards left|run(?:s)? out of cards"
            r"|get rid of all|play all (?:their |your )?cards|first to empty"
        ),
        _empty_hand,
    ),
    CustomWinRule(
        "single-suit",
        re.compile(r"same suit|single suit|one suit|all (?:one|the same) colou?r"),
        _single_suit,
    ),
    CustomWinRule(
        "single-rank",
        re.compile(r"same rank|four of a kind|all (?:the )?same (?:number|value)"),
        _single_rank,
    ),
)


def match_custom_rule(description: str) -> tuple[CustomWinRule, re.Match] | None:
    """First rule whose pattern matches the description."""
    text = description.lower()
    for rule in CUSTOM_WIN_RULES:
        match = rule.pattern.search(text)
        if match:
            return rule, match
    return None


def evaluate_condition(
    condition: WinCondition,
    player: Player,
    state: GameState,
) -> bool:
    """Whether a single declared condition holds for a player."""
    if condition.type == "first_to_empty":
        return not player.hand and player.had_cards

    if condition.type == "highest_score":
        target = condition.target if isinstance(condition.target, (int, float)) else state.target_value
        if target is None:
            return False
        return state.scores.get(player.player_id, 0) >= target

    if condition.type == "specific_cards":
        patterns = condition.target
        if not isinstance(patterns, list) or not patterns:
            return False
        return all(
            any(matches_pattern(card, str(pattern)) for card in player.hand)
            for pattern in patterns
        )

    if condition.type == "custom":
        found = match_custom_rule(condition.description)
        if found is None:
            return False
        rule, match = found
        return rule.check(match, player, state)

    # lowest_score is decided at session end, outside the per-action check
    return False


def find_winner(state: GameState, rules: GameRules, profile: SchemaProfile) -> WinOutcome | None:
    """Check every win rule; None means play continues."""
    if profile.is_card_request:
        outcome = _card_request_outcome(state)
        if outcome is not None:
            return outcome

    outcome = _directive_outcome(state, rules)
    if outcome is not None:
        return outcome

    for condition in rules.win_conditions:
        for player in state.players:
            if player.eliminated:
                continue
            if evaluate_condition(condition, player, state):
                return WinOutcome(player.player_id, condition.description or condition.type)
    return None


def _card_request_outcome(state: GameState) -> WinOutcome | None:
    values = {p.player_id: calculate_hand_value(p.hand, HandScheme.BLACKJACK) for p in state.players}
    for player in state.players:
        if not player.eliminated and values[player.player_id] == 21:
            return WinOutcome(player.player_id, "Hit 21")

    standing = state.active_players
    if len(state.players) > 1 and len(standing) == 1:
        return WinOutcome(standing[0].player_id, "Last player not bust")
    if not standing:
        return WinOutcome(None, "Everyone went bust")
    if all(p.stood for p in standing):
        best = max(standing, key=lambda p: values[p.player_id])
        return WinOutcome(best.player_id, "Closest to 21 after everyone stood")
    return None


def _directive_outcome(state: GameState, rules: GameRules) -> WinOutcome | None:
    setup = rules.setup

    draw_until = setup.single_player_draw_until
    if draw_until is not None and (draw_until.rank or draw_until.suit):
        card = state.last_drawn_card
        if card is not None and state.last_drawn_by is not None:
            rank_ok = draw_until.rank is None or card.rank == draw_until.rank
            suit_ok = draw_until.suit is None or card.suit == draw_until.suit
            if rank_ok and suit_ok:
                return WinOutcome(state.last_drawn_by, f"Drew {card.display_name}")

    elimination = setup.eliminate_on_miss_rank
    if elimination is not None and elimination.win_on_rank:
        card = state.last_drawn_card
        if card is not None and card.rank == elimination.rank and state.last_drawn_by:
            return WinOutcome(state.last_drawn_by, f"Revealed a {elimination.rank}")

    standing = state.active_players
    if len(state.players) > 1 and len(standing) == 1:
        return WinOutcome(standing[0].player_id, "Last player standing")
    if state.players and not standing:
        return WinOutcome(None, "Every player was eliminated")
    return None
