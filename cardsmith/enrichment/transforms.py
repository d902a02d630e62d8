"""
Enrichment Transforms - Promote free-text rules into structured directives.

Each transform:
1. Works on a deep copy of the schema
2. Scans name + description + special rules for one family of phrasings
3. On a match, writes a structured field into setup (or a win condition)
   and appends any action names the directive needs

Transforms are independent and idempotent on already-enriched input.
"""

from __future__ import annotations
import logging
import re

from ..engine_core.cards import RANKS, normalize_rank
from ..spec_schema import EliminateOnMissRank, GameRules, ProgressiveDeal, WinCondition

logger = logging.getLogger(__name__)

RANDOM_RANGE_PATTERN = re.compile(r"random[^\d]*(\d+)\D+(\d+)")
ROUNDY_PATTERN = re.compile(r"each round|per round|one card at a time|one card per round")
ROUND_RANK_PATTERN = re.compile(r"\b(ace|king|queen|jack|10|[2-9]|[jqk])s?\b")
EVERYONE_PATTERN = re.compile(r"everyone|all players")
CENTRAL_PILE_PATTERN = re.compile(
    r"(all|every) card(s)? (in|into) (a|one) pile|big pile|massive pile|pile on the table"
)
FACE_DOWN_PATTERN = re.compile(r"face ?down|hidden")
ELIMINATOR_PATTERN = re.compile(
    r"(must|need to|have to) draw a ([2-9]|10|[ajqk])|draw a ([2-9]|10|[ajqk]) to stay"
    r"|or go home|or be out|eliminated if not"
)
ARITHMETIC_PATTERN = re.compile(r"reach (\d+)|total (?:of )?(\d+)|make (\d+) exact|equal (?:to )?(\d+)")
NOOP_PATTERN = re.compile(r"nothing happens|do nothing|idle game|sandbox only")
BOT_ONLY_PATTERN = re.compile(r"only bots play|bot only|ai plays itself")
SPECIFIC_CARD_PATTERN = re.compile(
    r"\b(ace|king|queen|jack|two|three|four|five|six|seven|eight|nine|ten|10|[2-9]|[ajqk])"
    r" of (hearts|diamonds|clubs|spades)\b"
)

BOT_ONLY_RULE = "Bot-only mode"


def _ensure_action(rules: GameRules, action: str) -> None:
    if action not in rules.actions:
        rules.actions.append(action)


def random_hand_range(rules: GameRules) -> GameRules:
    """'random between 2 and 5' -> randomHandRange=[2, 5], cardsPerPlayer=0."""
    r = rules.model_copy(deep=True)
    match = RANDOM_RANGE_PATTERN.search(r.text_corpus())
    if match:
        low, high = sorted((int(match.group(1)), int(match.group(2))))
        r.setup.random_hand_range = [low, high]
        r.setup.cards_per_player = 0
    return r


def progressive_deal(rules: GameRules) -> GameRules:
    """Per-round dealing tied to the first rank the text mentions."""
    r = rules.model_copy(deep=True)
    text = r.text_corpus()
    if not ROUNDY_PATTERN.search(text):
        return r
    # The article "a" is not a rank mention
    match = ROUND_RANK_PATTERN.search(text)
    if not match:
        return r

    deal = r.setup.progressive_deal or ProgressiveDeal(cards_per_round=1)
    deal.rank = deal.rank or normalize_rank(match.group(1))
    if not deal.until:
        deal.until = "all_have_rank" if EVERYONE_PATTERN.search(text) else "any_has_rank"
    r.setup.progressive_deal = deal
    _ensure_action(r, "draw")
    _ensure_action(r, "pass")
    return r


def central_pile(rules: GameRules) -> GameRules:
    r = rules.model_copy(deep=True)
    text = r.text_corpus()
    if CENTRAL_PILE_PATTERN.search(text):
        r.setup.all_cards_start_in_pile = True
        r.setup.central_pile_face_up = not FACE_DOWN_PATTERN.search(text)
        _ensure_action(r, "draw")
    return r


def elimination_on_rank(rules: GameRules) -> GameRules:
    """'must draw a K or go home' -> eliminateOnMissRank plus a reveal win."""
    r = rules.model_copy(deep=True)
    match = ELIMINATOR_PATTERN.search(r.text_corpus())
    if not match:
        return r

    raw = (match.group(2) or match.group(3) or "").upper()
    rank = raw if raw in RANKS else "K"
    if r.setup.eliminate_on_miss_rank is None:
        r.setup.eliminate_on_miss_rank = EliminateOnMissRank(
            rank=rank, eliminate_if_not_rank=True, win_on_rank=True,
        )
    _ensure_action(r, "draw")
    _ensure_action(r, "pass")

    mentions_rank = re.compile(rf"\b{re.escape(rank)}\b", re.IGNORECASE)
    if not any(mentions_rank.search(w.description) for w in r.win_conditions):
        r.win_conditions.append(
            WinCondition(type="custom", description=f"First player to reveal a {rank} wins.")
        )
    return r


def arithmetic_target(rules: GameRules) -> GameRules:
    r = rules.model_copy(deep=True)
    match = ARITHMETIC_PATTERN.search(r.text_corpus())
    if match:
        r.setup.arithmetic_target = int(next(g for g in match.groups() if g))
        _ensure_action(r, "play")
    return r


def noop(rules: GameRules) -> GameRules:
    r = rules.model_copy(deep=True)
    if NOOP_PATTERN.search(r.text_corpus()):
        r.setup.noop_game = True
        _ensure_action(r, "draw")
        _ensure_action(r, "pass")
    return r


def bot_only(rules: GameRules) -> GameRules:
    r = rules.model_copy(deep=True)
    if BOT_ONLY_PATTERN.search(r.text_corpus()):
        if not any(re.search(r"bot-only", rule, re.IGNORECASE) for rule in r.special_rules):
            r.special_rules.append(BOT_ONLY_RULE)
        _ensure_action(r, "draw")
        _ensure_action(r, "play")
    return r


def specific_card_reveal_win(rules: GameRules) -> GameRules:
    """Every '<rank> of <suit>' mention becomes a reveal-to-win condition."""
    r = rules.model_copy(deep=True)
    found = False
    for match in SPECIFIC_CARD_PATTERN.finditer(r.text_corpus()):
        found = True
        rank = normalize_rank(match.group(1))
        suit = match.group(2)
        description = f"Reveal the {rank} of {suit.capitalize()} to win."
        if not any(w.description == description for w in r.win_conditions):
            r.win_conditions.append(WinCondition(type="custom", description=description))
    if found:
        _ensure_action(r, "draw")
    return r
