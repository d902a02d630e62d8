"""
Predefined Games - Hand-authored schemas for template selection.

Each entry is a camelCase schema document, exactly what an external
generator would hand to the engine. get_game_rules() parses a fresh
GameRules every call, so callers may mutate the result freely.
"""

from __future__ import annotations
import copy
from dataclasses import dataclass
from typing import Any

from ..spec_schema import GameRules


@dataclass(frozen=True)
class PredefinedGame:
    game_id: str
    name: str
    summary: str
    difficulty: str
    player_count: str
    duration: str
    document: dict[str, Any]
    featured: bool = False

    def rules(self) -> GameRules:
        return GameRules.from_document(copy.deepcopy(self.document))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.game_id,
            "name": self.name,
            "summary": self.summary,
            "difficulty": self.difficulty,
            "player_count": self.player_count,
            "duration": self.duration,
            "featured": self.featured,
        }


# =============================================================================
# Schemas
# =============================================================================

GO_FISH = {
    "id": "go-fish",
    "name": "Go Fish",
    "description": "Classic card matching game where players collect books of four matching cards.",
    "players": {"min": 2, "max": 6, "recommended": 4},
    "setup": {"cardsPerPlayer": 7, "deckSize": 52},
    "objective": {"type": "collect_sets", "description": "Collect the most books (sets of 4 matching ranks)"},
    "turnStructure": {
        "order": "clockwise",
        "phases": [
            {"name": "ask", "required": True, "actions": ["call"]},
            {"name": "draw", "required": False, "actions": ["draw"]},
        ],
    },
    "actions": ["call", "draw", "reveal"],
    "winConditions": [
        {"type": "highest_score", "description": "Player with most books when all cards are collected"},
    ],
    "specialRules": [
        "Ask other players for cards of a specific rank",
        "If they have matching cards, they must give them all to you",
        'If not, they say "Go Fish" and you draw from the deck',
        "When you collect 4 of a kind, place them down as a book",
    ],
}

CRAZY_8S = {
    "id": "crazy-8s",
    "name": "Crazy 8s",
    "description": "Fast-paced game where players match suits or ranks to empty their hand first.",
    "players": {"min": 2, "max": 7, "recommended": 4},
    "setup": {"cardsPerPlayer": 7, "deckSize": 52},
    "objective": {"type": "empty_hand", "description": "Be the first player to play all cards from your hand"},
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "play", "required": True, "actions": ["play", "draw"]}],
    },
    "actions": ["play", "draw"],
    "winConditions": [
        {"type": "first_to_empty", "description": "First player to empty their hand wins"},
    ],
    "specialRules": [
        "Match the top discard pile card by suit or rank",
        "8s are wild and can be played anytime",
        "When playing an 8, declare the new suit",
        "If you cannot play, draw cards until you can",
    ],
}

BLACKJACK = {
    "id": "blackjack",
    "name": "Blackjack",
    "description": "Get as close to 21 as possible without going over.",
    "players": {
        "min": 1,
        "max": 6,
        "recommended": 3,
        "requiresDealer": True,
        "dealerConfig": {"isBot": True, "name": "Dealer", "mustHitOn": 16, "mustStandOn": 17},
    },
    "setup": {"cardsPerPlayer": 2, "deckSize": 52},
    "objective": {
        "type": "highest_score",
        "description": "Get a hand value as close to 21 as possible without exceeding it",
        "target": 21,
    },
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "decision", "required": True, "actions": ["play", "pass"]}],
    },
    # 'play' is hit, 'pass' is stand
    "actions": ["play", "pass"],
    "winConditions": [
        {"type": "highest_score", "description": "Closest to 21 without going over", "target": 21},
    ],
    "specialRules": [
        "Aces can be worth 1 or 11",
        "Face cards (J, Q, K) are worth 10",
        "If your hand exceeds 21, you bust and lose",
    ],
}

WAR = {
    "id": "war",
    "name": "War",
    "description": "Simple battle game where highest card wins.",
    "players": {"min": 2, "max": 4, "recommended": 2},
    "setup": {"cardsPerPlayer": 0, "dealAllCards": True, "deckSize": 52},
    "objective": {"type": "collect_sets", "description": "Capture all the cards"},
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "battle", "required": True, "actions": ["play"]}],
    },
    "actions": ["play"],
    "winConditions": [
        {"type": "specific_cards", "description": "Collect all cards in the deck"},
    ],
    "specialRules": [
        "Each player plays their top card",
        "Highest card wins all played cards",
    ],
}

BLACK_CARD_CHALLENGE = {
    "id": "black-card-challenge",
    "name": "Black Card Challenge",
    "description": "Draw cards from the deck. If you draw a black card (clubs or spades), you win!",
    "players": {"min": 1, "max": 1, "recommended": 1},
    "setup": {"cardsPerPlayer": 0, "deckSize": 52, "keepDrawnCard": False},
    "objective": {"type": "custom", "description": "Draw a black card to win"},
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "playing", "required": True, "actions": ["draw"]}],
    },
    "actions": ["draw"],
    "winConditions": [
        {"type": "custom", "description": "I will lift cards from the deck, if the card is black I will win."},
    ],
    "specialRules": [
        "Draw cards one at a time from the deck",
        "Red cards (hearts or diamonds) continue the game",
    ],
}

FRESH_START = {
    "id": "fresh-start",
    "name": "Fresh Start",
    "description": (
        "4 players, first player gets 3 cards, others get 7. Play cards in sequence, "
        "use 9s and 10s to clear the table."
    ),
    "players": {"min": 4, "max": 4, "recommended": 4},
    "setup": {"cardsPerPlayer": 0, "cardsPerPlayerPosition": [3, 7, 7, 7], "deckSize": 52},
    "objective": {"type": "custom", "description": "Be the first to empty your hand"},
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "playing", "required": True, "actions": ["play", "discard", "pass"]}],
    },
    "actions": ["play", "discard", "pass"],
    "winConditions": [
        {"type": "first_to_empty", "description": "First player to empty their hand wins"},
    ],
    "specialRules": [
        "Ace is smallest, King is highest",
        "Playing a 9 or 10 clears the table",
        "First player starts with only 3 cards while others get 7",
    ],
}

SEVENS = {
    "id": "sevens",
    "name": "Sevens",
    "description": "Be the first to play all your cards by building up and down from the 7s in each suit.",
    "players": {"min": 3, "max": 8, "recommended": 4},
    "setup": {"cardsPerPlayer": 0, "dealAllCards": True, "deckSize": 52},
    "objective": {"type": "empty_hand", "description": "Be the first player to play all your cards."},
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "play", "required": True, "actions": ["play", "pass"]}],
    },
    "actions": ["play", "pass"],
    "winConditions": [
        {"type": "first_to_empty", "description": "First player to empty their hand wins."},
    ],
    "specialRules": [
        "Players can only play a 7 or extend a suit row one rank at a time.",
        "If you cannot play, you must pass.",
    ],
}

MEMORY = {
    "id": "memory",
    "name": "Memory",
    "description": "Cards lie face down in a grid. Flip two cards at a time to find matching pairs.",
    "players": {"min": 1, "max": 4, "recommended": 2},
    "setup": {"cardsPerPlayer": 0, "deckSize": 52},
    "objective": {"type": "highest_score", "description": "Find the most pairs", "target": 2},
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "playing", "required": True, "actions": ["flip", "peek"]}],
    },
    "actions": ["flip", "peek"],
    "winConditions": [
        {"type": "highest_score", "description": "First to find 2 pairs", "target": 2},
    ],
    "specialRules": [
        "A matching pair scores a point and leaves the grid",
        "Unmatched cards turn back face down",
        "Peeking at a card costs a point",
    ],
}

SEQUENCE_369 = {
    "id": "sequence-369",
    "name": "Three Six Nine",
    "description": (
        "Play cards to the shared row. Each card must be 3, 6, or 9 numbers bigger "
        "or smaller than the previous card."
    ),
    "players": {"min": 2, "max": 5, "recommended": 3},
    "setup": {"cardsPerPlayer": 7, "deckSize": 52},
    "objective": {"type": "empty_hand", "description": "Get rid of all your cards"},
    "turnStructure": {
        "order": "clockwise",
        "phases": [{"name": "playing", "required": True, "actions": ["play", "draw", "pass"]}],
    },
    "actions": ["play", "draw", "pass"],
    "winConditions": [
        {"type": "first_to_empty", "description": "First player to empty their hand wins"},
    ],
    "specialRules": ["Ace counts as 1, Jack 11, Queen 12, King 13"],
}


PREDEFINED_GAMES: tuple[PredefinedGame, ...] = (
    PredefinedGame("go-fish", "Go Fish", "Classic card matching game for all ages",
                   "easy", "2-6 players", "15-30 min", GO_FISH, featured=True),
    PredefinedGame("crazy-8s", "Crazy 8s", "Fast-paced shedding game with wild cards",
                   "easy", "2-7 players", "10-20 min", CRAZY_8S, featured=True),
    PredefinedGame("blackjack", "Blackjack", "The classic casino game of 21",
                   "medium", "1-6 players", "5-15 min", BLACKJACK, featured=True),
    PredefinedGame("war", "War", "Simple battle game for all ages",
                   "easy", "2-4 players", "10-30 min", WAR),
    PredefinedGame("black-card-challenge", "Black Card Challenge", "Draw cards until you get a black card to win!",
                   "easy", "1 player", "5-10 min", BLACK_CARD_CHALLENGE),
    PredefinedGame("fresh-start", "Fresh Start", "Asymmetric dealing with special card powers",
                   "medium", "4 players", "20-30 min", FRESH_START, featured=True),
    PredefinedGame("sevens", "Sevens", "Classic build-up card game. Play all your cards by building from the 7s!",
                   "medium", "3-8 players", "15-30 min", SEVENS, featured=True),
    PredefinedGame("memory", "Memory", "Flip cards and find the pairs",
                   "easy", "1-4 players", "5-15 min", MEMORY),
    PredefinedGame("sequence-369", "Three Six Nine", "Build a row where every step is 3, 6 or 9",
                   "medium", "2-5 players", "10-20 min", SEQUENCE_369),
)

_BY_ID = {game.game_id: game for game in PREDEFINED_GAMES}


def list_games(featured_only: bool = False, difficulty: str | None = None) -> list[PredefinedGame]:
    games = [g for g in PREDEFINED_GAMES if g.featured or not featured_only]
    if difficulty is not None:
        games = [g for g in games if g.difficulty == difficulty]
    return games


def get_game(game_id: str) -> PredefinedGame | None:
    return _BY_ID.get(game_id)


def get_game_rules(game_id: str) -> GameRules:
    """Fresh GameRules for a predefined game. Raises KeyError if unknown."""
    game = _BY_ID.get(game_id)
    if game is None:
        raise KeyError(f"Unknown game '{game_id}'")
    return game.rules()
