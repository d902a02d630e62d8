"""
Cards and Decks - Standard playing cards, dealing and hand values.

A card has a fixed identity (card_id) and mutable presentation state
(face_up, selected). Exactly one container owns a card at a time; moving a
card between hand, deck, discard and zones transfers the same object.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from enum import Enum
import random
from typing import Iterable, Sequence

SUITS: tuple[str, ...] = ("hearts", "diamonds", "clubs", "spades")
RANKS: tuple[str, ...] = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")

SUIT_SYMBOLS = {
    "hearts": "♥",
    "diamonds": "♦",
    "clubs": "♣",
    "spades": "♠",
}
SUIT_BY_SYMBOL = {symbol: suit for suit, symbol in SUIT_SYMBOLS.items()}
SUIT_SORT_ORDER = ("clubs", "diamonds", "hearts", "spades")

# Spoken rank names as they appear in rule text
RANK_WORDS = {
    "ace": "A", "king": "K", "queen": "Q", "jack": "J",
    "two": "2", "three": "3", "four": "4", "five": "5", "six": "6",
    "seven": "7", "eight": "8", "nine": "9", "ten": "10",
}


class HandScheme(Enum):
    """Scoring schemes for calculate_hand_value."""
    SUM = "sum"
    BLACKJACK = "blackjack"
    POKER = "poker"


def rank_value(rank: str, ace_high: bool = False) -> int:
    """Numeric value of a rank: A=1 (or 14), J=11, Q=12, K=13."""
    if rank == "A":
        return 14 if ace_high else 1
    if rank == "J":
        return 11
    if rank == "Q":
        return 12
    if rank == "K":
        return 13
    return int(rank)


def normalize_rank(token: str) -> str | None:
    """Map '10', 'k', 'King' or 'ace' to a canonical rank, or None."""
    token = token.strip().lower()
    if token in RANK_WORDS:
        return RANK_WORDS[token]
    upper = token.upper()
    return upper if upper in RANKS else None


@dataclass
class Card:
    """
    A single card instance.

    Equality and hashing use card_id only, so face/selection changes do not
    affect identity.
    """
    card_id: str
    suit: str
    rank: str
    value: int
    face_up: bool = False
    selected: bool = False
    synthetic: bool = False  # minted to break an empty-deck deadlock

    def __hash__(self):
        return hash(self.card_id)

    def __eq__(self, other):
        if not isinstance(other, Card):
            return False
        return self.card_id == other.card_id

    @property
    def color(self) -> str:
        return suit_color(self.suit)

    @property
    def display_name(self) -> str:
        return f"{self.rank}{suit_symbol(self.suit)}"

    def to_dict(self) -> dict:
        return {
            "card_id": self.card_id,
            "suit": self.suit,
            "rank": self.rank,
            "value": self.value,
            "face_up": self.face_up,
            "selected": self.selected,
        }


def make_card(suit: str, rank: str, id_suffix: str = "") -> Card:
    return Card(
        card_id=f"{suit}-{rank}{id_suffix}",
        suit=suit,
        rank=rank,
        value=rank_value(rank),
    )


def build_standard_cards(include_jokers: bool = False, id_suffix: str = "") -> list[Card]:
    """Create the 52 standard cards, plus two zero-value jokers if asked."""
    cards = [make_card(suit, rank, id_suffix) for suit in SUITS for rank in RANKS]
    if include_jokers:
        cards.append(Card(card_id=f"joker-red{id_suffix}", suit="hearts", rank="A", value=0))
        cards.append(Card(card_id=f"joker-black{id_suffix}", suit="spades", rank="A", value=0))
    return cards


def shuffle_cards(cards: list[Card], rng: random.Random) -> None:
    """Uniform in-place Fisher-Yates shuffle."""
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randrange(i + 1)
        cards[i], cards[j] = cards[j], cards[i]


class CardDeck:
    """
    An ordered deck; index 0 is the top.

    Dealing never raises: a short deck simply returns fewer cards and the
    caller decides what to do about the shortage.
    """

    def __init__(
        self,
        include_jokers: bool = False,
        rng: random.Random | None = None,
        id_suffix: str = "",
    ):
        self.rng = rng or random.Random()
        self.include_jokers = include_jokers
        self.id_suffix = id_suffix
        self._cards: list[Card] = build_standard_cards(include_jokers, id_suffix)

    @classmethod
    def from_cards(cls, cards: Iterable[Card], rng: random.Random | None = None) -> CardDeck:
        deck = cls(rng=rng)
        deck._cards = list(cards)
        return deck

    @property
    def cards(self) -> list[Card]:
        """A copy of the remaining cards, top first."""
        return list(self._cards)

    @property
    def count(self) -> int:
        return len(self._cards)

    @property
    def is_empty(self) -> bool:
        return len(self._cards) == 0

    def shuffle(self) -> None:
        shuffle_cards(self._cards, self.rng)

    def deal(self, count: int = 1) -> list[Card]:
        """Remove and return up to `count` cards from the top."""
        dealt = self._cards[:count]
        del self._cards[:count]
        return dealt

    def deal_hand(self, player_count: int, cards_per_player: int) -> list[list[Card]]:
        """Deal round-robin, one card per player per pass."""
        hands: list[list[Card]] = [[] for _ in range(player_count)]
        for _ in range(cards_per_player):
            for hand in hands:
                dealt = self.deal(1)
                if dealt:
                    hand.extend(dealt)
        return hands

    def deal_all_evenly(self, player_count: int) -> list[list[Card]]:
        """Deal round-robin until the deck is empty."""
        hands: list[list[Card]] = [[] for _ in range(player_count)]
        if player_count <= 0:
            return hands
        seat = 0
        while self._cards:
            hands[seat].extend(self.deal(1))
            seat = (seat + 1) % player_count
        return hands

    def peek(self, count: int = 1) -> list[Card]:
        return self._cards[:count]

    def add_card(self, card: Card) -> None:
        self._cards.append(card)

    def add_cards(self, cards: Iterable[Card]) -> None:
        self._cards.extend(cards)

    def reset(self) -> None:
        """Rebuild a fresh standard deck and shuffle it."""
        self._cards = build_standard_cards(self.include_jokers, self.id_suffix)
        self.shuffle()


# =============================================================================
# Card utilities
# =============================================================================

def suit_color(suit: str) -> str:
    return "red" if suit in ("hearts", "diamonds") else "black"


def suit_symbol(suit: str) -> str:
    return SUIT_SYMBOLS.get(suit, "")


def compare_cards(first: Card, second: Card, ace_high: bool = False) -> int:
    return rank_value(first.rank, ace_high) - rank_value(second.rank, ace_high)


def sort_hand(hand: Sequence[Card], by_suit: bool = False, ace_high: bool = False) -> list[Card]:
    if by_suit:
        return sorted(
            hand,
            key=lambda c: (SUIT_SORT_ORDER.index(c.suit), rank_value(c.rank, ace_high)),
        )
    return sorted(hand, key=lambda c: rank_value(c.rank, ace_high))


def find_matches(hand: Sequence[Card], match_type: str = "rank") -> list[list[Card]]:
    """Group cards by rank, suit or color; only groups of two or more."""
    groups: dict[str, list[Card]] = {}
    for card in hand:
        if match_type == "suit":
            key = card.suit
        elif match_type == "color":
            key = card.color
        else:
            key = card.rank
        groups.setdefault(key, []).append(card)
    return [group for group in groups.values() if len(group) > 1]


def is_sequence(cards: Sequence[Card], ace_high: bool = False) -> bool:
    """True when the cards form an unbroken run of consecutive ranks."""
    if len(cards) < 2:
        return False
    values = [rank_value(c.rank, ace_high) for c in sort_hand(cards, ace_high=ace_high)]
    return all(b == a + 1 for a, b in zip(values, values[1:]))


def matches_pattern(card: Card, pattern: str) -> bool:
    """
    Match a card against a compact pattern.

    Supported forms: "A♥" (rank + suit symbol), "K*" (any suit),
    "*♠" (any rank), or a literal card id such as "hearts-A".
    """
    pattern = pattern.strip()
    if not pattern:
        return False
    if pattern == card.card_id:
        return True
    rank_part, suit_part = pattern[:-1], pattern[-1]
    if rank_part == "*":
        return SUIT_BY_SYMBOL.get(suit_part) == card.suit
    if suit_part == "*":
        return normalize_rank(rank_part) == card.rank
    return normalize_rank(rank_part) == card.rank and SUIT_BY_SYMBOL.get(suit_part) == card.suit


def calculate_hand_value(cards: Sequence[Card], scheme: HandScheme | str = HandScheme.SUM) -> int:
    """Score a hand under a named scheme."""
    scheme = HandScheme(scheme)
    if scheme == HandScheme.BLACKJACK:
        return _blackjack_value(cards)
    if scheme == HandScheme.POKER:
        return _poker_value(cards)
    return sum(card.value for card in cards)


def _blackjack_value(cards: Sequence[Card]) -> int:
    value = 0
    aces = 0
    for card in cards:
        if card.rank == "A":
            aces += 1
            value += 11
        elif card.rank in ("J", "Q", "K"):
            value += 10
        else:
            value += int(card.rank)
    while value > 21 and aces:
        value -= 10
        aces -= 1
    return value


def _poker_value(cards: Sequence[Card]) -> int:
    """Simplified category ranking; flush and straight are checked first."""
    if not cards:
        return 0
    flush = len({card.suit for card in cards}) == 1
    straight = is_sequence(cards)
    if flush and straight:
        return 800
    if flush:
        return 500
    if straight:
        return 400

    counts = sorted(Counter(card.rank for card in cards).values(), reverse=True) + [0]
    if counts[0] == 4:
        return 700
    if counts[0] == 3 and counts[1] == 2:
        return 600
    if counts[0] == 3:
        return 300
    if counts[0] == 2 and counts[1] == 2:
        return 200
    if counts[0] == 2:
        return 100
    return 0
