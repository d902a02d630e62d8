"""
Game State - The mutable session owned by exactly one engine.

Design principles:
- One GameState per engine instance, never shared
- Cards move between containers; they are never copied
- Serializable via to_dict for transports and replays
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import Card


class GameStatus(Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    PAUSED = "paused"
    FINISHED = "finished"


class PlayerKind(Enum):
    HUMAN = "human"
    BOT = "bot"
    DEALER = "dealer"


class ZoneType(Enum):
    PILE = "pile"
    SEQUENCE = "sequence"
    GRID = "grid"
    DROP_ZONE = "drop-zone"
    DECK = "deck"
    DISCARD = "discard"
    CUSTOM = "custom"

    @classmethod
    def from_schema(cls, raw: str) -> ZoneType:
        """Map schema zone types (including foundation/tableau) onto ours."""
        aliases = {"foundation": cls.SEQUENCE, "tableau": cls.SEQUENCE}
        if raw in aliases:
            return aliases[raw]
        try:
            return cls(raw)
        except ValueError:
            return cls.CUSTOM


class TableType(Enum):
    """How the table is presented; derived from the schema when not declared."""
    SUIT_BASED = "suit-based"
    PILE = "pile"
    SEQUENCE = "sequence"
    SCATTERED = "scattered"
    CUSTOM = "custom"
    NONE = "none"


@dataclass
class DealerRules:
    must_hit_on: int = 16
    must_stand_on: int = 17
    reveals_card_at: str = "end"
    plays_after_all_players: bool = True


@dataclass
class Player:
    """A seat at the table."""
    player_id: str
    name: str
    kind: PlayerKind = PlayerKind.HUMAN
    hand: list[Card] = field(default_factory=list)
    is_active: bool = False
    score: int = 0
    position: int = 0
    eliminated: bool = False
    dealer_rules: DealerRules | None = None

    # Betting games
    chips: int | None = None
    current_bet: int = 0
    betting_status: str | None = None  # active, folded, all-in

    # Card-request games: player has stopped taking cards
    stood: bool = False

    # Set once the player has held at least one card
    had_cards: bool = False

    @property
    def is_bot(self) -> bool:
        return self.kind != PlayerKind.HUMAN

    @property
    def is_dealer(self) -> bool:
        return self.kind == PlayerKind.DEALER

    def find_card(self, card_id: str) -> Card | None:
        for card in self.hand:
            if card.card_id == card_id:
                return card
        return None

    def owns_all(self, card_ids: list[str]) -> bool:
        held = {card.card_id for card in self.hand}
        return all(card_id in held for card_id in card_ids) and len(set(card_ids)) == len(card_ids)

    def take_cards(self, card_ids: list[str]) -> list[Card]:
        """Remove the given cards from the hand, in the order requested."""
        taken = []
        for card_id in card_ids:
            card = self.find_card(card_id)
            if card is not None:
                self.hand.remove(card)
                taken.append(card)
        return taken

    def receive(self, card: Card) -> None:
        self.hand.append(card)
        self.had_cards = True

    def to_dict(self, hide_hand: bool = False) -> dict[str, Any]:
        if hide_hand:
            hand = [{"card_id": "hidden", "face_up": False} for _ in self.hand]
        else:
            hand = [card.to_dict() for card in self.hand]
        return {
            "player_id": self.player_id,
            "name": self.name,
            "kind": self.kind.value,
            "hand": hand,
            "hand_size": len(self.hand),
            "is_active": self.is_active,
            "score": self.score,
            "position": self.position,
            "eliminated": self.eliminated,
            "chips": self.chips,
            "current_bet": self.current_bet,
            "betting_status": self.betting_status,
        }


@dataclass
class Zone:
    """
    A named table region.

    Placement rules are checked by accepts(); an empty accepted_* list
    accepts anything.
    """
    zone_id: str
    zone_type: ZoneType = ZoneType.PILE
    cards: list[Card] = field(default_factory=list)
    face_down: bool = False
    allow_drop: bool = True
    accepted_suits: list[str] = field(default_factory=list)
    accepted_ranks: list[str] = field(default_factory=list)
    max_cards: int | None = None
    build_direction: str | None = None
    label: str | None = None

    @property
    def top_card(self) -> Card | None:
        return self.cards[-1] if self.cards else None

    def accepts(self, card: Card) -> bool:
        if not self.allow_drop:
            return False
        if self.max_cards is not None and len(self.cards) >= self.max_cards:
            return False
        if self.accepted_suits and card.suit not in self.accepted_suits:
            return False
        if self.accepted_ranks and card.rank not in self.accepted_ranks:
            return False
        return True

    def find(self, card_id: str) -> Card | None:
        for card in self.cards:
            if card.card_id == card_id:
                return card
        return None

    def remove(self, card_id: str) -> Card | None:
        card = self.find(card_id)
        if card is not None:
            self.cards.remove(card)
        return card

    def to_dict(self) -> dict[str, Any]:
        return {
            "zone_id": self.zone_id,
            "zone_type": self.zone_type.value,
            "cards": [
                card.to_dict() if card.face_up else {"card_id": card.card_id, "face_up": False}
                for card in self.cards
            ],
            "face_down": self.face_down,
            "allow_drop": self.allow_drop,
            "label": self.label,
        }


@dataclass
class GameState:
    """The complete mutable session."""
    game_id: str
    players: list[Player] = field(default_factory=list)
    deck: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    community_cards: list[Card] = field(default_factory=list)
    table_zones: dict[str, Zone] = field(default_factory=dict)
    flipped_cards: list[str] = field(default_factory=list)

    current_player_index: int = 0
    current_phase: str = "setup"
    turn: int = 1
    round: int = 1
    scores: dict[str, int] = field(default_factory=dict)
    status: GameStatus = GameStatus.WAITING
    winner: str | None = None
    last_action: Any | None = None  # ActionResult
    ended: bool = False

    # Rule-directive bookkeeping
    last_drawn_card: Card | None = None
    last_drawn_by: str | None = None
    target_value: int | None = None
    progressive_rounds: int = 0
    progressive_complete: bool = False
    emergency_cards: int = 0
    extra_turns: int = 0
    table_type: Any = None  # TableType

    # Betting
    pot: int = 0
    current_bet: int = 0

    action_log: list[Any] = field(default_factory=list)

    @property
    def current_player(self) -> Player | None:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    @property
    def active_players(self) -> list[Player]:
        """Players still in the game."""
        return [p for p in self.players if not p.eliminated]

    def get_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def find_table_card(self, card_id: str) -> tuple[Zone, Card] | None:
        """Locate a card in any table zone."""
        for zone in self.table_zones.values():
            card = zone.find(card_id)
            if card is not None:
                return zone, card
        return None

    def total_cards(self) -> int:
        """Cards across deck, discard, community, hands and zones."""
        return (
            len(self.deck)
            + len(self.discard_pile)
            + len(self.community_cards)
            + sum(len(p.hand) for p in self.players)
            + sum(len(z.cards) for z in self.table_zones.values())
        )

    def to_dict(self, hide_hands_of: set[str] | None = None) -> dict[str, Any]:
        hidden = hide_hands_of or set()
        return {
            "game_id": self.game_id,
            "players": [p.to_dict(hide_hand=p.player_id in hidden) for p in self.players],
            "deck_count": len(self.deck),
            "discard_pile": [card.to_dict() for card in self.discard_pile],
            "community_cards": [card.to_dict() for card in self.community_cards],
            "table_zones": {zid: zone.to_dict() for zid, zone in self.table_zones.items()},
            "flipped_cards": list(self.flipped_cards),
            "current_player_index": self.current_player_index,
            "current_phase": self.current_phase,
            "turn": self.turn,
            "round": self.round,
            "scores": dict(self.scores),
            "status": self.status.value,
            "winner": self.winner,
            "last_action": self.last_action.to_dict() if self.last_action else None,
            "last_drawn_card": self.last_drawn_card.to_dict() if self.last_drawn_card else None,
            "target_value": self.target_value,
            "table_type": self.table_type.value if self.table_type else None,
            "pot": self.pot,
            "emergency_cards": self.emergency_cards,
        }
