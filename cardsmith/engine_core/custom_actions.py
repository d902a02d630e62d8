"""
Template Actions - Declarative custom actions.

A player-requested action ("let me steal a card") is expressed as a template:
named effect primitives with parameters and preconditions, interpreted by a
fixed executor. No free-form code is ever generated or evaluated.

Schema action names that resolve to a template (by id, by name or by
keyword) are executed through the template instead of the generic path.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import re
from typing import Callable, TYPE_CHECKING

from .errors import ActionRejected

if TYPE_CHECKING:
    from .cards import Card
    from .state import GameState, Player

logger = logging.getLogger(__name__)


class TemplateEffectType(Enum):
    SWAP_CARDS = "swap_cards"
    STEAL_CARD = "steal_card"
    DRAW_CARDS = "draw_cards"
    DISCARD_CARDS = "discard_cards"
    PEEK_CARD = "peek_card"
    MODIFY_SCORE = "modify_score"
    EXTRA_TURN = "extra_turn"


class TargetType(Enum):
    SELF = "self"
    OPPONENT = "opponent"
    CHOICE = "choice"
    NONE = "none"


@dataclass
class TemplateEffect:
    effect_type: TemplateEffectType
    amount: int = 1
    source: str | None = None
    message: str = ""


@dataclass
class TemplateCondition:
    """A precondition on hand size (self or opponent)."""
    kind: str = "hand_size"
    operator: str = "greater"  # greater, less, equals
    value: int = 0
    target: str = "self"

    def holds(self, player: Player, opponent: Player | None) -> bool:
        subject = opponent if self.target == "opponent" else player
        if subject is None:
            return False
        if self.kind != "hand_size":
            return True
        size = len(subject.hand)
        if self.operator == "greater":
            return size > self.value
        if self.operator == "less":
            return size < self.value
        if self.operator == "equals":
            return size == self.value
        return True


@dataclass
class ActionTemplate:
    template_id: str
    name: str
    description: str
    effects: list[TemplateEffect]
    conditions: list[TemplateCondition] = field(default_factory=list)
    requires_cards: bool = False
    target_type: TargetType = TargetType.NONE
    keywords: tuple[str, ...] = ()


class TemplateError(ActionRejected):
    """A template could not run against the current state."""


def default_templates() -> list[ActionTemplate]:
    """The built-in template library."""
    return [
        ActionTemplate(
            template_id="switch_cards",
            name="Switch Cards",
            description="Exchange a card with another player",
            effects=[TemplateEffect(TemplateEffectType.SWAP_CARDS, message="Cards have been switched!")],
            conditions=[
                TemplateCondition(operator="greater", value=0, target="self"),
                TemplateCondition(operator="greater", value=0, target="opponent"),
            ],
            requires_cards=True,
            target_type=TargetType.OPPONENT,
            keywords=("switch", "swap", "exchange", "trade"),
        ),
        ActionTemplate(
            template_id="steal_card",
            name="Steal Card",
            description="Take a random card from an opponent",
            effects=[TemplateEffect(TemplateEffectType.STEAL_CARD, message="You stole a card!")],
            conditions=[TemplateCondition(operator="greater", value=0, target="opponent")],
            target_type=TargetType.OPPONENT,
            keywords=("steal", "take", "grab", "rob"),
        ),
        ActionTemplate(
            template_id="peek_cards",
            name="Peek at Cards",
            description="Look at an opponent's hand or the top of the deck",
            effects=[TemplateEffect(TemplateEffectType.PEEK_CARD, source="opponent_hand")],
            target_type=TargetType.CHOICE,
            keywords=("spy", "look", "glimpse", "scout"),
        ),
        ActionTemplate(
            template_id="extra_turn",
            name="Extra Turn",
            description="Take an additional turn",
            effects=[TemplateEffect(TemplateEffectType.EXTRA_TURN, message="You get another turn!")],
            target_type=TargetType.SELF,
            keywords=("extra", "again", "another turn", "bonus turn"),
        ),
        ActionTemplate(
            template_id="refresh_hand",
            name="Refresh Hand",
            description="Discard a card and draw a new one",
            effects=[
                TemplateEffect(TemplateEffectType.DISCARD_CARDS),
                TemplateEffect(TemplateEffectType.DRAW_CARDS),
            ],
            conditions=[TemplateCondition(operator="greater", value=0, target="self")],
            requires_cards=True,
            target_type=TargetType.SELF,
            keywords=("refresh", "mulligan", "redraw", "replace"),
        ),
    ]


def _normalize(name: str) -> str:
    return re.sub(r"[\s\-]+", "_", name.strip().lower())


class TemplateRegistry:
    """Lookup and execution of action templates."""

    def __init__(self, templates: list[ActionTemplate] | None = None):
        self._templates: dict[str, ActionTemplate] = {}
        for template in templates if templates is not None else default_templates():
            self.register(template)

    def __contains__(self, template_id: str) -> bool:
        return template_id in self._templates

    def register(self, template: ActionTemplate) -> None:
        self._templates[template.template_id] = template

    def get(self, template_id: str) -> ActionTemplate | None:
        return self._templates.get(template_id)

    def all(self) -> list[ActionTemplate]:
        return list(self._templates.values())

    def resolve(self, action_name: str) -> ActionTemplate | None:
        """Find the template a schema action name refers to, if any."""
        key = _normalize(action_name)
        if key in self._templates:
            return self._templates[key]
        for template in self._templates.values():
            if _normalize(template.name) == key:
                return template
            if key in {_normalize(k) for k in template.keywords}:
                return template
        return None

    def check(
        self,
        template: ActionTemplate,
        state: GameState,
        player: Player,
        card_ids: list[str],
        target_id: str | None,
    ) -> str | None:
        """Return an error message if the template cannot run, else None."""
        opponent = pick_opponent(state, player, target_id)
        if template.target_type == TargetType.OPPONENT and opponent is None:
            return f"{template.name} needs an opponent"
        for condition in template.conditions:
            if not condition.holds(player, opponent):
                return f"{template.name} conditions not met"
        if template.requires_cards:
            if len(card_ids) != 1:
                return f"{template.name} needs exactly one selected card"
            if not player.owns_all(card_ids):
                return "You don't have the selected card"
        return None

    def execute(
        self,
        template: ActionTemplate,
        state: GameState,
        player: Player,
        card_ids: list[str],
        target_id: str | None,
        rng: random.Random,
        draw: Callable[[Player], Card],
    ) -> str:
        """
        Run a template's effects.

        `draw` must follow the engine's draw semantics (reshuffle, emergency
        cards) so card conservation holds.
        """
        error = self.check(template, state, player, card_ids, target_id)
        if error:
            raise TemplateError(error)

        opponent = pick_opponent(state, player, target_id)
        messages = []
        for effect in template.effects:
            handler = _EFFECT_HANDLERS[effect.effect_type]
            messages.append(handler(effect, state, player, opponent, card_ids, rng, draw))
        logger.info("%s used template %s", player.player_id, template.template_id)
        return " ".join(m for m in messages if m) or f"{template.name} executed successfully"


def pick_opponent(state: GameState, player: Player, target_id: str | None) -> Player | None:
    """The explicit target, else the next seated opponent still in the game with cards."""
    if target_id:
        target = state.get_player(target_id)
        if target is not None and target.player_id != player.player_id and not target.eliminated:
            return target
        return None
    seats = len(state.players)
    for offset in range(1, seats):
        candidate = state.players[(player.position + offset) % seats]
        if not candidate.eliminated and candidate.hand:
            return candidate
    return None


def _swap(effect, state, player, opponent, card_ids, rng, draw) -> str:
    given = player.take_cards(card_ids[:1])[0]
    received = opponent.hand.pop(rng.randrange(len(opponent.hand)))
    player.receive(received)
    opponent.receive(given)
    return (
        f"{player.name} swapped {given.rank} of {given.suit} with "
        f"{opponent.name}'s {received.rank} of {received.suit}"
    )


def _steal(effect, state, player, opponent, card_ids, rng, draw) -> str:
    stolen = opponent.hand.pop(rng.randrange(len(opponent.hand)))
    player.receive(stolen)
    return f"{player.name} stole {stolen.rank} of {stolen.suit} from {opponent.name}"


def _draw_cards(effect, state, player, opponent, card_ids, rng, draw) -> str:
    for _ in range(effect.amount):
        draw(player)
    return f"{player.name} drew {effect.amount} card(s)"


def _discard_cards(effect, state, player, opponent, card_ids, rng, draw) -> str:
    discarded = player.take_cards(card_ids)
    for card in discarded:
        card.face_up = True
    state.discard_pile.extend(discarded)
    return f"{player.name} discarded {len(discarded)} card(s)"


def _peek(effect, state, player, opponent, card_ids, rng, draw) -> str:
    if opponent is not None:
        count = min(effect.amount, len(opponent.hand))
        return f"{player.name} peeked at {count} card(s) in {opponent.name}'s hand"
    count = min(effect.amount, len(state.deck))
    return f"{player.name} peeked at the top {count} card(s) of the deck"


def _modify_score(effect, state, player, opponent, card_ids, rng, draw) -> str:
    state.scores[player.player_id] = state.scores.get(player.player_id, 0) + effect.amount
    player.score = state.scores[player.player_id]
    return f"{player.name}'s score changed by {effect.amount}"


def _extra_turn(effect, state, player, opponent, card_ids, rng, draw) -> str:
    state.extra_turns += 1
    return f"{player.name} gets an extra turn!"


_EFFECT_HANDLERS = {
    TemplateEffectType.SWAP_CARDS: _swap,
    TemplateEffectType.STEAL_CARD: _steal,
    TemplateEffectType.DRAW_CARDS: _draw_cards,
    TemplateEffectType.DISCARD_CARDS: _discard_cards,
    TemplateEffectType.PEEK_CARD: _peek,
    TemplateEffectType.MODIFY_SCORE: _modify_score,
    TemplateEffectType.EXTRA_TURN: _extra_turn,
}


# Request phrases mapped to templates, checked in order
REQUEST_KEYWORDS: tuple[tuple[str, str], ...] = (
    (r"\b(?:swap|switch|exchange|trade)\b", "switch_cards"),
    (r"\b(?:steal|rob|grab)\b", "steal_card"),
    (r"\b(?:peek|look at|spy|glimpse)\b", "peek_cards"),
    (r"\b(?:extra|another|bonus) turn\b|\bgo again\b", "extra_turn"),
    (r"\b(?:refresh|mulligan|redraw|replace)\b", "refresh_hand"),
)


def template_from_request(text: str, registry: TemplateRegistry | None = None) -> ActionTemplate | None:
    """Map a constrained natural-language request onto a known template."""
    registry = registry or TemplateRegistry()
    lowered = text.lower()
    for pattern, template_id in REQUEST_KEYWORDS:
        if re.search(pattern, lowered):
            return registry.get(template_id)
    return None
