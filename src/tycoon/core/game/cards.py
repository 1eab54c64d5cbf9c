"""
Surprise (Chance) and Treasure (Community Chest) card system.

Decks live in the game state as shuffled queues of card indices into the
static card lists below.
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple


class EffectType(Enum):
    """Types of card effects."""

    CASH = "cash"
    MOVE_TO = "move"
    MOVE_BACK = "back"
    GO_TO_JAIL = "jail"
    PARDON = "pardon"
    EACH_PLAYER = "each_player"
    RENOVATION = "renovation"
    NEAREST_RAILROAD = "nearest_railroad"
    NEAREST_UTILITY = "nearest_utility"
    RANDOM_PROPERTY = "random_property"


@dataclass(frozen=True)
class CardEffect:
    """Effect parameters; only the fields relevant to the type are used."""

    effect_type: EffectType
    amount: int = 0
    to: int = 0
    house_cost: int = 0
    hotel_cost: int = 0


@dataclass(frozen=True)
class Card:
    """Represents a Surprise or Treasure card."""

    description: str
    effect: CardEffect = field(default_factory=lambda: CardEffect(EffectType.CASH))

    def __repr__(self) -> str:
        return f"Card('{self.description}')"


def _card(description: str, effect_type: EffectType, **params: int) -> Card:
    return Card(description, CardEffect(effect_type, **params))


CHANCE_CARDS: Tuple[Card, ...] = (
    _card("Advance to the next airport", EffectType.NEAREST_RAILROAD),
    _card("Go back 3 steps", EffectType.MOVE_BACK, amount=3),
    _card("Advance to Start", EffectType.MOVE_TO, to=0),
    _card("Pay tax of $20", EffectType.CASH, amount=-20),
    _card("Advance to the next company", EffectType.NEAREST_UTILITY),
    _card("Stock agency pays you dividend of $60", EffectType.CASH, amount=60),
    _card("Got a Pardon card from the surprises stack", EffectType.PARDON),
    _card("Go to prison", EffectType.GO_TO_JAIL),
    _card("Advance to a random city", EffectType.RANDOM_PROPERTY),
    _card("You have a new investment. Receive $150", EffectType.CASH, amount=150),
    _card("You lost a bet. Pay each player $50", EffectType.EACH_PLAYER, amount=-50),
    _card("Advance to a random city", EffectType.RANDOM_PROPERTY),
    _card(
        "Have a redesign for your properties. Pay $25/house $100/hotel",
        EffectType.RENOVATION,
        house_cost=25,
        hotel_cost=100,
    ),
    _card("From a scholarship you get $100", EffectType.CASH, amount=100),
    _card("Take a trip to the nearest airport", EffectType.NEAREST_RAILROAD),
    _card("Your cousin needs some financial assistance. Pay $50", EffectType.CASH, amount=-50),
    _card("Advance to a random city", EffectType.RANDOM_PROPERTY),
)

COMMUNITY_CHEST_CARDS: Tuple[Card, ...] = (
    _card("Happy holidays! Receive $20", EffectType.CASH, amount=20),
    _card("From trading stocks you earned $50", EffectType.CASH, amount=50),
    _card("You received $100 from your sibling", EffectType.CASH, amount=100),
    _card("Advance to Start", EffectType.MOVE_TO, to=0),
    _card("Go to prison", EffectType.GO_TO_JAIL),
    _card("From gift cards you get $100", EffectType.CASH, amount=100),
    _card("You found a wallet containing some cash. Collect $200", EffectType.CASH, amount=200),
    _card("You have won third prize in a lottery. Collect $15", EffectType.CASH, amount=15),
    _card(
        "It's time to renovate. Pay $30/house $120/hotel",
        EffectType.RENOVATION,
        house_cost=30,
        hotel_cost=120,
    ),
    _card("Beneficial business decisions. You made a profit of $25", EffectType.CASH, amount=25),
    _card("Tax refund. Collect $100", EffectType.CASH, amount=100),
    _card("Your phone died. Pay $50 for a repair", EffectType.CASH, amount=-50),
    _card("Got a Pardon card from the treasures stack", EffectType.PARDON),
    _card("You host a party. Collect $50 from every player", EffectType.EACH_PLAYER, amount=50),
    _card("Your car has run out of gas. Pay $50", EffectType.CASH, amount=-50),
    _card("Happy birthday! Collect $10 from every player", EffectType.EACH_PLAYER, amount=10),
    _card("Car rental insurance. Pay $60", EffectType.CASH, amount=-60),
)

DECKS: Dict[str, Tuple[Card, ...]] = {
    "chance": CHANCE_CARDS,
    "community": COMMUNITY_CHEST_CARDS,
}


def shuffle_deck(size: int, rng: random.Random) -> List[int]:
    """Return a shuffled permutation of card indices 0..size-1."""
    order = list(range(size))
    rng.shuffle(order)
    return order


def draw_card(queue: List[int], cards: Tuple[Card, ...], rng: random.Random) -> Card:
    """
    Draw the next card from a deck queue.
    If the queue is exhausted, a fresh permutation is shuffled in first.
    """
    if not queue:
        queue.extend(shuffle_deck(len(cards), rng))
    return cards[queue.pop(0)]
