"""
Cards, deck and scoring for 4-Card Golf.

Everything here is free of game state: building and shuffling a deck,
per-card point values and hand scoring with pair cancellation.

Scoring Rules Summary:
    - Ace 11, Two and Jack 0, Queen and King 10, other ranks face value
    - Cards of equal rank cancel in pairs: a rank held an even number of
      times contributes 0, an odd number of times contributes its value once
    - Four of a kind therefore always scores 0
"""

import random
import uuid
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from constants import HAND_SIZE, get_card_value_for_rank


class Suit(Enum):
    """Card suits for a standard deck."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


class Rank(Enum):
    """Card ranks with their display values."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"


# Map Rank enum to point values (derived from constants.py as single source of truth)
RANK_VALUES: dict[Rank, int] = {rank: get_card_value_for_rank(rank.value) for rank in Rank}


def card_value(rank: Rank) -> int:
    """Point value of a single card of the given rank."""
    return RANK_VALUES[rank]


def _new_card_id(suit: Suit, rank: Rank) -> str:
    return f"{suit.value}-{rank.value}-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Card:
    """
    An immutable playing card.

    Attributes:
        suit: The card's suit.
        rank: The card's rank.
        id: Identifier unique within a deck instance; includes a random
            suffix so ids never collide across rooms or rounds.
    """

    suit: Suit
    rank: Rank
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(self, "id", _new_card_id(self.suit, self.rank))

    def value(self) -> int:
        """Get point value of this card."""
        return RANK_VALUES[self.rank]

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        return {
            "suit": self.suit.value,
            "rank": self.rank.value,
            "id": self.id,
        }


class Deck:
    """
    A shuffled 52-card deck drawn from the top (the end of ``cards``).

    A seed may be supplied for a deterministic shuffle in tests.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.cards: list[Card] = [Card(suit, rank) for suit in Suit for rank in Rank]
        self.shuffle(seed)

    def shuffle(self, seed: Optional[int] = None) -> None:
        """Randomize the order of the remaining cards."""
        random.Random(seed).shuffle(self.cards)

    def draw(self) -> Optional[Card]:
        """
        Draw the top card from the deck.

        Returns:
            The drawn Card, or None if deck is empty.
        """
        if self.cards:
            return self.cards.pop()
        return None

    def cards_remaining(self) -> int:
        """Return the number of cards left in the deck."""
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)


def hand_score(cards: Sequence[Optional[Card]]) -> Optional[int]:
    """
    Score a hand with pair cancellation.

    Each rank contributes ``value * (count % 2)``: pairs and quads cancel
    completely, an odd count leaves exactly one card's value.

    Args:
        cards: The four hand slots; ``None`` marks an empty slot.

    Returns:
        The score, or None when the hand is incomplete (no defined score).
    """
    if len(cards) != HAND_SIZE or any(card is None for card in cards):
        return None

    counts = Counter(card.rank for card in cards)
    return sum(card_value(rank) * (count % 2) for rank, count in counts.items())


def is_four_of_a_kind(cards: Sequence[Optional[Card]]) -> bool:
    """Check whether a complete hand holds four cards of one rank."""
    if len(cards) != HAND_SIZE or any(card is None for card in cards):
        return False
    return len({card.rank for card in cards}) == 1
