"""
CPU opponent for single-player Golf.

The policy is a simple heuristic, not optimal play: always draw from the
deck, then replace the worst unlocked card if the drawn card is strictly
cheaper, otherwise discard the draw and lock the first unlocked position.
The CPU never peeks, so it judges its own unlocked cards by their value.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from cards import Card
from game import Hand

logger = logging.getLogger(__name__)


@dataclass
class CPUDecision:
    """
    What the CPU does with a drawn card.

    Attributes:
        replace_position: Position to replace, or None to discard the draw.
        flip_position: Position to lock after discarding (None when replacing).
        reason: Short human-readable explanation for logs.
    """

    replace_position: Optional[int]
    flip_position: Optional[int]
    reason: str


def worst_unlocked_position(hand: Hand) -> Optional[int]:
    """
    Unlocked position holding the highest single-card value.

    Ties go to the lowest position. Returns None if every position is locked.
    """
    best_position = None
    highest_value = -1
    for pos in hand.hidden_positions():
        card = hand.cards[pos]
        if card is not None and card.value() > highest_value:
            highest_value = card.value()
            best_position = pos
    return best_position


def first_unlocked_position(hand: Hand) -> Optional[int]:
    """The lowest unlocked position, or None if every position is locked."""
    hidden = hand.hidden_positions()
    return hidden[0] if hidden else None


def choose_move(hand: Hand, drawn: Card) -> CPUDecision:
    """
    Decide between replacing and discarding a card drawn from the deck.

    Args:
        hand: The CPU's hand.
        drawn: The card it just drew.

    Returns:
        The CPUDecision to apply.
    """
    position = worst_unlocked_position(hand)
    if position is not None:
        worst = hand.cards[position]
        if drawn.value() < worst.value():
            return CPUDecision(
                replace_position=position,
                flip_position=None,
                reason=f"{drawn.rank.value} beats {worst.rank.value} at position {position}",
            )

    flip_position = first_unlocked_position(hand)
    return CPUDecision(
        replace_position=None,
        flip_position=flip_position,
        reason=f"{drawn.rank.value} is no improvement, locking position {flip_position}",
    )
