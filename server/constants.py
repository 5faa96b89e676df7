"""
Card value constants for 4-Card Golf.

This module is the single source of truth for all card point values.
Scoring with pair cancellation is applied in cards.py.

Configuration can be customized via environment variables.
See config.py for details.

Scoring:
    - Ace: 11 points
    - Two, Jack: 0 points
    - 3-10: Face value
    - Queen, King: 10 points
"""

from config import config


# =============================================================================
# Card Values - Single Source of Truth
# =============================================================================

DEFAULT_CARD_VALUES: dict[str, int] = config.card_values.to_dict()


# =============================================================================
# Game Constants
# =============================================================================

HAND_SIZE = 4
MAX_PLAYERS = config.MAX_PLAYERS_PER_ROOM
GAME_OVER_SCORE = config.game_defaults.game_over_score
INITIAL_PEEKS = config.game_defaults.initial_peeks
CPU_TURN_DELAY = config.game_defaults.cpu_turn_delay
PEEK_SETTLE_DELAY = config.game_defaults.peek_settle_delay


# =============================================================================
# Helper Functions
# =============================================================================

def get_card_value_for_rank(rank_str: str) -> int:
    """
    Get point value for a card rank string.

    Args:
        rank_str: Card rank as string ('A', '2', ..., 'K')

    Returns:
        Point value for the card

    Raises:
        KeyError: If the rank is unknown.
    """
    return DEFAULT_CARD_VALUES[rank_str]
