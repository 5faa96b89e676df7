"""
WebSocket message shapes for multiplayer Golf.

Client -> server messages are actions, validated with pydantic before they
reach the room. Server -> client messages are plain dicts tagged with a
``type`` key.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, StrictInt, ValidationError, model_validator

from constants import HAND_SIZE


class ActionType(str, Enum):
    """Actions a connected player can send."""

    DEAL_INITIAL_CARDS = "deal-initial-cards"
    PEEK_CARD = "peek-card"
    DRAW_FROM_DECK = "draw-from-deck"
    DRAW_FROM_DISCARD = "draw-from-discard"
    REPLACE_CARD = "replace-card"
    DISCARD_DRAWN_CARD = "discard-drawn-card"
    LOCK_CARD_AFTER_DISCARD = "lock-card-after-discard"
    FLIP_CARD_DIRECTLY = "flip-card-directly"
    NEW_ROUND = "new-round"


POSITIONAL_ACTIONS = frozenset({
    ActionType.PEEK_CARD,
    ActionType.REPLACE_CARD,
    ActionType.LOCK_CARD_AFTER_DISCARD,
    ActionType.FLIP_CARD_DIRECTLY,
})


class ServerMessageType(str, Enum):
    """Messages the room sends to its connections."""

    GAME_STATE = "game-state"
    PLAYER_JOINED = "player-joined"
    PLAYER_LEFT = "player-left"
    ROOM_FULL = "room-full"
    ERROR = "error"


class MessageError(ValueError):
    """An inbound message could not be parsed or validated."""


class ActionMessage(BaseModel):
    """A player action. Positional actions carry a hand position 0-3."""

    type: ActionType
    position: Optional[StrictInt] = Field(default=None, ge=0, lt=HAND_SIZE)

    @model_validator(mode="after")
    def check_position(self) -> "ActionMessage":
        if self.type in POSITIONAL_ACTIONS and self.position is None:
            raise ValueError(f"{self.type.value} requires a position")
        return self

    def to_dict(self) -> dict:
        """Wire form of the action, omitting an unused position."""
        return self.model_dump(mode="json", exclude_none=True)


def parse_action(raw: str) -> ActionMessage:
    """
    Parse and validate a raw action message.

    Raises:
        MessageError: If the text is not JSON or does not describe a valid action.
    """
    try:
        return ActionMessage.model_validate_json(raw)
    except ValidationError as e:
        raise MessageError(f"Invalid message format: {e.errors()[0]['msg']}") from e


def game_state_message(game_state: dict) -> dict:
    return {"type": ServerMessageType.GAME_STATE.value, "gameState": game_state}


def error_message(message: str) -> dict:
    return {"type": ServerMessageType.ERROR.value, "message": message}


def notice(message_type: ServerMessageType) -> dict:
    """A message carrying nothing but its type."""
    return {"type": message_type.value}
