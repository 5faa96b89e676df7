"""Models package for multiplayer Golf messages."""

from .messages import (
    ActionMessage,
    ActionType,
    MessageError,
    ServerMessageType,
    error_message,
    game_state_message,
    notice,
    parse_action,
)

__all__ = [
    "ActionMessage",
    "ActionType",
    "MessageError",
    "ServerMessageType",
    "error_message",
    "game_state_message",
    "notice",
    "parse_action",
]
