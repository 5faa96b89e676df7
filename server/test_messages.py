"""
Tests for WebSocket message validation and construction.

Run with: pytest test_messages.py -v
"""

import json

import pytest

from models.messages import (
    ActionMessage,
    ActionType,
    MessageError,
    ServerMessageType,
    error_message,
    game_state_message,
    notice,
    parse_action,
)


class TestParseAction:

    def test_simple_action(self):
        msg = parse_action('{"type": "draw-from-deck"}')
        assert msg.type == ActionType.DRAW_FROM_DECK
        assert msg.position is None

    def test_positional_action(self):
        msg = parse_action('{"type": "flip-card-directly", "position": 3}')
        assert msg.type == ActionType.FLIP_CARD_DIRECTLY
        assert msg.position == 3

    def test_extra_fields_ignored(self):
        msg = parse_action('{"type": "new-round", "roomCode": "ABC"}')
        assert msg.type == ActionType.NEW_ROUND

    @pytest.mark.parametrize("raw", [
        "",
        "{",
        '{"position": 1}',
        '{"type": "shuffle"}',
        '{"type": "replace-card"}',
        '{"type": "replace-card", "position": -1}',
        '{"type": "replace-card", "position": 4}',
        '{"type": "replace-card", "position": 1.5}',
        '{"type": "replace-card", "position": true}',
    ])
    def test_invalid_messages(self, raw):
        with pytest.raises(MessageError, match="Invalid message format"):
            parse_action(raw)

    def test_to_dict_omits_unused_position(self):
        assert ActionMessage(type=ActionType.DEAL_INITIAL_CARDS).to_dict() == {"type": "deal-initial-cards"}
        assert ActionMessage(type=ActionType.PEEK_CARD, position=2).to_dict() == {
            "type": "peek-card",
            "position": 2,
        }

    def test_wire_form_parses_back(self):
        original = ActionMessage(type=ActionType.LOCK_CARD_AFTER_DISCARD, position=0)
        assert parse_action(json.dumps(original.to_dict())) == original


class TestServerMessages:

    def test_game_state(self):
        assert game_state_message({"gamePhase": "initial"}) == {
            "type": "game-state",
            "gameState": {"gamePhase": "initial"},
        }

    def test_error(self):
        assert error_message("nope") == {"type": "error", "message": "nope"}

    def test_notice(self):
        assert notice(ServerMessageType.ROOM_FULL) == {"type": "room-full"}
