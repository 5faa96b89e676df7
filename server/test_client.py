"""
Test suite for the multiplayer client adapter.

The connection is replaced by a fake that records what the client sends,
so intents can be checked against the last state pushed by the room.

Run with: pytest test_client.py -v
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
from websockets.exceptions import ConnectionClosed

from client import CONNECTED, CONNECTION_ERROR, DISCONNECTED, GolfClient
from game import Game, GamePhase
from notifications import ERROR, INFO, SUCCESS


# =============================================================================
# Mock helpers
# =============================================================================

class FakeConnection:
    """Stands in for a websockets client connection."""

    def __init__(self, incoming=()):
        self.sent: list[dict] = []
        self.incoming = list(incoming)
        self.closed = False

    async def send(self, raw: str):
        self.sent.append(json.loads(raw))

    async def close(self):
        self.closed = True

    def __aiter__(self):
        return self._messages()

    async def _messages(self):
        for raw in self.incoming:
            yield raw


class Notices:
    def __init__(self):
        self.items: list[tuple[str, str]] = []

    def __call__(self, level, message):
        self.items.append((level, message))


def connected_client(notify=None) -> tuple[GolfClient, FakeConnection]:
    client = GolfClient("ROOM", notify=notify or Notices(), url="ws://test/ws")
    conn = FakeConnection()
    client._ws = conn
    client.status = CONNECTED
    return client, conn


def room_state(game: Game, seat: str) -> dict:
    state = game.to_dict(viewer=seat)
    state.update({"playerId": seat, "opponent": game.opponent_of(seat)})
    return state


def playing_game() -> Game:
    game = Game()
    game.deal(seed=9)
    for seat in game.peekers:
        game.peek(seat, 0)
        game.peek(seat, 1)
    game.begin_play()
    return game


# =============================================================================
# Connection lifecycle
# =============================================================================

class TestConnection:

    @pytest.mark.asyncio
    async def test_connect_success(self):
        notices = Notices()
        client = GolfClient("ABC", notify=notices, url="ws://test/ws")
        conn = FakeConnection()

        with patch("client.websockets.connect", AsyncMock(return_value=conn)) as connect:
            assert await client.connect()

        connect.assert_awaited_once_with("ws://test/ws?room=ABC")
        assert client.status == CONNECTED
        assert (SUCCESS, "Connected to game room!") in notices.items

    @pytest.mark.asyncio
    async def test_connect_failure(self):
        notices = Notices()
        client = GolfClient("ABC", notify=notices, url="ws://test/ws")

        with patch("client.websockets.connect", AsyncMock(side_effect=OSError("refused"))):
            assert not await client.connect()

        assert client.status == CONNECTION_ERROR
        assert (ERROR, "Connection error") in notices.items

    @pytest.mark.asyncio
    async def test_run_applies_messages_then_disconnects(self):
        notices = Notices()
        client, _ = connected_client(notices)
        state = room_state(Game(), "player1")
        client._ws = FakeConnection([
            json.dumps({"type": "game-state", "gameState": state}),
            "garbage",
            json.dumps({"type": "player-joined"}),
        ])

        await client.run()

        assert client.game_state == state
        assert (SUCCESS, "Player joined the room!") in notices.items
        assert client.status == DISCONNECTED
        assert (ERROR, "Disconnected from game room") in notices.items

    @pytest.mark.asyncio
    async def test_close(self):
        client, conn = connected_client()
        await client.close()
        assert conn.closed

    @pytest.mark.asyncio
    async def test_send_on_closed_connection_marks_disconnected(self):
        notices = Notices()
        client, conn = connected_client(notices)
        conn.send = AsyncMock(side_effect=ConnectionClosed(None, None))

        assert not await client.deal()

        assert client.status == DISCONNECTED
        assert (ERROR, "Disconnected from game room") in notices.items
        assert not await client.new_round()
        conn.send.assert_awaited_once()


# =============================================================================
# Server messages
# =============================================================================

class TestHandleMessage:

    @pytest.mark.parametrize("message, expected", [
        ({"type": "player-left"}, (INFO, "Player left the room")),
        ({"type": "room-full"}, (ERROR, "Room is full!")),
        ({"type": "error", "message": "It's not your turn"}, (ERROR, "It's not your turn")),
        ({"type": "error"}, (ERROR, "An error occurred")),
    ])
    def test_notices(self, message, expected):
        notices = Notices()
        client, _ = connected_client(notices)
        client.handle_message(message)
        assert notices.items == [expected]

    def test_empty_game_state_ignored(self):
        client, _ = connected_client()
        client.game_state = {"gamePhase": "initial"}
        client.handle_message({"type": "game-state"})
        assert client.game_state == {"gamePhase": "initial"}


# =============================================================================
# Drawn card projection
# =============================================================================

class TestDrawnCard:

    def test_holder_sees_drawn_card(self):
        game = playing_game()
        drawn = game.draw_from_deck("player1")
        client, _ = connected_client()
        client.handle_message({"type": "game-state", "gameState": room_state(game, "player1")})
        assert client.drawn_card == drawn.to_dict()

    def test_opponent_sees_nothing(self):
        game = playing_game()
        game.draw_from_deck("player1")
        client, _ = connected_client()
        client.handle_message({"type": "game-state", "gameState": room_state(game, "player2")})
        assert client.drawn_card is None

    def test_absent_outside_play(self):
        client, _ = connected_client()
        client.game_state = {
            "gamePhase": "flip-after-discard",
            "currentTurn": "player1",
            "playerId": "player1",
            "drawnCard": {"suit": "hearts", "rank": "A", "id": "x"},
        }
        assert client.drawn_card is None


# =============================================================================
# Intents
# =============================================================================

class TestIntents:

    @pytest.mark.asyncio
    async def test_no_state_allows_only_unconditional_intents(self):
        client, conn = connected_client()
        assert not await client.draw_from_deck()
        assert not await client.peek_card(0)
        assert await client.deal()
        assert await client.new_round()
        assert conn.sent == [{"type": "deal-initial-cards"}, {"type": "new-round"}]

    @pytest.mark.asyncio
    async def test_not_sent_when_disconnected(self):
        client, conn = connected_client()
        client.status = DISCONNECTED
        assert not await client.deal()
        assert conn.sent == []

    @pytest.mark.asyncio
    async def test_peek_preconditions(self):
        game = Game()
        game.deal(seed=1)
        game.peek("player1", 0)

        client, conn = connected_client()
        client.game_state = room_state(game, "player1")
        assert not await client.peek_card(0)
        assert await client.peek_card(3)
        assert conn.sent == [{"type": "peek-card", "position": 3}]

        other, other_conn = connected_client()
        other.game_state = room_state(game, "player2")
        assert not await other.peek_card(0)
        assert other_conn.sent == []

    @pytest.mark.asyncio
    async def test_draw_only_on_own_turn(self):
        game = playing_game()
        mine, mine_conn = connected_client()
        mine.game_state = room_state(game, "player1")
        theirs, theirs_conn = connected_client()
        theirs.game_state = room_state(game, "player2")

        assert await mine.draw_from_discard()
        assert not await theirs.draw_from_deck()
        assert mine_conn.sent == [{"type": "draw-from-discard"}]
        assert theirs_conn.sent == []

    @pytest.mark.asyncio
    async def test_replace_needs_drawn_card_and_unlocked_position(self):
        game = playing_game()
        client, conn = connected_client()
        client.game_state = room_state(game, "player1")
        assert not await client.replace_card(0)
        assert not await client.discard_drawn_card()

        game.flip_card_directly("player1", 2)
        game.flip_card_directly("player2", 0)
        game.draw_from_deck("player1")
        client.game_state = room_state(game, "player1")

        assert not await client.replace_card(2)
        assert not await client.flip_card_directly(0)
        assert not await client.draw_from_deck()
        assert await client.replace_card(1)
        assert await client.discard_drawn_card()
        assert conn.sent == [
            {"type": "replace-card", "position": 1},
            {"type": "discard-drawn-card"},
        ]

    @pytest.mark.asyncio
    async def test_lock_only_after_discard(self):
        game = playing_game()
        client, conn = connected_client()
        client.game_state = room_state(game, "player1")
        assert not await client.lock_card_after_discard(0)

        game.draw_from_deck("player1")
        game.discard_drawn_card("player1")
        client.game_state = room_state(game, "player1")
        assert client.game_state["gamePhase"] == GamePhase.FLIP_AFTER_DISCARD.value
        assert await client.lock_card_after_discard(0)
        assert conn.sent == [{"type": "lock-card-after-discard", "position": 0}]

    @pytest.mark.asyncio
    async def test_flip_directly(self):
        game = playing_game()
        client, conn = connected_client()
        client.game_state = room_state(game, "player1")
        assert await client.flip_card_directly(3)
        assert conn.sent == [{"type": "flip-card-directly", "position": 3}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [4, -1, True, "1", None])
    async def test_positions_outside_hand_not_sent(self, position):
        peeking = Game()
        peeking.deal(seed=1)
        peeker, peeker_conn = connected_client()
        peeker.game_state = room_state(peeking, "player1")
        assert not await peeker.peek_card(position)

        game = playing_game()
        client, conn = connected_client()
        client.game_state = room_state(game, "player1")
        assert not await client.flip_card_directly(position)

        game.draw_from_deck("player1")
        client.game_state = room_state(game, "player1")
        assert not await client.replace_card(position)

        game.discard_drawn_card("player1")
        client.game_state = room_state(game, "player1")
        assert not await client.lock_card_after_discard(position)

        assert peeker_conn.sent == []
        assert conn.sent == []
