"""
Client adapter for multiplayer Golf.

GolfClient holds no rules of its own. It keeps the latest state pushed by
the room, forwards intents as action messages, and refuses intents the last
known state already rules out so obviously illegal actions never make a
round trip. The room remains the authority: a race between the two players
can still produce an error from the server.
"""

import json
import logging
from typing import Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from config import config
from constants import HAND_SIZE
from game import GamePhase
from models.messages import ActionMessage, ActionType, ServerMessageType
from notifications import ERROR, INFO, SUCCESS, Notifier, log_notifier

logger = logging.getLogger(__name__)

CONNECTING = "connecting"
CONNECTED = "connected"
DISCONNECTED = "disconnected"
CONNECTION_ERROR = "error"


class GolfClient:
    """
    One player's connection to a multiplayer room.

    Args:
        room_code: Code of the room to join.
        notify: Notice sink for connection and room events.
        url: WebSocket endpoint of the room server.
    """

    def __init__(
        self,
        room_code: str,
        notify: Notifier = log_notifier,
        url: Optional[str] = None,
    ):
        self.room_code = room_code
        self.url = url or config.SERVER_URL
        self.notify = notify
        self.status = CONNECTING
        self.game_state: Optional[dict] = None
        self._ws = None

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    async def connect(self) -> bool:
        """Open the connection. Returns False and records the error on failure."""
        self.status = CONNECTING
        try:
            self._ws = await websockets.connect(f"{self.url}?room={self.room_code}")
        except (OSError, WebSocketException) as e:
            logger.warning(f"Connection to {self.url} failed: {e}")
            self.status = CONNECTION_ERROR
            self.notify(ERROR, "Connection error")
            return False

        self.status = CONNECTED
        self.notify(SUCCESS, "Connected to game room!")
        return True

    async def run(self) -> None:
        """Receive messages until the connection closes."""
        if self._ws is None:
            return
        try:
            async for raw in self._ws:
                try:
                    message = json.loads(raw)
                except json.JSONDecodeError as e:
                    logger.error(f"Error parsing server message: {e}")
                    continue
                self.handle_message(message)
        except ConnectionClosed:
            pass
        self._disconnected()

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    def _disconnected(self) -> None:
        self._ws = None
        self.status = DISCONNECTED
        self.notify(ERROR, "Disconnected from game room")

    def handle_message(self, message: dict) -> None:
        """Apply one message pushed by the room."""
        msg_type = message.get("type")

        if msg_type == ServerMessageType.GAME_STATE.value:
            if message.get("gameState"):
                self.game_state = message["gameState"]
        elif msg_type == ServerMessageType.PLAYER_JOINED.value:
            self.notify(SUCCESS, "Player joined the room!")
        elif msg_type == ServerMessageType.PLAYER_LEFT.value:
            self.notify(INFO, "Player left the room")
        elif msg_type == ServerMessageType.ROOM_FULL.value:
            self.notify(ERROR, "Room is full!")
        elif msg_type == ServerMessageType.ERROR.value:
            self.notify(ERROR, message.get("message") or "An error occurred")
        else:
            logger.debug(f"Ignoring message of type {msg_type!r}")

    # -------------------------------------------------------------------------
    # Projections of the last known state
    # -------------------------------------------------------------------------

    @property
    def player_id(self) -> Optional[str]:
        return self.game_state.get("playerId") if self.game_state else None

    @property
    def my_hand(self) -> Optional[dict]:
        if not self.game_state:
            return None
        return self.game_state.get(f"{self.player_id}Hand")

    @property
    def drawn_card(self) -> Optional[dict]:
        """The card this player is holding, if it is their turn in play."""
        state = self.game_state
        if not state or state.get("gamePhase") != GamePhase.PLAYING.value:
            return None
        if state.get("currentTurn") != state.get("playerId"):
            return None
        return state.get("drawnCard")

    def _phase_is(self, phase: GamePhase) -> bool:
        return bool(self.game_state) and self.game_state.get("gamePhase") == phase.value

    def _my_turn(self) -> bool:
        return bool(self.game_state) and self.game_state.get("currentTurn") == self.player_id

    @staticmethod
    def _valid_position(position) -> bool:
        return isinstance(position, int) and not isinstance(position, bool) and 0 <= position < HAND_SIZE

    def _is_revealed(self, position: int) -> bool:
        return self.my_hand["revealedCards"][position]

    # -------------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------------

    async def _send(self, action: ActionType, position: Optional[int] = None) -> bool:
        if self._ws is None or self.status != CONNECTED:
            return False
        message = ActionMessage(type=action, position=position)
        try:
            await self._ws.send(json.dumps(message.to_dict()))
        except ConnectionClosed:
            self._disconnected()
            return False
        return True

    async def deal(self) -> bool:
        return await self._send(ActionType.DEAL_INITIAL_CARDS)

    async def peek_card(self, position: int) -> bool:
        if not self._valid_position(position):
            return False
        if not self._phase_is(GamePhase.PEEK) or not self._my_turn():
            return False
        if self.game_state.get("peeksRemaining", 0) <= 0:
            return False
        if self.my_hand["peekedCards"][position]:
            return False
        return await self._send(ActionType.PEEK_CARD, position)

    async def draw_from_deck(self) -> bool:
        if not self._phase_is(GamePhase.PLAYING) or not self._my_turn():
            return False
        if self.drawn_card is not None:
            return False
        return await self._send(ActionType.DRAW_FROM_DECK)

    async def draw_from_discard(self) -> bool:
        if not self._phase_is(GamePhase.PLAYING) or not self._my_turn():
            return False
        if self.drawn_card is not None:
            return False
        return await self._send(ActionType.DRAW_FROM_DISCARD)

    async def replace_card(self, position: int) -> bool:
        if not self._valid_position(position):
            return False
        if self.drawn_card is None or self._is_revealed(position):
            return False
        return await self._send(ActionType.REPLACE_CARD, position)

    async def discard_drawn_card(self) -> bool:
        if self.drawn_card is None:
            return False
        return await self._send(ActionType.DISCARD_DRAWN_CARD)

    async def lock_card_after_discard(self, position: int) -> bool:
        if not self._valid_position(position):
            return False
        if not self._phase_is(GamePhase.FLIP_AFTER_DISCARD) or not self._my_turn():
            return False
        if self._is_revealed(position):
            return False
        return await self._send(ActionType.LOCK_CARD_AFTER_DISCARD, position)

    async def flip_card_directly(self, position: int) -> bool:
        if not self._valid_position(position):
            return False
        if not self._phase_is(GamePhase.PLAYING) or not self._my_turn():
            return False
        if self.drawn_card is not None:
            return False
        if self._is_revealed(position):
            return False
        return await self._send(ActionType.FLIP_CARD_DIRECTLY, position)

    async def new_round(self) -> bool:
        return await self._send(ActionType.NEW_ROUND)
