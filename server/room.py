"""
Room management for multiplayer Golf games.

This module holds the server-side authority for each multiplayer game: the
room's Game, the WebSocket connection seated at each player slot, and the
lock that serializes every mutation of that game.

A Room contains:
    - The code clients used to address it (opaque, not validated)
    - Up to two connections, seated as player1 and player2
    - A Game instance with the authoritative state
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import WebSocket

from constants import MAX_PLAYERS
from game import MULTIPLAYER_SEATS, Game
from models.messages import game_state_message

logger = logging.getLogger(__name__)


def _new_game() -> Game:
    return Game(seats=MULTIPLAYER_SEATS, peekers=MULTIPLAYER_SEATS)


@dataclass
class Room:
    """
    A two-seat game room and the single writer of its Game.

    Attributes:
        code: Room code supplied by the connecting clients.
        game: The authoritative Game.
        connections: Dict mapping seat names to WebSocket connections.
        game_lock: asyncio.Lock serializing every action and its broadcast.
        max_players: Connection cap (never more than the number of seats).
    """

    code: str
    game: Game = field(default_factory=_new_game)
    connections: dict[str, WebSocket] = field(default_factory=dict)
    game_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    max_players: int = MAX_PLAYERS

    @property
    def connection_count(self) -> int:
        """Number of connected players."""
        return len(self.connections)

    def is_full(self) -> bool:
        return self.connection_count >= min(self.max_players, len(self.game.seats))

    def is_empty(self) -> bool:
        """Check if the room has no connections."""
        return not self.connections

    def add_connection(self, websocket: WebSocket) -> Optional[str]:
        """
        Seat a new connection in the first free slot.

        Args:
            websocket: The player's WebSocket connection.

        Returns:
            The assigned seat, or None if the room is full.
        """
        if self.is_full():
            return None
        seat = next(seat for seat in self.game.seats if seat not in self.connections)
        self.connections[seat] = websocket
        logger.info(f"{seat} joined ({self.connection_count} connected)", extra={"room_code": self.code})
        return seat

    def remove_connection(self, seat: str) -> Optional[WebSocket]:
        """
        Free a seat.

        Returns:
            The removed connection, or None if the seat was free.
        """
        websocket = self.connections.pop(seat, None)
        if websocket is not None:
            logger.info(f"{seat} left ({self.connection_count} connected)", extra={"room_code": self.code})
        return websocket

    def state_for(self, seat: str) -> dict:
        """
        Game snapshot for one seat, annotated with that seat's viewpoint.

        Args:
            seat: The recipient's seat.

        Returns:
            Dict with the redacted game state plus playerId, opponent,
            roomCode and connectedPlayers.
        """
        state = self.game.to_dict(viewer=seat)
        state.update({
            "playerId": seat,
            "opponent": self.game.opponent_of(seat),
            "roomCode": self.code,
            "connectedPlayers": self.connection_count,
        })
        return state

    async def send_to(self, seat: str, message: dict) -> None:
        """
        Send a message to the connection at one seat.

        Args:
            seat: Seat of the recipient.
            message: JSON-serializable message dict.
        """
        websocket = self.connections.get(seat)
        if websocket is None:
            return
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.warning(f"Send to {seat} failed: {e}", extra={"room_code": self.code})

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> None:
        """
        Send a message to every connection in the room.

        Args:
            message: JSON-serializable message dict.
            exclude: Optional seat to skip.
        """
        for seat in list(self.connections):
            if seat != exclude:
                await self.send_to(seat, message)

    async def broadcast_state(self) -> None:
        """Send every connection its own view of the current state."""
        for seat in list(self.connections):
            await self.send_to(seat, game_state_message(self.state_for(seat)))


class RoomManager:
    """
    The table of active rooms, keyed by room code.

    Rooms are created on first connection and destroyed when their last
    connection leaves. All access happens on the event loop thread and
    none of these methods await, so inserts and deletes never interleave.
    """

    def __init__(self) -> None:
        self.rooms: dict[str, Room] = {}

    def get_or_create_room(self, code: str) -> Room:
        """
        Get the room with this code, creating it if needed.

        Args:
            code: The room code, used as-is.

        Returns:
            The Room.
        """
        room = self.rooms.get(code)
        if room is None:
            room = Room(code=code)
            self.rooms[code] = room
            logger.info("Room created", extra={"room_code": code})
        return room

    def get_room(self, code: str) -> Optional[Room]:
        """Get a room by its code, or None if not found."""
        return self.rooms.get(code)

    def remove_room(self, code: str, room: Optional[Room] = None) -> None:
        """
        Delete a room and its game state.

        Args:
            code: The room code to remove.
            room: If given, remove only while this exact Room is the one
                stored under ``code`` (a newer room with the same code stays).
        """
        current = self.rooms.get(code)
        if current is None or (room is not None and current is not room):
            return
        del self.rooms[code]
        logger.info("Room destroyed", extra={"room_code": code})

    def room_count(self) -> int:
        return len(self.rooms)
