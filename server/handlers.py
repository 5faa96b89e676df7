"""WebSocket message handlers for multiplayer Golf.

Each handler corresponds to a single action type from the client and applies
it to the room's Game. Handlers are dispatched via the HANDLERS dict by
dispatch_message(), which holds the room's lock for the action and the
broadcast that follows it, so a room processes one message at a time.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import WebSocket

from game import InvariantError, RuleViolation
from logging_config import room_code_var, seat_var
from models.messages import (
    ActionMessage,
    ActionType,
    MessageError,
    ServerMessageType,
    error_message,
    notice,
    parse_action,
)
from room import Room, RoomManager

logger = logging.getLogger(__name__)


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    room: Room
    seat: str


# ---------------------------------------------------------------------------
# Round setup handlers
# ---------------------------------------------------------------------------

async def handle_deal_initial_cards(action: ActionMessage, ctx: ConnectionContext) -> None:
    if ctx.room.connection_count < len(ctx.room.game.seats):
        raise RuleViolation("Waiting for an opponent to join")
    ctx.room.game.deal()


async def handle_peek_card(action: ActionMessage, ctx: ConnectionContext) -> None:
    game = ctx.room.game
    game.peek(ctx.seat, action.position)
    # No settle delay on the server: clients animate the last peek themselves
    if game.peeking_complete:
        game.begin_play()


async def handle_new_round(action: ActionMessage, ctx: ConnectionContext) -> None:
    ctx.room.game.new_round()


# ---------------------------------------------------------------------------
# Turn action handlers
# ---------------------------------------------------------------------------

async def handle_draw_from_deck(action: ActionMessage, ctx: ConnectionContext) -> None:
    ctx.room.game.draw_from_deck(ctx.seat)


async def handle_draw_from_discard(action: ActionMessage, ctx: ConnectionContext) -> None:
    ctx.room.game.draw_from_discard(ctx.seat)


async def handle_replace_card(action: ActionMessage, ctx: ConnectionContext) -> None:
    ctx.room.game.replace_card(ctx.seat, action.position)


async def handle_discard_drawn_card(action: ActionMessage, ctx: ConnectionContext) -> None:
    ctx.room.game.discard_drawn_card(ctx.seat)


async def handle_lock_card_after_discard(action: ActionMessage, ctx: ConnectionContext) -> None:
    ctx.room.game.lock_card_after_discard(ctx.seat, action.position)


async def handle_flip_card_directly(action: ActionMessage, ctx: ConnectionContext) -> None:
    ctx.room.game.flip_card_directly(ctx.seat, action.position)


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

HANDLERS = {
    ActionType.DEAL_INITIAL_CARDS: handle_deal_initial_cards,
    ActionType.PEEK_CARD: handle_peek_card,
    ActionType.DRAW_FROM_DECK: handle_draw_from_deck,
    ActionType.DRAW_FROM_DISCARD: handle_draw_from_discard,
    ActionType.REPLACE_CARD: handle_replace_card,
    ActionType.DISCARD_DRAWN_CARD: handle_discard_drawn_card,
    ActionType.LOCK_CARD_AFTER_DISCARD: handle_lock_card_after_discard,
    ActionType.FLIP_CARD_DIRECTLY: handle_flip_card_directly,
    ActionType.NEW_ROUND: handle_new_round,
}


async def dispatch_message(raw: str, ctx: ConnectionContext) -> None:
    """
    Parse one inbound message and apply it to the room.

    Malformed messages are answered with an error to the sender only and
    never touch the room. Valid actions run under the room lock; a refused
    action is answered with an error to the sender, and either way every
    connection then receives the post-action state.

    Args:
        raw: The message text as received.
        ctx: The sender's connection context.
    """
    try:
        action = parse_action(raw)
    except MessageError as e:
        logger.warning(f"Malformed message: {e}")
        await ctx.websocket.send_json(error_message(str(e)))
        return

    handler = HANDLERS[action.type]
    async with ctx.room.game_lock:
        try:
            await handler(action, ctx)
            logger.debug(f"Applied {action.type.value}", extra={"action": action.type.value})
        except RuleViolation as e:
            logger.info(f"Rejected {action.type.value}: {e}", extra={"action": action.type.value})
            await ctx.room.send_to(ctx.seat, error_message(str(e)))
        except InvariantError:
            logger.exception(f"Invariant violated by {action.type.value}", extra={"action": action.type.value})
            raise
        await ctx.room.broadcast_state()


# ---------------------------------------------------------------------------
# Join / Leave
# ---------------------------------------------------------------------------

async def handle_player_join(
    websocket: WebSocket,
    room_code: str,
    room_manager: RoomManager,
) -> Optional[ConnectionContext]:
    """
    Seat a new connection in its room.

    A full room answers room-full and closes the socket without touching
    its game. Otherwise the other player is told someone joined and every
    connection receives the current state.

    Returns:
        The new connection's context, or None if it was turned away.
    """
    room_code_var.set(room_code)

    while True:
        room = room_manager.get_or_create_room(room_code)
        async with room.game_lock:
            if room_manager.get_room(room_code) is not room:
                # The last player left while we waited; the room is gone
                logger.debug("Room destroyed before join, retrying")
                continue

            seat = room.add_connection(websocket)
            if seat is None:
                logger.info("Connection rejected: room full")
                await websocket.send_json(notice(ServerMessageType.ROOM_FULL))
                await websocket.close()
                return None

            seat_var.set(seat)
            await room.broadcast(notice(ServerMessageType.PLAYER_JOINED), exclude=seat)
            await room.broadcast_state()

        return ConnectionContext(websocket=websocket, room=room, seat=seat)


async def handle_player_leave(ctx: ConnectionContext, room_manager: RoomManager) -> None:
    """Free the seat; destroy the room if it is now empty, else notify the other player."""
    room = ctx.room
    async with room.game_lock:
        room.remove_connection(ctx.seat)

        if room.is_empty():
            room_manager.remove_room(room.code, room)
            return

        await room.broadcast(notice(ServerMessageType.PLAYER_LEFT))
        await room.broadcast_state()
