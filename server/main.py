"""FastAPI WebSocket server for multiplayer Golf."""

import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, status
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from config import config
from handlers import dispatch_message, handle_player_join, handle_player_leave
from logging_config import setup_logging
from room import RoomManager
from routers.health import router as health_router
from routers.health import set_health_dependencies

# Initialize Sentry if configured
if config.SENTRY_DSN:
    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        environment=config.ENVIRONMENT,
        traces_sample_rate=0.1 if config.ENVIRONMENT == "production" else 1.0,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
    )

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)

room_manager = RoomManager()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    set_health_dependencies(room_manager=room_manager)
    logger.info(f"Golf server started (environment={config.ENVIRONMENT})")

    yield

    logger.info(f"Shutting down with {room_manager.room_count()} open rooms")
    await _close_all_websockets()
    logger.info("Golf server stopped")


async def _close_all_websockets():
    """Tell every connected player the server is going away."""
    for room in list(room_manager.rooms.values()):
        for seat, websocket in list(room.connections.items()):
            try:
                await websocket.close(code=status.WS_1001_GOING_AWAY, reason="Server shutting down")
            except RuntimeError as e:
                logger.debug(f"Close for {seat} in {room.code} skipped: {e}")
    logger.debug("Closed remaining connections")


app = FastAPI(
    title="4-Card Golf",
    debug=config.DEBUG,
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(health_router)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    room_code = websocket.query_params.get("room")
    if not room_code:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Room code required")
        return

    logger.debug(f"Player joining room: {room_code}")

    ctx = await handle_player_join(websocket, room_code, room_manager)
    if ctx is None:
        return

    try:
        while True:
            raw = await websocket.receive_text()
            await dispatch_message(raw, ctx)
    except WebSocketDisconnect:
        logger.debug("Player disconnected")
    finally:
        await handle_player_leave(ctx, room_manager)


def run():
    """Entry point for the golf-server script."""
    import uvicorn

    logger.info(f"Listening on {config.HOST}:{config.PORT} (debug={config.DEBUG})")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
