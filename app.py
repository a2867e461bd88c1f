import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from connections import ConnectionManager
from constants import ALLOWED_ORIGINS, INACTIVE_ROOM_TIMEOUT, LOG_FILE, LOG_LEVEL, ROOM_CLEANUP_INTERVAL
from dispatcher import EventDispatcher
from logging_config import get_logger, setup_logging
from registry import RoomRegistry
from routers.rooms import rooms_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


async def run_room_cleanup(registry: RoomRegistry, interval: float, timeout: float, on_removed: Optional[Callable[[str], None]] = None):
    """Background task evicting rooms that never got a guest."""
    logger.info(f"Starting room cleanup task (interval={interval}s, timeout={timeout}s)")
    try:
        while True:
            await asyncio.sleep(interval)
            try:
                registry.cleanup_inactive_rooms(timeout, on_removed)
            except Exception as e:
                logger.error(f"Error during room cleanup: {e}", exc_info=True)
    except asyncio.CancelledError:
        logger.info("Room cleanup task cancelled")
        raise


def create_app(
    registry: Optional[RoomRegistry] = None,
    cleanup_interval: float = ROOM_CLEANUP_INTERVAL,
    inactive_timeout: float = INACTIVE_ROOM_TIMEOUT,
) -> FastAPI:
    registry = registry or RoomRegistry()
    connections = ConnectionManager()
    dispatcher = EventDispatcher(registry, connections)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cleanup_task = asyncio.create_task(run_room_cleanup(registry, cleanup_interval, inactive_timeout, connections.drop_group))
        yield
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass
        logger.info("Server closed")

    app = FastAPI(lifespan=lifespan)
    app.state.registry = registry
    app.state.connections = connections
    app.state.dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Signaling socket: one connection per participant, JSON frames with a `type` field."""
        await websocket.accept()
        connection_id = connections.connect(websocket)
        logger.info(f"[{connection_id}] Client connected")

        reason = None
        try:
            while True:
                data = await websocket.receive_text()
                await dispatcher.dispatch_text(connection_id, data)
        except WebSocketDisconnect as e:
            reason = e.code
        except Exception as e:
            logger.error(f"[{connection_id}] socket error: {e}", exc_info=True)
            reason = "error"
        finally:
            await dispatcher.on_disconnect(connection_id, reason)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
