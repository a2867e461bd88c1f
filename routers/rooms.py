from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from connections import ConnectionManager
from logging_config import get_logger
from registry import RoomRegistry
from schemas.rooms import HealthResponse, RoomListResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api", tags=["rooms"])


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.registry


def get_connections(request: Request) -> ConnectionManager:
    return request.app.state.connections


@rooms_router.get("/health", response_model=HealthResponse)
async def health(registry: RoomRegistry = Depends(get_registry), connections: ConnectionManager = Depends(get_connections)):
    room_count = registry.get_room_count()
    logger.debug(f"Health check: {room_count} rooms, {connections.connection_count} connections")
    return HealthResponse(
        status="ok",
        timeStamp=datetime.now(timezone.utc).isoformat(),
        rooms=room_count,
        connections=connections.connection_count,
    )


@rooms_router.get("/rooms", response_model=RoomListResponse)
async def list_rooms(registry: RoomRegistry = Depends(get_registry)):
    """List rooms that are still waiting for a guest.

    Only the room id and creation time are exposed.
    """
    rooms = registry.get_available_rooms()
    logger.info(f"Room list requested: {len(rooms)} available")
    return RoomListResponse(rooms=rooms)
