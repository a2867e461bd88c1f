import random
import string
import threading
import time
from typing import Callable, Optional

from constants import ROOM_ID_LENGTH, ROOM_ID_MAX_ATTEMPTS
from errors import RoomFullError, RoomNotFoundError, RoomNotJoinableError, RoomRegistryError
from logging_config import get_logger
from schemas.rooms import Room, RoomState, RoomSummary

logger = get_logger(__name__)


def generate_room_id(length: int = ROOM_ID_LENGTH) -> str:
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


class RoomRegistry:
    """In-memory owner of every live room.

    All reads and writes go through one lock, so a join racing another join
    (or the cleanup sweep) on the same room cannot both succeed. Callers
    receive copies of the stored records.
    """

    def __init__(self, clock: Callable[[], float] = time.time, id_factory: Callable[[], str] = generate_room_id):
        self._rooms: dict[str, Room] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._id_factory = id_factory
        logger.info("Initializing in-memory RoomRegistry")

    def _fresh_room_id(self) -> str:
        for attempt in range(ROOM_ID_MAX_ATTEMPTS):
            room_id = self._id_factory()
            if room_id not in self._rooms:
                return room_id
            logger.warning(f"Room id collision on {room_id} (attempt {attempt + 1}), regenerating")
        raise RoomRegistryError(f"Could not allocate a unique room id after {ROOM_ID_MAX_ATTEMPTS} attempts")

    def create_room(self, host_id: str) -> Room:
        with self._lock:
            room_id = self._fresh_room_id()
            room = Room(id=room_id, host=host_id, created_at=self._clock())
            self._rooms[room_id] = room
            logger.info(f"Room {room_id} created by host {host_id}")
            return room.model_copy()

    def join_room(self, room_id: str, guest_id: str) -> Room:
        with self._lock:
            room = self._rooms.get(room_id)
            if not room:
                logger.warning(f"Join failed: room {room_id} not found")
                raise RoomNotFoundError(room_id)

            # Repeated join from either participant leaves the room as it is
            if room.guest is not None and room.guest == guest_id:
                logger.debug(f"Guest {guest_id} re-joined room {room_id}")
                return room.model_copy()
            if room.host == guest_id:
                logger.debug(f"Host {guest_id} sent join for its own room {room_id}")
                return room.model_copy()

            if room.state != RoomState.WAITING:
                logger.warning(f"Join failed: room {room_id} is {room.state.value}")
                raise RoomNotJoinableError(room_id)
            if room.guest is not None:
                logger.warning(f"Join failed: room {room_id} is full")
                raise RoomFullError(room_id)

            room.guest = guest_id
            room.state = RoomState.READY
            room.started_at = self._clock()
            logger.info(f"Guest {guest_id} joined room {room_id}")
            return room.model_copy()

    def get_room(self, room_id: str) -> Optional[Room]:
        with self._lock:
            room = self._rooms.get(room_id)
            return room.model_copy() if room else None

    def find_rooms_by_participant(self, participant_id: str) -> list[Room]:
        """Every live room where `participant_id` is the host or the guest."""
        with self._lock:
            return [room.model_copy() for room in self._rooms.values() if room.has_participant(participant_id)]

    def get_available_rooms(self) -> list[RoomSummary]:
        with self._lock:
            return [RoomSummary.from_room(room) for room in self._rooms.values() if room.state == RoomState.WAITING]

    def get_room_count(self) -> int:
        with self._lock:
            return len(self._rooms)

    def remove_room(self, room_id: str) -> Optional[Room]:
        with self._lock:
            room = self._rooms.pop(room_id, None)
        if room:
            logger.info(f"Room {room_id} removed")
        else:
            logger.debug(f"Remove requested for unknown room {room_id}")
        return room

    def cleanup_inactive_rooms(self, timeout: float, on_removed: Optional[Callable[[str], None]] = None) -> int:
        """Delete rooms still waiting for a guest after `timeout` seconds.

        `on_removed` is called with each evicted room id once the lock is released.
        """
        with self._lock:
            now = self._clock()
            stale = [
                room_id for room_id, room in self._rooms.items()
                if room.state == RoomState.WAITING and now - room.created_at > timeout
            ]
            for room_id in stale:
                del self._rooms[room_id]

        if on_removed:
            for room_id in stale:
                on_removed(room_id)
        if stale:
            logger.info(f"Cleaned up {len(stale)} inactive rooms")
        return len(stale)
