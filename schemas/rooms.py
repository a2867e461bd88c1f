from enum import Enum
from pydantic import BaseModel
from typing import Optional


class RoomState(str, Enum):
    WAITING = "waiting"
    READY = "ready"
    PLAYING = "playing"
    FINISHED = "finished"


class Room(BaseModel):
    id: str
    host: str
    guest: Optional[str] = None
    state: RoomState = RoomState.WAITING
    created_at: float
    started_at: Optional[float] = None

    def other_participant(self, participant_id: str) -> Optional[str]:
        """Return whichever of host/guest is not `participant_id`."""
        return self.guest if participant_id == self.host else self.host

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in (self.host, self.guest)


class RoomSummary(BaseModel):
    # Public projection: host and guest identities are never exposed
    id: str
    createdAt: int

    @classmethod
    def from_room(cls, room: Room) -> "RoomSummary":
        return cls(id=room.id, createdAt=int(room.created_at * 1000))


class RoomListResponse(BaseModel):
    rooms: list[RoomSummary]


class HealthResponse(BaseModel):
    status: str
    timeStamp: str
    rooms: int
    connections: int
