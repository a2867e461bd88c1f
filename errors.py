from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of failures reported to clients.

    Every kind is delivered to the requesting connection only; none of them
    is ever broadcast to a room.
    """

    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_NOT_JOINABLE = "ROOM_NOT_JOINABLE"
    ROOM_FULL = "ROOM_FULL"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INTERNAL = "INTERNAL"

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]


_DEFAULT_MESSAGES = {
    ErrorKind.ROOM_NOT_FOUND: "Room not found",
    ErrorKind.ROOM_NOT_JOINABLE: "Game already in progress",
    ErrorKind.ROOM_FULL: "Room is full",
    ErrorKind.INVALID_MESSAGE: "Invalid message",
    ErrorKind.INTERNAL: "Internal server error",
}


class RoomError(Exception):
    kind = ErrorKind.INTERNAL

    def __init__(self, room_id: Optional[str] = None, detail: Optional[str] = None):
        self.room_id = room_id
        self.detail = detail or self.kind.default_message
        super().__init__(self.detail)

    def to_message(self) -> dict:
        return {"message": self.detail, "code": self.kind.value}


class RoomNotFoundError(RoomError):
    kind = ErrorKind.ROOM_NOT_FOUND


class RoomNotJoinableError(RoomError):
    kind = ErrorKind.ROOM_NOT_JOINABLE


class RoomFullError(RoomError):
    kind = ErrorKind.ROOM_FULL


class InvalidMessageError(RoomError):
    kind = ErrorKind.INVALID_MESSAGE


class RoomRegistryError(Exception):
    """Raised when the registry cannot allocate a fresh room id."""
