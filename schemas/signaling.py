from pydantic import BaseModel
from typing import Any, Optional


class RoomPayload(BaseModel):
    roomId: str


class JoinRoomPayload(RoomPayload):
    pass


class OfferPayload(RoomPayload):
    offer: Any = None


class AnswerPayload(RoomPayload):
    answer: Any = None


class IceCandidatePayload(RoomPayload):
    candidate: Any = None


class GameInitPayload(RoomPayload):
    state: Any = None


class RequestGameInitPayload(RoomPayload):
    requester: Optional[str] = None
    retry: Any = False


class ConnectionStatePayload(RoomPayload):
    state: str


class GameEndPayload(RoomPayload):
    pass


class LeaveRoomPayload(RoomPayload):
    pass
