"""Relay decisions for WebRTC signaling between the two occupants of a room.

The router never talks to the transport. Each operation looks the room up in
the registry and returns what should be sent and to whom: a ``Delivery`` for
a single connection, a ``Broadcast`` for the room group, or ``None`` when
nothing needs to go out. The target of a relayed message is always derived
from the current occupancy, as "whichever of host/guest is not the sender".
"""
from typing import Any, Optional

from pydantic import BaseModel

import events
from errors import RoomNotFoundError
from logging_config import get_logger
from registry import RoomRegistry
from schemas.rooms import Room

logger = get_logger(__name__)


class Delivery(BaseModel):
    target: str
    event: str
    payload: dict = {}

    def message(self) -> dict:
        return {"type": self.event, **self.payload}


class Broadcast(BaseModel):
    group: str
    event: str
    payload: dict = {}

    def message(self) -> dict:
        return {"type": self.event, **self.payload}


class Teardown(BaseModel):
    room: Room
    notice: Optional[Delivery] = None


class SignalingRouter:
    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    def _relay(self, event: str, field: str, room_id: str, sender_id: str, payload: Any, silent: bool = False) -> Optional[Delivery]:
        room = self.registry.get_room(room_id)
        if not room:
            if silent:
                logger.debug(f"Dropping {event} from {sender_id}: room {room_id} not found")
                return None
            logger.warning(f"Cannot relay {event} from {sender_id}: room {room_id} not found")
            raise RoomNotFoundError(room_id)

        target = room.other_participant(sender_id)
        if not target:
            # The peer has not joined yet or is already gone
            logger.debug(f"No peer to receive {event} from {sender_id} in room {room_id}")
            return None

        logger.debug(f"Relaying {event} in room {room_id}: {sender_id} -> {target}")
        return Delivery(target=target, event=event, payload={field: payload, "from": sender_id})

    def route_offer(self, room_id: str, sender_id: str, offer: Any) -> Optional[Delivery]:
        return self._relay(events.OFFER, "offer", room_id, sender_id, offer)

    def route_answer(self, room_id: str, sender_id: str, answer: Any) -> Optional[Delivery]:
        return self._relay(events.ANSWER, "answer", room_id, sender_id, answer)

    def route_ice_candidate(self, room_id: str, sender_id: str, candidate: Any) -> Optional[Delivery]:
        # Candidate exchange is best effort, a vanished room is not reported
        return self._relay(events.ICE_CANDIDATE, "candidate", room_id, sender_id, candidate, silent=True)

    def route_game_init_request(self, room_id: str, sender_id: str, requester: Optional[str], retry: Any) -> Optional[Delivery]:
        room = self.registry.get_room(room_id)
        if not room:
            logger.debug(f"Dropping game init request from {sender_id}: room {room_id} not found")
            return None
        return Delivery(
            target=room.host,
            event=events.REQUEST_GAME_INIT,
            payload={"from": sender_id, "requester": requester, "retry": bool(retry)},
        )

    def relay_game_init(self, room_id: str, state: Any) -> Broadcast:
        logger.info(f"Relaying game-init to room {room_id}")
        return Broadcast(group=room_id, event=events.GAME_INIT, payload={"state": state})

    def broadcast_connection_state(self, room_id: str, sender_id: str, state: str) -> Broadcast:
        logger.debug(f"Peer {sender_id} in room {room_id} reports connection state {state}")
        return Broadcast(group=room_id, event=events.PEER_CONNECTION_STATE, payload={"peerId": sender_id, "state": state})

    def end_game(self, room_id: str) -> Optional[Broadcast]:
        room = self.registry.get_room(room_id)
        if not room:
            return None
        notice = Broadcast(group=room_id, event=events.GAME_ENDED)
        self.registry.remove_room(room_id)
        logger.info(f"Game ended in room {room_id}")
        return notice

    def _teardown(self, room: Room, sender_id: str, event: str) -> Teardown:
        other_id = room.other_participant(sender_id)
        notice = Delivery(target=other_id, event=event) if other_id else None
        # Removal happens whether or not anyone is left to notify
        self.registry.remove_room(room.id)
        return Teardown(room=room, notice=notice)

    def leave_room(self, room_id: str, sender_id: str) -> Optional[Teardown]:
        room = self.registry.get_room(room_id)
        if not room:
            return None
        logger.info(f"Participant {sender_id} left room {room_id}")
        return self._teardown(room, sender_id, events.OPPONENT_LEFT)

    def disconnect(self, sender_id: str) -> list[Teardown]:
        """Close every room the disconnected participant was part of."""
        teardowns = []
        for room in self.registry.find_rooms_by_participant(sender_id):
            logger.info(f"Room {room.id} closed due to disconnect of {sender_id}")
            teardowns.append(self._teardown(room, sender_id, events.OPPONENT_DISCONNECTED))
        return teardowns
