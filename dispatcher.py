import json
from typing import Optional, Union

from pydantic import ValidationError

import events
from connections import ConnectionManager
from errors import ErrorKind, InvalidMessageError, RoomError
from logging_config import get_logger
from registry import RoomRegistry
from schemas.signaling import (
    AnswerPayload,
    ConnectionStatePayload,
    GameEndPayload,
    GameInitPayload,
    IceCandidatePayload,
    JoinRoomPayload,
    LeaveRoomPayload,
    OfferPayload,
    RequestGameInitPayload,
)
from signaling import Broadcast, Delivery, SignalingRouter, Teardown

logger = get_logger(__name__)


class EventDispatcher:
    """Boundary between the WebSocket transport and the room core.

    Turns inbound frames into registry/router calls, delivers the resulting
    decisions through the connection manager, and converts every failure
    into an ``error`` message for the sending connection only.
    """

    def __init__(self, registry: RoomRegistry, connections: ConnectionManager, router: Optional[SignalingRouter] = None):
        self.registry = registry
        self.connections = connections
        self.router = router or SignalingRouter(registry)
        self.handlers = {
            events.CREATE_ROOM: self.on_create_room,
            events.GET_ROOMS: self.on_get_rooms,
            events.JOIN_ROOM: self.on_join_room,
            events.OFFER: self.on_offer,
            events.ANSWER: self.on_answer,
            events.ICE_CANDIDATE: self.on_ice_candidate,
            events.GAME_INIT: self.on_game_init,
            events.REQUEST_GAME_INIT: self.on_request_game_init,
            events.CONNECTION_STATE: self.on_connection_state,
            events.GAME_END: self.on_game_end,
            events.LEAVE_ROOM: self.on_leave_room,
        }

    async def dispatch_text(self, connection_id: str, data: str):
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning(f"Connection {connection_id} sent a non-JSON frame")
            await self.send_error(connection_id, InvalidMessageError(detail="Message must be a JSON object"))
            return
        await self.dispatch(connection_id, message)

    async def dispatch(self, connection_id: str, message):
        if not isinstance(message, dict):
            await self.send_error(connection_id, InvalidMessageError(detail="Message must be a JSON object"))
            return

        event = message.get("type")
        handler = self.handlers.get(event)
        if handler is None:
            logger.warning(f"Connection {connection_id} sent unknown event {event!r}")
            await self.send_error(connection_id, InvalidMessageError(detail=f"Unknown event: {event}"))
            return

        logger.debug(f"[{connection_id}] {event}")
        try:
            await handler(connection_id, message)
        except ValidationError as e:
            logger.warning(f"Invalid {event} payload from {connection_id}: {e.errors()}")
            await self.send_error(connection_id, InvalidMessageError(detail=f"Invalid {event} payload"))
        except RoomError as e:
            await self.send_error(connection_id, e)
        except Exception as e:
            logger.error(f"Error handling {event} from connection {connection_id}: {e}", exc_info=True)
            await self.connections.send(connection_id, {
                "type": events.ERROR,
                "message": ErrorKind.INTERNAL.default_message,
                "code": ErrorKind.INTERNAL.value,
            })

    async def send_error(self, connection_id: str, error: RoomError):
        # Failures are only ever reported back to the connection that caused them
        await self.connections.send(connection_id, {"type": events.ERROR, **error.to_message()})

    async def deliver(self, decision: Optional[Union[Delivery, Broadcast]]):
        if decision is None:
            return
        if isinstance(decision, Broadcast):
            await self.connections.broadcast(decision.group, decision.message())
        else:
            await self.connections.send(decision.target, decision.message())

    async def on_create_room(self, connection_id: str, message: dict):
        room = self.registry.create_room(connection_id)
        self.connections.join_group(connection_id, room.id)
        await self.connections.send(connection_id, {"type": events.ROOM_CREATED, "roomId": room.id})
        logger.info(f"[{connection_id}] Created room: {room.id}")

    async def on_get_rooms(self, connection_id: str, message: dict):
        rooms = self.registry.get_available_rooms()
        await self.connections.send(connection_id, {
            "type": events.ROOM_LIST,
            "rooms": [room.model_dump() for room in rooms],
        })

    async def on_join_room(self, connection_id: str, message: dict):
        payload = JoinRoomPayload.model_validate(message)
        room = self.registry.join_room(payload.roomId, connection_id)
        self.connections.join_group(connection_id, room.id)

        await self.connections.send(connection_id, {"type": events.ROOM_JOINED, "roomId": room.id, "isHost": False})
        await self.connections.send(room.host, {"type": events.GUEST_JOINED, "guestId": connection_id})
        logger.info(f"[{connection_id}] Joined room: {room.id}")

    async def on_offer(self, connection_id: str, message: dict):
        payload = OfferPayload.model_validate(message)
        await self.deliver(self.router.route_offer(payload.roomId, connection_id, payload.offer))

    async def on_answer(self, connection_id: str, message: dict):
        payload = AnswerPayload.model_validate(message)
        await self.deliver(self.router.route_answer(payload.roomId, connection_id, payload.answer))

    async def on_ice_candidate(self, connection_id: str, message: dict):
        payload = IceCandidatePayload.model_validate(message)
        await self.deliver(self.router.route_ice_candidate(payload.roomId, connection_id, payload.candidate))

    async def on_game_init(self, connection_id: str, message: dict):
        payload = GameInitPayload.model_validate(message)
        await self.deliver(self.router.relay_game_init(payload.roomId, payload.state))

    async def on_request_game_init(self, connection_id: str, message: dict):
        payload = RequestGameInitPayload.model_validate(message)
        await self.deliver(self.router.route_game_init_request(payload.roomId, connection_id, payload.requester, payload.retry))

    async def on_connection_state(self, connection_id: str, message: dict):
        payload = ConnectionStatePayload.model_validate(message)
        await self.deliver(self.router.broadcast_connection_state(payload.roomId, connection_id, payload.state))

    async def on_game_end(self, connection_id: str, message: dict):
        payload = GameEndPayload.model_validate(message)
        notice = self.router.end_game(payload.roomId)
        if notice is None:
            return
        await self.deliver(notice)
        self.connections.drop_group(payload.roomId)

    async def on_leave_room(self, connection_id: str, message: dict):
        payload = LeaveRoomPayload.model_validate(message)
        teardown = self.router.leave_room(payload.roomId, connection_id)
        if teardown is None:
            return
        await self._notify(teardown)
        logger.info(f"[{connection_id}] Left room: {payload.roomId}")

    async def on_disconnect(self, connection_id: str, reason=None):
        logger.info(f"[{connection_id}] Client disconnected: {reason}")
        self.connections.disconnect(connection_id)
        for teardown in self.router.disconnect(connection_id):
            await self._notify(teardown)

    async def _notify(self, teardown: Teardown):
        # The room is already gone by now; a failed notice changes nothing
        if teardown.notice is not None:
            await self.deliver(teardown.notice)
        self.connections.drop_group(teardown.room.id)
