import asyncio
import json
import uuid
from typing import Dict, Set

from fastapi import WebSocket

from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Tracks live WebSocket connections and their room group memberships.

    Connections are keyed by a server-generated connection id, which is the
    participant identity handed to the registry and the router.
    """

    def __init__(self):
        # Format: {connection_id: websocket}
        self.connections: Dict[str, WebSocket] = {}
        # Format: {group: {connection_id, ...}}
        self.groups: Dict[str, Set[str]] = {}

    @property
    def connection_count(self) -> int:
        return len(self.connections)

    def connect(self, websocket: WebSocket) -> str:
        connection_id = uuid.uuid4().hex
        self.connections[connection_id] = websocket
        logger.debug(f"Registered connection {connection_id} (total: {len(self.connections)})")
        return connection_id

    def disconnect(self, connection_id: str):
        """Forget a connection and all of its group memberships."""
        self.connections.pop(connection_id, None)
        for group in list(self.groups):
            self._discard(connection_id, group)
        logger.debug(f"Unregistered connection {connection_id} (total: {len(self.connections)})")

    def join_group(self, connection_id: str, group: str):
        self.groups.setdefault(group, set()).add(connection_id)
        logger.debug(f"Connection {connection_id} joined group {group}")

    def drop_group(self, group: str):
        """Forget a room's group once the room is gone, so a reused id starts empty."""
        members = self.groups.pop(group, None)
        if members:
            logger.debug(f"Dropped group {group} ({len(members)} members)")

    def _discard(self, connection_id: str, group: str):
        members = self.groups.get(group)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.groups[group]

    def group_members(self, group: str) -> Set[str]:
        return set(self.groups.get(group, ()))

    async def send(self, connection_id: str, message: dict) -> bool:
        websocket = self.connections.get(connection_id)
        if websocket is None:
            logger.warning(f"Cannot send {message.get('type')} to unknown connection {connection_id}")
            return False
        try:
            await websocket.send_text(json.dumps(message))
            return True
        except Exception as e:
            # Connection might be closing; its disconnect handler cleans up
            logger.warning(f"Error sending to connection {connection_id}: {e}")
            return False

    async def broadcast(self, group: str, message: dict):
        members = self.group_members(group)
        logger.debug(f"Broadcasting {message.get('type')} to {len(members)} connections in group {group}")
        if members:
            await asyncio.gather(*(self.send(connection_id, message) for connection_id in members), return_exceptions=True)
