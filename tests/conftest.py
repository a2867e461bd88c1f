import asyncio

import pytest

from connections import ConnectionManager
from dispatcher import EventDispatcher
from registry import RoomRegistry


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingConnections(ConnectionManager):
    """Connection manager that records outbound messages instead of writing to sockets."""

    def __init__(self):
        super().__init__()
        self.sent = []

    def add(self, connection_id: str):
        self.connections[connection_id] = None
        return connection_id

    async def send(self, connection_id, message):
        if connection_id not in self.connections:
            return False
        self.sent.append((connection_id, message))
        return True

    def messages_for(self, connection_id):
        return [message for target, message in self.sent if target == connection_id]

    def types_for(self, connection_id):
        return [message["type"] for message in self.messages_for(connection_id)]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return RoomRegistry(clock=clock)


@pytest.fixture
def connections():
    return RecordingConnections()


@pytest.fixture
def dispatcher(registry, connections):
    return EventDispatcher(registry, connections)


@pytest.fixture
def dispatch(dispatcher):
    def _dispatch(connection_id, message):
        asyncio.run(dispatcher.dispatch(connection_id, message))
    return _dispatch
