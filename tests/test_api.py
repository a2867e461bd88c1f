import asyncio

import pytest
from fastapi.testclient import TestClient

from app import create_app, run_room_cleanup
from registry import RoomRegistry


@pytest.fixture
def client(registry):
    with TestClient(create_app(registry=registry)) as client:
        yield client


def test_health_reports_rooms_and_connections(client, registry):
    registry.create_room("someone")

    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["rooms"] == 1
    assert body["connections"] == 0
    assert "timeStamp" in body


def test_rooms_endpoint_lists_waiting_rooms(client, registry):
    waiting = registry.create_room("h1")
    ready = registry.create_room("h2")
    registry.join_room(ready.id, "g2")

    response = client.get("/api/rooms")

    assert response.status_code == 200
    assert response.json() == {"rooms": [{"id": waiting.id, "createdAt": int(waiting.created_at * 1000)}]}


def test_websocket_signaling_round_trip(client, registry):
    with client.websocket_connect("/ws") as host_ws, client.websocket_connect("/ws") as guest_ws:
        host_ws.send_json({"type": "create-room"})
        created = host_ws.receive_json()
        assert created["type"] == "room-created"
        room_id = created["roomId"]

        guest_ws.send_json({"type": "join-room", "roomId": room_id})
        joined = guest_ws.receive_json()
        assert joined == {"type": "room-joined", "roomId": room_id, "isHost": False}
        guest_joined = host_ws.receive_json()
        assert guest_joined["type"] == "guest-joined"
        guest_id = guest_joined["guestId"]

        host_ws.send_json({"type": "offer", "roomId": room_id, "offer": {"sdp": "x"}})
        offer = guest_ws.receive_json()
        assert offer["type"] == "offer"
        assert offer["offer"] == {"sdp": "x"}
        host_id = offer["from"]

        guest_ws.send_json({"type": "answer", "roomId": room_id, "answer": {"sdp": "y"}})
        assert host_ws.receive_json() == {"type": "answer", "answer": {"sdp": "y"}, "from": guest_id}

        assert registry.get_room(room_id).host == host_id
        assert client.get("/api/health").json()["connections"] == 2

        guest_ws.send_json({"type": "leave-room", "roomId": room_id})
        assert host_ws.receive_json() == {"type": "opponent-left"}

        host_ws.send_json({"type": "get-rooms"})
        assert host_ws.receive_json() == {"type": "room-list", "rooms": []}

    assert registry.get_room(room_id) is None


def test_websocket_disconnect_notifies_opponent(client, registry):
    with client.websocket_connect("/ws") as host_ws:
        host_ws.send_json({"type": "create-room"})
        room_id = host_ws.receive_json()["roomId"]

        with client.websocket_connect("/ws") as guest_ws:
            guest_ws.send_json({"type": "join-room", "roomId": room_id})
            guest_ws.receive_json()
            host_ws.receive_json()

        assert host_ws.receive_json() == {"type": "opponent-disconnected"}

    assert registry.get_room_count() == 0


def test_websocket_reports_errors_to_sender(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json()["code"] == "INVALID_MESSAGE"

        ws.send_json({"type": "join-room", "roomId": "NOPE42"})
        assert ws.receive_json() == {"type": "error", "message": "Room not found", "code": "ROOM_NOT_FOUND"}


def test_cleanup_task_evicts_stale_rooms(clock):
    registry = RoomRegistry(clock=clock)
    room = registry.create_room("host")
    clock.advance(10)
    evicted = []

    async def run_briefly():
        task = asyncio.create_task(run_room_cleanup(registry, interval=0.01, timeout=5, on_removed=evicted.append))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run_briefly())

    assert registry.get_room_count() == 0
    assert evicted == [room.id]
