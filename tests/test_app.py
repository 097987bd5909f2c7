import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app import create_app, is_allowed_origin
from registry import RoomRegistry

ORIGINS = ["http://localhost:5173", "https://voice.example.com"]


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def client(registry):
    with TestClient(create_app(registry, allowed_origins=ORIGINS)) as client:
        yield client


def _join_frame(room_id, uid, name, peer_id, ack=None):
    frame = {"event": "voice:join", "data": {"roomId": room_id, "uid": uid, "name": name, "peerId": peer_id}}
    if ack is not None:
        frame["ack"] = ack
    return frame


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "service": "voice-server"}


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "voice-server up"


def test_room_diagnostics(client, registry):
    registry.join("room-1", "u1", "Bob", "p1")

    listing = client.get("/rooms").json()
    assert listing == {"count": 1, "rooms": ["ROOM-1"]}

    details = client.get("/rooms/room-1").json()
    assert details == {"room_id": "ROOM-1", "peers": [{"uid": "u1", "name": "Bob", "peerId": "p1"}]}

    assert client.get("/rooms/unknown").json() == {"room_id": "UNKNOWN", "peers": []}


@pytest.mark.parametrize(
    "origin, allowed",
    [
        (None, True),
        ("", True),
        ("https://voice.example.com", True),
        ("http://localhost:3000", True),
        ("http://127.0.0.1:8080", True),
        ("https://localhost:3000", False),
        ("https://evil.example.com", False),
    ],
)
def test_is_allowed_origin(origin, allowed):
    assert is_allowed_origin(origin, ORIGINS) is allowed


def test_wildcard_allows_any_origin():
    assert is_allowed_origin("https://anything.example", ["*"])


def test_cors_headers_for_allowed_origin(client):
    response = client.get("/health", headers={"Origin": "http://127.0.0.1:4321"})
    assert response.headers["access-control-allow-origin"] == "http://127.0.0.1:4321"


def test_cors_headers_absent_for_unknown_origin(client):
    response = client.get("/health", headers={"Origin": "https://evil.example.com"})
    assert "access-control-allow-origin" not in response.headers


def test_websocket_rejects_unknown_origin(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws", headers={"Origin": "https://evil.example.com"}) as ws:
            ws.receive_json()


def test_join_ack_and_user_joined(client, registry):
    with client.websocket_connect("/ws") as ws1, client.websocket_connect("/ws") as ws2:
        ws1.send_json(_join_frame("room-1", " u1 ", "Bob", "p1", ack=1))
        assert ws1.receive_json() == {
            "event": "ack",
            "ack": 1,
            "data": {"ok": True, "peers": [{"uid": "u1", "name": "Bob", "peerId": "p1"}]},
        }

        ws2.send_json(_join_frame("ROOM-1", "u2", "Carol", "p2", ack="join-2"))
        ack = ws2.receive_json()
        assert ack["ack"] == "join-2"
        assert [p["uid"] for p in ack["data"]["peers"]] == ["u1", "u2"]

        assert ws1.receive_json() == {
            "event": "voice:user-joined",
            "data": {"uid": "u2", "name": "Carol", "peerId": "p2"},
        }
        assert registry.room_ids() == ["ROOM-1"]


def test_bad_join_is_acked_with_error(client, registry):
    with client.websocket_connect("/ws") as ws:
        ws.send_json(_join_frame("room-1", "u1", "Bob", "", ack=7))
        assert ws.receive_json() == {"event": "ack", "ack": 7, "data": {"ok": False, "error": "BAD_REQUEST"}}
    assert len(registry) == 0


def test_disconnect_announces_user_left(client, registry):
    with client.websocket_connect("/ws") as ws2:
        with client.websocket_connect("/ws") as ws1:
            ws1.send_json(_join_frame("X", "u1", "One", "p1", ack=1))
            ws1.receive_json()
            ws2.send_json(_join_frame("X", "u2", "Two", "p2", ack=2))
            ws2.receive_json()
            assert ws1.receive_json()["event"] == "voice:user-joined"

            # close from inside the block so the server finishes its cleanup
            # before the test client tears the session down
            ws1.close()
            assert ws2.receive_json() == {"event": "voice:user-left", "data": {"uid": "u1"}}

        assert [m.user_id for m in registry.snapshot("X")] == ["u2"]


def test_explicit_leave_over_socket(client, registry):
    with client.websocket_connect("/ws") as ws1, client.websocket_connect("/ws") as ws2:
        ws1.send_json(_join_frame("X", "u1", "One", "p1", ack=1))
        ws1.receive_json()
        ws2.send_json(_join_frame("X", "u2", "Two", "p2", ack=2))
        ws2.receive_json()
        ws1.receive_json()

        ws2.send_json({"event": "voice:leave", "data": {"roomId": "x", "uid": "u2"}})
        assert ws1.receive_json() == {"event": "voice:user-left", "data": {"uid": "u2"}}
        assert [m.user_id for m in registry.snapshot("X")] == ["u1"]


def test_garbage_frames_are_ignored(client, registry):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        ws.send_text("[1, 2, 3]")
        ws.send_json({"data": {"roomId": "X"}})
        ws.send_json({"event": "voice:unknown", "data": {}})
        ws.send_json(_join_frame("X", "u1", "One", "p1", ack=1))
        assert ws.receive_json()["data"]["ok"] is True
    assert registry.room_ids() == []
