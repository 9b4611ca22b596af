"""
Tests for the HTTP and WebSocket surface of the bridge application.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from shared.config.settings import Settings
from flow_bridge.main import create_app
from tests.conftest import RecordingNode


@pytest.fixture
def app_settings():
    return Settings(
        bridge_endpoints="",
        bridge_static_dir="",
        bridge_data_channel="bridge",
        bridge_control_channel="bridgeControl",
        bridge_default_topic="",
        bridge_fwd_in_messages=False,
    )


@pytest.fixture
def node():
    return RecordingNode()


@pytest.fixture
def client(app_settings, node):
    app = create_app(app_settings)
    app.state.manager.mount("/dash", node)
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:

    def test_health(self, client):
        response = client.get("/bridge/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["namespaces"] == 1

    def test_request_id_echoed(self, client):
        response = client.get("/bridge/health", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"


class TestSocketSession:

    def test_connect_receives_client_connect(self, client):
        with client.websocket_connect("/dash/ws") as ws:
            frame = ws.receive_json()

        assert frame["channel"] == "bridgeControl"
        assert frame["payload"]["bridgeCtrl"] == "client connect"
        assert frame["payload"]["from"] == "server"
        assert frame["payload"]["_clientId"]

    def test_client_data_reaches_flow(self, client, node):
        with client.websocket_connect("/dash/ws") as ws:
            client_id = ws.receive_json()["payload"]["_clientId"]
            ws.send_json({"channel": "bridge", "payload": {"payload": 42}})
            ws.send_text("ping")
            assert ws.receive_text() == '{"type":"pong"}'

        assert {"payload": 42, "_clientId": client_id} in node.sent

    def test_input_route_broadcasts(self, client):
        with client.websocket_connect("/dash/ws") as ws:
            ws.receive_json()

            response = client.post("/dash/_input", json={"payload": "hello"})
            frame = ws.receive_json()

        assert response.status_code == 200
        assert response.json() == {"forwarded": True, "received": 1}
        assert frame == {"channel": "bridge", "payload": {"payload": "hello"}}

    def test_input_route_rejects_non_object(self, client):
        response = client.post("/dash/_input", json=[1, 2])

        assert response.status_code == 400

    def test_input_route_rejects_undecodable_body(self, client):
        response = client.post(
            "/dash/_input",
            content=b'{"a":"\xff"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_input_route_drops_control_messages(self, client):
        response = client.post("/dash/_input", json={"bridgeCtrl": "shutdown"})

        assert response.status_code == 200
        assert response.json() == {"forwarded": False, "received": 1}


class TestEndpointAdministration:

    def test_list_endpoints(self, client):
        data = client.get("/bridge/endpoints").json()

        assert [e["url"] for e in data["endpoints"]] == ["/dash"]

    def test_mount_conflict(self, client):
        response = client.post("/bridge/endpoints", json={"url": "/dash"})

        assert response.status_code == 409

    def test_mount_rejects_equal_channels(self, client):
        response = client.post(
            "/bridge/endpoints",
            json={"url": "/other", "data_channel": "x", "control_channel": "x"},
        )

        assert response.status_code == 400

    def test_mount_new_endpoint(self, client):
        response = client.post("/bridge/endpoints", json={"url": "/dash/sub", "topic": "t"})

        assert response.status_code == 201
        assert response.json()["routes"] == 2
        assert client.post("/dash/sub/_input", json={"payload": 1}).status_code == 200

    def test_unmount_removes_routes(self, client, node):
        client.post("/bridge/endpoints", json={"url": "/dash/sub"})

        response = client.delete("/bridge/endpoints", params={"url": "/dash"})

        assert response.status_code == 200
        assert response.json() == {"unmounted": "/dash"}
        assert client.post("/dash/_input", json={"payload": 1}).status_code == 404
        assert client.post("/dash/sub/_input", json={"payload": 1}).status_code == 200
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/dash/ws"):
                pass
        assert node.statuses[-1]["text"] == "CLOSED"

    def test_unmount_unknown(self, client):
        response = client.delete("/bridge/endpoints", params={"url": "/missing"})

        assert response.status_code == 404


class TestStaticFiles:

    def test_nested_endpoint_not_shadowed_by_parent_static(self, client, tmp_path):
        (tmp_path / "index.html").write_text("<h1>site</h1>")
        manager = client.app.state.manager
        manager.mount("/site", RecordingNode(), static_dir=str(tmp_path))
        manager.mount("/site/sub", RecordingNode())

        page = client.get("/site/")
        response = client.post("/site/sub/_input", json={"payload": 1})

        assert page.status_code == 200
        assert "site" in page.text
        assert response.status_code == 200
        assert response.json() == {"forwarded": True, "received": 1}
