"""
Pytest configuration and fixtures for bridge tests.

Fakes stand in for Starlette WebSockets and for the flow runtime node so
the endpoint core can be exercised without a server.
"""

from typing import Any

import pytest
from starlette.websockets import WebSocketState

from flow_bridge.components.core.endpoint import Endpoint
from flow_bridge.components.transport.namespace import ClientSocket, Namespace
from flow_bridge.components.transport.server import SocketServer
from flow_bridge.core.endpoint import ChannelRouter, ControlEmitter, EndpointLifecycle


class FakeWebSocket:
    """
    Minimal WebSocket double.

    Records sent frames in ``sent`` and appends ("send", frame) /
    ("close", code) to the shared ``events`` list so tests can check
    ordering across sockets.
    """

    def __init__(self, events: list | None = None, fail_send: bool = False) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.headers: dict[str, str] = {"origin": "http://localhost:1880"}
        self.sent: list[dict[str, Any]] = []
        self.events = events if events is not None else []
        self.fail_send = fail_send
        self.close_code: int | None = None

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail_send:
            raise RuntimeError("socket is closing")
        self.sent.append(data)
        self.events.append(("send", data))

    async def send_text(self, data: str) -> None:
        self.events.append(("send_text", data))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.application_state = WebSocketState.DISCONNECTED
        self.events.append(("close", code))


class RecordingNode:
    """Flow node double recording statuses and outputs."""

    def __init__(self) -> None:
        self.statuses: list[dict[str, str]] = []
        self.sent: list[Any] = []

    def status(self, status: dict[str, str]) -> None:
        self.statuses.append(status)

    def send(self, msg: Any) -> None:
        self.sent.append(msg)


def connect_client(namespace: Namespace, client_id: str, events: list | None = None) -> ClientSocket:
    """Put a client straight into the namespace without firing listeners."""
    client = ClientSocket(FakeWebSocket(events), namespace, client_id=client_id)
    namespace.connected[client_id] = client
    return client


@pytest.fixture
def node():
    return RecordingNode()


@pytest.fixture
def server():
    return SocketServer()


@pytest.fixture
def endpoint():
    return Endpoint(
        url="/a",
        data_channel="data",
        control_channel="control",
        fwd_in_messages=True,
    )


@pytest.fixture
def namespace(server, endpoint):
    return server.of(endpoint.namespace_name)


@pytest.fixture
def channel_router(endpoint, node, namespace):
    return ChannelRouter(endpoint, node, namespace)


@pytest.fixture
def control(endpoint, node, namespace):
    return ControlEmitter(endpoint, node, namespace)


@pytest.fixture
def routes():
    return []


@pytest.fixture
def lifecycle(endpoint, node, namespace, server, routes, control):
    return EndpointLifecycle(endpoint, node, namespace, server, routes, control)
