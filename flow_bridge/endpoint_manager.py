"""
Endpoint Manager.

Thin orchestrator that composes the endpoint core for each mounted base path:
- ChannelRouter: flow -> clients
- ControlEmitter: lifecycle notifications
- EndpointLifecycle: teardown
- NamespaceSocketEndpoint: client sessions

At most one endpoint exists per base path.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, MutableSequence, TYPE_CHECKING

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route, WebSocketRoute
from starlette.staticfiles import StaticFiles

from shared.config.logging import get_logger
from shared.config.settings import Settings, settings as default_settings
from shared.utils.exceptions import ValidationError
from flow_bridge.components.core.constants import (
    BridgeConstants,
    CLIENT_ID_KEY,
    CONNECTION_EVENT,
    DISCONNECT_EVENT,
    TOPIC_KEY,
    ControlType,
)
from flow_bridge.components.core.endpoint import Endpoint
from flow_bridge.components.core.errors import EndpointExistsError, EndpointNotFoundError
from flow_bridge.components.core.messages import control_message
from flow_bridge.components.endpoints.socket_endpoint import NamespaceSocketEndpoint
from flow_bridge.components.flow.node import set_node_status
from flow_bridge.components.routing.matcher import route_tag, tag_route
from flow_bridge.components.routing.paths import url_join
from flow_bridge.components.transport.server import SocketServer
from flow_bridge.core.endpoint import ChannelRouter, ControlEmitter, EndpointLifecycle

if TYPE_CHECKING:
    from fastapi import WebSocket
    from flow_bridge.components.flow.node import FlowNode
    from flow_bridge.components.transport.namespace import ClientSocket

logger = get_logger(__name__)


def _is_under(path: str, prefix: str) -> bool:
    return prefix == "" or path == prefix or path.startswith(prefix + "/")


class BridgeEndpoint:
    """
    One mounted endpoint and everything it owns.

    Mounting registers the namespace listeners and adds three kinds of
    routes, all tagged with the base path:
    - "{url}/ws": client socket sessions
    - "{url}/_input" (POST): inject a flow message
    - "{url}" static files, when a static directory is configured

    Routes are inserted ahead of any Mount that would otherwise answer
    their path, so a parent endpoint's static files never shadow a
    nested endpoint.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        node: "FlowNode",
        server: SocketServer,
        routes: MutableSequence[Any],
        static_dir: str | None = None,
        settings: Settings = default_settings,
    ) -> None:
        self.endpoint = endpoint
        self.node = node
        self.server = server
        self.namespace = server.of(endpoint.namespace_name)
        self._routes = routes
        self._own_routes: list[Any] = []
        self._static_dir = static_dir or None
        self._settings = settings

        self.router = ChannelRouter(endpoint, node, self.namespace)
        self.control = ControlEmitter(endpoint, node, self.namespace)
        self.lifecycle = EndpointLifecycle(
            endpoint=endpoint,
            node=node,
            namespace=self.namespace,
            server=server,
            routes=routes,
            control=self.control,
            owned_routes=self._own_routes,
        )

    @property
    def url(self) -> str:
        return self.endpoint.url

    # =========================================================================
    # Mounting
    # =========================================================================

    def mount(self) -> None:
        """Register namespace listeners and append this endpoint's routes."""
        self.namespace.on(CONNECTION_EVENT, self._on_connection)
        self.namespace.on(DISCONNECT_EVENT, self._on_disconnect)
        self.namespace.on(self.endpoint.data_channel, self._on_client_data)
        self.namespace.on(self.endpoint.control_channel, self._on_client_control)

        for route in self._build_routes():
            tag_route(route, self.url)
            self._routes.insert(self._insertion_index(route), route)
            self._own_routes.append(route)

        set_node_status({"fill": "blue", "shape": "dot", "text": "Node Initialised"}, self.node)

    def _build_routes(self) -> list[Any]:
        url = self.url
        routes: list[Any] = [
            WebSocketRoute(
                url_join(url, BridgeConstants.SOCKET_PATH),
                endpoint=self._socket_session,
            ),
            Route(
                url_join(url, BridgeConstants.INPUT_PATH),
                endpoint=self._input_route,
                methods=["POST"],
            ),
        ]
        if self._static_dir:
            routes.append(Mount(url, app=StaticFiles(directory=self._static_dir, html=True)))
        return routes

    def _insertion_index(self, route: Any) -> int:
        """Position ahead of the first Mount that would answer ``route``'s path."""
        for index, existing in enumerate(self._routes):
            if isinstance(existing, Mount) and _is_under(route.path, existing.path):
                return index
        return len(self._routes)

    # =========================================================================
    # Core operations
    # =========================================================================

    async def input_handler(self, msg: dict[str, Any]) -> dict[str, Any] | None:
        return await self.router.input_handler(msg)

    async def send_control(self, msg: dict[str, Any], client_id: str | None = None) -> int:
        return await self.control.send_control(msg, client_id)

    async def teardown(self, done: Callable[[], Any] | None = None) -> None:
        await self.lifecycle.teardown(done)

    # =========================================================================
    # Route handlers
    # =========================================================================

    async def _socket_session(self, websocket: "WebSocket") -> None:
        session = NamespaceSocketEndpoint(
            websocket,
            self.namespace,
            self.url,
            receive_timeout=self._settings.ws_receive_timeout,
            send_timeout=self._settings.ws_send_timeout,
            max_message_size=self._settings.ws_max_message_size,
        )
        await session.run()

    async def _input_route(self, request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Message body must be valid JSON", endpoint=self.url)
        if not isinstance(body, dict):
            raise ValidationError(
                "Message body must be a JSON object",
                endpoint=self.url,
                body_type=type(body).__name__,
            )

        sent = await self.input_handler(body)
        return JSONResponse(
            {
                "forwarded": sent is not None,
                "received": self.endpoint.rcv_msg_count,
            }
        )

    # =========================================================================
    # Namespace listeners
    # =========================================================================

    async def _on_connection(self, client: "ClientSocket") -> None:
        self._report_clients()
        await self.control.send_control(
            control_message(
                ControlType.CLIENT_CONNECT,
                **{
                    "from": "server",
                    "serverTimestamp": datetime.now(timezone.utc).isoformat(),
                },
            ),
            client.id,
        )

    async def _on_disconnect(self, client: "ClientSocket", reason: str) -> None:
        if not self.lifecycle.is_closed:
            self._report_clients()
        await self.control.send_control(
            control_message(
                ControlType.CLIENT_DISCONNECT,
                **{"reason": reason, "from": "server", CLIENT_ID_KEY: client.id},
            )
        )

    async def _on_client_data(self, client: "ClientSocket", payload: dict[str, Any]) -> None:
        self._stamp_client_message(client, payload)
        self.node.send(payload)

    async def _on_client_control(self, client: "ClientSocket", payload: dict[str, Any]) -> None:
        self._stamp_client_message(client, payload)
        payload["from"] = "client"
        self.node.send([None, payload])

    def _stamp_client_message(self, client: "ClientSocket", payload: dict[str, Any]) -> None:
        payload[CLIENT_ID_KEY] = client.id
        if TOPIC_KEY not in payload and self.endpoint.topic != "":
            payload[TOPIC_KEY] = self.endpoint.topic

    def _report_clients(self) -> None:
        count = len(self.namespace.connected)
        set_node_status(
            {"fill": "green", "shape": "dot", "text": f"connected {count}"},
            self.node,
        )

    def get_stats(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "data_channel": self.endpoint.data_channel,
            "control_channel": self.endpoint.control_channel,
            "clients": len(self.namespace.connected),
            "messages_received": self.endpoint.rcv_msg_count,
            "routes": sum(1 for route in self._routes if route_tag(route) == self.url),
            "closed": self.lifecycle.is_closed,
        }


class EndpointManager:
    """
    Registry of mounted endpoints.

    Args:
        routes: The application's live route list (``app.router.routes``).
        server: Socket server holding the namespaces.
        settings: Defaults for options a mount does not set.
    """

    def __init__(
        self,
        routes: MutableSequence[Any],
        server: SocketServer | None = None,
        settings: Settings = default_settings,
    ) -> None:
        self._routes = routes
        self.server = server or SocketServer()
        self._settings = settings
        self._endpoints: dict[str, BridgeEndpoint] = {}
        # Base paths whose teardown is still running.
        self._closing: set[str] = set()

    def mount(
        self,
        url: str,
        node: "FlowNode",
        *,
        data_channel: str | None = None,
        control_channel: str | None = None,
        allow_scripts: bool | None = None,
        allow_styles: bool | None = None,
        fwd_in_messages: bool | None = None,
        topic: str | None = None,
        static_dir: str | None = None,
    ) -> BridgeEndpoint:
        """
        Mount an endpoint at ``url``.

        Options left as None take their value from settings.

        Raises:
            EndpointExistsError: If an endpoint is mounted at ``url`` or is
                still being torn down there.
            ValueError: If the url is empty or the channel names collide.
        """
        s = self._settings
        normalized = url_join(url)
        if normalized in self._endpoints or normalized in self._closing:
            raise EndpointExistsError(normalized)

        endpoint = Endpoint(
            url=normalized,
            data_channel=data_channel or s.bridge_data_channel,
            control_channel=control_channel or s.bridge_control_channel,
            allow_scripts=s.bridge_allow_scripts if allow_scripts is None else allow_scripts,
            allow_styles=s.bridge_allow_styles if allow_styles is None else allow_styles,
            fwd_in_messages=s.bridge_fwd_in_messages if fwd_in_messages is None else fwd_in_messages,
            topic=s.bridge_default_topic if topic is None else topic,
        )
        bridge = BridgeEndpoint(
            endpoint,
            node,
            self.server,
            self._routes,
            static_dir=static_dir if static_dir is not None else s.bridge_static_dir,
            settings=s,
        )
        bridge.mount()
        self._endpoints[normalized] = bridge

        logger.info(
            "Endpoint mounted",
            endpoint=normalized,
            data_channel=endpoint.data_channel,
            control_channel=endpoint.control_channel,
        )
        return bridge

    def get(self, url: str) -> BridgeEndpoint:
        """
        Raises:
            EndpointNotFoundError: If nothing is mounted at ``url``.
        """
        normalized = url_join(url)
        bridge = self._endpoints.get(normalized)
        if bridge is None:
            raise EndpointNotFoundError(normalized)
        return bridge

    def urls(self) -> list[str]:
        return list(self._endpoints)

    async def unmount(self, url: str, done: Callable[[], Any] | None = None) -> None:
        """
        Tear down the endpoint at ``url``.

        The base path cannot be mounted again until teardown has finished.

        Raises:
            EndpointNotFoundError: If nothing is mounted at ``url``.
        """
        normalized = url_join(url)
        bridge = self._endpoints.pop(normalized, None)
        if bridge is None:
            raise EndpointNotFoundError(normalized)
        self._closing.add(normalized)
        try:
            await bridge.teardown(done)
        finally:
            self._closing.discard(normalized)

    async def shutdown(self) -> None:
        """Tear down every endpoint."""
        for url in list(self._endpoints):
            await self.unmount(url)

    def get_stats(self) -> dict[str, Any]:
        return {
            **self.server.get_stats(),
            "endpoints": [bridge.get_stats() for bridge in self._endpoints.values()],
        }
