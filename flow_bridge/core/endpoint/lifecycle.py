"""
Endpoint Lifecycle.

Retires an endpoint: tells its clients, disconnects them, drops the
namespace and removes the HTTP routes mounted for its base path.

Teardown is best effort. Each step is attempted even when an earlier one
failed; failures are logged, never raised. The completion callback runs
last, exactly once per call.
"""

from __future__ import annotations

from typing import Any, Callable, MutableSequence, Sequence, TYPE_CHECKING

from shared.config.logging import get_logger
from flow_bridge.components.core.constants import ControlType
from flow_bridge.components.core.messages import control_message
from flow_bridge.components.flow.node import set_node_status
from flow_bridge.components.routing.matcher import find_matching_entries, route_tag
from flow_bridge.components.routing.registry import prune_route_entries

if TYPE_CHECKING:
    from flow_bridge.components.core.endpoint import Endpoint
    from flow_bridge.components.flow.node import FlowNode
    from flow_bridge.components.transport.namespace import Namespace
    from flow_bridge.components.transport.server import SocketServer
    from flow_bridge.core.endpoint.control import ControlEmitter

logger = get_logger(__name__)

CLOSED_STATUS = {"fill": "red", "shape": "ring", "text": "CLOSED"}


class EndpointLifecycle:
    """
    Teardown of one endpoint.

    The route list and socket server are injected so teardown can run
    against any registry, not only a live application.

    When ``owned_routes`` is given, routes tagged for the base path are
    pruned only if they are among those objects. Routes tagged by another
    endpoint at the same base path survive; untagged matches are still
    removed.
    """

    def __init__(
        self,
        endpoint: "Endpoint",
        node: "FlowNode",
        namespace: "Namespace",
        server: "SocketServer",
        routes: MutableSequence[Any],
        control: "ControlEmitter",
        owned_routes: Sequence[Any] | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._node = node
        self._namespace = namespace
        self._server = server
        self._routes = routes
        self._control = control
        self._owned_routes = owned_routes
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def teardown(self, done: Callable[[], Any] | None = None) -> None:
        """
        Tear the endpoint down.

        Steps, in order:
        1. Report CLOSED status.
        2. Broadcast the shutdown control message (before disconnecting,
           so clients still receive it).
        3. Disconnect every client connected at this moment.
        4. Remove namespace listeners and unregister the namespace.
        5-6. Find and remove the route entries for the base path.
        7. Call ``done``.

        A repeated call only runs step 7.

        Args:
            done: Completion callback for the runtime's own shutdown.
        """
        url = self._endpoint.url
        if self._closed:
            logger.debug("Endpoint already torn down", endpoint=url)
            self._complete(done)
            return
        self._closed = True

        logger.debug("Tearing down endpoint", endpoint=url)

        try:
            set_node_status(CLOSED_STATUS, self._node)
        except Exception:
            logger.warning("Failed to report closed status", endpoint=url, exc_info=True)

        try:
            await self._control.send_control(
                control_message(ControlType.SHUTDOWN, **{"from": "server"})
            )
        except Exception:
            logger.warning("Failed to notify clients of shutdown", endpoint=url, exc_info=True)

        disconnected = await self._disconnect_clients()

        try:
            self._namespace.remove_all_listeners()
            self._server.remove_namespace(self._namespace.name, self._namespace)
        except Exception:
            logger.warning("Failed to remove namespace", endpoint=url, exc_info=True)

        removed = 0
        try:
            indices = self._prunable(find_matching_entries(self._routes, url))
            removed = prune_route_entries(self._routes, indices)
        except Exception:
            logger.warning("Failed to prune route entries", endpoint=url, exc_info=True)

        logger.info(
            "Endpoint torn down",
            endpoint=url,
            clients_disconnected=disconnected,
            routes_removed=removed,
            messages_received=self._endpoint.rcv_msg_count,
        )

        self._complete(done)

    def _prunable(self, indices: list[int]) -> list[int]:
        if self._owned_routes is None:
            return indices
        owned = {id(route) for route in self._owned_routes}
        return [
            index
            for index in indices
            if route_tag(self._routes[index]) is None or id(self._routes[index]) in owned
        ]

    async def _disconnect_clients(self) -> int:
        """Disconnect a snapshot of the connected clients. Returns the count."""
        url = self._endpoint.url
        try:
            client_ids = self._namespace.client_ids()
        except Exception:
            logger.warning("Failed to enumerate clients", endpoint=url, exc_info=True)
            return 0

        disconnected = 0
        for client_id in client_ids:
            client = self._namespace.get_client(client_id)
            if client is None:
                continue
            try:
                await client.disconnect("endpoint closed")
                disconnected += 1
            except Exception:
                logger.warning(
                    "Failed to disconnect client",
                    endpoint=url,
                    client_id=client_id,
                    exc_info=True,
                )
        return disconnected

    @staticmethod
    def _complete(done: Callable[[], Any] | None) -> None:
        if done is not None:
            done()
