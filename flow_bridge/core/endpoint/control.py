"""
Control Emitter.

Sends lifecycle notifications on the control channel and mirrors each one
to the node's second output.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from shared.config.logging import get_logger
from flow_bridge.components.core.constants import CLIENT_ID_KEY, TOPIC_KEY

if TYPE_CHECKING:
    from flow_bridge.components.core.endpoint import Endpoint
    from flow_bridge.components.flow.node import FlowNode
    from flow_bridge.components.transport.namespace import Namespace

logger = get_logger(__name__)


class ControlEmitter:
    """Emits control messages for one endpoint. Fire-and-forget."""

    def __init__(
        self,
        endpoint: "Endpoint",
        node: "FlowNode",
        namespace: "Namespace",
    ) -> None:
        self._endpoint = endpoint
        self._node = node
        self._namespace = namespace

    async def send_control(
        self,
        msg: dict[str, Any],
        client_id: str | None = None,
    ) -> int:
        """
        Send a control message to one client or to all of them.

        ``msg`` is modified in place: the target client id and the
        endpoint's default topic may be added.

        Args:
            msg: The control message.
            client_id: Only send to this client.

        Returns:
            Number of clients the message was delivered to.
        """
        endpoint = self._endpoint
        if client_id:
            msg[CLIENT_ID_KEY] = client_id

        target = msg.get(CLIENT_ID_KEY)
        if target:
            delivered = await self._namespace.to(target).emit(endpoint.control_channel, msg)
        else:
            delivered = await self._namespace.emit(endpoint.control_channel, msg)

        if TOPIC_KEY not in msg and endpoint.topic != "":
            msg[TOPIC_KEY] = endpoint.topic

        self._node.send([None, msg])

        logger.debug(
            "Control message sent",
            endpoint=endpoint.url,
            channel=endpoint.control_channel,
            target=target or "*",
            delivered=delivered,
        )
        return delivered
