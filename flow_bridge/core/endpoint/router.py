"""
Channel Router.

Decides what an inbound flow message becomes on the wire and whether it
is echoed back into the flow.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from shared.config.logging import get_logger
from flow_bridge.components.core.constants import CLIENT_ID_KEY, SCRIPT_KEY, STYLE_KEY
from flow_bridge.components.core.messages import MessageKind, classify_message

if TYPE_CHECKING:
    from flow_bridge.components.core.endpoint import Endpoint
    from flow_bridge.components.flow.node import FlowNode
    from flow_bridge.components.transport.namespace import Namespace

logger = get_logger(__name__)


class ChannelRouter:
    """
    Routes inbound flow messages to the endpoint's clients.

    Payloads are not validated: any JSON-serializable dict is forwarded
    as-is, minus the keys the endpoint does not allow.
    """

    def __init__(
        self,
        endpoint: "Endpoint",
        node: "FlowNode",
        namespace: "Namespace",
    ) -> None:
        self._endpoint = endpoint
        self._node = node
        self._namespace = namespace

    async def input_handler(self, msg: dict[str, Any]) -> dict[str, Any] | None:
        """
        Handle one message arriving from the flow.

        Control messages are dropped so control output wired back into
        the input cannot loop.

        Returns:
            The message as sent (possibly with keys removed), or None if
            it was dropped.
        """
        endpoint = self._endpoint
        endpoint.rcv_msg_count += 1

        if classify_message(msg) is MessageKind.CONTROL:
            logger.debug(
                "Dropped control message on flow input",
                endpoint=endpoint.url,
                count=endpoint.rcv_msg_count,
            )
            return None

        if not endpoint.allow_scripts:
            msg.pop(SCRIPT_KEY, None)
        if not endpoint.allow_styles:
            msg.pop(STYLE_KEY, None)

        client_id = msg.get(CLIENT_ID_KEY)
        if client_id:
            delivered = await self._namespace.to(client_id).emit(endpoint.data_channel, msg)
        else:
            delivered = await self._namespace.emit(endpoint.data_channel, msg)

        logger.debug(
            "Message sent to clients",
            endpoint=endpoint.url,
            channel=endpoint.data_channel,
            target=client_id or "*",
            delivered=delivered,
        )

        if endpoint.fwd_in_messages:
            self._node.send(msg)
            logger.debug("Message passed downstream", endpoint=endpoint.url)

        return msg
