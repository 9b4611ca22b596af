"""
Client socket session.

Runs one WebSocket connection for a namespace: accept, join, receive
loop, leave. Frames are JSON envelopes dispatched to the namespace
listeners registered for their channel.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from fastapi import WebSocket, WebSocketDisconnect

from shared.config.logging import audit_client_event, get_logger
from shared.infrastructure.correlation import bind_client_id
from flow_bridge.components.core.constants import (
    BridgeConstants,
    MSG_PING_JSON,
    MSG_PING_PLAIN,
    MSG_PONG_JSON,
    WSCloseCode,
)
from flow_bridge.components.transport.envelope import decode_envelope
from flow_bridge.components.transport.namespace import ClientSocket

if TYPE_CHECKING:
    from flow_bridge.components.transport.namespace import Namespace

logger = get_logger(__name__)


async def handle_heartbeat(ws: WebSocket, data: str) -> bool:
    """
    Respond to ping frames with pong.

    Supports both plain text and JSON formatted pings.

    Returns:
        True if the frame was a heartbeat and was handled.
    """
    if data == MSG_PING_PLAIN or data == MSG_PING_JSON:
        try:
            await ws.send_text(MSG_PONG_JSON)
        except (ConnectionError, RuntimeError, OSError):
            # Connection may have closed - the receive loop handles cleanup
            pass
        return True
    return False


class HasWebSocket(Protocol):
    websocket: WebSocket
    endpoint_name: str
    max_message_size: int
    client: ClientSocket | None


class MessageValidationMixin:
    """
    Message size check for socket sessions.

    Requires:
        - self.websocket, self.endpoint_name, self.max_message_size, self.client
    """

    async def validate_message_size(self: HasWebSocket, data: str) -> bool:
        """
        Returns:
            True if valid, False if too large (connection closed).
        """
        if len(data) > self.max_message_size:
            logger.warning(
                "Message size exceeded limit",
                endpoint=self.endpoint_name,
                client_id=self.client.id if self.client else "unknown",
                size=len(data),
                max_size=self.max_message_size,
            )
            await self.websocket.close(
                code=WSCloseCode.MESSAGE_TOO_BIG,
                reason="Message too large",
            )
            return False
        return True


class NamespaceSocketEndpoint(MessageValidationMixin):
    """
    One client connection to a namespace.

    Usage:
        async def socket_route(websocket: WebSocket):
            await NamespaceSocketEndpoint(websocket, namespace, "/dashboard").run()
    """

    def __init__(
        self,
        websocket: WebSocket,
        namespace: "Namespace",
        endpoint_name: str,
        receive_timeout: float = BridgeConstants.WS_RECEIVE_TIMEOUT,
        send_timeout: float = BridgeConstants.WS_SEND_TIMEOUT,
        max_message_size: int = 64 * 1024,
    ) -> None:
        self.websocket = websocket
        self.namespace = namespace
        self.endpoint_name = endpoint_name
        self.receive_timeout = receive_timeout
        self.send_timeout = send_timeout
        self.max_message_size = max_message_size
        self.client: ClientSocket | None = None

    async def run(self) -> None:
        """
        Handle the complete lifecycle:
        1. Accept the socket
        2. Join the namespace ("connection" listeners run)
        3. Message loop
        4. Leave the namespace ("disconnect" listeners run)
        """
        try:
            await asyncio.wait_for(
                self.websocket.accept(),
                timeout=BridgeConstants.WS_ACCEPT_TIMEOUT,
            )
        except asyncio.TimeoutError:
            logger.warning("WebSocket accept timed out", endpoint=self.endpoint_name)
            return

        self.client = ClientSocket(
            self.websocket,
            self.namespace,
            send_timeout=self.send_timeout,
        )

        with bind_client_id(self.client.id):
            audit_client_event(
                "CONNECT",
                endpoint=self.endpoint_name,
                client_id=self.client.id,
                origin=self.client.origin,
            )
            reason = "client disconnect"
            try:
                await self.namespace.add_client(self.client)
                reason = await self._message_loop()
            except WebSocketDisconnect as e:
                reason = f"client disconnect ({e.code})"
            finally:
                left = await self.namespace.remove_client(self.client, reason)
                audit_client_event(
                    "DISCONNECT",
                    endpoint=self.endpoint_name,
                    client_id=self.client.id,
                    reason=reason if left else "server disconnect",
                )

    async def _message_loop(self) -> str:
        """
        Receive and dispatch frames until the client leaves.

        Returns:
            Disconnect reason when the loop ends without a client disconnect.
        """
        while self.client is not None and self.client.connected:
            data = await self._receive_with_timeout()
            if data is None:
                logger.info(
                    "Connection timed out (no messages)",
                    endpoint=self.endpoint_name,
                    timeout=self.receive_timeout,
                )
                await self.websocket.close(
                    code=WSCloseCode.NORMAL,
                    reason="Connection timeout",
                )
                return "timeout"

            if not await self.validate_message_size(data):
                return "message too big"

            if await handle_heartbeat(self.websocket, data):
                continue

            await self.handle_message(data)

        return "server disconnect"

    async def handle_message(self, data: str) -> None:
        """Decode a frame and dispatch it to the listeners for its channel."""
        try:
            channel, payload = decode_envelope(data)
        except ValueError as e:
            logger.debug(
                "Ignored malformed frame",
                endpoint=self.endpoint_name,
                error=str(e),
            )
            return

        called = await self.namespace.dispatch(channel, self.client, payload)
        if called == 0:
            logger.debug(
                "No listener for channel",
                endpoint=self.endpoint_name,
                channel=channel,
            )

    async def _receive_with_timeout(self) -> str | None:
        """
        Returns:
            Message data, or None if timeout.
        """
        try:
            return await asyncio.wait_for(
                self.websocket.receive_text(),
                timeout=self.receive_timeout,
            )
        except asyncio.TimeoutError:
            return None
