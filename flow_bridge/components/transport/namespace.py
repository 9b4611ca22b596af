"""
Namespace and client sockets.

A Namespace groups the client sockets connected to one endpoint and
dispatches their events to registered listeners. Event names are the
lifecycle events ("connection", "disconnect") and channel names.

Sends never raise: a client that went away between the membership check
and the send is a no-op, reported as an unsuccessful send.
"""

from __future__ import annotations

import asyncio
import inspect
import time
import uuid
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from starlette.websockets import WebSocketState

from shared.config.logging import get_logger
from flow_bridge.components.core.constants import (
    BridgeConstants,
    CONNECTION_EVENT,
    DISCONNECT_EVENT,
    WSCloseCode,
)
from flow_bridge.components.transport.envelope import encode_envelope

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)

Listener = Callable[..., Awaitable[None] | None]


def is_ws_connected(ws: "WebSocket") -> bool:
    """
    Check if WebSocket is in connected state before sending.

    Transitional states are not exposed by Starlette, so a socket may
    appear connected briefly after the peer started closing.
    """
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class ClientSocket:
    """One connected client of a namespace."""

    def __init__(
        self,
        websocket: "WebSocket",
        namespace: "Namespace",
        client_id: str | None = None,
        send_timeout: float = BridgeConstants.WS_SEND_TIMEOUT,
    ) -> None:
        self.id = client_id or uuid.uuid4().hex
        self.websocket = websocket
        self.namespace = namespace
        self.connected_at = time.time()
        self._send_timeout = send_timeout
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def origin(self) -> str | None:
        return self.websocket.headers.get("origin")

    async def send(self, channel: str, payload: dict[str, Any]) -> bool:
        """
        Send one message on a channel.

        Returns:
            True if the frame was handed to the socket, False if the client
            is gone or the send failed.
        """
        if not self._connected or not is_ws_connected(self.websocket):
            return False
        try:
            await asyncio.wait_for(
                self.websocket.send_json(encode_envelope(channel, payload)),
                timeout=self._send_timeout,
            )
            return True
        except asyncio.TimeoutError:
            logger.debug(
                "Send timed out",
                namespace=self.namespace.name,
                client_id=self.id,
                channel=channel,
            )
            return False
        except Exception as e:
            logger.debug(
                "Send failed",
                namespace=self.namespace.name,
                client_id=self.id,
                channel=channel,
                error=str(e),
            )
            return False

    async def disconnect(self, reason: str = "server namespace disconnect") -> None:
        """Close the socket from the server side and leave the namespace."""
        if not self._connected:
            return
        self._connected = False
        if is_ws_connected(self.websocket):
            try:
                await self.websocket.close(code=WSCloseCode.GOING_AWAY, reason=reason)
            except Exception as e:
                logger.debug("Failed to close client socket: %s", str(e))
        await self.namespace.remove_client(self, reason)

    def mark_disconnected(self) -> None:
        """Record that the peer closed the socket."""
        self._connected = False


class TargetedEmitter:
    """Emitter bound to a single client id, as returned by Namespace.to()."""

    def __init__(self, namespace: "Namespace", client_id: str) -> None:
        self._namespace = namespace
        self._client_id = client_id

    async def emit(self, channel: str, payload: dict[str, Any]) -> int:
        """Send to the target client. Returns 1 if delivered, else 0."""
        client = self._namespace.connected.get(self._client_id)
        if client is None:
            logger.debug(
                "Target client not connected",
                namespace=self._namespace.name,
                client_id=self._client_id,
                channel=channel,
            )
            return 0
        return 1 if await client.send(channel, payload) else 0


class Namespace:
    """
    Transport-level grouping of the client sockets of one endpoint.

    Attributes:
        name: Namespace name (the endpoint base path).
        connected: Client id -> ClientSocket for every connected client.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.connected: dict[str, ClientSocket] = {}
        self._listeners: dict[str, list[Listener]] = {}

    # =========================================================================
    # Listeners
    # =========================================================================

    def on(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(event, None)

    def listeners(self, event: str) -> list[Listener]:
        return list(self._listeners.get(event, []))

    def listener_count(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())

    def remove_all_listeners(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    async def dispatch(self, event: str, *args: Any) -> int:
        """
        Call every listener registered for ``event``.

        A failing listener is logged and does not stop the others.

        Returns:
            Number of listeners called.
        """
        listeners = self.listeners(event)
        for listener in listeners:
            try:
                result = listener(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    "Namespace listener failed",
                    namespace=self.name,
                    event_name=event,
                    error=str(e),
                    exc_info=True,
                )
        return len(listeners)

    # =========================================================================
    # Membership
    # =========================================================================

    def client_ids(self) -> list[str]:
        """Snapshot of the currently connected client ids."""
        return list(self.connected)

    def get_client(self, client_id: str) -> ClientSocket | None:
        return self.connected.get(client_id)

    async def add_client(self, client: ClientSocket) -> None:
        self.connected[client.id] = client
        await self.dispatch(CONNECTION_EVENT, client)

    async def remove_client(self, client: ClientSocket, reason: str) -> bool:
        """
        Drop a client and fire "disconnect" once.

        Returns:
            False if the client was not (or no longer) a member.
        """
        if self.connected.get(client.id) is not client:
            return False
        del self.connected[client.id]
        client.mark_disconnected()
        await self.dispatch(DISCONNECT_EVENT, client, reason)
        return True

    # =========================================================================
    # Emission
    # =========================================================================

    async def emit(self, channel: str, payload: dict[str, Any]) -> int:
        """
        Broadcast to every connected client.

        Returns:
            Number of clients the message was delivered to.
        """
        clients = list(self.connected.values())
        if not clients:
            return 0
        results = await asyncio.gather(
            *(client.send(channel, payload) for client in clients)
        )
        return sum(1 for delivered in results if delivered)

    def to(self, client_id: str) -> TargetedEmitter:
        return TargetedEmitter(self, client_id)

    def get_stats(self) -> dict[str, int | str]:
        return {
            "namespace": self.name,
            "clients": len(self.connected),
            "listeners": self.listener_count(),
        }
