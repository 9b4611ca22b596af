"""
Socket endpoints: the per-connection session run by a WebSocket route.
"""

from flow_bridge.components.endpoints.socket_endpoint import (
    NamespaceSocketEndpoint,
    handle_heartbeat,
)

__all__ = [
    "NamespaceSocketEndpoint",
    "handle_heartbeat",
]
