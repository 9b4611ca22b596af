"""
Transport: namespaces of client sockets and the namespace registry.
"""

from flow_bridge.components.transport.envelope import decode_envelope, encode_envelope
from flow_bridge.components.transport.namespace import (
    ClientSocket,
    Namespace,
    TargetedEmitter,
    is_ws_connected,
)
from flow_bridge.components.transport.server import SocketServer

__all__ = [
    "decode_envelope",
    "encode_envelope",
    "ClientSocket",
    "Namespace",
    "TargetedEmitter",
    "is_ws_connected",
    "SocketServer",
]
