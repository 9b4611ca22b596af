"""
Bridge Constants.

Reserved message keys, control message kinds, WebSocket close codes and
operational defaults shared by the transport, routing and endpoint layers.
"""

from enum import Enum, IntEnum
from typing import Final, Protocol

__all__ = [
    "WSCloseCode",
    "BridgeConstants",
    "ControlType",
    "CONTROL_MARKER",
    "CLIENT_ID_KEY",
    "TOPIC_KEY",
    "SCRIPT_KEY",
    "STYLE_KEY",
    "ROUTE_TAG_ATTR",
    "CONNECTION_EVENT",
    "DISCONNECT_EVENT",
    "MSG_PING_PLAIN",
    "MSG_PING_JSON",
    "MSG_PONG_JSON",
    "DEFAULT_ALLOWED_ORIGINS",
    "HasStats",
]


class WSCloseCode(IntEnum):
    """
    WebSocket close codes used by the bridge.

    Standard codes (1000-1999) from RFC 6455.
    """

    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Endpoint torn down or client navigating away
    UNSUPPORTED_DATA = 1003  # Received data type not supported
    MESSAGE_TOO_BIG = 1009  # Message too large to process
    SERVER_ERROR = 1011  # Unexpected server error


class ControlType(str, Enum):
    """
    Values carried under CONTROL_MARKER.

    Clients may send other values; only these are produced by the server.
    """

    SHUTDOWN = "shutdown"
    CLIENT_CONNECT = "client connect"
    CLIENT_DISCONNECT = "client disconnect"


# ==========================================================================
# Reserved message keys
# ==========================================================================

# Presence of this key makes a message a control message.
CONTROL_MARKER: Final[str] = "bridgeCtrl"

# Client socket id a message targets (outbound) or came from (inbound).
CLIENT_ID_KEY: Final[str] = "_clientId"

TOPIC_KEY: Final[str] = "topic"

# Keys stripped from inbound flow messages unless the endpoint allows them.
SCRIPT_KEY: Final[str] = "script"
STYLE_KEY: Final[str] = "style"

# Attribute set on every Starlette route an endpoint mounts; holds the
# endpoint's normalized base path.
ROUTE_TAG_ATTR: Final[str] = "bridge_base_path"

# Namespace lifecycle events (channel names are the other event names).
CONNECTION_EVENT: Final[str] = "connection"
DISCONNECT_EVENT: Final[str] = "disconnect"


class BridgeConstants:
    """
    Operational defaults.

    These are used when settings are not available; at runtime the
    EndpointManager reads shared.config.settings, which takes precedence.
    """

    # Default channel names. Must differ from each other.
    DATA_CHANNEL: Final[str] = "bridge"
    CONTROL_CHANNEL: Final[str] = "bridgeControl"

    # WS_RECEIVE_TIMEOUT: 90 seconds
    # At 3x a 30s client ping interval, tolerates jitter while still
    # detecting dead clients.
    WS_RECEIVE_TIMEOUT: Final[float] = 90.0

    # WS_SEND_TIMEOUT: 5 seconds
    # A send that does not complete in this window marks the client dead.
    WS_SEND_TIMEOUT: Final[float] = 5.0

    # WS_ACCEPT_TIMEOUT: 5 seconds
    WS_ACCEPT_TIMEOUT: Final[float] = 5.0

    # Suffix of the socket route under an endpoint's base path.
    SOCKET_PATH: Final[str] = "/ws"

    # Suffix of the HTTP route that injects flow messages.
    INPUT_PATH: Final[str] = "/_input"


# Message type constants for heartbeat protocol
MSG_PING_PLAIN: Final[str] = "ping"
MSG_PING_JSON: Final[str] = '{"type":"ping"}'
MSG_PONG_JSON: Final[str] = '{"type":"pong"}'


# Default development origins for CORS
DEFAULT_ALLOWED_ORIGINS: Final[tuple[str, ...]] = (
    "http://localhost:1880",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:1880",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


class HasStats(Protocol):
    """
    Protocol for components that provide statistics.

    All stats methods should return a dict with string keys.
    """

    def get_stats(self) -> dict[str, int | float | str]:
        """Return component statistics as a dictionary."""
        ...
