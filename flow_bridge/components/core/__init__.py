"""
Core components: constants, errors, the Endpoint value object and
message classification.
"""

from flow_bridge.components.core.constants import (
    BridgeConstants,
    ControlType,
    WSCloseCode,
    CONTROL_MARKER,
    CLIENT_ID_KEY,
    TOPIC_KEY,
)
from flow_bridge.components.core.endpoint import Endpoint
from flow_bridge.components.core.errors import (
    BridgeError,
    EndpointExistsError,
    EndpointNotFoundError,
)
from flow_bridge.components.core.messages import MessageKind, classify_message, control_message

__all__ = [
    "BridgeConstants",
    "ControlType",
    "WSCloseCode",
    "CONTROL_MARKER",
    "CLIENT_ID_KEY",
    "TOPIC_KEY",
    "Endpoint",
    "BridgeError",
    "EndpointExistsError",
    "EndpointNotFoundError",
    "MessageKind",
    "classify_message",
    "control_message",
]
