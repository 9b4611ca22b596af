"""
Message classification.

Messages are open-ended dicts whose shape belongs to the flow author.
The only structure the bridge reads is the control marker, which is
decoded once at the boundary into a MessageKind.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from flow_bridge.components.core.constants import CONTROL_MARKER, ControlType


class MessageKind(str, Enum):
    """Discriminant of a bridge message."""

    DATA = "data"
    CONTROL = "control"


def classify_message(msg: dict[str, Any]) -> MessageKind:
    """Return CONTROL when the message carries the control marker, else DATA."""
    if CONTROL_MARKER in msg:
        return MessageKind.CONTROL
    return MessageKind.DATA


def control_message(kind: ControlType | str, **fields: Any) -> dict[str, Any]:
    """
    Build a control message.

    Usage:
        control_message(ControlType.SHUTDOWN, **{"from": "server"})
        # {"bridgeCtrl": "shutdown", "from": "server"}
    """
    value = kind.value if isinstance(kind, ControlType) else kind
    return {CONTROL_MARKER: value, **fields}
