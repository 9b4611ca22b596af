"""
Flow runtime seam.

The bridge talks to the flow runtime through a node object with two calls:
``status`` (advisory UI status) and ``send`` (emit on the node's outputs).
``send`` takes a single message for output 1, or a list with one slot per
output where ``None`` leaves that output empty.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

from shared.config.logging import get_logger

logger = get_logger(__name__)

# Output slots of a bridge node.
DATA_OUTPUT = 0
CONTROL_OUTPUT = 1


class FlowNode(Protocol):
    """Runtime node an endpoint reports to and emits through."""

    def status(self, status: dict[str, str]) -> None:
        ...

    def send(self, msg: dict[str, Any] | list[dict[str, Any] | None]) -> None:
        ...


def set_node_status(status: dict[str, str] | str, node: FlowNode) -> None:
    """
    Set a node status in the runtime UI.

    fill: red, green, yellow, blue or grey. A plain string becomes a grey
    ring with that text.
    """
    if not isinstance(status, dict):
        status = {"fill": "grey", "shape": "ring", "text": str(status)}
    node.status(status)


class RecordingFlowNode:
    """
    FlowNode that queues every emitted message with its output slot.

    Used when the bridge runs as a standalone service: consumers read
    ``(slot, msg)`` pairs from ``outputs``.
    """

    def __init__(self, name: str, max_queue: int = 1000) -> None:
        self.name = name
        self.current_status: dict[str, str] = {}
        self.outputs: asyncio.Queue[tuple[int, dict[str, Any]]] = asyncio.Queue(maxsize=max_queue)
        self.dropped = 0

    def status(self, status: dict[str, str]) -> None:
        self.current_status = dict(status)
        logger.debug("Node status", node=self.name, **status)

    def send(self, msg: dict[str, Any] | list[dict[str, Any] | None]) -> None:
        slots = msg if isinstance(msg, list) else [msg]
        for slot, value in enumerate(slots):
            if value is None:
                continue
            try:
                self.outputs.put_nowait((slot, value))
            except asyncio.QueueFull:
                self.dropped += 1
                logger.warning(
                    "Node output queue full, message dropped",
                    node=self.name,
                    slot=slot,
                    dropped=self.dropped,
                )
                continue
            logger.debug("Node output", node=self.name, slot=slot, keys=sorted(value))

    def get_stats(self) -> dict[str, int | str]:
        return {
            "status": self.current_status.get("text", ""),
            "queued": self.outputs.qsize(),
            "dropped": self.dropped,
        }
