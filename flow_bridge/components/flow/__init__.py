"""
Flow runtime seam: node protocol, status helper, property lookup.
"""

from flow_bridge.components.flow.node import (
    CONTROL_OUTPUT,
    DATA_OUTPUT,
    FlowNode,
    RecordingFlowNode,
    set_node_status,
)
from flow_bridge.components.flow.props import get_message_property, get_props

__all__ = [
    "CONTROL_OUTPUT",
    "DATA_OUTPUT",
    "FlowNode",
    "RecordingFlowNode",
    "set_node_status",
    "get_message_property",
    "get_props",
]
