"""
Endpoint core: message routing, control emission and teardown.
"""

from flow_bridge.core.endpoint.router import ChannelRouter
from flow_bridge.core.endpoint.control import ControlEmitter
from flow_bridge.core.endpoint.lifecycle import EndpointLifecycle

__all__ = [
    "ChannelRouter",
    "ControlEmitter",
    "EndpointLifecycle",
]
