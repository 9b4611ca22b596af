"""
Bridge core.

- endpoint/router.py: inbound flow message routing
- endpoint/control.py: control message emission
- endpoint/lifecycle.py: endpoint teardown
"""

from flow_bridge.core.endpoint import ChannelRouter, ControlEmitter, EndpointLifecycle

__all__ = [
    "ChannelRouter",
    "ControlEmitter",
    "EndpointLifecycle",
]
