"""
Flow Bridge.

Real-time endpoints that bridge flow runtime nodes to browser clients.

- components/  - transport, routing, flow seam, constants, socket sessions
- core/        - endpoint message routing, control emission, teardown
- endpoint_manager.py - per-endpoint composition and the endpoint registry
- main.py      - FastAPI service
"""

from flow_bridge.endpoint_manager import BridgeEndpoint, EndpointManager

__all__ = [
    "BridgeEndpoint",
    "EndpointManager",
]
