"""
Infrastructure module: correlation IDs for requests and client sessions.
"""

from shared.infrastructure.correlation import (
    CorrelationIdFilter,
    CorrelationIdMiddleware,
    bind_client_id,
    get_client_id,
    get_request_id,
)

__all__ = [
    "CorrelationIdFilter",
    "CorrelationIdMiddleware",
    "bind_client_id",
    "get_client_id",
    "get_request_id",
]
