"""
Request and client correlation.

Adds correlation IDs to HTTP requests and tags log records emitted while
serving a client socket session with that client's id.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Iterator

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variables (task-local under asyncio)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
client_id_var: ContextVar[str] = ContextVar("client_id", default="")


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def get_client_id() -> str:
    """Get the id of the client socket being served, if any."""
    return client_id_var.get()


@contextmanager
def bind_client_id(client_id: str) -> Iterator[None]:
    """
    Tag every log record emitted inside the block with ``client_id``.

    Usage:
        with bind_client_id(client.id):
            await session.run()
    """
    token = client_id_var.set(client_id)
    try:
        yield
    finally:
        client_id_var.reset(token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to all HTTP requests.

    - If X-Request-ID header is present, uses that value
    - Otherwise generates a new UUID
    - Sets the ID in context for logging
    - Returns the ID in response headers
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get(self.HEADER_NAME)
        if not request_id:
            request_id = str(uuid.uuid4())

        token = request_id_var.set(request_id)

        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            request_id_var.reset(token)


class CorrelationIdFilter:
    """
    Logging filter that adds request_id and client_id to log records.

    Usage:
        import logging
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.client_id = client_id_var.get() or "-"
        return True
