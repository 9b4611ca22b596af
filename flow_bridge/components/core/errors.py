"""
Bridge errors raised by the Python API.

The HTTP surface translates these into shared.utils.exceptions.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for bridge errors."""


class EndpointExistsError(BridgeError):
    """An endpoint is already mounted at the base path."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Endpoint already mounted at {url}")
        self.url = url


class EndpointNotFoundError(BridgeError):
    """No endpoint is mounted at the base path."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No endpoint mounted at {url}")
        self.url = url
