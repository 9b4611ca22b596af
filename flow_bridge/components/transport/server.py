"""
Socket server: the registry of namespaces by name.
"""

from __future__ import annotations

from shared.config.logging import get_logger
from flow_bridge.components.transport.namespace import Namespace

logger = get_logger(__name__)


class SocketServer:
    """
    Holds every live namespace.

    Attributes:
        namespaces: Namespace name -> Namespace.
    """

    def __init__(self) -> None:
        self.namespaces: dict[str, Namespace] = {}

    def of(self, name: str) -> Namespace:
        """Return the namespace called ``name``, creating it if needed."""
        namespace = self.namespaces.get(name)
        if namespace is None:
            namespace = Namespace(name)
            self.namespaces[name] = namespace
            logger.debug("Namespace created", namespace=name)
        return namespace

    def get(self, name: str) -> Namespace | None:
        return self.namespaces.get(name)

    def remove_namespace(self, name: str, namespace: Namespace | None = None) -> Namespace | None:
        """
        Unregister the namespace called ``name``.

        When ``namespace`` is given, the registered one is removed only if it
        is that same object.
        """
        registered = self.namespaces.get(name)
        if registered is None:
            return None
        if namespace is not None and registered is not namespace:
            logger.debug("Namespace owned by another endpoint, kept", namespace=name)
            return None
        del self.namespaces[name]
        logger.debug("Namespace removed", namespace=name)
        return registered

    def get_stats(self) -> dict[str, int]:
        return {
            "namespaces": len(self.namespaces),
            "clients": sum(len(ns.connected) for ns in self.namespaces.values()),
        }
