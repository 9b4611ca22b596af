"""
Route registry pruning.

The route list is order sensitive and shared with the request path of the
framework, so entries are snapshotted first and then removed by identity
in one in-place assignment. Positions are never used after the snapshot.
"""

from __future__ import annotations

from typing import Any, Iterable, MutableSequence

from shared.config.logging import get_logger

logger = get_logger(__name__)


def prune_route_entries(routes: MutableSequence[Any], indices: Iterable[int]) -> int:
    """
    Remove the entries found at ``indices`` from ``routes``.

    Args:
        routes: The live route list (e.g. ``app.router.routes``).
        indices: Positions reported by find_matching_entries for this list.

    Returns:
        Number of entries removed.
    """
    targets = [routes[index] for index in sorted(set(indices))]
    if not targets:
        return 0

    target_ids = {id(route) for route in targets}
    before = len(routes)
    routes[:] = [route for route in routes if id(route) not in target_ids]
    removed = before - len(routes)

    logger.debug(
        "Pruned route entries",
        removed=removed,
        paths=[getattr(route, "path", repr(route)) for route in targets],
    )
    return removed
