"""
Route entry matching.

Identifies which entries of the application's ordered route list were
mounted for an endpoint's base path.

Routes mounted by an endpoint carry a tag with the literal base path, so
the normal case is an exact comparison. Untagged entries (mounted by other
code) are matched on their compiled pattern: Starlette renders "/a" as
``^/a$`` and a Mount at "/a" as ``^/a/(?P<path>.*)$``; with the anchors and
the any-suffix wildcard stripped, what remains must equal the escaped base
path. A sibling such as "/a/b" leaves ``/a/b`` and never matches "/a".
"""

from __future__ import annotations

import re
from typing import Any, Sequence

from flow_bridge.components.core.constants import ROUTE_TAG_ATTR
from flow_bridge.components.routing.paths import escape_regexp, url_join

# Suffixes Starlette (and hand-written patterns) append to a base path.
_WILDCARD_SUFFIXES: tuple[str, ...] = (
    "/(?P<path>.*)",
    "(?P<path>.*)",
    "/.*",
    ".*",
    "/?",
)


def route_tag(route: Any) -> str | None:
    """Base path an endpoint tagged this route with, if any."""
    return getattr(route, ROUTE_TAG_ATTR, None)


def tag_route(route: Any, base_path: str) -> Any:
    """Tag a route with the endpoint base path it belongs to."""
    setattr(route, ROUTE_TAG_ATTR, url_join(base_path))
    return route


def rendered_pattern(route: Any) -> str | None:
    """The string form of a route's compiled path pattern."""
    path_regex = getattr(route, "path_regex", None)
    if path_regex is None:
        return None
    if isinstance(path_regex, re.Pattern):
        return path_regex.pattern
    return str(path_regex)


def strip_pattern(pattern: str) -> str:
    """Remove anchors and a trailing any-suffix wildcard from a pattern."""
    core = pattern
    if core.startswith("^"):
        core = core[1:]
    if core.endswith("$"):
        core = core[:-1]
    for suffix in _WILDCARD_SUFFIXES:
        if core.endswith(suffix):
            core = core[: -len(suffix)]
            break
    return core


def matches_base_path(route: Any, base_path: str) -> bool:
    """Whether ``route`` was mounted for ``base_path``."""
    normalized = url_join(base_path)

    tag = route_tag(route)
    if tag is not None:
        return tag == normalized

    pattern = rendered_pattern(route)
    if pattern is None:
        return False
    return strip_pattern(pattern) == escape_regexp(normalized)


def find_matching_entries(routes: Sequence[Any], base_path: str) -> list[int]:
    """
    Indices of every route mounted for ``base_path``, ascending.

    The list is read only; removal is left to prune_route_entries.
    """
    return [
        index
        for index, route in enumerate(routes)
        if matches_base_path(route, base_path)
    ]
