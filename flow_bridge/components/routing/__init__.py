"""
Routing: base path helpers, route matching and pruning.
"""

from flow_bridge.components.routing.paths import escape_regexp, trim_slashes, url_join
from flow_bridge.components.routing.matcher import (
    find_matching_entries,
    matches_base_path,
    tag_route,
)
from flow_bridge.components.routing.registry import prune_route_entries

__all__ = [
    "escape_regexp",
    "trim_slashes",
    "url_join",
    "find_matching_entries",
    "matches_base_path",
    "tag_route",
    "prune_route_entries",
]
