"""
Tests for route entry matching and pruning.

Uses real Starlette routes so the compiled patterns are the ones the
framework produces.
"""

import pytest
from starlette.routing import Mount, Route, WebSocketRoute

from flow_bridge.components.routing.matcher import (
    find_matching_entries,
    matches_base_path,
    strip_pattern,
    tag_route,
)
from flow_bridge.components.routing.paths import escape_regexp, trim_slashes, url_join
from flow_bridge.components.routing.registry import prune_route_entries


async def _noop(request):
    return None


async def _noop_ws(websocket):
    return None


class TestPathHelpers:

    @pytest.mark.parametrize(
        "value,expected",
        [("/a/b/", "a/b"), ("//a//", "a"), ("a", "a"), ("///", "")],
    )
    def test_trim_slashes(self, value, expected):
        assert trim_slashes(value) == expected

    def test_url_join(self):
        assert url_join("/a/", "b") == "/a/b"
        assert url_join("a", "", "/ws") == "/a/ws"
        assert url_join() == "/"

    def test_escape_regexp_makes_metacharacters_literal(self):
        assert escape_regexp("/a.b") == r"/a\.b"


class TestStripPattern:

    def test_plain_route(self):
        assert strip_pattern("^/a$") == "/a"

    def test_mount_wildcard(self):
        assert strip_pattern("^/a/(?P<path>.*)$") == "/a"

    def test_optional_trailing_slash(self):
        assert strip_pattern("^/a/?$") == "/a"


class TestFindMatchingEntries:

    def test_sibling_paths_untouched(self):
        routes = [Route("/a", _noop), Route("/a/b", _noop), Route("/c", _noop)]

        assert find_matching_entries(routes, "/a") == [0]

    def test_mount_matched_through_wildcard(self):
        routes = [Route("/x", _noop), Mount("/a", routes=[]), Mount("/a/b", routes=[])]

        assert find_matching_entries(routes, "/a") == [1]

    def test_indices_ascending(self):
        routes = [
            tag_route(WebSocketRoute("/a/ws", _noop_ws), "/a"),
            Route("/c", _noop),
            tag_route(Route("/a/_input", _noop, methods=["POST"]), "/a"),
            Mount("/a", routes=[]),
        ]

        assert find_matching_entries(routes, "/a") == [0, 2, 3]

    def test_tag_decides_over_pattern(self):
        route = tag_route(Route("/a", _noop), "/other")

        assert not matches_base_path(route, "/a")
        assert matches_base_path(route, "/other")

    def test_metacharacters_are_literal(self):
        routes = [Route("/axb", _noop), Route("/a.b", _noop)]

        assert find_matching_entries(routes, "/a.b") == [1]

    def test_base_path_is_normalized(self):
        routes = [Route("/a", _noop)]

        assert find_matching_entries(routes, "a/") == [0]

    def test_entries_without_pattern_are_skipped(self):
        assert find_matching_entries([object()], "/a") == []


class TestPruneRouteEntries:

    def test_removes_exactly_the_given_entries(self):
        routes = [Route(p, _noop) for p in ("/a", "/b", "/a", "/c", "/a")]
        keep = [routes[1], routes[3]]

        removed = prune_route_entries(routes, [0, 2, 4])

        assert removed == 3
        assert routes == keep

    def test_adjacent_entries(self):
        routes = [Route(p, _noop) for p in ("/a", "/a", "/b")]

        prune_route_entries(routes, find_matching_entries(routes, "/a"))

        assert [route.path for route in routes] == ["/b"]

    def test_list_identity_preserved(self):
        routes = [Route("/a", _noop), Route("/b", _noop)]
        live = routes

        prune_route_entries(routes, [0])

        assert live is routes
        assert [route.path for route in live] == ["/b"]

    def test_no_indices(self):
        routes = [Route("/a", _noop)]

        assert prune_route_entries(routes, []) == 0
        assert len(routes) == 1

    def test_duplicate_indices_counted_once(self):
        routes = [Route("/a", _noop), Route("/b", _noop)]

        assert prune_route_entries(routes, [0, 0]) == 1
