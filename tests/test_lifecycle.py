"""
Tests for EndpointLifecycle.teardown.

Tests verify:
- Clients get the shutdown notice before they are disconnected
- Namespace listeners and registration are removed
- Route entries for the base path (and only those) are pruned
- Best effort: a failing step does not stop later steps
- The completion callback runs exactly once, last
"""

from unittest.mock import MagicMock, patch

import pytest
from starlette.routing import Route

from flow_bridge.components.routing.matcher import tag_route
from flow_bridge.components.transport.namespace import Namespace
from flow_bridge.core.endpoint import EndpointLifecycle
from tests.conftest import connect_client


async def _noop(request):
    return None


def _routes_for(*paths, tagged=False):
    routes = [Route(path, _noop) for path in paths]
    if tagged:
        for route in routes:
            tag_route(route, route.path)
    return routes


class TestTeardownOrdering:

    @pytest.mark.asyncio
    async def test_shutdown_notice_precedes_disconnect(self, lifecycle, namespace):
        events: list = []
        connect_client(namespace, "c1", events)
        connect_client(namespace, "c2", events)

        await lifecycle.teardown()

        kinds = [kind for kind, _ in events]
        assert kinds == ["send", "send", "close", "close"]
        for kind, frame in events[:2]:
            assert frame == {
                "channel": "control",
                "payload": {"bridgeCtrl": "shutdown", "from": "server"},
            }

    @pytest.mark.asyncio
    async def test_clients_closed_going_away(self, lifecycle, namespace):
        client = connect_client(namespace, "c1")

        await lifecycle.teardown()

        assert client.websocket.close_code == 1001
        assert not client.connected
        assert namespace.connected == {}

    @pytest.mark.asyncio
    async def test_done_called_last(self, lifecycle, namespace, server, routes):
        routes.extend(_routes_for("/a"))
        connect_client(namespace, "c1")
        observed = {}

        def done():
            observed["clients"] = len(namespace.connected)
            observed["registered"] = namespace.name in server.namespaces
            observed["routes"] = len(routes)

        await lifecycle.teardown(done)

        assert observed == {"clients": 0, "registered": False, "routes": 0}

    @pytest.mark.asyncio
    async def test_closed_status_reported(self, lifecycle, node):
        await lifecycle.teardown()

        assert node.statuses[0] == {"fill": "red", "shape": "ring", "text": "CLOSED"}
        assert node.sent == [[None, {"bridgeCtrl": "shutdown", "from": "server"}]]


class TestTeardownCleanup:

    @pytest.mark.asyncio
    async def test_zero_clients_still_completes(self, lifecycle, routes):
        routes.extend(_routes_for("/a", "/a/b", "/c"))
        done = MagicMock()

        await lifecycle.teardown(done)

        done.assert_called_once_with()
        assert [route.path for route in routes] == ["/a/b", "/c"]

    @pytest.mark.asyncio
    async def test_tagged_routes_removed(self, lifecycle, routes):
        own = [tag_route(Route("/a/ws", _noop), "/a"), tag_route(Route("/a/_input", _noop), "/a")]
        sibling = tag_route(Route("/a/b/ws", _noop), "/a/b")
        routes.extend([own[0], sibling, own[1]])

        await lifecycle.teardown()

        assert routes == [sibling]

    @pytest.mark.asyncio
    async def test_listeners_and_namespace_removed(self, lifecycle, namespace, server):
        namespace.on("connection", lambda client: None)
        namespace.on("data", lambda client, payload: None)

        await lifecycle.teardown()

        assert namespace.listener_count() == 0
        assert server.get(namespace.name) is None

    @pytest.mark.asyncio
    async def test_without_callback(self, lifecycle):
        await lifecycle.teardown()

        assert lifecycle.is_closed


class TestOwnership:

    @pytest.mark.asyncio
    async def test_routes_tagged_by_another_endpoint_survive(
        self, endpoint, node, namespace, server, control
    ):
        own = [tag_route(Route("/a/ws", _noop), "/a")]
        other = tag_route(Route("/a/_input", _noop), "/a")
        stray = Route("/a", _noop)
        routes = [own[0], other, stray]
        lifecycle = EndpointLifecycle(
            endpoint, node, namespace, server, routes, control, owned_routes=own
        )

        await lifecycle.teardown()

        assert routes == [other]

    @pytest.mark.asyncio
    async def test_replaced_namespace_stays_registered(self, lifecycle, namespace, server):
        replacement = Namespace(namespace.name)
        server.namespaces[namespace.name] = replacement

        await lifecycle.teardown()

        assert server.get(namespace.name) is replacement


class TestBestEffort:

    @pytest.mark.asyncio
    async def test_enumeration_failure_does_not_stop_pruning(self, lifecycle, namespace, routes):
        routes.extend(_routes_for("/a"))
        namespace.client_ids = MagicMock(side_effect=RuntimeError("boom"))
        done = MagicMock()

        await lifecycle.teardown(done)

        assert routes == []
        done.assert_called_once()

    @pytest.mark.asyncio
    async def test_pruning_failure_still_calls_done(self, lifecycle, namespace, server):
        done = MagicMock()

        with patch(
            "flow_bridge.core.endpoint.lifecycle.find_matching_entries",
            side_effect=RuntimeError("boom"),
        ):
            await lifecycle.teardown(done)

        assert server.get(namespace.name) is None
        done.assert_called_once()

    @pytest.mark.asyncio
    async def test_notify_failure_still_disconnects(self, lifecycle, namespace, control):
        client = connect_client(namespace, "c1")
        control.send_control = MagicMock(side_effect=RuntimeError("boom"))

        await lifecycle.teardown()

        assert client.websocket.close_code == 1001

    @pytest.mark.asyncio
    async def test_status_failure_does_not_abort(self, lifecycle, node, routes):
        routes.extend(_routes_for("/a"))
        node.status = MagicMock(side_effect=RuntimeError("ui gone"))
        done = MagicMock()

        await lifecycle.teardown(done)

        assert routes == []
        done.assert_called_once()


class TestRepeatedTeardown:

    @pytest.mark.asyncio
    async def test_second_call_only_completes(self, lifecycle, node):
        first, second = MagicMock(), MagicMock()

        await lifecycle.teardown(first)
        await lifecycle.teardown(second)

        first.assert_called_once()
        second.assert_called_once()
        assert len(node.sent) == 1
