"""
Tests for notification targeting and fan-out.

This module tests target matching, recipient selection with and without
targets, and the behaviour on recipient write failures.
"""

import pytest
from starlette.websockets import WebSocketDisconnect

from letmeknow.api.ws.constants import FrameKind
from letmeknow.managers.client_registry import Client
from letmeknow.routing import (
    NotificationRouter,
    matches_target,
    select_recipients,
)
from tests.mocks.websocket_mocks import create_mock_websocket

PAYLOAD = '{"type":"notification","content":"hi"}'


async def add_clients(registry, *user_ids):
    """Adds one connection per userID (None leaves it unregistered)."""
    connections = []
    for user_id in user_ids:
        ws = create_mock_websocket()
        await registry.add(ws)
        if user_id is not None:
            await registry.register(ws, user_id)
        connections.append(ws)
    return connections


class TestMatchesTarget:
    """Tests for matches_target()."""

    @pytest.mark.parametrize(
        "user_id, target, expected",
        [
            ("a1", "a1", True),
            ("a1", "a2", False),
            ("a1", "a*", True),
            ("b1", "a*", False),
            ("a1", "*", True),
            ("a", "a*", True),
            ("a1", "a", False),
            ("ab", "a1*", False),
            ("a*", "a*", True),
        ],
    )
    def test_matching(self, user_id, target, expected):
        assert matches_target(user_id, target) is expected

    @pytest.mark.parametrize("user_id", [None, ""])
    def test_unregistered_never_matches(self, user_id):
        assert matches_target(user_id, "*") is False
        assert matches_target(user_id, "") is False


class TestSelectRecipients:
    """Tests for select_recipients()."""

    def _clients(self, *user_ids):
        return [
            Client(connection=create_mock_websocket(), user_id=user_id)
            for user_id in user_ids
        ]

    def test_prefix_target(self):
        clients = self._clients("a1", "a2", "b1")

        selected = select_recipients(clients, ["a*"], sender=object())

        assert [c.user_id for c in selected] == ["a1", "a2"]

    def test_multiple_targets_match_any(self):
        clients = self._clients("a1", "a2", "b1", "c1")

        selected = select_recipients(clients, ["b1", "c*"], sender=object())

        assert [c.user_id for c in selected] == ["b1", "c1"]

    def test_client_matching_several_targets_selected_once(self):
        clients = self._clients("a1")

        selected = select_recipients(clients, ["a1", "a*"], sender=object())

        assert len(selected) == 1

    def test_targeted_skips_unregistered(self):
        clients = self._clients(None, "a1")

        selected = select_recipients(clients, ["*"], sender=object())

        assert [c.user_id for c in selected] == ["a1"]

    def test_targeted_includes_sender(self):
        clients = self._clients("a1", "a2")
        sender = clients[0].connection

        selected = select_recipients(clients, ["a1"], sender=sender)

        assert [c.connection for c in selected] == [sender]

    def test_broadcast_excludes_only_sender(self):
        clients = self._clients("a1", None, "b1")
        sender = clients[0].connection

        selected = select_recipients(clients, [], sender=sender)

        assert [c.connection for c in selected] == [
            clients[1].connection,
            clients[2].connection,
        ]


class TestNotificationRouter:
    """Tests for NotificationRouter.deliver()."""

    @pytest.mark.asyncio
    async def test_targeted_delivery(self, registry, router):
        """Given a1, a2, b1, target a* reaches a1 and a2 only."""
        sender, a1, a2, b1 = await add_clients(
            registry, "s", "a1", "a2", "b1"
        )

        report = await router.deliver(PAYLOAD, ["a*"], sender)

        a1.send_frame.assert_awaited_once_with(PAYLOAD, FrameKind.TEXT)
        a2.send_frame.assert_awaited_once_with(PAYLOAD, FrameKind.TEXT)
        b1.send_frame.assert_not_called()
        sender.send_frame.assert_not_called()
        assert report.delivered == 2
        assert report.failed == 0

    @pytest.mark.asyncio
    async def test_broadcast_to_everyone_but_sender(self, registry, router):
        sender, other, unregistered = await add_clients(
            registry, "s", "o", None
        )

        report = await router.deliver(PAYLOAD, [], sender)

        sender.send_frame.assert_not_called()
        other.send_frame.assert_awaited_once_with(PAYLOAD, FrameKind.TEXT)
        unregistered.send_frame.assert_awaited_once_with(
            PAYLOAD, FrameKind.TEXT
        )
        assert report.delivered == 2

    @pytest.mark.asyncio
    async def test_sender_in_targets_receives_own_message(
        self, registry, router
    ):
        (sender,) = await add_clients(registry, "me")

        report = await router.deliver(PAYLOAD, ["me"], sender)

        sender.send_frame.assert_awaited_once_with(PAYLOAD, FrameKind.TEXT)
        assert report.delivered == 1

    @pytest.mark.asyncio
    async def test_no_matching_targets(self, registry, router):
        sender, other = await add_clients(registry, "s", "o")

        report = await router.deliver(PAYLOAD, ["nobody"], sender)

        other.send_frame.assert_not_called()
        assert report.delivered == 0

    @pytest.mark.asyncio
    async def test_frame_kind_passed_through(self, registry, router):
        sender, other = await add_clients(registry, "s", "o")

        await router.deliver(PAYLOAD, [], sender, FrameKind.BINARY)

        other.send_frame.assert_awaited_once_with(PAYLOAD, FrameKind.BINARY)

    @pytest.mark.asyncio
    async def test_removed_client_not_delivered(self, registry, router):
        sender, gone, stays = await add_clients(registry, "s", "g", "k")
        await registry.remove(gone)

        await router.deliver(PAYLOAD, [], sender)

        gone.send_frame.assert_not_called()
        stays.send_frame.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fail_fast_stops_fan_out(self, registry, router):
        """A failed write skips the remaining recipients."""
        sender, first, broken, last = await add_clients(
            registry, "s", "x1", "x2", "x3"
        )
        broken.send_frame.side_effect = WebSocketDisconnect(1006)

        report = await router.deliver(PAYLOAD, [], sender)

        first.send_frame.assert_awaited_once()
        broken.send_frame.assert_awaited_once()
        last.send_frame.assert_not_called()
        assert report.delivered == 1
        assert report.failed == 1
        assert report.skipped == 1

    @pytest.mark.asyncio
    async def test_best_effort_continues_fan_out(self, registry):
        router = NotificationRouter(registry, fail_fast=False)
        sender, first, broken, last = await add_clients(
            registry, "s", "x1", "x2", "x3"
        )
        broken.send_frame.side_effect = RuntimeError("closed")

        report = await router.deliver(PAYLOAD, [], sender)

        first.send_frame.assert_awaited_once()
        last.send_frame.assert_awaited_once()
        assert report.delivered == 2
        assert report.failed == 1
        assert report.skipped == 0

    @pytest.mark.asyncio
    async def test_connection_error_is_a_write_failure(self, registry, router):
        sender, broken = await add_clients(registry, "s", "b")
        broken.send_frame.side_effect = ConnectionResetError()

        report = await router.deliver(PAYLOAD, [], sender)

        assert report.failed == 1

    @pytest.mark.asyncio
    async def test_empty_registry(self, registry, router):
        report = await router.deliver(PAYLOAD, [], create_mock_websocket())

        assert report.delivered == 0
        assert report.failed == 0
