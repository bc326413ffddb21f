"""Tests for cancellation tokens and linked (per-call) tokens."""

import asyncio

import pytest

from reactloop.agent.cancellation import CancellationToken, linked_token
from reactloop.core.errors import OperationCancelledError


class TestCancellationToken:
    """Poll and subscribe behaviour of a single token."""

    def test_starts_untripped(self) -> None:
        token = CancellationToken()
        assert not token.is_cancelled
        assert token.reason is None
        token.raise_if_cancelled()

    def test_cancel_notifies_listeners_once(self) -> None:
        token = CancellationToken()
        seen: list[str] = []
        token.add_listener(seen.append)
        token.cancel("client_disconnected")
        token.cancel("timeout")
        assert seen == ["client_disconnected"]
        assert token.reason == "client_disconnected"
        assert token.listener_count == 0

    def test_listener_added_after_cancel_fires_immediately(self) -> None:
        token = CancellationToken()
        token.cancel()
        seen: list[str] = []
        token.add_listener(seen.append)
        assert seen == ["user_cancelled"]

    def test_unsubscribe_detaches(self) -> None:
        token = CancellationToken()
        seen: list[str] = []
        unsubscribe = token.add_listener(seen.append)
        unsubscribe()
        unsubscribe()
        token.cancel()
        assert seen == []

    def test_raise_if_cancelled(self) -> None:
        token = CancellationToken()
        token.cancel("server_shutdown")
        with pytest.raises(OperationCancelledError) as exc_info:
            token.raise_if_cancelled()
        assert exc_info.value.reason == "server_shutdown"

    @pytest.mark.asyncio
    async def test_wait_returns_reason(self) -> None:
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel, "user_cancelled")
        assert await asyncio.wait_for(token.wait(), timeout=1) == "user_cancelled"
        assert token.listener_count == 0


class TestLinkedToken:
    """Derived tokens trip on either source and always clean up."""

    @pytest.mark.asyncio
    async def test_parent_cancellation_propagates(self) -> None:
        parent = CancellationToken()
        with linked_token(parent, timeout=10) as child:
            assert parent.listener_count == 1
            parent.cancel("user_cancelled")
            assert child.is_cancelled
            assert child.reason == "user_cancelled"

    @pytest.mark.asyncio
    async def test_timeout_trips_child_only(self) -> None:
        parent = CancellationToken()
        with linked_token(parent, timeout=0.01) as child:
            reason = await asyncio.wait_for(child.wait(), timeout=1)
        assert reason == "timeout"
        assert not parent.is_cancelled

    @pytest.mark.asyncio
    async def test_already_cancelled_parent(self) -> None:
        parent = CancellationToken()
        parent.cancel()
        with linked_token(parent, timeout=5) as child:
            assert child.is_cancelled

    @pytest.mark.asyncio
    async def test_listener_detached_on_normal_exit(self) -> None:
        parent = CancellationToken()
        with linked_token(parent, timeout=5):
            pass
        assert parent.listener_count == 0

    @pytest.mark.asyncio
    async def test_cleanup_on_exception(self) -> None:
        parent = CancellationToken()
        with pytest.raises(RuntimeError):
            with linked_token(parent, timeout=0.01) as child:
                raise RuntimeError("boom")
        assert parent.listener_count == 0
        await asyncio.sleep(0.03)
        # Timer was cancelled, so the child never tripped after exit
        assert not child.is_cancelled

    def test_no_timeout_needs_no_event_loop(self) -> None:
        with linked_token(None, timeout=None) as child:
            assert not child.is_cancelled
