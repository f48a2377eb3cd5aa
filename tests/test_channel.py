"""Tests for the channel manager."""

import pytest
from aiohttp.test_utils import unused_port

from palsync.transport import ChannelConnectionError, ChannelManager, ConnectivityState


@pytest.mark.integration
class TestChannelManager:

    @pytest.mark.asyncio
    async def test_creates_and_reuses_channel(self, fake_server):
        manager = ChannelManager(fake_server.endpoint, connect_timeout=2.0)
        try:
            first = await manager.ensure_channel()
            second = await manager.ensure_channel()

            assert first is second
            assert first.state is ConnectivityState.READY
            assert manager.channel is first
            # Only the first call probes the server.
            assert [r.method for r in fake_server.requests] == ["HEAD"]
        finally:
            await manager.close()

    @pytest.mark.asyncio
    async def test_failed_channel_is_replaced(self, fake_server):
        manager = ChannelManager(fake_server.endpoint, connect_timeout=2.0)
        try:
            first = await manager.ensure_channel()
            first.mark_failed()
            assert first.state is ConnectivityState.TRANSIENT_FAILURE

            second = await manager.ensure_channel()

            assert second is not first
            assert first.state is ConnectivityState.SHUTDOWN
            assert second.state is ConnectivityState.READY
            assert len(fake_server.requests) == 2
        finally:
            await manager.close()

    @pytest.mark.asyncio
    async def test_closed_session_is_replaced(self, fake_server):
        manager = ChannelManager(fake_server.endpoint, connect_timeout=2.0)
        try:
            first = await manager.ensure_channel()
            await first.session.close()
            assert first.state is ConnectivityState.SHUTDOWN

            second = await manager.ensure_channel()

            assert second is not first
            assert second.state is ConnectivityState.READY
        finally:
            await manager.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, fake_server):
        manager = ChannelManager(fake_server.endpoint, connect_timeout=2.0)

        await manager.close()
        channel = await manager.ensure_channel()
        await manager.close()
        await manager.close()

        assert manager.channel is None
        assert channel.state is ConnectivityState.SHUTDOWN

    @pytest.mark.asyncio
    async def test_unreachable_endpoint(self):
        manager = ChannelManager(f"http://127.0.0.1:{unused_port()}", connect_timeout=1.0)

        with pytest.raises(ChannelConnectionError):
            await manager.ensure_channel()

        assert manager.channel is None
        await manager.close()

    @pytest.mark.asyncio
    async def test_connection_error_is_a_builtin_connection_error(self):
        manager = ChannelManager(f"http://127.0.0.1:{unused_port()}", connect_timeout=1.0)

        with pytest.raises(ConnectionError):
            await manager.ensure_channel()
