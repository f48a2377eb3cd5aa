"""Reusable connection to the palace server."""

import asyncio
from enum import Enum
from typing import Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector

from .credentials import CredentialProvider, NoCredentials
from .errors import ChannelConnectionError
from ..utils.logging import get_logger


class ConnectivityState(str, Enum):
    """Connectivity state of a channel."""
    IDLE = "idle"
    CONNECTING = "connecting"
    READY = "ready"
    TRANSIENT_FAILURE = "transient_failure"
    SHUTDOWN = "shutdown"


REUSABLE_STATES = (ConnectivityState.READY, ConnectivityState.IDLE)


class Channel:
    """A single HTTP session bound to one server endpoint."""

    def __init__(self, endpoint: str, session: ClientSession, connect_timeout: float):
        self.endpoint = endpoint
        self.session = session
        self.connect_timeout = connect_timeout
        self._state = ConnectivityState.IDLE

    @property
    def state(self) -> ConnectivityState:
        if self.session.closed:
            return ConnectivityState.SHUTDOWN
        return self._state

    def mark_failed(self) -> None:
        """Flag the channel as broken so it gets recreated before next use."""
        if self._state is not ConnectivityState.SHUTDOWN:
            self._state = ConnectivityState.TRANSIENT_FAILURE

    async def wait_for_ready(self, timeout: float) -> None:
        """Probe the endpoint until it answers or ``timeout`` elapses.

        Any HTTP answer counts as connected; only the transport matters here.

        Raises:
            ChannelConnectionError: If the endpoint cannot be reached in time
        """
        self._state = ConnectivityState.CONNECTING
        probe_timeout = ClientTimeout(total=timeout, sock_connect=timeout)

        try:
            async with self.session.head(
                self.endpoint + "/",
                timeout=probe_timeout,
                allow_redirects=False
            ):
                pass
        except asyncio.TimeoutError as e:
            self._state = ConnectivityState.TRANSIENT_FAILURE
            raise ChannelConnectionError(f"Timed out connecting to {self.endpoint}") from e
        except aiohttp.ClientError as e:
            self._state = ConnectivityState.TRANSIENT_FAILURE
            raise ChannelConnectionError(f"Could not connect to {self.endpoint}: {e}") from e

        self._state = ConnectivityState.READY

    async def close(self) -> None:
        if not self.session.closed:
            await self.session.close()
        self._state = ConnectivityState.SHUTDOWN


class ChannelManager:
    """Owns at most one live ``Channel`` to a fixed endpoint.

    The channel is created lazily, reused while it is ready or idle, and
    recreated whenever it is in any other state.
    """

    def __init__(
        self,
        endpoint: str,
        credentials: Optional[CredentialProvider] = None,
        connect_timeout: float = 5.0
    ):
        """Initialize channel manager.

        Args:
            endpoint: Base URL of the server
            credentials: Supplies the optional client TLS context
            connect_timeout: Seconds allowed to establish a connection
        """
        self.endpoint = endpoint.rstrip("/")
        self.credentials = credentials or NoCredentials()
        self.connect_timeout = connect_timeout
        self.logger = get_logger(self.__class__.__name__)

        self._channel: Optional[Channel] = None

    @property
    def channel(self) -> Optional[Channel]:
        return self._channel

    async def ensure_channel(self) -> Channel:
        """Return a connected channel, creating a new one if needed.

        Raises:
            ChannelConnectionError: If a new channel cannot connect in time
        """
        channel = self._channel
        if channel is not None and channel.state in REUSABLE_STATES:
            return channel

        if channel is not None:
            self.logger.info("Discarding unusable channel", endpoint=self.endpoint, state=channel.state.value)
        await self.close()

        channel = self._create_channel()
        try:
            await channel.wait_for_ready(self.connect_timeout)
        except ChannelConnectionError as e:
            await channel.close()
            self.logger.warning("Channel connection failed", endpoint=self.endpoint, error=str(e))
            raise
        except asyncio.CancelledError:
            await channel.close()
            raise

        self._channel = channel
        self.logger.info("Channel connected", endpoint=self.endpoint)
        return channel

    def _create_channel(self) -> Channel:
        ssl_context = self.credentials.ssl_context()
        if ssl_context is not None:
            connector = TCPConnector(ssl=ssl_context)
        else:
            connector = TCPConnector()

        session = ClientSession(
            connector=connector,
            timeout=ClientTimeout(total=None, sock_connect=self.connect_timeout)
        )
        return Channel(self.endpoint, session, self.connect_timeout)

    async def close(self) -> None:
        """Dispose of the current channel; a no-op when none is held."""
        channel = self._channel
        self._channel = None
        if channel is not None:
            await channel.close()
            self.logger.debug("Channel closed", endpoint=self.endpoint)
