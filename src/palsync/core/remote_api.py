"""Marker synchronization operations against the palace server."""

from typing import List, Optional, Sequence, Tuple

from .session import SessionManager
from ..config.client_config import ClientConfiguration
from ..config.settings import AppSettings, get_settings
from ..models.marker import Marker
from ..transport.credentials import CredentialProvider
from ..transport.errors import MalformedResponseError, RpcError
from ..transport.messages import FloorStatistics
from ..transport.rpc import AccountServiceClient, PalaceServiceClient
from ..utils.logging import get_logger, log_async_execution_time


CONNECTION_SUCCESSFUL = "Connection successful"
COULD_NOT_CONNECT = "Could not connect to server"


class RemoteApi:
    """Upload, download and statistics calls on top of a ``SessionManager``.

    Connectivity and authentication problems come back as failure results;
    only malformed server replies and cancellation propagate.
    """

    def __init__(
        self,
        sessions: SessionManager,
        verify_timeout: float = 10.0,
        statistics_timeout: float = 30.0
    ):
        self.sessions = sessions
        self.verify_timeout = verify_timeout
        self.statistics_timeout = statistics_timeout
        self.logger = get_logger(self.__class__.__name__)

    @classmethod
    def from_settings(
        cls,
        configuration: ClientConfiguration,
        settings: Optional[AppSettings] = None,
        credentials: Optional[CredentialProvider] = None
    ) -> "RemoteApi":
        settings = settings or get_settings()
        return cls(
            SessionManager.from_settings(configuration, settings, credentials),
            verify_timeout=settings.server.account_timeout_seconds,
            statistics_timeout=settings.server.statistics_timeout_seconds
        )

    async def verify_connection(self) -> str:
        """Check that the server accepts our session.

        Returns:
            A short status message for the user
        """
        outcome = await self.sessions.connect()
        if not outcome.is_ready:
            self.logger.info("Connection check failed", outcome=outcome.value)
            return COULD_NOT_CONNECT

        client = AccountServiceClient(self.sessions.channel)
        try:
            await client.verify(self.sessions.authorized_headers(), timeout=self.verify_timeout)
        except MalformedResponseError:
            raise
        except RpcError as e:
            self.logger.warning("Verify call failed", status=e.status.value, error=str(e))
            return COULD_NOT_CONNECT

        return CONNECTION_SUCCESSFUL

    @log_async_execution_time
    async def download_markers(self, territory_type: int) -> Tuple[bool, List[Marker]]:
        """Download every marker the server knows for a territory.

        Args:
            territory_type: Territory (palace floor set) identifier

        Returns:
            Tuple of (success, markers); markers are flagged ``remote_seen``
        """
        if not (await self.sessions.connect()).is_ready:
            return False, []

        client = PalaceServiceClient(self.sessions.channel)
        try:
            reply = await client.download_floors(territory_type, self.sessions.authorized_headers())
        except MalformedResponseError:
            raise
        except RpcError as e:
            self.logger.warning("Download failed", territory_type=territory_type, status=e.status.value, error=str(e))
            return False, []

        markers = [Marker.from_palace_object(obj, remote_seen=True) for obj in reply.objects]
        self.logger.info(
            "Downloaded markers",
            territory_type=territory_type,
            success=reply.success,
            markers=len(markers)
        )
        return reply.success, markers

    @log_async_execution_time
    async def upload_markers(self, territory_type: int, markers: Sequence[Marker]) -> bool:
        """Upload locally discovered markers for a territory.

        An empty upload succeeds without contacting the server.
        """
        if len(markers) == 0:
            return True

        if not (await self.sessions.connect()).is_ready:
            return False

        client = PalaceServiceClient(self.sessions.channel)
        objects = [marker.to_palace_object() for marker in markers]
        try:
            reply = await client.upload_floors(territory_type, objects, self.sessions.authorized_headers())
        except MalformedResponseError:
            raise
        except RpcError as e:
            self.logger.warning("Upload failed", territory_type=territory_type, status=e.status.value, error=str(e))
            return False

        self.logger.info(
            "Uploaded markers",
            territory_type=territory_type,
            success=reply.success,
            markers=len(objects)
        )
        return reply.success

    @log_async_execution_time
    async def fetch_statistics(self) -> Tuple[bool, List[FloorStatistics]]:
        """Fetch per-territory marker counts."""
        if not (await self.sessions.connect()).is_ready:
            return False, []

        client = PalaceServiceClient(self.sessions.channel)
        try:
            reply = await client.fetch_statistics(self.sessions.authorized_headers(), timeout=self.statistics_timeout)
        except MalformedResponseError:
            raise
        except RpcError as e:
            self.logger.warning("Statistics request failed", status=e.status.value, error=str(e))
            return False, []

        return reply.success, list(reply.floor_statistics)

    async def close(self) -> None:
        await self.sessions.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
