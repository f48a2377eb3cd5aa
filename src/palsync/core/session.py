"""Account provisioning, login and session caching."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional
from uuid import UUID

from ..config.client_config import (
    AccountStore,
    ClientConfiguration,
    ConfigurationAccountStore,
    OperatingMode
)
from ..config.settings import AppSettings, get_settings
from ..transport.channel import Channel, ChannelManager
from ..transport.credentials import CredentialProvider, credential_provider_from_settings
from ..transport.errors import ChannelConnectionError, MalformedResponseError, RpcError
from ..transport.messages import LoginError, LoginReply
from ..transport.rpc import AccountServiceClient, authorized_headers, unauthorized_headers
from ..utils.logging import get_logger, redact


# One login with the stored account, one more with a freshly created account.
MAX_LOGIN_ATTEMPTS = 2


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConnectOutcome(str, Enum):
    """Result of trying to obtain an authenticated channel."""
    READY = "ready"
    DISABLED = "disabled"
    CONNECTION_FAILED = "connection_failed"
    NO_ACCOUNT = "no_account"
    AUTH_FAILED = "auth_failed"

    @property
    def is_ready(self) -> bool:
        return self is ConnectOutcome.READY


@dataclass
class Session:
    """Auth token issued by the server and the moment it stops being valid."""

    auth_token: str
    expires_at: Optional[datetime]

    def is_valid(self, now: datetime) -> bool:
        """A session is usable only while it has a token and expires strictly after ``now``."""
        return bool(self.auth_token) and self.expires_at is not None and self.expires_at > now


class SessionManager:
    """Hands out an authenticated channel to the palace server.

    Not safe for concurrent use: callers must serialize calls on one instance.
    """

    def __init__(
        self,
        channels: ChannelManager,
        accounts: AccountStore,
        configuration: ClientConfiguration,
        user_agent: str,
        account_timeout: float = 10.0,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize session manager.

        Args:
            channels: Owner of the transport channel
            accounts: Durable store for the account id of each endpoint
            configuration: Provides the operating mode
            user_agent: Client identification sent with every call
            account_timeout: Deadline in seconds for account creation and login
            clock: Returns the current time as an aware datetime
        """
        self.channels = channels
        self.accounts = accounts
        self.configuration = configuration
        self.user_agent = user_agent
        self.account_timeout = account_timeout
        self.clock = clock or utc_now
        self.logger = get_logger(self.__class__.__name__)

        self._session: Optional[Session] = None

    @classmethod
    def from_settings(
        cls,
        configuration: ClientConfiguration,
        settings: Optional[AppSettings] = None,
        credentials: Optional[CredentialProvider] = None
    ) -> "SessionManager":
        """Wire a session manager for the endpoint of the current build."""
        settings = settings or get_settings()
        channels = ChannelManager(
            endpoint=settings.endpoint,
            credentials=credentials or credential_provider_from_settings(settings),
            connect_timeout=settings.server.connect_timeout_seconds
        )
        return cls(
            channels=channels,
            accounts=ConfigurationAccountStore(configuration),
            configuration=configuration,
            user_agent=settings.user_agent,
            account_timeout=settings.server.account_timeout_seconds
        )

    @property
    def endpoint(self) -> str:
        return self.channels.endpoint

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def channel(self) -> Optional[Channel]:
        return self.channels.channel

    def authorized_headers(self) -> Dict[str, str]:
        token = self._session.auth_token if self._session else ""
        return authorized_headers(self.user_agent, token)

    async def connect(self) -> ConnectOutcome:
        """Make sure a channel exists and the session is authenticated.

        Only the channel liveness check runs while the cached session is
        still valid. A login rejected for an unknown account id drops that id
        and provisions a new account, at most once.
        """
        if self.configuration.mode is not OperatingMode.ONLINE:
            return ConnectOutcome.DISABLED

        try:
            channel = await self.channels.ensure_channel()
        except ChannelConnectionError:
            return ConnectOutcome.CONNECTION_FAILED

        if self._session is not None and self._session.is_valid(self.clock()):
            return ConnectOutcome.READY

        client = AccountServiceClient(channel)
        for attempt in range(1, MAX_LOGIN_ATTEMPTS + 1):
            account_id = await self._resolve_account(client)
            if account_id is None:
                return ConnectOutcome.NO_ACCOUNT

            reply = await self._login(client, account_id)
            if reply is None:
                return ConnectOutcome.AUTH_FAILED

            if reply.success and reply.auth_token:
                self._session = Session(reply.auth_token, reply.expires_at)
                self.logger.info(
                    "Logged in",
                    endpoint=self.endpoint,
                    account_id=redact(account_id),
                    expires_at=reply.expires_at.isoformat() if reply.expires_at else None
                )
                return ConnectOutcome.READY

            if reply.error is LoginError.INVALID_ACCOUNT_ID:
                self.logger.warning(
                    "Server does not know this account",
                    endpoint=self.endpoint,
                    account_id=redact(account_id),
                    attempt=attempt
                )
                self._forget_account()
                continue

            self.logger.warning("Login rejected", endpoint=self.endpoint, error=reply.error.name)
            return ConnectOutcome.AUTH_FAILED

        self.logger.error("Giving up after re-creating the account", endpoint=self.endpoint)
        return ConnectOutcome.AUTH_FAILED

    async def _resolve_account(self, client: AccountServiceClient) -> Optional[UUID]:
        account_id = self.accounts.get(self.endpoint)
        if account_id is not None:
            return account_id

        try:
            reply = await client.create_account(
                unauthorized_headers(self.user_agent),
                timeout=self.account_timeout
            )
        except MalformedResponseError:
            raise
        except RpcError as e:
            self.logger.warning("Account creation failed", endpoint=self.endpoint, status=e.status.value, error=str(e))
            return None

        if not reply.success:
            self.logger.warning("Server refused to create an account", endpoint=self.endpoint)
            return None

        try:
            account_id = UUID(reply.account_id)
        except ValueError:
            self.logger.warning("Server returned an unusable account id", endpoint=self.endpoint)
            return None

        self.accounts.set(self.endpoint, account_id)
        self.accounts.save()
        self.logger.info("Created account", endpoint=self.endpoint, account_id=redact(account_id))
        return account_id

    async def _login(self, client: AccountServiceClient, account_id: UUID) -> Optional[LoginReply]:
        try:
            return await client.login(
                str(account_id),
                unauthorized_headers(self.user_agent),
                timeout=self.account_timeout
            )
        except MalformedResponseError:
            raise
        except RpcError as e:
            self.logger.warning("Login failed", endpoint=self.endpoint, status=e.status.value, error=str(e))
            return None

    def _forget_account(self) -> None:
        self.accounts.remove(self.endpoint)
        self.accounts.save()

    async def close(self) -> None:
        """Drop the session and dispose of the channel."""
        self._session = None
        await self.channels.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
