"""Transport package: channel management and service clients."""

from .errors import (
    PalSyncError,
    ChannelConnectionError,
    RpcError,
    MalformedResponseError,
    StatusCode
)

from .credentials import (
    CredentialProvider,
    NoCredentials,
    ClientCertificateProvider,
    credential_provider_from_settings
)

from .channel import Channel, ChannelManager, ConnectivityState
from .rpc import AccountServiceClient, PalaceServiceClient, authorized_headers, unauthorized_headers

__all__ = [
    # Exceptions
    "PalSyncError",
    "ChannelConnectionError",
    "RpcError",
    "MalformedResponseError",
    "StatusCode",

    # Credentials
    "CredentialProvider",
    "NoCredentials",
    "ClientCertificateProvider",
    "credential_provider_from_settings",

    # Channel
    "Channel",
    "ChannelManager",
    "ConnectivityState",

    # Service clients
    "AccountServiceClient",
    "PalaceServiceClient",
    "authorized_headers",
    "unauthorized_headers"
]
