"""Configuration package for the palace sync client."""

from .settings import (
    AppSettings,
    ServerSettings,
    TLSSettings,
    LoggingSettings,
    DEVELOPMENT_ENDPOINT,
    PRODUCTION_ENDPOINT,
    get_settings
)

from .client_config import (
    AccountStore,
    ClientConfiguration,
    ConfigurationAccountStore,
    ConfigurationError,
    OperatingMode
)

__all__ = [
    # Environment settings
    "AppSettings",
    "ServerSettings",
    "TLSSettings",
    "LoggingSettings",
    "DEVELOPMENT_ENDPOINT",
    "PRODUCTION_ENDPOINT",
    "get_settings",

    # Local client configuration
    "AccountStore",
    "ClientConfiguration",
    "ConfigurationAccountStore",
    "ConfigurationError",
    "OperatingMode"
]
