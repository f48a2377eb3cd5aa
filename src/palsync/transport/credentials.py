"""Client transport credentials.

Production builds authenticate the client with a TLS certificate; development
builds talk plain HTTP to a local server and carry no credentials at all.
"""

import ssl
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..config.settings import AppSettings
from ..utils.logging import get_logger


class CredentialProvider(ABC):
    """Supplies the optional TLS context used when opening a channel."""

    @abstractmethod
    def ssl_context(self) -> Optional[ssl.SSLContext]:
        """Return the client TLS context, or None to use the defaults."""
        pass


class NoCredentials(CredentialProvider):
    """No client certificate."""

    def ssl_context(self) -> Optional[ssl.SSLContext]:
        return None


class ClientCertificateProvider(CredentialProvider):
    """Loads a PEM client certificate and key into a TLS context."""

    def __init__(self, cert_file: str, key_file: Optional[str] = None, password: Optional[str] = None):
        self.cert_file = cert_file
        self.key_file = key_file
        self.password = password
        self.logger = get_logger(self.__class__.__name__)
        self._context: Optional[ssl.SSLContext] = None

    def ssl_context(self) -> Optional[ssl.SSLContext]:
        if self._context is None:
            context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
            context.load_cert_chain(self.cert_file, keyfile=self.key_file, password=self.password)
            self._context = context
            self.logger.info("Loaded client certificate", cert_file=self.cert_file)
        return self._context


def credential_provider_from_settings(settings: AppSettings) -> CredentialProvider:
    """Pick the credential provider for the current build.

    Only production builds with a certificate on disk present one.
    """
    cert_file = settings.tls.cert_file
    if not settings.is_production or not cert_file:
        return NoCredentials()

    if not Path(cert_file).exists():
        get_logger("credentials").warning("Client certificate not found", cert_file=cert_file)
        return NoCredentials()

    return ClientCertificateProvider(
        cert_file=cert_file,
        key_file=settings.tls.key_file,
        password=settings.tls.password
    )
