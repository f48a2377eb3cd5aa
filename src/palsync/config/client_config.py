"""Local client configuration file: operating mode and per-server account ids."""

import json
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Protocol, Union
from uuid import UUID

from pydantic import BaseModel, Field, PrivateAttr, ValidationError

from ..utils.logging import get_logger, redact


class ConfigurationError(Exception):
    """Raised when the client configuration cannot be read or written."""
    pass


class OperatingMode(str, Enum):
    """Whether the client may talk to the server at all."""
    ONLINE = "online"
    OFFLINE = "offline"


class AccountStore(Protocol):
    """Durable mapping from server endpoint to account id."""

    def get(self, endpoint: str) -> Optional[UUID]:
        ...

    def set(self, endpoint: str, account_id: UUID) -> None:
        ...

    def remove(self, endpoint: str) -> None:
        ...

    def save(self) -> None:
        ...


class ClientConfiguration(BaseModel):
    """Persisted client configuration.

    Serialized as JSON. ``account_ids`` is keyed by endpoint URL so that
    development and production accounts never mix.
    """

    mode: OperatingMode = Field(default=OperatingMode.ONLINE)
    account_ids: Dict[str, UUID] = Field(default_factory=dict)

    _path: Optional[Path] = PrivateAttr(default=None)

    @classmethod
    def load(cls, file_path: Union[str, Path]) -> "ClientConfiguration":
        """Load configuration from ``file_path``; a missing file yields defaults.

        Raises:
            ConfigurationError: If the file exists but cannot be parsed
        """
        logger = get_logger(cls.__name__)
        file_path = Path(file_path)

        if not file_path.exists():
            logger.info("No client configuration found, using defaults", file_path=str(file_path))
            config = cls()
        else:
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                config = cls(**data)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON format: {e}")
            except (TypeError, ValidationError) as e:
                raise ConfigurationError(f"Invalid client configuration: {e}")
            except OSError as e:
                raise ConfigurationError(f"Failed to read client configuration: {e}")

            logger.debug(
                "Client configuration loaded",
                file_path=str(file_path),
                mode=config.mode.value,
                accounts=len(config.account_ids)
            )

        config._path = file_path
        return config

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def save(self, file_path: Union[str, Path, None] = None) -> None:
        """Write the configuration atomically.

        Raises:
            ConfigurationError: If no path is known or the write fails
        """
        target = Path(file_path) if file_path else self._path
        if target is None:
            raise ConfigurationError("Client configuration has no file path")

        payload = self.model_dump_json(indent=2)

        tmp_name = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=target.name, suffix=".tmp")
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ConfigurationError(f"Failed to save client configuration: {e}")

        self._path = target
        get_logger(self.__class__.__name__).debug("Client configuration saved", file_path=str(target))


class ConfigurationAccountStore:
    """``AccountStore`` backed by the account ids of a ``ClientConfiguration``."""

    def __init__(self, configuration: ClientConfiguration):
        self.configuration = configuration
        self.logger = get_logger(self.__class__.__name__)

    def get(self, endpoint: str) -> Optional[UUID]:
        return self.configuration.account_ids.get(endpoint)

    def set(self, endpoint: str, account_id: UUID) -> None:
        self.configuration.account_ids[endpoint] = account_id
        self.logger.info("Stored account id", endpoint=endpoint, account_id=redact(account_id))

    def remove(self, endpoint: str) -> None:
        if self.configuration.account_ids.pop(endpoint, None) is not None:
            self.logger.info("Removed account id", endpoint=endpoint)

    def save(self) -> None:
        self.configuration.save()
