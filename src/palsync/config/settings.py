"""Application configuration settings."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


DEVELOPMENT_ENDPOINT = "http://localhost:5145"
PRODUCTION_ENDPOINT = "https://pal.μ.tv"


class ServerSettings(BaseSettings):
    """Remote server configuration."""

    url: Optional[str] = Field(default=None, description="Overrides the build endpoint")
    connect_timeout_seconds: float = Field(default=5.0)
    account_timeout_seconds: float = Field(default=10.0)
    statistics_timeout_seconds: float = Field(default=30.0)

    class Config:
        env_prefix = "PALSYNC_SERVER_"


class TLSSettings(BaseSettings):
    """Client certificate used against the production server."""

    cert_file: Optional[str] = Field(default=None)
    key_file: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "PALSYNC_TLS_"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file_path: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "PALSYNC_LOG_"


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="Palace Pal")
    version: str = Field(default="1.0.0")
    environment: str = Field(default="development")
    config_path: str = Field(default="./palsync.json")

    # Sub-settings
    server: ServerSettings = ServerSettings()
    tls: TLSSettings = TLSSettings()
    logging: LoggingSettings = LoggingSettings()

    class Config:
        env_prefix = "PALSYNC_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def endpoint(self) -> str:
        """The fixed server endpoint for this build."""
        if self.server.url:
            return self.server.url.rstrip("/")
        return PRODUCTION_ENDPOINT if self.is_production else DEVELOPMENT_ENDPOINT

    @property
    def user_agent(self) -> str:
        """Client identification in the form ``<product>/<major.minor>``."""
        parts = (self.version.split(".") + ["0", "0"])[:2]
        return f"{self.name.replace(' ', '')}/{'.'.join(parts)}"


# Global settings instance
settings = AppSettings()


def get_settings() -> AppSettings:
    """Get application settings."""
    return settings
