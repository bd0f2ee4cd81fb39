"""
Configuration settings for the SSE Bridge.

Settings come from a TOML file (``Config.toml`` by default) with ``[sse]`` and
``[broker]`` sections. Environment variables prefixed with ``BRIDGE_`` (nested
with ``__``, e.g. ``BRIDGE_BROKER__HOST``) and a local ``.env`` file override
the file values.
"""
import logging
import tomllib
from ipaddress import IPv4Address, IPv6Address
from pathlib import Path
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, IPvAnyAddress, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "Config.toml"


class ConfigError(Exception):
    """Raised when the configuration cannot be read, parsed or validated."""
    pass


class SseSettings(BaseModel):
    """Streaming endpoint settings. Every field has a default."""

    ip: IPvAnyAddress = IPv4Address("127.0.0.1")
    port: int = Field(default=3030, ge=0, le=65535)
    endpoint: str = "events"
    buffer_size: int = Field(default=1024, gt=0)

    # "broadcast" = shared bounded ring buffer, "queue" = unbounded queue per client
    fanout_mode: Literal["broadcast", "queue"] = "broadcast"
    keepalive_interval: int = Field(default=15, gt=0)  # seconds

    @property
    def path(self) -> str:
        return "/" + self.endpoint.strip("/")

    @property
    def url(self) -> str:
        host = f"[{self.ip}]" if isinstance(self.ip, IPv6Address) else str(self.ip)
        return f"http://{host}:{self.port}/{self.endpoint.strip('/')}"


class BrokerSettings(BaseModel):
    """Broker connection settings. Connection fields have no defaults."""

    host: str
    port: int = Field(ge=0, le=65535)
    client_id: str
    topic: str
    username: str | None = None
    password: str | None = None

    adapter: Literal["nats", "memory"] = "nats"
    jetstream: bool = True
    connect_timeout: float = Field(default=5.0, gt=0)  # seconds
    poll_timeout: float = Field(default=1.0, gt=0)  # seconds
    reconnect_delay: float = Field(default=1.0, ge=0)  # seconds, 0 = immediate

    @property
    def credentials(self) -> tuple[str, str] | None:
        """Username and password, only when both are configured."""
        if self.username is not None and self.password is not None:
            return self.username, self.password
        return None

    def summary(self) -> str:
        """Human-readable summary. Never includes credential values."""
        return (
            "Broker Configuration:\n"
            f"Client ID: {self.client_id}\n"
            f"Host: {self.host}\n"
            f"Port: {self.port}\n"
            f"Topic: {self.topic}\n"
            f"Credentials: {'provided' if self.credentials else 'none'}\n"
        )


class Settings(BaseSettings):
    """
    SSE Bridge configuration.

    Values passed to the constructor (normally the parsed TOML file) have the
    lowest priority; environment variables and ``.env`` override them.
    """
    model_config = SettingsConfigDict(
        env_prefix="BRIDGE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False
    sse: SseSettings = SseSettings()
    broker: BrokerSettings

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def read_config_file(path: str | Path) -> Dict[str, Any]:
    """
    Read and parse a TOML configuration file.

    The original ``[mqtt]`` section name is accepted as an alias of ``[broker]``.

    Raises:
        ConfigError: If the file cannot be read or is not valid TOML
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read {path}: {e}") from e

    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e

    if "mqtt" in data and "broker" not in data:
        logger.warning(
            f"{path}: reading the [mqtt] section as [broker]; the bridge "
            f"speaks NATS, rename the section to [broker]"
        )
        data["broker"] = data.pop("mqtt")
    return data


def load_settings(path: str | Path = DEFAULT_CONFIG_FILENAME) -> Settings:
    """
    Load settings from a TOML file, applying environment overrides.

    Raises:
        ConfigError: If the file is unreadable, unparsable or invalid
    """
    data = read_config_file(path)
    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e
