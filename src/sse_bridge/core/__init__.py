"""
Core configuration for the SSE Bridge.
"""

from .config import (
    BrokerSettings,
    ConfigError,
    DEFAULT_CONFIG_FILENAME,
    Settings,
    SseSettings,
    load_settings,
    read_config_file,
)

__all__ = [
    "BrokerSettings",
    "ConfigError",
    "DEFAULT_CONFIG_FILENAME",
    "Settings",
    "SseSettings",
    "load_settings",
    "read_config_file",
]
