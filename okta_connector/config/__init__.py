"""Configuration package for okta-connector."""

from .models import ConnectionConfig, ConnectorSettings, LoggingConfig
from .loader import ConfigLoader, find_config_file

__all__ = [
    "ConnectionConfig",
    "ConnectorSettings",
    "LoggingConfig",
    "ConfigLoader",
    "find_config_file",
]
