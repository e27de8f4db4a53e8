"""Configuration module for animus-plugins."""

from .logging import JSONFormatter, TextFormatter, configure_logging
from .settings import Settings, get_config, get_settings

__all__ = [
    "Settings",
    "get_config",
    "get_settings",
    "configure_logging",
    "JSONFormatter",
    "TextFormatter",
]
