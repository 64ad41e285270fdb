"""Public API for shared panda configuration utilities."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    LoggingSettings,
    NodeSettings,
    PandaSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LoggingSettings",
    "NodeSettings",
    "PandaSettings",
    "load_settings",
]
