"""Settings for timebox, read from ``TIMEBOX_``-prefixed environment variables."""

from ._loader import ENV_PREFIX, deep_merge, load_settings, parse_env_vars
from ._models import DefaultsConfig, LogFormat, LoggingConfig, LogLevel, Settings

__all__ = [
    "ENV_PREFIX",
    "DefaultsConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "Settings",
    "deep_merge",
    "load_settings",
    "parse_env_vars",
]
