"""Configuration models, precedence resolution and the file manager."""

from solrsync.errors import ConfigError

from .manager import CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH, ConfigManager, ConfigUpdate
from .models import SolrSyncConfig
from .resolver import flatten_for_env, resolve_with_precedence

__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigError",
    "ConfigManager",
    "ConfigUpdate",
    "DEFAULT_CONFIG_PATH",
    "SolrSyncConfig",
    "flatten_for_env",
    "resolve_with_precedence",
]
