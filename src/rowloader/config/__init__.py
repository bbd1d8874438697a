"""Application configuration helpers."""

from __future__ import annotations

from .database import DatabaseConfig, get_database_config
from .env import optional_env_var, require_env_vars
from .errors import BlankConfigurationError, ConfigurationError, MissingConfigurationError
from .loading import LoadingConfig, get_loading_config
from .logging import configure_logging

__all__ = [
    "BlankConfigurationError",
    "ConfigurationError",
    "DatabaseConfig",
    "LoadingConfig",
    "MissingConfigurationError",
    "configure_logging",
    "get_database_config",
    "get_loading_config",
    "optional_env_var",
    "require_env_vars",
]
