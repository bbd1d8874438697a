"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when a required configuration value is absent."""


class BlankConfigurationError(ConfigurationError):
    """Raised when a configuration value is present but blank."""
