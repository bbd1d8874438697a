"""Target database settings.

The URI comes from ``--database-uri`` or ``DATABASE_URI``. There is no default
location.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_env_var, require_env_vars

DATABASE_URI_VAR: Final[str] = "DATABASE_URI"
SQL_ECHO_VAR: Final[str] = "ROWLOADER_SQL_ECHO"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def get_database_config(*, uri: str | None = None) -> DatabaseConfig:
    """Build the database config, preferring an explicit ``uri`` over the environment.

    Raises ``MissingConfigurationError`` when neither is given.
    """

    resolved = uri.strip() if uri and uri.strip() else None
    if resolved is None:
        resolved = require_env_vars([DATABASE_URI_VAR])[DATABASE_URI_VAR]
    echo = optional_env_var(SQL_ECHO_VAR, "false").strip().lower() in _TRUTHY
    return DatabaseConfig(uri=resolved, echo=echo)
