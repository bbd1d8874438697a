"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import BlankConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value.strip()

    if missing:
        raise MissingConfigurationError(f"Missing configuration for: {', '.join(sorted(missing))}")

    return values


def optional_env_var(name: str, default: str) -> str:
    """Return ``name`` from the environment, or ``default`` when unset.

    Blank values are rejected instead of silently replaced: a delimiter of
    ``""`` would split every cell into characters.
    """

    value = os.getenv(name)
    if value is None:
        return default
    if not value.strip():
        raise BlankConfigurationError(f"Blank configuration for: {name}")
    return value
