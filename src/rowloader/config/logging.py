"""Root logger setup for the rowloader command line."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_level(level: int | str) -> int:
    """Map a level name such as ``"debug"`` to its number; numbers pass through."""

    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(*, level: int | str = logging.INFO, force: bool = False) -> None:
    """Send log records to stderr at ``level``.

    Row failures are logged at ERROR and unmapped columns at WARNING, so the
    default INFO level shows both alongside the per-file progress lines. An
    unknown level name raises ``ValueError`` even when the root logger is
    already configured.
    """

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
