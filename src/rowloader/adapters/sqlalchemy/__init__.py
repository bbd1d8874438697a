"""SQLAlchemy adapter package for rowloader."""

from __future__ import annotations

from .introspection import SqlAlchemyIntrospector, default_catalog
from .store import SqlAlchemyObjectStore, backend_errors
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    create_database_engine,
    create_tables,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyIntrospector",
    "SqlAlchemyObjectStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "backend_errors",
    "configured_engine",
    "create_database_engine",
    "create_tables",
    "default_catalog",
    "is_started",
    "shutdown",
    "startup",
]
