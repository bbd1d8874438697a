from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from rowloader.adapters.sqlalchemy import (
    SqlAlchemyIntrospector,
    SqlAlchemyUnitOfWork,
    create_database_engine,
    shutdown,
    startup,
)
from rowloader.domain.catalog import OperatorCatalog
from tests.helpers.fakes import InMemoryUnitOfWork, build_book_catalog
from tests.helpers.models import mapper_registry, start_mappers

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_database_engine("sqlite+pysqlite:///:memory:")
    start_mappers()
    mapper_registry.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def sqlalchemy_catalog() -> Iterator[OperatorCatalog]:
    start_mappers()
    catalog = OperatorCatalog(SqlAlchemyIntrospector())
    try:
        yield catalog
    finally:
        catalog.clear()


@pytest.fixture
def book_catalog() -> OperatorCatalog:
    return build_book_catalog()


@pytest.fixture
def in_memory_unit_of_work() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()
