from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect, select, text

from rowloader.adapters.sqlalchemy import SqlAlchemyObjectStore
from rowloader.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    create_database_engine,
    create_tables,
    is_started,
    shutdown,
    startup,
)
from rowloader.config import MissingConfigurationError
from tests.helpers.models import Category, Project, start_mappers

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_startup_reads_database_uri_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    startup()

    engine = configured_engine()
    assert engine is not None
    assert engine.dialect.name == "sqlite"


def test_startup_without_database_uri_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)

    with pytest.raises(MissingConfigurationError, match="DATABASE_URI"):
        startup()

    assert not is_started()


def test_store_requires_entered_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.store

    with uow:
        assert isinstance(uow.store, SqlAlchemyObjectStore)


def test_unit_of_work_commits_and_rolls_back(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.store.save(uow.store.create(Category, name="Committed"))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        uow.store.save(uow.store.create(Category, name="Rolled back"))
        uow.rollback()

    with pytest.raises(RuntimeError), sqlite_unit_of_work() as uow:
        uow.store.save(uow.store.create(Category, name="Aborted"))
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        names = uow.session.execute(select(Category.name)).scalars().all()

    assert names == ["Committed"]


def test_sqlite_engine_supports_savepoints_and_foreign_keys() -> None:
    engine = create_database_engine("sqlite+pysqlite:///:memory:")
    try:
        with engine.connect() as connection:
            assert connection.exec_driver_sql("PRAGMA foreign_keys").scalar_one() == 1
            connection.exec_driver_sql("CREATE TABLE t (x INTEGER)")
            savepoint = connection.begin_nested()
            connection.exec_driver_sql("INSERT INTO t VALUES (1)")
            savepoint.rollback()
            connection.exec_driver_sql("INSERT INTO t VALUES (2)")
            rows = connection.execute(text("SELECT x FROM t")).scalars().all()
            connection.commit()
        assert rows == [2]
    finally:
        engine.dispose()


def test_create_tables_for_mapped_model() -> None:
    start_mappers()
    engine = create_database_engine("sqlite+pysqlite:///:memory:")
    try:
        create_tables(engine, Project, Category)
        table_names = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()

    assert {"project", "category", "tag", "project_tag"} <= table_names
