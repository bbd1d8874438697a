"""Application orchestration entry points."""

from __future__ import annotations

import importlib
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from rowloader.adapters.csv_source import CsvSource
from rowloader.adapters.sqlalchemy import (
    SqlAlchemyUnitOfWork,
    configured_engine,
    create_tables,
    default_catalog,
    is_started,
    startup,
)
from rowloader.config import get_loading_config
from rowloader.domain.errors import ConfigurationError
from rowloader.domain.loader import Loader
from rowloader.domain.ports import ImportUnitOfWork
from rowloader.domain.templates import write_template

if TYPE_CHECKING:
    from pathlib import Path

    from rowloader.config import LoadingConfig
    from rowloader.domain.catalog import OperatorCatalog
    from rowloader.domain.options import ImportOptions
    from rowloader.domain.report import ImportReport

UnitOfWorkFactory = Callable[[], ImportUnitOfWork]


log = getLogger(__name__)


def import_object(path: str) -> object:
    """Import ``package.module:name`` (or ``package.module.name``)."""

    module_name, _, attribute = path.partition(":")
    if not attribute:
        module_name, _, attribute = path.rpartition(".")
    if not module_name or not attribute:
        raise ConfigurationError(f"Expected 'module:name', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import module {module_name!r}: {exc}") from exc

    target: object = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ConfigurationError(f"{module_name!r} has no attribute {attribute!r}") from exc
    return target


def import_model(path: str) -> type:
    model = import_object(path)
    if not isinstance(model, type):
        raise ConfigurationError(f"{path!r} is not a class")
    return model


def run_setup(path: str) -> None:
    """Call the zero-argument hook at ``path`` (e.g. a ``start_mappers`` function)."""

    hook = import_object(path)
    if not callable(hook):
        raise ConfigurationError(f"{path!r} is not callable")
    log.debug("Running setup hook %s", path)
    hook()


def load_file(  # noqa: PLR0913
    model: type,
    path: Path,
    options: ImportOptions | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    catalog: OperatorCatalog | None = None,
    source: CsvSource | None = None,
    config: LoadingConfig | None = None,
    database_uri: str | None = None,
    create_missing_tables: bool = False,
) -> ImportReport:
    """Import the CSV file at ``path`` into ``model`` using the configured adapters."""

    effective_uow = unit_of_work_factory
    if effective_uow is None:
        if not is_started():
            startup(database_uri=database_uri)
        effective_uow = SqlAlchemyUnitOfWork
    if create_missing_tables:
        engine = configured_engine()
        if engine is None:
            raise ConfigurationError("Cannot create tables without a configured engine")
        create_tables(engine, model)

    parsed = (source or CsvSource()).read(path)
    if not parsed.headers:
        raise ConfigurationError(f"{path} has no header row")
    log.info(
        "Starting import of %s into %s: %d row(s)",
        path,
        model.__qualname__,
        len(parsed.rows),
    )

    loader = Loader(
        model,
        effective_uow,
        catalog=catalog or default_catalog(),
        config=config or get_loading_config(),
    )
    report = loader.load(parsed.headers, parsed.rows, options)

    log.info(
        f"Finished import of {path}: processed={report.processed}, "
        f"succeeded={report.succeeded}, failed={report.failed}, committed={report.committed}"
    )
    return report


def generate_template(  # noqa: PLR0913
    model: type,
    output: Path,
    *,
    catalog: OperatorCatalog | None = None,
    with_associations: bool = False,
    exclude: tuple[str, ...] = (),
    remove: tuple[str, ...] = (),
    remove_system: bool = False,
) -> Path:
    """Write a header-only CSV template for ``model`` to ``output``."""

    path = write_template(
        output,
        model,
        catalog or default_catalog(),
        with_associations=with_associations,
        exclude=exclude,
        remove=remove,
        remove_system=remove_system,
    )
    log.info("Wrote template for %s to %s", model.__qualname__, path)
    return path
