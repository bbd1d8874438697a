"""Row-by-row import of tabular data into a target type.

The whole row sequence runs inside one unit of work. Every row gets a fresh
instance and its own savepoint: bind errors and save rejections roll the
savepoint back and become row failures, the batch carries on. A dummy run always
rolls back at the end but reports every row as if it had been persisted.

Each row is saved once, after all of its columns are bound. Many-to-many links
appended during binding are written by the backend when the instance is
flushed, so the target does not need an identity beforehand.
"""

from __future__ import annotations

import sys
from logging import getLogger
from typing import TYPE_CHECKING, Final

from rowloader.config.loading import LoadingConfig

from .coercion import coerce_value, is_blank
from .errors import BindError, ConfigurationError, PipelineFatalError, SaveError
from .method_detail import MethodDetail
from .method_mapper import MethodMapper, normalize_header
from .operators import OperatorKind
from .options import ImportOptions
from .report import ImportReport, RowFailure, RowOutcome, RowSuccess

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from .catalog import OperatorCatalog
    from .method_mapper import MethodMapping
    from .ports import ImportUnitOfWork, ObjectStore

    UnitOfWorkFactory = Callable[[], ImportUnitOfWork]

log = getLogger(__name__)

# Attributes tried, in order, to find or create a related record from a bare cell.
NATURAL_KEY_CANDIDATES: Final[tuple[str, ...]] = ("name", "title", "reference", "code", "key")


class Loader:
    """Import rows into ``target_type`` through a unit of work."""

    def __init__(
        self,
        target_type: type,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        catalog: OperatorCatalog,
        mapper: MethodMapper | None = None,
        config: LoadingConfig | None = None,
    ) -> None:
        self.target_type = target_type
        self.unit_of_work_factory = unit_of_work_factory
        self.catalog = catalog
        self.config = config or LoadingConfig()
        self.mapper = mapper or MethodMapper(catalog, config=self.config)

    def load(
        self,
        headers: Sequence[str | None],
        rows: Iterable[Sequence[object]],
        options: ImportOptions | None = None,
    ) -> ImportReport:
        """Resolve ``headers`` and import ``rows``; return the run report.

        Configuration and mapping errors are raised before ``rows`` is touched.
        ``PipelineFatalError`` is raised (with ``.report`` set) if the run aborts.
        """

        opts = options or ImportOptions()
        mapping = self.mapper.resolve(self.target_type, headers, opts)
        defaults = self._resolve_defaults(opts.defaults)
        log.info(
            "Loading into %s with %d mapped column(s): %s",
            self.target_type.__qualname__,
            len(mapping.bound()),
            mapping.describe(),
        )

        report = ImportReport(dry_run=opts.dummy_run)
        try:
            with self.unit_of_work_factory() as uow:
                for row_index, row in enumerate(rows):
                    report.increment_processed()
                    outcome = self._process_row(uow.store, mapping, defaults, row_index, row)
                    report.record(outcome)
                    if isinstance(outcome, RowFailure) and opts.verbose:
                        _echo_failure(outcome)

                if opts.dummy_run:
                    log.info("Dummy run, rolling back %d processed row(s)", report.processed)
                    uow.rollback()
                else:
                    uow.commit()
                    report.committed = True
        except PipelineFatalError as exc:
            exc.report = report
            log.error("Import into %s aborted: %s", self.target_type.__qualname__, exc)
            raise
        except Exception as exc:
            fatal = PipelineFatalError(f"Import aborted after {report.processed} row(s): {exc}")
            fatal.report = report
            log.error("Import into %s aborted: %s", self.target_type.__qualname__, exc)
            raise fatal from exc
        finally:
            _emit(report)

        return report

    def _resolve_defaults(self, defaults: Mapping[str, object]) -> list[tuple[MethodDetail, object]]:
        lookup = {
            normalize_header(name): name for name in self.catalog.operator_names(self.target_type)
        }
        resolved: list[tuple[MethodDetail, object]] = []
        for name, value in defaults.items():
            operator_name = lookup.get(normalize_header(name))
            operator = (
                self.catalog.find(self.target_type, operator_name) if operator_name else None
            )
            if operator is None:
                raise ConfigurationError(
                    f"Default given for unknown operator {name!r} on "
                    f"{self.target_type.__qualname__}"
                )
            detail = MethodDetail(
                name, self.target_type, operator.name, operator.kind, catalog=self.catalog
            )
            resolved.append((detail, value))
        return resolved

    def _process_row(
        self,
        store: ObjectStore,
        mapping: MethodMapping,
        defaults: Sequence[tuple[MethodDetail, object]],
        row_index: int,
        row: Sequence[object],
    ) -> RowOutcome:
        cells = tuple(row)
        log.debug("Begin processing row %d", row_index)
        instance = store.new_instance(self.target_type)
        try:
            with store.savepoint():
                self._apply_defaults(store, instance, mapping, defaults, cells)
                self._bind_columns(store, instance, mapping, cells)
                result = store.save(instance)
                if not result.ok:
                    raise SaveError(result.messages)
        except SaveError as exc:
            log.error("Failed to save row [%d] %s: %s", row_index, cells, "; ".join(exc.messages))
            return RowFailure(
                row_index=row_index,
                row=cells,
                error=str(exc),
                messages=exc.messages,
                retryable=False,
            )
        except PipelineFatalError:
            raise
        except Exception as exc:  # noqa: BLE001
            log.error("Failed to process row [%d] %s: %s", row_index, cells, exc)
            return RowFailure(row_index=row_index, row=cells, error=str(exc), retryable=True)

        log.info("Saved %s for row %d", self.target_type.__qualname__, row_index)
        return RowSuccess(row_index=row_index, instance=instance)

    def _apply_defaults(
        self,
        store: ObjectStore,
        instance: object,
        mapping: MethodMapping,
        defaults: Sequence[tuple[MethodDetail, object]],
        cells: Sequence[object],
    ) -> None:
        supplied = {
            detail.operator
            for detail in mapping.bound()
            if not is_blank(_cell(cells, detail.column_index)) or detail.find_by_value is not None
        }
        for detail, value in defaults:
            if detail.operator in supplied:
                continue
            self._bind_guarded(store, instance, detail, value)

    def _bind_columns(
        self,
        store: ObjectStore,
        instance: object,
        mapping: MethodMapping,
        cells: Sequence[object],
    ) -> None:
        for column, detail in enumerate(mapping):
            if detail is None:
                log.warning(
                    "No method detail found for column %d (%r), skipping",
                    column + 1,
                    mapping.headers[column],
                )
                continue
            value = _cell(cells, column)
            if is_blank(value) and detail.find_by_value is None:
                continue
            self._bind_guarded(store, instance, detail, value)

    def _bind_guarded(
        self,
        store: ObjectStore,
        instance: object,
        detail: MethodDetail,
        value: object,
    ) -> None:
        try:
            self._bind(store, instance, detail, value)
        except PipelineFatalError:
            raise
        except Exception as exc:
            raise BindError(f"{detail.describe()}: {exc}") from exc

    def _bind(self, store: ObjectStore, instance: object, detail: MethodDetail, value: object) -> None:
        if detail.operator_kind is OperatorKind.ASSIGNMENT:
            store.assign(instance, detail.operator, coerce_value(value, detail.resolved_value_type))
        elif detail.operator_kind is OperatorKind.HAS_MANY:
            for part in self._split(detail, value):
                store.append_to_many(instance, detail.operator, self._related(store, detail, part))
        else:
            store.set_to_one(instance, detail.operator, self._related(store, detail, value))

    def _split(self, detail: MethodDetail, value: object) -> list[object]:
        if detail.find_by_value is not None:
            return [detail.find_by_value]
        if isinstance(value, str):
            parts = value.split(self.config.multi_value_delimiter)
            return [part.strip() for part in parts if part.strip()]
        if isinstance(value, (list, tuple, set, frozenset)):
            return list(value)
        return [value]

    def _related(self, store: ObjectStore, detail: MethodDetail, value: object) -> object:
        related_type = detail.resolved_value_type
        if related_type is None:
            raise BindError(f"Cannot determine the related type of {detail.operator!r}")
        if isinstance(value, related_type):
            return value

        if detail.find_by_key is not None:
            raw = detail.find_by_value if detail.find_by_value is not None else value
            key_value = coerce_value(raw, self.catalog.column_types(related_type).get(detail.find_by_key))
            found = store.find_by(related_type, detail.find_by_key, key_value)
            if found is None:
                raise BindError(
                    f"No {related_type.__qualname__} found with {detail.find_by_key}={raw!r}"
                )
            return found

        key = self._natural_key(related_type)
        if key is None:
            raise BindError(
                f"{related_type.__qualname__} has no natural key "
                f"({', '.join(NATURAL_KEY_CANDIDATES)}); "
                f"use a find-by header such as '{detail.name}:id'"
            )
        key_value = coerce_value(value, self.catalog.column_types(related_type).get(key))
        found = store.find_by(related_type, key, key_value)
        if found is not None:
            return found
        log.debug("Creating %s with %s=%r", related_type.__qualname__, key, key_value)
        return store.create(related_type, **{key: key_value})

    def _natural_key(self, related_type: type) -> str | None:
        columns = self.catalog.column_types(related_type)
        return next((name for name in NATURAL_KEY_CANDIDATES if name in columns), None)


def _cell(cells: Sequence[object], index: int) -> object:
    return cells[index] if 0 <= index < len(cells) else None


def _emit(report: ImportReport) -> None:
    summary = report.render()
    log.info(summary.to_text())


def _echo_failure(failure: RowFailure) -> None:
    detail = "; ".join(failure.messages) or failure.error
    print(f"Failed to process row [{failure.row_index}] {list(failure.row)}", file=sys.stderr)  # noqa: T201
    print(f"  {detail}", file=sys.stderr)  # noqa: T201
