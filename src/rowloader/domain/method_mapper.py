"""Resolve a header row into method details, one slot per column.

The mapper matches each header against the operator catalog of the target type.
``Price``, ``price`` and ``PRICE`` all map to a ``price`` attribute; ``Loader
Releases`` maps to ``loader_releases``. A header may carry a find-by qualifier,
``Category:name`` or ``Category:name=Gadgets``, to look related records up by an
alternate key instead of creating them.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, overload

from rowloader.config.loading import LoadingConfig

from .errors import MappingError, MissingMandatoryColumnError
from .inflection import pluralize, singularize
from .method_detail import MethodDetail
from .operators import OperatorKind
from .options import ImportOptions

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .catalog import OperatorCatalog

log = getLogger(__name__)

_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_header(name: str) -> str:
    """Trim, case-fold and snake-case a header cell."""

    return _SEPARATORS.sub("_", name.strip()).casefold()


def name_variants(name: str) -> tuple[str, ...]:
    """Return ``name`` followed by its singular and plural forms, in match order."""

    return (name, singularize(name), pluralize(name))


@dataclass(frozen=True, slots=True)
class HeaderColumn:
    raw: str
    name: str
    find_by_key: str | None = None
    find_by_value: str | None = None


def parse_header(raw: str | None, *, find_by_delimiter: str = ":") -> HeaderColumn:
    text = (raw or "").strip()
    base, sep, qualifier = text.partition(find_by_delimiter)
    if not sep or not qualifier.strip():
        return HeaderColumn(raw=text, name=normalize_header(base))

    key, eq, value = qualifier.partition("=")
    return HeaderColumn(
        raw=text,
        name=normalize_header(base),
        find_by_key=normalize_header(key) or None,
        find_by_value=value.strip() if eq else None,
    )


class MethodMapping(Sequence[MethodDetail | None]):
    """Ordered method details aligned to header positions."""

    def __init__(
        self,
        target_type: type,
        headers: Sequence[str],
        details: Iterable[MethodDetail | None],
    ) -> None:
        self.target_type = target_type
        self.headers = tuple(headers)
        self.details = tuple(details)

    @overload
    def __getitem__(self, index: int) -> MethodDetail | None: ...
    @overload
    def __getitem__(self, index: slice) -> Sequence[MethodDetail | None]: ...
    def __getitem__(self, index: int | slice) -> MethodDetail | None | Sequence[MethodDetail | None]:
        return self.details[index]

    def __len__(self) -> int:
        return len(self.details)

    def __iter__(self) -> Iterator[MethodDetail | None]:
        return iter(self.details)

    def bound(self) -> list[MethodDetail]:
        return [detail for detail in self.details if detail is not None]

    def unmapped_headers(self) -> list[str]:
        return [
            header for header, detail in zip(self.headers, self.details, strict=True) if detail is None
        ]

    @property
    def operators(self) -> frozenset[str]:
        return frozenset(detail.operator for detail in self.bound())

    def detail_for(self, operator: str) -> MethodDetail | None:
        for detail in self.bound():
            if detail.matches(operator, case_sensitive=True):
                return detail
        return None

    def describe(self) -> str:
        return ", ".join(detail.describe() for detail in self.bound())


class MethodMapper:
    """Header resolver backed by an :class:`OperatorCatalog`."""

    def __init__(self, catalog: OperatorCatalog, *, config: LoadingConfig | None = None) -> None:
        self.catalog = catalog
        self.config = config or LoadingConfig()

    def resolve(
        self,
        target_type: type,
        headers: Sequence[str | None],
        options: ImportOptions | None = None,
    ) -> MethodMapping:
        """Bind every header column of ``headers`` to an operator of ``target_type``.

        Raises ``MissingMandatoryColumnError`` when a mandatory column is absent
        and ``MappingError`` when a column cannot be bound under the active
        policy. Unmapped columns otherwise yield an empty slot.
        """

        opts = options or ImportOptions()
        columns = [
            parse_header(header, find_by_delimiter=self.config.find_by_delimiter)
            for header in headers
        ]
        self._check_mandatory(columns, opts.mandatory)

        mandatory = {normalize_header(name) for name in opts.mandatory}
        forced = {normalize_header(name) for name in opts.force_inclusion}
        lookup = self._operator_lookup(target_type)

        details: list[MethodDetail | None] = []
        for index, column in enumerate(columns):
            detail = self._match(target_type, column, lookup)
            if detail is None:
                detail = self._unmatched(target_type, column, opts, mandatory, forced)
            if detail is not None:
                detail.column_index = index
                log.debug("Column %d mapped: %s", index, detail.describe())
            details.append(detail)

        return MethodMapping(target_type, [column.raw for column in columns], details)

    def _check_mandatory(self, columns: Sequence[HeaderColumn], mandatory: Iterable[str]) -> None:
        present = {
            variant for column in columns if column.name for variant in name_variants(column.name)
        }
        missing = sorted(name for name in mandatory if normalize_header(name) not in present)
        if missing:
            raise MissingMandatoryColumnError(missing)

    def _operator_lookup(self, target_type: type) -> dict[str, str]:
        return {normalize_header(name): name for name in self.catalog.operator_names(target_type)}

    def _match(
        self,
        target_type: type,
        column: HeaderColumn,
        lookup: dict[str, str],
    ) -> MethodDetail | None:
        if not column.name:
            return None
        operator_name = None
        for candidate in name_variants(column.name):
            operator_name = lookup.get(candidate)
            if operator_name is not None:
                break
        if operator_name is None:
            return None

        operator = self.catalog.find(target_type, operator_name)
        if operator is None:
            return None

        detail = MethodDetail(
            column.raw,
            target_type,
            operator.name,
            operator.kind,
            find_by_key=column.find_by_key,
            find_by_value=column.find_by_value,
            catalog=self.catalog,
        )
        if column.find_by_key is not None:
            self._check_find_by(detail)
        return detail

    def _check_find_by(self, detail: MethodDetail) -> None:
        if not detail.is_association:
            raise MappingError(
                detail.name,
                f"Find-by qualifier on {detail.name!r} requires an association, "
                f"but {detail.operator!r} is an {detail.operator_kind.value}",
            )
        related = detail.resolved_value_type
        key = detail.find_by_key
        if related is not None and key is not None and self.catalog.find(related, key) is None:
            raise MappingError(
                detail.name,
                f"{related.__qualname__} has no attribute {key!r} to find {detail.name!r} by",
            )

    def _unmatched(  # noqa: PLR0913
        self,
        target_type: type,
        column: HeaderColumn,
        options: ImportOptions,
        mandatory: set[str],
        forced: set[str],
    ) -> MethodDetail | None:
        if not mandatory.isdisjoint(name_variants(column.name)):
            raise MappingError(
                column.raw,
                f"Mandatory column {column.raw!r} has no operator on {target_type.__qualname__}",
            )
        if column.name and (options.include_all or column.name in forced):
            log.info(
                "Forcing inclusion of column %r on %s without a matching operator",
                column.raw,
                target_type.__qualname__,
            )
            return MethodDetail(
                column.raw,
                target_type,
                column.name,
                OperatorKind.ASSIGNMENT,
                find_by_key=column.find_by_key,
                find_by_value=column.find_by_value,
            )

        if options.strict:
            raise MappingError(column.raw)

        log.warning(
            "No operator found for column %r on %s; column will be skipped",
            column.raw,
            target_type.__qualname__,
        )
        return None
