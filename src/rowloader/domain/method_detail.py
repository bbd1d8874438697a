"""Binding of one client-supplied column to one operator on a target type.

A ``MethodDetail`` lets loaders assign values to an instance without knowing
anything about the receiving type: the header ``Price`` in a spreadsheet is bound
to the ``price`` operator, the header ``Orders`` to the ``orders`` relationship.
"""

from __future__ import annotations

from functools import cached_property
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import InvalidOperatorKindError
from .inflection import classify
from .operators import OperatorKind
from .type_resolver import ModuleTypeResolver, resolve_in_namespaces

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .catalog import OperatorCatalog

log = getLogger(__name__)

UNBOUND_COLUMN = -1


class MethodDetail:
    def __init__(  # noqa: PLR0913
        self,
        name: str,
        target_type: type,
        operator: str,
        operator_kind: OperatorKind | str,
        column_types: Mapping[str, type | None] | None = None,
        find_by_key: str | None = None,
        find_by_value: str | None = None,
        *,
        catalog: OperatorCatalog | None = None,
    ) -> None:
        kind = OperatorKind.coerce(operator_kind)
        if kind is None:
            raise InvalidOperatorKindError(
                f"Bad operator kind {operator_kind!r} passed to method detail for {name!r}"
            )

        self.name = name
        self.target_type = target_type
        self.operator = operator
        self.operator_kind = kind
        self.find_by_key = find_by_key
        self.find_by_value = find_by_value
        self.column_index = UNBOUND_COLUMN
        self._catalog = catalog

        # Delegated and other columnless assignments legitimately have no type.
        if column_types:
            self.column_type = column_types.get(operator)
        elif catalog is not None:
            self.column_type = catalog.column_types(target_type).get(operator)
        else:
            self.column_type = None

    @property
    def is_association(self) -> bool:
        return self.operator_kind.is_association

    @property
    def is_bound(self) -> bool:
        return self.column_index != UNBOUND_COLUMN

    def operator_for(self, kind: OperatorKind | str) -> str | None:
        """Return the operator name if it is of ``kind``, else ``None``."""

        return self.operator if self.operator_kind == OperatorKind.coerce(kind) else None

    def matches(self, name: str, *, case_sensitive: bool = False) -> bool:
        if case_sensitive:
            return self.operator == name
        return self.operator.casefold() == name.casefold()

    @cached_property
    def resolved_value_type(self) -> type | None:
        """Related type for associations, column type for assignments, else ``None``."""

        if self.is_association:
            return self._related_type()
        return self.column_type

    @property
    def value_type_name(self) -> str:
        resolved = self.resolved_value_type
        return resolved.__name__ if resolved is not None else ""

    def describe(self) -> str:
        return f"{self.name} => {self.operator}"

    def __repr__(self) -> str:
        return (
            f"MethodDetail({self.describe()!r}, kind={self.operator_kind.value}, "
            f"column_index={self.column_index})"
        )

    def _related_type(self) -> type | None:
        if self._catalog is not None:
            return self._catalog.related_type(self.target_type, self.operator)
        found = resolve_in_namespaces(
            ModuleTypeResolver(), classify(self.operator), self.target_type
        )
        if found is None:
            log.error(
                "Failed to derive class for %s (%s)",
                self.operator,
                self.operator_kind.value,
            )
        return found
