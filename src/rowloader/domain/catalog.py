"""Per-type catalog of bindable operators."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

from .inflection import classify
from .operators import Operator, OperatorKind
from .type_resolver import ModuleTypeResolver, TypeResolver, resolve_in_namespaces

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .ports import ModelIntrospector

log = getLogger(__name__)


class OperatorCatalog:
    """Introspects target types once and caches their operators.

    A single catalog is meant to be shared by every resolver in the process.
    Reads of an already cached type never take the lock.
    """

    def __init__(
        self,
        introspector: ModelIntrospector,
        *,
        type_resolver: TypeResolver | None = None,
    ) -> None:
        self._introspector = introspector
        self.type_resolver: TypeResolver = type_resolver or ModuleTypeResolver()
        self._cache: dict[type, dict[str, Operator]] = {}
        self._lock = threading.Lock()

    def operators_for(self, target_type: type) -> frozenset[Operator]:
        return frozenset(self._operators(target_type).values())

    def operator_names(self, target_type: type) -> tuple[str, ...]:
        """Operator names in discovery order (assignments first)."""

        return tuple(self._operators(target_type))

    def find(self, target_type: type, name: str) -> Operator | None:
        return self._operators(target_type).get(name)

    def column_types(self, target_type: type) -> Mapping[str, type | None]:
        return {
            name: operator.value_type
            for name, operator in self._operators(target_type).items()
            if operator.kind is OperatorKind.ASSIGNMENT
        }

    def reflect_on_association(self, target_type: type, name: str) -> type | None:
        operator = self.find(target_type, name)
        if operator is None or not operator.is_association:
            return None
        return operator.related_type

    def related_type(self, target_type: type, name: str) -> type | None:
        """Return the class an association operator points at, if derivable."""

        reflected = self.reflect_on_association(target_type, name)
        if reflected is not None:
            return reflected
        return resolve_in_namespaces(self.type_resolver, classify(name), target_type)

    def cached_types(self) -> frozenset[type]:
        return frozenset(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def _operators(self, target_type: type) -> dict[str, Operator]:
        cached = self._cache.get(target_type)
        if cached is not None:
            return cached
        with self._lock:
            cached = self._cache.get(target_type)
            if cached is None:
                cached = self._discover(target_type)
                self._cache[target_type] = cached
        return cached

    def _discover(self, target_type: type) -> dict[str, Operator]:
        relationships = self._introspector.relationships(target_type)
        fields = self._introspector.assignable_fields(target_type)

        operators: dict[str, Operator] = {}
        for name, value_type in fields.items():
            if name in relationships:
                continue
            operators[name] = Operator(name, OperatorKind.ASSIGNMENT, value_type=value_type)
        for name, info in relationships.items():
            operators[name] = Operator(name, info.kind, related_type=info.related_type)

        log.debug(
            "Discovered %d operators on %s: %s",
            len(operators),
            target_type.__qualname__,
            ", ".join(operators),
        )
        return operators
