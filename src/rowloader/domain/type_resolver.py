"""Best-effort lookup of related types by name.

Used when the introspector cannot reflect on an association's target. Lookups
never raise: an unresolvable name yields ``None`` and is treated as "unknown".
"""

from __future__ import annotations

import builtins
import importlib
import sys
from logging import getLogger
from typing import Protocol, runtime_checkable

log = getLogger(__name__)


@runtime_checkable
class TypeResolver(Protocol):
    """Strategy resolving a class name (plain or dotted) into a type."""

    def resolve_by_name(self, name: str) -> type | None: ...


def parent_namespace(owner: type) -> str:
    """Return the first segment of ``owner``'s qualified name.

    ``shop.catalog.models.Project`` -> ``shop``.
    """

    return owner.__module__.split(".", 1)[0]


class ModuleTypeResolver:
    """Resolve names against importable modules.

    Plain names are looked up in ``builtins`` and ``__main__``; dotted names are
    split into ``module.attribute`` and imported.
    """

    def resolve_by_name(self, name: str) -> type | None:
        if not name:
            return None
        if "." not in name:
            return self._from_global_namespace(name)

        module_name, _, attribute = name.rpartition(".")
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            log.debug("Module %s not importable while resolving %s", module_name, name)
            return None
        return _as_type(getattr(module, attribute, None))

    @staticmethod
    def _from_global_namespace(name: str) -> type | None:
        candidate = getattr(builtins, name, None)
        if candidate is None:
            main = sys.modules.get("__main__")
            candidate = getattr(main, name, None) if main is not None else None
        return _as_type(candidate)


def resolve_in_namespaces(
    resolver: TypeResolver,
    class_name: str,
    owner: type,
) -> type | None:
    """Try ``class_name`` globally, then under ``owner``'s parent namespace."""

    try:
        found = resolver.resolve_by_name(class_name)
        if found is not None:
            return found

        namespaced = f"{parent_namespace(owner)}.{class_name}"
        log.debug("Trying to find operator class with parent namespace: %s", namespaced)
        return resolver.resolve_by_name(namespaced)
    except Exception:  # noqa: BLE001
        log.exception("Failed to derive class %s for %s", class_name, owner.__qualname__)
        return None


def _as_type(candidate: object) -> type | None:
    return candidate if isinstance(candidate, type) else None
