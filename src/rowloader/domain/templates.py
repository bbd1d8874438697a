"""Template headers generated from a target type's operators."""

from __future__ import annotations

import csv
from typing import TYPE_CHECKING, Final

from .operators import OperatorKind

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from .catalog import OperatorCatalog

SYSTEM_COLUMNS: Final[frozenset[str]] = frozenset({"id", "created_at", "updated_at"})


def template_headers(  # noqa: PLR0913
    target_type: type,
    catalog: OperatorCatalog,
    *,
    with_associations: bool = False,
    exclude: Iterable[OperatorKind | str] = (),
    remove: Iterable[str] = (),
    remove_system: bool = False,
) -> list[str]:
    """Return the header row a loader would accept for ``target_type``.

    Assignments come first, then (if ``with_associations``) associations not of
    an ``exclude``-d kind. ``remove`` drops named operators, ``remove_system``
    drops ``id``, ``created_at`` and ``updated_at``.
    """

    excluded_kinds = {OperatorKind(kind) for kind in exclude}
    removed = set(remove)
    if remove_system:
        removed |= SYSTEM_COLUMNS

    headers: list[str] = []
    for name in catalog.operator_names(target_type):
        operator = catalog.find(target_type, name)
        if operator is None or name in removed:
            continue
        if operator.is_association and (not with_associations or operator.kind in excluded_kinds):
            continue
        headers.append(name)
    return headers


def write_template(path: Path, target_type: type, catalog: OperatorCatalog, **options: object) -> Path:
    """Write :func:`template_headers` as a single-row CSV file at ``path``."""

    headers = template_headers(target_type, catalog, **options)  # type: ignore[arg-type]
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        csv.writer(handle).writerow(headers)
    return path
