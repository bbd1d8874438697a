"""Operator kinds and catalog entries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final


class OperatorKind(StrEnum):
    ASSIGNMENT = "assignment"
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"

    @property
    def is_association(self) -> bool:
        return self in ASSOCIATION_KINDS

    @classmethod
    def coerce(cls, value: object) -> OperatorKind | None:
        """Return the kind named by ``value`` or ``None`` if unsupported."""

        if isinstance(value, OperatorKind):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


ASSOCIATION_KINDS: Final[frozenset[OperatorKind]] = frozenset(
    {OperatorKind.BELONGS_TO, OperatorKind.HAS_ONE, OperatorKind.HAS_MANY}
)


@dataclass(frozen=True, slots=True)
class Operator:
    """A bindable capability of a target type.

    ``value_type`` is only set for assignments backed by a column; ``related_type``
    only for associations whose target the introspector could reflect on.
    """

    name: str
    kind: OperatorKind
    value_type: type | None = None
    related_type: type | None = None

    @property
    def is_association(self) -> bool:
        return self.kind.is_association
