"""Run options for header resolution and loading."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


def _frozen(values: Iterable[str]) -> frozenset[str]:
    return frozenset(values)


@dataclass(frozen=True, slots=True)
class ImportOptions:
    """Options shared by the header resolver and the loader.

    ``include_all`` takes precedence over ``force_inclusion``; ``mandatory``
    columns are checked before either. ``defaults`` maps operator names to values
    applied when a row does not supply them.
    """

    dummy_run: bool = False
    mandatory: frozenset[str] = frozenset()
    force_inclusion: frozenset[str] = frozenset()
    include_all: bool = False
    strict: bool = False
    verbose: bool = False
    defaults: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        # Accept any iterable of names from callers, store immutable sets.
        object.__setattr__(self, "mandatory", _frozen(self.mandatory))
        object.__setattr__(self, "force_inclusion", _frozen(self.force_inclusion))
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))
