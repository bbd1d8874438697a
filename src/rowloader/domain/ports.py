"""Ports implemented by adapters: introspection and persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from contextlib import AbstractContextManager
    from types import TracebackType

    from .operators import OperatorKind


@dataclass(frozen=True, slots=True)
class RelationshipInfo:
    """What an introspector knows about one relationship of a type."""

    kind: OperatorKind
    related_type: type | None = None


@runtime_checkable
class ModelIntrospector(Protocol):
    """Capability discovery for target types."""

    def assignable_fields(self, target_type: type) -> Mapping[str, type | None]:
        """Settable attribute names mapped to their Python value type (if known)."""
        ...

    def relationships(self, target_type: type) -> Mapping[str, RelationshipInfo]: ...


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of :meth:`ObjectStore.save`."""

    messages: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.messages

    @classmethod
    def rejected(cls, *messages: str) -> SaveResult:
        return cls(messages=messages or ("Save rejected by backend",))


@runtime_checkable
class ObjectStore(Protocol):
    """Persistence operations the loader needs for one run."""

    def new_instance[T](self, target_type: type[T]) -> T: ...

    def savepoint(self) -> AbstractContextManager[None]:
        """Scope whose changes are undone if the block raises."""
        ...

    def save(self, instance: object) -> SaveResult: ...

    def assign(self, instance: object, field_name: str, value: object) -> None: ...

    def set_to_one(self, instance: object, relation_name: str, related: object | None) -> None: ...

    def append_to_many(self, instance: object, relation_name: str, related: object) -> None: ...

    def find_by[T](self, target_type: type[T], key: str, value: object) -> T | None: ...

    def create[T](self, target_type: type[T], **values: object) -> T: ...


@runtime_checkable
class ImportUnitOfWork(Protocol):
    """Transactional boundary around one import run."""

    @property
    def store(self) -> ObjectStore: ...

    def __enter__(self) -> ImportUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
