"""``ObjectStore`` implementation over a SQLAlchemy session."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import inspect, select
from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError

from rowloader.domain.errors import BackendUnavailableError
from rowloader.domain.ports import SaveResult

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.orm import Session

log = getLogger(__name__)


@contextmanager
def backend_errors() -> Iterator[None]:
    """Translate connectivity failures into ``BackendUnavailableError``."""

    try:
        yield
    except (OperationalError, InterfaceError, DisconnectionError) as exc:
        raise BackendUnavailableError(f"Persistence backend unavailable: {exc}") from exc


class SqlAlchemyObjectStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def new_instance[T](self, target_type: type[T]) -> T:
        return target_type()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        with backend_errors(), self.session.begin_nested():
            yield

    def save(self, instance: object) -> SaveResult:
        """Flush ``instance`` inside a savepoint; report blank or rejected columns."""

        blank = _blank_required_columns(instance)
        if blank:
            return SaveResult.rejected(*(f"{name} can't be blank" for name in blank))
        try:
            with backend_errors(), self.session.begin_nested():
                self.session.add(instance)
                self.session.flush()
        except IntegrityError as exc:
            log.debug("Flush rejected for %r", instance, exc_info=True)
            return SaveResult.rejected(str(exc.orig))
        return SaveResult()

    def assign(self, instance: object, field_name: str, value: object) -> None:
        setattr(instance, field_name, value)

    def set_to_one(self, instance: object, relation_name: str, related: object | None) -> None:
        setattr(instance, relation_name, related)

    def append_to_many(self, instance: object, relation_name: str, related: object) -> None:
        collection = getattr(instance, relation_name)
        if related in collection:
            return
        if hasattr(collection, "append"):
            collection.append(related)
        else:
            collection.add(related)

    def find_by[T](self, target_type: type[T], key: str, value: object) -> T | None:
        """Return a pending or persisted ``target_type`` whose ``key`` equals ``value``.

        Pending objects are checked first so records created earlier in the same
        row are reused. The query runs without autoflush: a half-bound row must
        not reach the database before it is saved.
        """

        for pending in self.session.new:
            if isinstance(pending, target_type) and getattr(pending, key, None) == value:
                return pending
        attribute = getattr(target_type, key)
        stmt = select(target_type).where(attribute == value).limit(1)
        with backend_errors(), self.session.no_autoflush:
            return self.session.execute(stmt).scalars().first()

    def create[T](self, target_type: type[T], **values: object) -> T:
        instance = self.new_instance(target_type)
        for name, value in values.items():
            self.assign(instance, name, value)
        self.session.add(instance)
        return instance


def _blank_required_columns(instance: object) -> list[str]:
    mapper = inspect(instance).mapper
    blank: list[str] = []
    for prop in mapper.column_attrs:
        column = prop.columns[0]
        if (
            getattr(column, "nullable", True)
            or getattr(column, "primary_key", False)
            or getattr(column, "default", None) is not None
            or getattr(column, "server_default", None) is not None
            or getattr(column, "foreign_keys", None)
        ):
            continue
        if getattr(instance, prop.key) is None:
            blank.append(prop.key)
    return blank
