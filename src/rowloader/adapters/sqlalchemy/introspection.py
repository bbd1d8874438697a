"""Operator discovery for SQLAlchemy-mapped classes."""

from __future__ import annotations

from functools import cache
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapper, RelationshipDirection

from rowloader.domain.catalog import OperatorCatalog
from rowloader.domain.operators import OperatorKind
from rowloader.domain.ports import RelationshipInfo

if TYPE_CHECKING:
    from sqlalchemy.orm import ColumnProperty, RelationshipProperty

log = getLogger(__name__)


class SqlAlchemyIntrospector:
    """Implements ``ModelIntrospector`` through ``sqlalchemy.inspect``.

    Column attributes are assignments typed by the column's ``python_type``.
    Hybrid properties and plain properties with a setter are assignments without
    a known type. Classes SQLAlchemy does not map only expose the latter.
    """

    def assignable_fields(self, target_type: type) -> dict[str, type | None]:
        fields: dict[str, type | None] = {}
        mapper = _mapper_for(target_type)
        if mapper is not None:
            for prop in mapper.column_attrs:
                fields[prop.key] = _python_type(prop)
            for key, descriptor in mapper.all_orm_descriptors.items():
                if isinstance(descriptor, hybrid_property) and descriptor.fset is not None:
                    fields.setdefault(key, None)
        for name in _settable_properties(target_type):
            fields.setdefault(name, None)
        return fields

    def relationships(self, target_type: type) -> dict[str, RelationshipInfo]:
        mapper = _mapper_for(target_type)
        if mapper is None:
            return {}
        return {
            relationship.key: RelationshipInfo(
                kind=_kind_for(relationship),
                related_type=_related_class(relationship),
            )
            for relationship in mapper.relationships
        }


@cache
def default_catalog() -> OperatorCatalog:
    """Process-wide catalog over SQLAlchemy-mapped classes."""

    return OperatorCatalog(SqlAlchemyIntrospector())


def _mapper_for(target_type: type) -> Mapper[object] | None:
    mapper = inspect(target_type, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


def _python_type(prop: ColumnProperty[object]) -> type | None:
    column = prop.columns[0]
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _kind_for(relationship: RelationshipProperty[object]) -> OperatorKind:
    if relationship.direction is RelationshipDirection.MANYTOONE:
        return OperatorKind.BELONGS_TO
    if relationship.uselist:
        return OperatorKind.HAS_MANY
    return OperatorKind.HAS_ONE


def _related_class(relationship: RelationshipProperty[object]) -> type | None:
    try:
        return relationship.mapper.class_
    except SQLAlchemyError:
        log.warning(
            "Could not reflect on relationship %s; related type left unknown",
            relationship.key,
            exc_info=True,
        )
        return None


def _settable_properties(target_type: type) -> list[str]:
    names: list[str] = []
    for klass in target_type.__mro__:
        for name, value in vars(klass).items():
            if (
                isinstance(value, property)
                and value.fset is not None
                and not name.startswith("_")
                and name not in names
            ):
                names.append(name)
    return names
