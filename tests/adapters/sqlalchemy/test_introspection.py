from __future__ import annotations

from datetime import datetime

import pytest

from rowloader.adapters.sqlalchemy import SqlAlchemyIntrospector, default_catalog
from rowloader.domain.catalog import OperatorCatalog
from rowloader.domain.operators import OperatorKind
from tests.helpers.models import (
    Category,
    Milestone,
    Note,
    Owner,
    Project,
    Status,
    Tag,
    start_mappers,
)


@pytest.fixture(autouse=True)
def mapped_models() -> None:
    start_mappers()


def test_assignable_fields_use_column_python_types() -> None:
    fields = SqlAlchemyIntrospector().assignable_fields(Project)

    assert fields["title"] is str
    assert fields["value_as_integer"] is int
    assert fields["value_as_boolean"] is bool
    assert fields["value_as_double"] is float
    assert fields["value_as_datetime"] is datetime
    assert fields["status"] is Status
    assert fields["category_id"] is int


def test_property_setters_are_columnless_assignments() -> None:
    fields = SqlAlchemyIntrospector().assignable_fields(Project)

    assert "owner_name" in fields
    assert fields["owner_name"] is None


def test_unmapped_class_only_exposes_property_setters() -> None:
    introspector = SqlAlchemyIntrospector()

    assert introspector.assignable_fields(Note) == {"body": None}
    assert introspector.relationships(Note) == {}


def test_relationship_kinds_follow_direction_and_uselist() -> None:
    relationships = SqlAlchemyIntrospector().relationships(Project)

    assert relationships["category"].kind is OperatorKind.BELONGS_TO
    assert relationships["category"].related_type is Category
    assert relationships["owner"].kind is OperatorKind.HAS_ONE
    assert relationships["owner"].related_type is Owner
    assert relationships["milestones"].kind is OperatorKind.HAS_MANY
    assert relationships["milestones"].related_type is Milestone
    assert relationships["tags"].kind is OperatorKind.HAS_MANY
    assert relationships["tags"].related_type is Tag


def test_reverse_side_of_one_to_one_belongs_to() -> None:
    relationships = SqlAlchemyIntrospector().relationships(Owner)

    assert relationships["project"].kind is OperatorKind.BELONGS_TO


def test_catalog_over_mapped_model(sqlalchemy_catalog: OperatorCatalog) -> None:
    names = sqlalchemy_catalog.operator_names(Project)

    assert names[:2] == ("id", "title")
    assert names[-4:] == ("category", "owner", "milestones", "tags")
    assert sqlalchemy_catalog.related_type(Project, "tags") is Tag


def test_default_catalog_is_shared() -> None:
    assert default_catalog() is default_catalog()
