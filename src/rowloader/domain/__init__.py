"""Resolver and import pipeline, independent of any persistence backend."""

from __future__ import annotations

from .catalog import OperatorCatalog
from .errors import (
    BackendUnavailableError,
    BindError,
    ConfigurationError,
    InvalidOperatorKindError,
    MappingError,
    MissingMandatoryColumnError,
    PipelineFatalError,
    RowLoaderError,
    SaveError,
)
from .loader import Loader
from .method_detail import MethodDetail
from .method_mapper import MethodMapper, MethodMapping
from .operators import ASSOCIATION_KINDS, Operator, OperatorKind
from .options import ImportOptions
from .ports import ImportUnitOfWork, ModelIntrospector, ObjectStore, RelationshipInfo, SaveResult
from .report import ImportReport, ImportSummary, RowFailure, RowSuccess
from .templates import template_headers, write_template
from .type_resolver import ModuleTypeResolver, TypeResolver

__all__ = [
    "ASSOCIATION_KINDS",
    "BackendUnavailableError",
    "BindError",
    "ConfigurationError",
    "ImportOptions",
    "ImportReport",
    "ImportSummary",
    "ImportUnitOfWork",
    "InvalidOperatorKindError",
    "Loader",
    "MappingError",
    "MethodDetail",
    "MethodMapper",
    "MethodMapping",
    "MissingMandatoryColumnError",
    "ModelIntrospector",
    "ModuleTypeResolver",
    "ObjectStore",
    "Operator",
    "OperatorCatalog",
    "OperatorKind",
    "PipelineFatalError",
    "RelationshipInfo",
    "RowFailure",
    "RowLoaderError",
    "RowSuccess",
    "SaveError",
    "SaveResult",
    "TypeResolver",
    "template_headers",
    "write_template",
]
