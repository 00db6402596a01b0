"""Public package surface for ``lib_scoped_config``.

Re-export the composition-root operations, the domain types callers pattern
match on, and the logging helpers, so applications can write::

    from lib_scoped_config import open_workspace, get_value

without reaching into the layered sub-packages.
"""

from __future__ import annotations

from .application.attribution import Attribution, Status, source_label
from .application.resolver import Resolver
from .application.schema import generate_schema, render_schema
from .core import (
    Workspace,
    check_repo_integrity,
    explain_value,
    get_value,
    list_values,
    load_resolver,
    open_workspace,
    schema_document,
    set_value,
    unset_value,
)
from .domain.effective import EffectiveValue, Layer
from .domain.errors import (
    ConfigError,
    EnumMismatch,
    ForbiddenInScope,
    InvalidFormat,
    InvalidKey,
    LocationMismatch,
    MissingRequiredKeys,
    NotFound,
    PatternMismatch,
    RegistryError,
    StoreMissing,
    StoreUnreadable,
    StoreUnwritable,
    TraversalConflict,
    TypeMismatch,
    ValidationError,
)
from .domain.registry import Constraint, KeyDefinition, Kind, Location, Registry, Scope, builtin_registry
from .domain.values import parse_value
from .observability import bind_trace_id, get_logger

__all__ = [
    "Attribution",
    "ConfigError",
    "Constraint",
    "EffectiveValue",
    "EnumMismatch",
    "ForbiddenInScope",
    "InvalidFormat",
    "InvalidKey",
    "KeyDefinition",
    "Kind",
    "Layer",
    "Location",
    "LocationMismatch",
    "MissingRequiredKeys",
    "NotFound",
    "PatternMismatch",
    "Registry",
    "RegistryError",
    "Resolver",
    "Scope",
    "Status",
    "StoreMissing",
    "StoreUnreadable",
    "StoreUnwritable",
    "TraversalConflict",
    "TypeMismatch",
    "ValidationError",
    "Workspace",
    "bind_trace_id",
    "builtin_registry",
    "check_repo_integrity",
    "explain_value",
    "generate_schema",
    "get_logger",
    "get_value",
    "list_values",
    "load_resolver",
    "open_workspace",
    "parse_value",
    "render_schema",
    "schema_document",
    "set_value",
    "source_label",
    "unset_value",
]
