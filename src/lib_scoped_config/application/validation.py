"""Scope and value validation against the key registry.

Purpose
-------
Decide whether a key/value pair may be written to a scope, and audit whole
store documents. Two independent rules are checked at different moments:

* ``FORBIDDEN`` blocks a *write* to one scope (:func:`validate_scope`).
* ``REQUIRED`` is checked when *reading* a whole local store
  (:func:`missing_required`), never when writing a single key.

Unknown keys pass every check; they are excluded from the schema only.

Contents
--------
* :func:`validate_scope` / :func:`validate_value` / :func:`validate_location`
* :func:`required_keys_for` / :func:`missing_required`
* :func:`audit_store` / :func:`misplaced_keys`
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath
from typing import Any, Mapping

from ..domain.errors import EnumMismatch, ForbiddenInScope, LocationMismatch, PatternMismatch, TypeMismatch
from ..domain.paths import flatten
from ..domain.registry import Constraint, KeyDefinition, Kind, Location, Registry, Scope
from ..domain.values import coerce_for, stringify


def validate_scope(registry: Registry, key: str, scope: Scope) -> None:
    """Raise :class:`ForbiddenInScope` when *key* may not be written to *scope*.

    Examples
    --------
    >>> from lib_scoped_config.domain.registry import builtin_registry
    >>> registry = builtin_registry(keys_dir="/tmp/keys")
    >>> validate_scope(registry, "github-token", Scope.USER)
    >>> validate_scope(registry, "github-token", Scope.LOCAL)
    Traceback (most recent call last):
    ...
    lib_scoped_config.domain.errors.ForbiddenInScope: key 'github-token' cannot be set in local config; set it in user config instead
    """

    definition = registry.lookup(key)
    if definition is None or definition.constraint(scope) is not Constraint.FORBIDDEN:
        return
    raise ForbiddenInScope(
        f"key '{key}' cannot be set in {scope.value} config; set it in {scope.other.value} config instead",
        key=key,
        scope=scope,
    )


def validate_value(registry: Registry, key: str, value: Any, scope: Scope) -> None:
    """Check *value* against the kind, enum members, and pattern of *key*.

    Raises
    ------
    TypeMismatch
        Boolean keys need a ``bool``; number keys an ``int``/``float``
        (booleans excluded); string and enum keys a scalar.
    EnumMismatch
        The stringified value is not an enum member.
    PatternMismatch
        The stringified value does not match the key's pattern.
    """

    definition = registry.lookup(key)
    if definition is None:
        return
    _check_type(definition, value, scope)
    if not definition.kind.textual:
        return
    text = stringify(value)
    if definition.kind is Kind.ENUM and text not in definition.enum_values:
        raise EnumMismatch(
            f"key '{key}' must be one of {list(definition.enum_values)} in {scope.value} scope (got '{text}')",
            key=key,
            scope=scope,
            expected=definition.enum_values,
            actual=value,
        )
    pattern = definition.compiled_pattern
    if pattern is not None and pattern.search(text) is None:
        raise PatternMismatch(
            f"key '{key}' value '{text}' does not match required format for {scope.value} scope",
            key=key,
            scope=scope,
            expected=definition.pattern,
            actual=value,
        )


def _check_type(definition: KeyDefinition, value: Any, scope: Scope) -> None:
    kind = definition.kind
    if kind is Kind.BOOLEAN:
        ok = isinstance(value, bool)
    elif kind is Kind.NUMBER:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    else:
        ok = isinstance(value, (str, bool, int, float))
    if not ok:
        expected = {Kind.BOOLEAN: "a boolean", Kind.NUMBER: "a number"}.get(kind, "a string")
        raise TypeMismatch(
            f"key '{definition.path}' must be {expected} (got {type(value).__name__} {value!r})",
            key=definition.path,
            scope=scope,
            expected=kind.value,
            actual=value,
        )


def validate_location(registry: Registry, key: str, value: Any, scope: Scope, root: Path) -> None:
    """Apply the filesystem rule of *key* to a path-valued *value*.

    ``root`` is the repository root (the local store's directory); relative
    values are checked against it.

    Rules
    -----
    ``Location.DIRECTORY``
        Local scope: relative and inside the repository. Any scope: must not
        name an existing file (a missing path is created later).
    ``Location.REPO_FILE``
        Relative, inside the repository, and an existing regular file.
    """

    definition = registry.lookup(key)
    if definition is None or definition.location is Location.NONE:
        return
    text = stringify(value)

    def fail(reason: str) -> None:
        raise LocationMismatch(
            f"key '{key}': {reason}",
            key=key,
            scope=scope,
            expected=definition.location.value,
            actual=value,
        )

    repo_relative = definition.location is Location.REPO_FILE or scope is Scope.LOCAL
    if repo_relative:
        if PurePath(text).is_absolute() or os.path.isabs(text):
            fail("path must be relative to repository root")
        if ".." in PurePath(os.path.normpath(text)).parts:
            fail("path must not traverse outside repository (no '../' allowed)")
    target = Path(text).expanduser()
    if not target.is_absolute():
        target = root / target
    if definition.location is Location.DIRECTORY:
        if target.exists() and not target.is_dir():
            fail("path points to an existing file; must be a directory or non-existent path")
        return
    if not target.exists():
        fail("file does not exist (kernel config files must exist in repo)")
    if target.is_dir():
        fail("path points to a directory; must be a file")


def required_keys_for(registry: Registry, scope: Scope) -> list[str]:
    """Return the sorted keys that must be present in *scope*'s store."""

    return registry.required_keys_for(scope)


def missing_required(registry: Registry, tree: Mapping[str, Any], scope: Scope = Scope.LOCAL) -> list[str]:
    """Return the sorted ``REQUIRED`` keys for *scope* that *tree* does not set."""

    present = flatten(tree)
    return [key for key in registry.required_keys_for(scope) if key not in present]


def audit_store(registry: Registry, tree: Mapping[str, Any], scope: Scope) -> None:
    """Validate every registered key found in a store document.

    The first offending key raises the same error a write would have raised.
    """

    for key, value in flatten(tree).items():
        validate_scope(registry, key, scope)
        validate_value(registry, key, coerce_for(registry.lookup(key), value), scope)


def misplaced_keys(registry: Registry, tree: Mapping[str, Any], scope: Scope) -> list[tuple[str, Scope]]:
    """Return ``(key, conventional_scope)`` for keys stored away from their usual scope.

    A key forbidden in one scope conventionally lives in the other. Placement
    outside that scope is legal wherever it is not forbidden; this only feeds
    informational logging.
    """

    found: list[tuple[str, Scope]] = []
    for key in flatten(tree):
        definition = registry.lookup(key)
        if definition is None:
            continue
        if definition.local is Constraint.FORBIDDEN:
            conventional = Scope.USER
        elif definition.user is Constraint.FORBIDDEN:
            conventional = Scope.LOCAL
        else:
            continue
        if conventional is not scope:
            found.append((key, conventional))
    return sorted(found, key=lambda item: item[0])
