"""Dotted-key codec for nested store trees.

Purpose
-------
Translate between dot-delimited keys (``signing.key.email``) and the nested
mappings persisted in store files. Every mutation goes through this module so
the scalar/container invariant holds: a segment is either a leaf value or a
sub-tree, never both, and nothing is silently overwritten.

Contents
--------
* :data:`MISSING` – sentinel returned by :func:`get_path` for absent leaves.
* :func:`split_path` / :func:`join_path` – key validation and joining.
* :func:`flatten` / :func:`unflatten` – tree ↔ dotted-map conversion.
* :func:`get_path` / :func:`set_path` / :func:`delete_path` – single-key access.

System Role
-----------
Used by the resolver to read store layers, by the write path to persist values,
and by the schema generator to mirror the nesting rules.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable

from .errors import InvalidKey, NotFound, TraversalConflict


class _Missing:
    """Marker type for absent leaves; falsy and printable."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def split_path(key: str) -> list[str]:
    """Split *key* on ``.`` and reject empty segments.

    Examples
    --------
    >>> split_path("signing.key.email")
    ['signing', 'key', 'email']
    >>> split_path("a..b")
    Traceback (most recent call last):
    ...
    lib_scoped_config.domain.errors.InvalidKey: Invalid configuration key 'a..b': empty segment
    """

    parts = key.split(".")
    if not key or any(not part for part in parts):
        raise InvalidKey(f"Invalid configuration key '{key}': empty segment", key=key)
    return parts


def join_path(segments: Iterable[str], key: str) -> str:
    """Join *segments* and *key* with dots, skipping an empty prefix."""

    prefix = ".".join(segments)
    return f"{prefix}.{key}" if prefix else key


def flatten(tree: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``{dotted_key: leaf}`` for every scalar in *tree*.

    Recursion follows insertion order; callers that display keys must sort them.
    Empty sub-trees carry no leaves and therefore vanish, so only trees without
    empty containers survive a round trip through :func:`unflatten`.

    Raises
    ------
    TraversalConflict
        When a key contains a dot or two branches flatten to the same path.
        A store written as ``{"a.b": 1, "a": {"b": 2}}`` is ambiguous.

    Examples
    --------
    >>> flatten({"use-tui": True, "signing": {"key": {"name": "ACME"}}})
    {'use-tui': True, 'signing.key.name': 'ACME'}
    """

    flat: dict[str, Any] = {}
    _flatten_into(flat, tree, [])
    return flat


def sorted_paths(tree: Mapping[str, Any]) -> list[str]:
    """Return the dotted keys of *tree* in display order.

    >>> sorted_paths({"b": 1, "a": {"z": 2, "c": 3}})
    ['a.c', 'a.z', 'b']
    """

    return sorted(flatten(tree))


def _flatten_into(flat: dict[str, Any], node: Mapping[str, Any], segments: list[str]) -> None:
    for key, value in node.items():
        dotted = join_path(segments, str(key))
        if "." in str(key) or dotted in flat:
            raise TraversalConflict(
                f"Ambiguous key '{dotted}': store segments must not contain '.' or repeat a path",
                key=dotted,
                segment=str(key),
            )
        if isinstance(value, Mapping):
            _flatten_into(flat, value, [*segments, str(key)])
        else:
            flat[dotted] = value


def unflatten(pairs: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Build a nested tree from dotted pairs, rejecting shape collisions.

    Examples
    --------
    >>> unflatten({"a.b": 1, "a.c": 2, "d": 3})
    {'a': {'b': 1, 'c': 2}, 'd': 3}
    >>> unflatten({"a": 1, "a.b": 2})
    Traceback (most recent call last):
    ...
    lib_scoped_config.domain.errors.TraversalConflict: Cannot descend into 'a' for key 'a.b': it holds a scalar value
    """

    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    tree: dict[str, Any] = {}
    for key, value in items:
        set_path(tree, key, value)
    return tree


def get_path(tree: Mapping[str, Any], key: str) -> Any:
    """Return the leaf stored under *key* or :data:`MISSING`.

    Containers are not leaves: asking for ``signing`` when only
    ``signing.key.name`` is set yields :data:`MISSING`.

    Examples
    --------
    >>> get_path({"a": {"b": 1}}, "a.b")
    1
    >>> get_path({"a": {"b": 1}}, "a")
    MISSING
    """

    current: Any = tree
    for part in split_path(key):
        if not isinstance(current, Mapping) or part not in current:
            return MISSING
        current = current[part]
    if isinstance(current, Mapping):
        return MISSING
    return current


def set_path(tree: dict[str, Any], key: str, value: Any) -> None:
    """Assign *value* at *key*, creating intermediate sub-trees on demand.

    Raises
    ------
    TraversalConflict
        When an intermediate segment holds a scalar, or when the target itself
        is an existing sub-tree.

    Examples
    --------
    >>> data: dict = {}
    >>> set_path(data, "signing.key.format", "armored")
    >>> data
    {'signing': {'key': {'format': 'armored'}}}
    """

    parts = split_path(key)
    cursor = tree
    for part in parts[:-1]:
        cursor = _ensure_child_mapping(cursor, part, key)
    final = parts[-1]
    if isinstance(cursor.get(final), Mapping):
        raise TraversalConflict(
            f"Cannot assign a scalar to '{key}': it already holds nested keys",
            key=key,
            segment=final,
        )
    cursor[final] = value


def delete_path(tree: dict[str, Any], key: str) -> Any:
    """Remove *key* from *tree* and return the removed value.

    Deleting a sub-tree removes all its descendants. Parents left empty by the
    removal are pruned.

    Raises
    ------
    NotFound
        When any segment of *key* is absent.
    TraversalConflict
        When an intermediate segment holds a scalar.
    """

    parts = split_path(key)
    trail: list[tuple[dict[str, Any], str]] = []
    cursor = tree
    for part in parts[:-1]:
        if part not in cursor:
            raise NotFound(f"Key not found: {key}", key=key)
        child = cursor[part]
        if not isinstance(child, dict):
            raise TraversalConflict(
                f"Cannot traverse through non-mapping value at '{part}' for key '{key}'",
                key=key,
                segment=part,
            )
        trail.append((cursor, part))
        cursor = child
    final = parts[-1]
    if final not in cursor:
        raise NotFound(f"Key not found: {key}", key=key)
    removed = cursor.pop(final)
    for parent, part in reversed(trail):
        if parent[part]:
            break
        del parent[part]
    return removed


def _ensure_child_mapping(mapping: dict[str, Any], part: str, key: str) -> dict[str, Any]:
    """Return ``mapping[part]`` as a dict, creating it when absent."""

    if part not in mapping:
        mapping[part] = {}
    child = mapping[part]
    if not isinstance(child, dict):
        raise TraversalConflict(
            f"Cannot descend into '{part}' for key '{key}': it holds a scalar value",
            key=key,
            segment=part,
        )
    return child
