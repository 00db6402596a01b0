"""JSON Schema generation from the key registry.

Purpose
-------
Describe the store format for editors and validators. Dotted keys become
nested ``object`` nodes; leaves carry type, description, default, enum
members, and pattern. A scope filter drops keys that scope forbids, so the
repo schema does not advertise ``github-token`` and the user schema does not
advertise the kernel configs.

Contents
--------
* :data:`SCHEMA_DIALECT` – JSON Schema draft identifier.
* :func:`generate_schema` – build the document as a ``dict``.
* :func:`render_schema` – serialise it with two-space indentation.
"""

from __future__ import annotations

import json
from typing import Any, Final

from ..domain.paths import split_path
from ..domain.registry import Constraint, KeyDefinition, Kind, Registry, Scope

SCHEMA_DIALECT: Final[str] = "https://json-schema.org/draft/2020-12/schema"

_JSON_TYPES: Final[dict[Kind, str]] = {
    Kind.BOOLEAN: "boolean",
    Kind.STRING: "string",
    Kind.ENUM: "string",
    Kind.NUMBER: "number",
}


def generate_schema(registry: Registry, scope: Scope | None = None, *, app: str = "Anvil") -> dict[str, Any]:
    """Return a JSON Schema document describing the keys of *registry*.

    Parameters
    ----------
    registry:
        Catalogue to describe; unknown keys are never part of the schema.
    scope:
        When given, keys whose constraint for *scope* is ``FORBIDDEN`` are
        omitted and the title names the scope.
    app:
        Product name used in the title and description.

    Examples
    --------
    >>> from lib_scoped_config.domain.registry import builtin_registry
    >>> registry = builtin_registry(keys_dir="/data/keys")
    >>> document = generate_schema(registry, Scope.LOCAL)
    >>> document["title"], document["additionalProperties"]
    ('Anvil Repo Configuration', False)
    >>> "github-token" in document["properties"]
    False
    >>> document["properties"]["signing"]["properties"]["key"]["properties"]["format"]["enum"]
    ['armored', 'binary']
    """

    if scope is None:
        title = f"{app} Configuration"
        description = f"Configuration schema for {app} CLI tool"
    elif scope is Scope.USER:
        title = f"{app} User Configuration"
        description = "User-specific configuration (personal preferences)"
    else:
        title = f"{app} Repo Configuration"
        description = "Repository-specific configuration (project settings)"

    properties: dict[str, Any] = {}
    for path in registry.paths():
        definition = registry.lookup(path)
        if definition is None:
            continue
        if scope is not None and definition.constraint(scope) is Constraint.FORBIDDEN:
            continue
        _insert(properties, split_path(path), _leaf(definition))

    return {
        "$schema": SCHEMA_DIALECT,
        "title": title,
        "description": description,
        "type": "object",
        "properties": properties,
        "additionalProperties": False,
    }


def _insert(properties: dict[str, Any], parts: list[str], leaf: dict[str, Any]) -> None:
    node = properties
    for part in parts[:-1]:
        container = node.setdefault(part, {"type": "object", "properties": {}})
        node = container["properties"]
    node[parts[-1]] = leaf


def _leaf(definition: KeyDefinition) -> dict[str, Any]:
    leaf: dict[str, Any] = {"type": _JSON_TYPES[definition.kind]}
    if definition.description:
        leaf["description"] = definition.description
    if definition.has_default:
        leaf["default"] = definition.default
    if definition.enum_values:
        leaf["enum"] = list(definition.enum_values)
    if definition.pattern:
        leaf["pattern"] = definition.pattern
    return leaf


def render_schema(document: dict[str, Any]) -> str:
    """Serialise *document* as pretty-printed JSON.

    >>> print(render_schema({"type": "object"}))
    {
      "type": "object"
    }
    """

    return json.dumps(document, indent=2, ensure_ascii=False)
