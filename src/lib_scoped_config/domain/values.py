"""Typed interpretation of raw textual input.

Purpose
-------
Turn the strings typed on a command line or found in environment variables into
booleans, integers, floats, or strings, and normalise values against the kind
a key definition declares.

Contents
--------
* :func:`parse_value` – total, definition-agnostic parser.
* :func:`interpret` – kind-aware reading of user-supplied text.
* :func:`coerce_for` – kind-aware normalisation of values read from stores.
* :func:`stringify` – canonical text form of a scalar.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from .registry import KeyDefinition

TRUE_ALIASES: Final[frozenset[str]] = frozenset({"true", "yes", "on", "enable", "enabled"})
FALSE_ALIASES: Final[frozenset[str]] = frozenset({"false", "no", "off", "disable", "disabled"})

_INTEGER: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")


def parse_value(raw: str) -> bool | int | float | str:
    """Interpret *raw* as a boolean, integer, float, or string (first match wins).

    Why
    ----
    Users type ``yes``/``8``/``0.5`` and expect typed values in the store;
    anything that does not look like a boolean or a number stays a string.

    Examples
    --------
    >>> parse_value("Enabled"), parse_value("off")
    (True, False)
    >>> parse_value("8"), parse_value("-3"), parse_value("2.5")
    (8, -3, 2.5)
    >>> parse_value("x86_64")
    'x86_64'
    """

    lowered = raw.lower()
    if lowered in TRUE_ALIASES:
        return True
    if lowered in FALSE_ALIASES:
        return False
    if _INTEGER.fullmatch(raw):
        return int(raw)
    if raw and raw.isascii() and raw == raw.strip() and "_" not in raw:
        try:
            return float(raw)
        except ValueError:
            pass
    return raw


def stringify(value: Any) -> str:
    """Return the canonical text form of *value* (booleans in lower case).

    >>> stringify(True), stringify(3), stringify("x")
    ('true', '3', 'x')
    """

    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def interpret(definition: KeyDefinition | None, raw: str) -> Any:
    """Turn user-supplied text into the value stored or resolved for a key.

    Textual kinds (string, enum) keep the text verbatim, so
    ``signing.key.expiry = 0`` stays ``"0"`` and ``log-level = disabled`` is not
    mistaken for a boolean. Every other key, registered or not, goes through
    :func:`parse_value`.

    >>> interpret(None, "yes")
    True
    """

    if definition is not None and definition.kind.textual:
        return raw
    return parse_value(raw)


def coerce_for(definition: KeyDefinition | None, value: Any) -> Any:
    """Normalise an already-typed store value to the shape *definition* expects.

    YAML may hand back ``0`` for a string key or ``"8"`` for a number key;
    both are normalised. Unknown keys and values of other shapes pass through
    untouched so validation can still report them.
    """

    if definition is None:
        return value
    if definition.kind.textual:
        if isinstance(value, (bool, int, float)):
            return stringify(value)
        return value
    if isinstance(value, str):
        return parse_value(value)
    return value
