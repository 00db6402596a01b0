"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the registry, the resolver, the
store adapters, and the CLI. The hierarchy lives in the domain layer so outer
layers may depend on it without creating cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration issues.
* :class:`NotFound` / :class:`StoreMissing` – a key or a store is absent.
* :class:`InvalidKey` – a dotted key is malformed.
* :class:`ForbiddenInScope` – a write was rejected by a scope constraint.
* :class:`ValidationError` and its subclasses – a value failed semantic checks.
* :class:`TraversalConflict` – the path codec met a scalar where a container
  was expected (or the reverse).
* :class:`MissingRequiredKeys` – the repo-mode integrity check failed.
* :class:`StoreUnreadable` / :class:`InvalidFormat` / :class:`StoreUnwritable`
  – I/O failures on a backing file.
* :class:`RegistryError` – a key definition or registry is inconsistent.

System Role
-----------
Every failure carries the context needed to render a precise message (key,
scope, expected vs. actual). Callers catch :class:`ConfigError` to handle all
library failures uniformly.
"""

from __future__ import annotations

from typing import Any, Sequence


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_scoped_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class NotFound(ConfigError):
    """Raised when a key is unknown to every layer or absent from a store."""

    def __init__(self, message: str, *, key: str | None = None, scope: Any = None) -> None:
        super().__init__(message)
        self.key = key
        self.scope = scope


class StoreMissing(NotFound):
    """Raised when an operation needs a store file that does not exist."""

    def __init__(self, message: str, *, path: str, scope: Any = None) -> None:
        super().__init__(message, scope=scope)
        self.path = path


class InvalidKey(ConfigError):
    """Signals a dotted key with empty segments (``a..b``, ``.a``, ``""``)."""

    def __init__(self, message: str, *, key: str) -> None:
        super().__init__(message)
        self.key = key


class ForbiddenInScope(ConfigError):
    """Raised when a key may not be written to the requested scope.

    Attributes
    ----------
    key:
        Dotted key that was rejected.
    scope:
        The :class:`~lib_scoped_config.domain.registry.Scope` the caller targeted.
    """

    def __init__(self, message: str, *, key: str, scope: Any) -> None:
        super().__init__(message)
        self.key = key
        self.scope = scope


class ValidationError(ConfigError):
    """Signifies that a value failed the checks of its key definition.

    Attributes
    ----------
    key / scope:
        Where the write was aimed.
    expected:
        Description of what the definition accepts (type name, enum members,
        regular expression, location rule).
    actual:
        The offending value.
    """

    def __init__(self, message: str, *, key: str, scope: Any = None, expected: Any = None, actual: Any = None) -> None:
        super().__init__(message)
        self.key = key
        self.scope = scope
        self.expected = expected
        self.actual = actual


class TypeMismatch(ValidationError):
    """The parsed value does not have the type the key requires."""


class EnumMismatch(ValidationError):
    """The value is not one of the key's enumerated members."""


class PatternMismatch(ValidationError):
    """The stringified value does not match the key's regular expression."""


class LocationMismatch(ValidationError):
    """The value violates the key's filesystem location rule."""


class TraversalConflict(ConfigError):
    """Raised when a dotted path crosses a scalar or collides with a container.

    Attributes
    ----------
    key:
        Full dotted path being written, read, or deleted.
    segment:
        The segment where traversal stopped.
    """

    def __init__(self, message: str, *, key: str, segment: str) -> None:
        super().__init__(message)
        self.key = key
        self.segment = segment


class MissingRequiredKeys(ConfigError):
    """Raised when the local store lacks keys that repo mode requires."""

    def __init__(self, message: str, *, path: str, missing: Sequence[str]) -> None:
        super().__init__(message)
        self.path = path
        self.missing = tuple(missing)


class StoreUnreadable(ConfigError):
    """Raised when an existing store file cannot be read."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class InvalidFormat(StoreUnreadable):
    """Raised when a store file cannot be parsed into a mapping.

    Typical Sources
    ---------------
    The structured store adapters (:mod:`json`, :mod:`yaml`).
    """


class StoreUnwritable(ConfigError):
    """Raised when a store file cannot be written back."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class RegistryError(ConfigError):
    """Raised while building key definitions or the registry itself.

    These failures are programming errors in the catalogue and surface at
    import/construction time, never while serving a command.
    """
