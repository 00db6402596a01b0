"""Static catalogue of recognised configuration keys.

Purpose
-------
Describe every setting the engine knows about: its kind, default, allowed
values, and where it may legally be placed. Definitions are immutable and
checked for consistency when they are constructed, so an unsatisfiable
catalogue fails at start-up instead of during a command.

Contents
--------
* :class:`Scope` – the two persisted scopes (local project, user).
* :class:`Kind` / :class:`Constraint` / :class:`Location` – definition enums.
* :class:`KeyDefinition` – metadata for one setting.
* :class:`Registry` – lookup table plus catalogue-wide invariants.
* :func:`env_token` / :func:`env_var_name` – environment names derived from a key.
* :func:`builtin_registry` – the catalogue shipped with the CLI.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator

from .errors import InvalidKey, RegistryError
from .paths import split_path


class Scope(Enum):
    """Persisted configuration scope.

    ``LOCAL`` is the project store that lives next to the code and is usually
    committed; ``USER`` is the personal, machine-local store.
    """

    LOCAL = "local"
    USER = "user"

    @property
    def other(self) -> Scope:
        return Scope.USER if self is Scope.LOCAL else Scope.LOCAL


class Kind(Enum):
    """Value kind of a key definition."""

    BOOLEAN = "boolean"
    STRING = "string"
    ENUM = "enum"
    NUMBER = "number"

    @property
    def textual(self) -> bool:
        return self in (Kind.STRING, Kind.ENUM)


class Constraint(Enum):
    """Placement rule of a key in one scope."""

    UNCONSTRAINED = "unconstrained"
    REQUIRED = "required"
    FORBIDDEN = "forbidden"


class Location(Enum):
    """Filesystem rule applied to path-valued string keys."""

    NONE = "none"
    DIRECTORY = "directory"
    REPO_FILE = "repo-file"


@dataclass(frozen=True)
class KeyDefinition:
    """Immutable metadata describing one setting.

    Parameters
    ----------
    path:
        Dotted key, unique across the registry.
    kind:
        Value kind; the default must match it.
    default:
        Value used when no layer supplies one. ``None`` means "no default".
    enum_values:
        Allowed members; required for and restricted to :attr:`Kind.ENUM`.
    pattern:
        Optional regular expression checked against the stringified value.
    local / user:
        Placement constraint per scope. ``REQUIRED`` in both is rejected.
    env_suppressed_in_repo_mode:
        Ignore the environment layer for this key while in repo mode.
    repo_mode_locked_value:
        Boolean pinned for this key while in repo mode, bypassing every layer.
    location:
        Filesystem rule for path-valued keys.
    """

    path: str
    kind: Kind
    default: Any = None
    description: str = ""
    enum_values: tuple[str, ...] = ()
    pattern: str | None = None
    local: Constraint = Constraint.UNCONSTRAINED
    user: Constraint = Constraint.UNCONSTRAINED
    env_suppressed_in_repo_mode: bool = False
    repo_mode_locked_value: bool | None = None
    location: Location = Location.NONE
    _compiled: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            split_path(self.path)
        except InvalidKey as exc:
            raise RegistryError(str(exc)) from exc
        object.__setattr__(self, "enum_values", tuple(self.enum_values))
        self._check_enum()
        self._check_default()
        self._check_pattern()
        if self.repo_mode_locked_value is not None and self.kind is not Kind.BOOLEAN:
            raise RegistryError(f"Key '{self.path}': only boolean keys can be locked in repo mode")
        if self.local is Constraint.REQUIRED and self.user is Constraint.REQUIRED:
            raise RegistryError(f"Key '{self.path}' cannot be required in both local and user scope")

    def constraint(self, scope: Scope) -> Constraint:
        """Return the placement constraint for *scope*."""

        return self.local if scope is Scope.LOCAL else self.user

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def compiled_pattern(self) -> re.Pattern[str] | None:
        return self._compiled

    def _check_enum(self) -> None:
        if self.kind is Kind.ENUM and not self.enum_values:
            raise RegistryError(f"Enum key '{self.path}' must declare enum values")
        if self.kind is not Kind.ENUM and self.enum_values:
            raise RegistryError(f"Key '{self.path}' declares enum values but is of kind {self.kind.value}")

    def _check_default(self) -> None:
        if self.default is None:
            return
        if not _matches_kind(self.kind, self.default):
            raise RegistryError(
                f"Default {self.default!r} of key '{self.path}' does not match kind {self.kind.value}"
            )
        if self.kind is Kind.ENUM and self.default not in self.enum_values:
            raise RegistryError(f"Default {self.default!r} of key '{self.path}' is not an enum member")

    def _check_pattern(self) -> None:
        if self.pattern is None:
            return
        if not self.kind.textual:
            raise RegistryError(f"Key '{self.path}': patterns apply to string and enum kinds only")
        try:
            object.__setattr__(self, "_compiled", re.compile(self.pattern))
        except re.error as exc:
            raise RegistryError(f"Key '{self.path}' has an invalid pattern: {exc}") from exc


def _matches_kind(kind: Kind, value: Any) -> bool:
    """Return ``True`` when *value* is an instance of the Python type behind *kind*."""

    if kind is Kind.BOOLEAN:
        return isinstance(value, bool)
    if kind is Kind.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, str)


def env_token(key: str) -> str:
    """Return the environment-name fragment for *key* (upper case, ``.``/``-`` → ``_``).

    >>> env_token("signing.encrypted-keys")
    'SIGNING_ENCRYPTED_KEYS'
    """

    return key.upper().replace(".", "_").replace("-", "_")


def env_var_name(key: str, prefix: str) -> str:
    """Return the environment variable that overrides *key*.

    >>> env_var_name("signing.key.location", "ANVIL")
    'ANVIL_SIGNING_KEY_LOCATION'
    """

    return f"{prefix}_{env_token(key)}"


class Registry:
    """Immutable lookup table of :class:`KeyDefinition` objects.

    Invariants checked at construction:

    * paths are unique;
    * no registered path is a container of another (``a`` and ``a.b``);
    * no two paths derive the same environment variable name.
    """

    def __init__(self, definitions: Iterable[KeyDefinition]) -> None:
        entries: dict[str, KeyDefinition] = {}
        tokens: dict[str, str] = {}
        for definition in definitions:
            if definition.path in entries:
                raise RegistryError(f"Duplicate configuration key: {definition.path}")
            token = env_token(definition.path)
            if token in tokens:
                raise RegistryError(
                    f"Keys '{tokens[token]}' and '{definition.path}' map to the same environment variable"
                )
            entries[definition.path] = definition
            tokens[token] = definition.path
        _check_prefixes(entries)
        self._entries = entries

    def lookup(self, path: str) -> KeyDefinition | None:
        """Return the definition registered for *path* or ``None``."""

        return self._entries.get(path)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[KeyDefinition]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def paths(self) -> list[str]:
        """Return registered paths sorted alphabetically."""

        return sorted(self._entries)

    def required_keys_for(self, scope: Scope) -> list[str]:
        """Return the sorted paths whose constraint for *scope* is ``REQUIRED``."""

        return sorted(
            path for path, definition in self._entries.items() if definition.constraint(scope) is Constraint.REQUIRED
        )


def _check_prefixes(entries: dict[str, KeyDefinition]) -> None:
    for path in entries:
        parts = path.split(".")
        for depth in range(1, len(parts)):
            prefix = ".".join(parts[:depth])
            if prefix in entries:
                raise RegistryError(f"Key '{prefix}' cannot be both a value and a container of '{path}'")


def builtin_registry(*, keys_dir: str) -> Registry:
    """Return the catalogue shipped with the ``anvil`` CLI.

    Parameters
    ----------
    keys_dir:
        Default signing-key directory (``<data dir>/keys``); it depends on the
        platform paths, so it is injected rather than hard-coded.
    """

    return Registry(
        [
            KeyDefinition("use-tui", Kind.BOOLEAN, True, "Use TUI for interactive prompts"),
            KeyDefinition(
                "log-level",
                Kind.ENUM,
                "debug",
                "Log verbosity level",
                enum_values=("disabled", "debug", "info", "warn", "error"),
            ),
            KeyDefinition(
                "github-token",
                Kind.STRING,
                "",
                "GitHub personal access token for API access",
                local=Constraint.FORBIDDEN,
            ),
            KeyDefinition("build-jobs", Kind.NUMBER, None, "Parallel jobs used when building kernels"),
            KeyDefinition("signing.key.name", Kind.STRING, "ACME Kernels", "Default key owner name for project releases"),
            KeyDefinition(
                "signing.key.email",
                Kind.STRING,
                "fake@example.com",
                "Default key owner email for project releases",
                pattern=r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$",
            ),
            KeyDefinition(
                "signing.key.expiry",
                Kind.STRING,
                "1y",
                "Default key expiration (0=never, <n>d/w/m/y)",
                pattern=r"^(0|[0-9]+[dwmy])$",
            ),
            KeyDefinition(
                "signing.key.format",
                Kind.ENUM,
                "armored",
                "Key format: armored (ASCII) or binary (OpenPGP native)",
                enum_values=("armored", "binary"),
            ),
            KeyDefinition(
                "signing.key.location",
                Kind.STRING,
                keys_dir,
                "Directory for current signing key (absolute for user config, relative to repo root for repo config)",
                env_suppressed_in_repo_mode=True,
                location=Location.DIRECTORY,
            ),
            KeyDefinition(
                "signing.history.location",
                Kind.STRING,
                "keys/history",
                "Directory for public key history (relative to data dir)",
            ),
            KeyDefinition(
                "signing.history.format",
                Kind.ENUM,
                "armored",
                "History file format: armored (ASCII) or binary (OpenPGP native)",
                enum_values=("armored", "binary"),
            ),
            KeyDefinition(
                "signing.encrypted-keys",
                Kind.BOOLEAN,
                True,
                "Encrypt private keys at rest",
                local=Constraint.FORBIDDEN,
                repo_mode_locked_value=True,
            ),
            KeyDefinition(
                "kernels.config.x86_64",
                Kind.STRING,
                None,
                "Kernel config file for x86_64 architecture (relative path to file in repo)",
                local=Constraint.REQUIRED,
                user=Constraint.FORBIDDEN,
                location=Location.REPO_FILE,
            ),
            KeyDefinition(
                "kernels.config.aarch64",
                Kind.STRING,
                None,
                "Kernel config file for aarch64 architecture (relative path to file in repo)",
                local=Constraint.REQUIRED,
                user=Constraint.FORBIDDEN,
                location=Location.REPO_FILE,
            ),
            KeyDefinition(
                "kernels.archive.location",
                Kind.STRING,
                "",
                "Local directory for archiving built kernel artifacts (relative path inside the repo)",
                user=Constraint.FORBIDDEN,
            ),
        ]
    )
