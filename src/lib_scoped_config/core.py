"""Composition root for ``lib_scoped_config``.

Purpose
-------
Wire the adapters (platform paths, environment snapshot, structured stores) to
the application services (validator, resolver, attributor, schema generator)
and expose the read and write operations the CLI is built on.

Contents
--------
* :class:`Workspace` – explicit inputs of one command: registry, store paths,
  environment snapshot.
* :func:`open_workspace` – build a :class:`Workspace` from the platform.
* :func:`load_resolver` – read both stores and construct a :class:`Resolver`.
* :func:`get_value` / :func:`explain_value` / :func:`list_values` – read path.
* :func:`set_value` / :func:`unset_value` – write path.
* :func:`check_repo_integrity` – read-time audit of the local store.
* :func:`schema_document` – JSON Schema for a scope.

System Role
-----------
Every command follows the same cycle: fresh read → merge → validate → write.
Nothing is cached between calls, so the stores on disk are the only state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .adapters.env.default import DefaultEnvLoader, default_env_prefix
from .adapters.path_resolvers.default import DefaultPathResolver
from .adapters.stores.structured import store_for
from .application.attribution import Attribution, attribute
from .application.resolver import Resolver
from .application.schema import generate_schema
from .application.validation import (
    audit_store,
    misplaced_keys,
    missing_required,
    validate_location,
    validate_scope,
    validate_value,
)
from .domain.effective import EffectiveValue
from .domain.errors import MissingRequiredKeys, NotFound, StoreMissing
from .domain.paths import delete_path, set_path, split_path
from .domain.registry import Registry, Scope, builtin_registry, env_var_name
from .domain.values import interpret
from .observability import bind_trace_id, log_debug, log_error, log_info, make_event

DEFAULT_SLUG = "anvil"


@dataclass(frozen=True)
class Workspace:
    """Explicit inputs shared by every operation of one command.

    Attributes
    ----------
    registry:
        Catalogue of known keys.
    local_path / user_path:
        Store files for :attr:`Scope.LOCAL` and :attr:`Scope.USER`.
    environ:
        Snapshot of the non-empty variables carrying :attr:`env_prefix`.
    env_prefix:
        Prefix of derived environment variable names.
    home:
        Home directory, used to abbreviate paths in labels.
    """

    registry: Registry
    local_path: Path
    user_path: Path
    environ: Mapping[str, str] = field(default_factory=dict)
    env_prefix: str = "ANVIL"
    home: Path | None = None

    @property
    def repo_mode(self) -> bool:
        """``True`` when the local store exists."""

        return self.local_path.is_file()

    @property
    def root(self) -> Path:
        """Repository root: the directory holding the local store."""

        return self.local_path.parent

    def store_path(self, scope: Scope) -> Path:
        return self.local_path if scope is Scope.LOCAL else self.user_path

    def env_var(self, key: str) -> str:
        """Return the environment variable that overrides *key*."""

        return env_var_name(key, self.env_prefix)


def open_workspace(
    slug: str = DEFAULT_SLUG,
    *,
    cwd: Path | None = None,
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
    home: Path | None = None,
    registry: Registry | None = None,
) -> Workspace:
    """Build a :class:`Workspace` for *slug* from the platform conventions.

    Every input defaults to the running process (working directory,
    ``os.environ``, ``sys.platform``, home directory) and may be overridden.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> workspace = open_workspace(cwd=root, environ={"XDG_CONFIG_HOME": str(root / "cfg")}, platform="linux")
    >>> workspace.local_path.name, workspace.user_path.relative_to(root).as_posix()
    ('anvil.yaml', 'cfg/anvil/config.yaml')
    >>> workspace.repo_mode
    False
    >>> tmp.cleanup()
    """

    env = os.environ if environ is None else environ
    paths = DefaultPathResolver(slug=slug, cwd=cwd, env=env, platform=platform, home=home)
    prefix = default_env_prefix(slug)
    if registry is None:
        registry = builtin_registry(keys_dir=str(paths.keys_dir()))
    bind_trace_id(None)
    return Workspace(
        registry=registry,
        local_path=paths.local(),
        user_path=paths.user(),
        environ=DefaultEnvLoader(environ=env).load(prefix),
        env_prefix=prefix,
        home=paths.home,
    )


def _read_store(path: Path, scope: Scope) -> dict[str, Any]:
    """Return the store tree at *path*; a missing file is an empty store."""

    store = store_for(path)
    if not store.exists(path):
        log_debug("store_missing", **make_event(scope.value, str(path)))
        return {}
    return store.load(path)


def load_resolver(workspace: Workspace) -> Resolver:
    """Read both stores afresh and return a resolver over them.

    Keys found away from their conventional scope are reported at debug level.
    """

    local = _read_store(workspace.local_path, Scope.LOCAL)
    user = _read_store(workspace.user_path, Scope.USER)
    for scope, tree in ((Scope.LOCAL, local), (Scope.USER, user)):
        for key, conventional in misplaced_keys(workspace.registry, tree, scope):
            log_debug("misplaced_key", **make_event(scope.value, None, {"key": key, "expected": conventional.value}))
    return Resolver(
        workspace.registry,
        local=local,
        user=user,
        environ=workspace.environ,
        env_prefix=workspace.env_prefix,
        repo_mode=workspace.repo_mode,
        local_origin=str(workspace.local_path),
        user_origin=str(workspace.user_path),
    )


def check_repo_integrity(workspace: Workspace) -> None:
    """Audit the local store when in repo mode.

    Raises
    ------
    ForbiddenInScope / ValidationError
        A key in the local store is forbidden there or holds an invalid value.
    MissingRequiredKeys
        Keys required in local scope are absent; every missing key is named.
    """

    if not workspace.repo_mode:
        return
    tree = _read_store(workspace.local_path, Scope.LOCAL)
    audit_store(workspace.registry, tree, Scope.LOCAL)
    missing = missing_required(workspace.registry, tree, Scope.LOCAL)
    if not missing:
        return
    path = str(workspace.local_path)
    log_error("integrity_failed", **make_event(Scope.LOCAL.value, path, {"missing": missing}))
    raise MissingRequiredKeys(
        f"{workspace.local_path.name} is missing required keys: {', '.join(missing)}",
        path=path,
        missing=missing,
    )


def get_value(workspace: Workspace, key: str) -> EffectiveValue:
    """Return the effective value of *key*.

    Raises
    ------
    InvalidKey
        When *key* has empty segments.
    NotFound
        When no layer supplies a value.
    """

    split_path(key)
    return load_resolver(workspace).resolve(key)


def explain_value(workspace: Workspace, key: str) -> Attribution:
    """Return the effective value of *key* with every contributing layer."""

    split_path(key)
    return attribute(load_resolver(workspace), key)


def list_values(workspace: Workspace) -> list[EffectiveValue]:
    """Return every resolvable key with its effective value, sorted by key."""

    return load_resolver(workspace).resolve_all()


def set_value(workspace: Workspace, key: str, raw: str, scope: Scope) -> Any:
    """Persist the value typed as *raw* under *key* in *scope*'s store.

    The pipeline stops at the first failure: key syntax, interpretation,
    scope check, value check, location check, then the write itself.

    Returns
    -------
    Any
        The typed value that was stored.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> ws = open_workspace(cwd=root, environ={"XDG_CONFIG_HOME": str(root / "cfg")}, platform="linux")
    >>> set_value(ws, "build-jobs", "8", Scope.USER)
    8
    >>> get_value(ws, "build-jobs").as_tuple()
    (8, <Layer.USER: 'user'>)
    >>> tmp.cleanup()
    """

    split_path(key)
    registry = workspace.registry
    value = interpret(registry.lookup(key), raw)
    validate_scope(registry, key, scope)
    validate_value(registry, key, value, scope)
    validate_location(registry, key, value, scope, workspace.root)
    path = workspace.store_path(scope)
    tree = _read_store(path, scope)
    set_path(tree, key, value)
    store_for(path).save(path, tree)
    log_info("value_set", **make_event(scope.value, str(path), {"key": key}))
    return value


def unset_value(workspace: Workspace, key: str, scope: Scope) -> Any:
    """Remove *key* (and any nested keys below it) from *scope*'s store.

    Raises
    ------
    StoreMissing
        When the store file does not exist.
    NotFound
        When the key is absent from the store.
    """

    split_path(key)
    path = workspace.store_path(scope)
    store = store_for(path)
    if not store.exists(path):
        raise StoreMissing(f"{scope.value.capitalize()} config file not found: {path}", path=str(path), scope=scope)
    tree = store.load(path)
    try:
        removed = delete_path(tree, key)
    except NotFound as exc:
        raise NotFound(f"Key '{key}' not found in {scope.value} config", key=key, scope=scope) from exc
    store.save(path, tree)
    log_info("value_unset", **make_event(scope.value, str(path), {"key": key}))
    return removed


def schema_document(workspace: Workspace, scope: Scope | None = None, *, app: str = "Anvil") -> dict[str, Any]:
    """Return the JSON Schema describing *scope* (or every key)."""

    return generate_schema(workspace.registry, scope, app=app)
