"""Layered resolution of effective values.

Purpose
-------
Answer "what is the value of this key, and which layer supplied it?" from
explicit inputs: the key registry, the two parsed stores, an environment
snapshot, and the repo-mode flag. The resolver performs no I/O, so the same
inputs always give the same answer.

Precedence
----------
For ordinary keys the chain is ``ENVIRONMENT > LOCAL > USER > DEFAULT``.
Two repo-mode rules adjust it:

* keys flagged ``env_suppressed_in_repo_mode`` ignore the environment;
* keys carrying ``repo_mode_locked_value`` resolve to that value from the
  ``POLICY`` layer, bypassing every other layer.

Contents
--------
* :class:`Candidate` – one layer's contribution for a key.
* :class:`Resolver` – the precedence engine.
* :func:`map_env_keys` – map environment variable names back to dotted keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping

from ..domain.effective import EffectiveValue, Layer
from ..domain.errors import NotFound
from ..domain.paths import flatten
from ..domain.registry import Registry, env_var_name
from ..domain.values import coerce_for, interpret
from ..observability import log_debug


@dataclass(frozen=True, slots=True)
class Candidate:
    """A value present in one layer.

    ``ignored`` marks an environment value that exists but does not take part
    in resolution because the key is suppressed in repo mode.
    """

    layer: Layer
    value: Any
    origin: str | None = None
    ignored: bool = False


def map_env_keys(variables: Iterable[str], prefix: str, known_keys: Iterable[str]) -> dict[str, str]:
    """Map variable names back to dotted keys.

    Variables derived from a known key map to that key; any other prefixed
    variable maps to its lower-cased remainder, whose own derived name is the
    variable itself, so the mapping round-trips.

    Examples
    --------
    >>> map_env_keys(['ANVIL_USE_TUI', 'ANVIL_CUSTOM_FLAG'], 'ANVIL', ['use-tui'])
    {'ANVIL_USE_TUI': 'use-tui', 'ANVIL_CUSTOM_FLAG': 'custom_flag'}
    """

    by_name: dict[str, str] = {}
    for key in known_keys:
        by_name.setdefault(env_var_name(key, prefix), key)
    marker = f"{prefix}_"
    mapped: dict[str, str] = {}
    for name in variables:
        if not name.startswith(marker):
            continue
        mapped[name] = by_name.get(name, name[len(marker) :].lower())
    return mapped


class Resolver:
    """Resolve keys through the ranked layers.

    Parameters
    ----------
    registry:
        Catalogue of known keys; unknown keys resolve from the stores and the
        environment only.
    local / user:
        Parsed store trees (``{}`` when the file is absent).
    environ:
        Environment snapshot; only variables starting with ``env_prefix_``
        are consulted and empty values count as unset.
    env_prefix:
        Prefix of the derived variable names (``ANVIL``).
    repo_mode:
        ``True`` when the local store exists.
    local_origin / user_origin:
        Store file paths recorded as the origin of values from those layers.

    Examples
    --------
    >>> from lib_scoped_config.domain.registry import builtin_registry
    >>> resolver = Resolver(
    ...     builtin_registry(keys_dir="/data/keys"),
    ...     local={"use-tui": "no"},
    ...     user={"use-tui": True},
    ...     environ={},
    ...     env_prefix="ANVIL",
    ...     repo_mode=True,
    ... )
    >>> resolver.get("use-tui")
    (False, <Layer.LOCAL: 'local'>)
    >>> resolver.get("signing.encrypted-keys")
    (True, <Layer.POLICY: 'policy'>)
    """

    def __init__(
        self,
        registry: Registry,
        *,
        local: Mapping[str, Any],
        user: Mapping[str, Any],
        environ: Mapping[str, str],
        env_prefix: str,
        repo_mode: bool,
        local_origin: str | None = None,
        user_origin: str | None = None,
    ) -> None:
        self.registry = registry
        self.env_prefix = env_prefix
        self.repo_mode = repo_mode
        self._local = flatten(local)
        self._user = flatten(user)
        marker = f"{env_prefix}_"
        self._environ = {name: value for name, value in environ.items() if name.startswith(marker) and value}
        self._local_origin = local_origin
        self._user_origin = user_origin

    def env_suppressed(self, key: str) -> bool:
        """Return ``True`` when the environment layer is ignored for *key*."""

        definition = self.registry.lookup(key)
        return self.repo_mode and definition is not None and definition.env_suppressed_in_repo_mode

    def candidates(self, key: str) -> Iterator[Candidate]:
        """Yield every layer that holds a value for *key*, highest precedence first."""

        definition = self.registry.lookup(key)
        if self.repo_mode and definition is not None and definition.repo_mode_locked_value is not None:
            yield Candidate(Layer.POLICY, definition.repo_mode_locked_value)
        name = env_var_name(key, self.env_prefix)
        raw = self._environ.get(name)
        if raw is not None:
            yield Candidate(Layer.ENVIRONMENT, interpret(definition, raw), name, ignored=self.env_suppressed(key))
        if key in self._local:
            yield Candidate(Layer.LOCAL, coerce_for(definition, self._local[key]), self._local_origin)
        if key in self._user:
            yield Candidate(Layer.USER, coerce_for(definition, self._user[key]), self._user_origin)
        if definition is not None and definition.has_default:
            yield Candidate(Layer.DEFAULT, definition.default)

    def resolve(self, key: str) -> EffectiveValue:
        """Return the effective value of *key*.

        Raises
        ------
        NotFound
            When no layer supplies a value.
        """

        for candidate in self.candidates(key):
            if candidate.ignored:
                continue
            log_debug("value_resolved", layer=candidate.layer.value, path=candidate.origin, key=key)
            return EffectiveValue(key, candidate.value, candidate.layer, candidate.origin)
        raise NotFound(f"Key not found: {key}", key=key)

    def get(self, key: str) -> tuple[Any, Layer]:
        """Return ``(value, layer)`` for *key*; see :meth:`resolve`."""

        return self.resolve(key).as_tuple()

    def keys(self) -> list[str]:
        """Return every key that resolves to a value, sorted."""

        found: set[str] = set(self._local) | set(self._user)
        for definition in self.registry:
            if definition.has_default:
                found.add(definition.path)
            elif self.repo_mode and definition.repo_mode_locked_value is not None:
                found.add(definition.path)
        known = [*self.registry.paths(), *found]
        for key in map_env_keys(self._environ, self.env_prefix, known).values():
            if key in self.registry and self.env_suppressed(key):
                continue
            found.add(key)
        return sorted(found)

    def resolve_all(self) -> list[EffectiveValue]:
        """Resolve every key from :meth:`keys`, sorted by key."""

        return [self.resolve(key) for key in self.keys()]
