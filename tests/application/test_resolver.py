"""Layered resolver tests: precedence ladder, repo-mode suppression, policy lock."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_scoped_config.application.resolver import Resolver, map_env_keys
from lib_scoped_config.domain.effective import Layer
from lib_scoped_config.domain.errors import NotFound, TraversalConflict
from lib_scoped_config.domain.registry import builtin_registry

REGISTRY = builtin_registry(keys_dir="/data/anvil/keys")


def _resolver(*, local=None, user=None, environ=None, repo_mode=False) -> Resolver:
    return Resolver(
        REGISTRY,
        local=local or {},
        user=user or {},
        environ=environ or {},
        env_prefix="ANVIL",
        repo_mode=repo_mode,
        local_origin="/repo/anvil.yaml",
        user_origin="/home/dev/.config/anvil/config.yaml",
    )


@given(env=st.booleans(), local=st.booleans(), user=st.booleans())
def test_precedence_ladder(env: bool, local: bool, user: bool) -> None:
    resolver = _resolver(
        environ={"ANVIL_SIGNING_KEY_NAME": "from-env"} if env else {},
        local={"signing": {"key": {"name": "from-local"}}} if local else {},
        user={"signing": {"key": {"name": "from-user"}}} if user else {},
    )
    value, layer = resolver.get("signing.key.name")
    if env:
        assert (value, layer) == ("from-env", Layer.ENVIRONMENT)
    elif local:
        assert (value, layer) == ("from-local", Layer.LOCAL)
    elif user:
        assert (value, layer) == ("from-user", Layer.USER)
    else:
        assert (value, layer) == ("ACME Kernels", Layer.DEFAULT)


def test_origins_are_recorded() -> None:
    resolver = _resolver(environ={"ANVIL_USE_TUI": "off"}, local={"log-level": "info"})
    assert resolver.resolve("use-tui").origin == "ANVIL_USE_TUI"
    assert resolver.resolve("log-level").origin == "/repo/anvil.yaml"
    assert resolver.resolve("signing.key.format").origin is None


def test_env_values_are_typed_by_kind() -> None:
    resolver = _resolver(
        environ={"ANVIL_USE_TUI": "no", "ANVIL_BUILD_JOBS": "8", "ANVIL_SIGNING_KEY_EXPIRY": "0", "ANVIL_LOG_LEVEL": "disabled"}
    )
    assert resolver.get("use-tui") == (False, Layer.ENVIRONMENT)
    assert resolver.get("build-jobs") == (8, Layer.ENVIRONMENT)
    assert resolver.get("signing.key.expiry") == ("0", Layer.ENVIRONMENT)
    assert resolver.get("log-level") == ("disabled", Layer.ENVIRONMENT)


def test_empty_env_values_count_as_unset() -> None:
    resolver = _resolver(environ={"ANVIL_USE_TUI": ""}, user={"use-tui": False})
    assert resolver.get("use-tui") == (False, Layer.USER)


def test_store_values_are_coerced() -> None:
    resolver = _resolver(local={"use-tui": "no", "signing": {"key": {"expiry": 0}}})
    assert resolver.get("use-tui") == (False, Layer.LOCAL)
    assert resolver.get("signing.key.expiry") == ("0", Layer.LOCAL)


def test_repo_mode_suppresses_env_for_key_location() -> None:
    environ = {"ANVIL_SIGNING_KEY_LOCATION": "/tmp/elsewhere"}
    outside = _resolver(environ=environ)
    assert outside.get("signing.key.location") == ("/tmp/elsewhere", Layer.ENVIRONMENT)

    inside = _resolver(environ=environ, local={"signing": {"key": {"location": "keys"}}}, repo_mode=True)
    assert inside.get("signing.key.location") == ("keys", Layer.LOCAL)

    fallback = _resolver(environ=environ, repo_mode=True)
    assert fallback.get("signing.key.location") == ("/data/anvil/keys", Layer.DEFAULT)
    candidates = list(fallback.candidates("signing.key.location"))
    assert candidates[0].layer is Layer.ENVIRONMENT and candidates[0].ignored


def test_policy_lock_beats_every_layer() -> None:
    resolver = _resolver(
        environ={"ANVIL_SIGNING_ENCRYPTED_KEYS": "false"},
        user={"signing": {"encrypted-keys": False}},
        repo_mode=True,
    )
    assert resolver.get("signing.encrypted-keys") == (True, Layer.POLICY)
    outside = _resolver(environ={"ANVIL_SIGNING_ENCRYPTED_KEYS": "false"})
    assert outside.get("signing.encrypted-keys") == (False, Layer.ENVIRONMENT)


def test_unresolvable_key_raises_not_found() -> None:
    resolver = _resolver()
    with pytest.raises(NotFound) as info:
        resolver.resolve("build-jobs")
    assert info.value.key == "build-jobs"
    with pytest.raises(NotFound):
        resolver.get("custom.unknown")


def test_unknown_keys_resolve_from_stores_and_env() -> None:
    resolver = _resolver(local={"custom": {"flag": "yes"}}, environ={"ANVIL_EXTRA": "3"})
    assert resolver.get("custom.flag") == (True, Layer.LOCAL)
    assert resolver.get("extra") == (3, Layer.ENVIRONMENT)


def test_keys_union_is_sorted() -> None:
    resolver = _resolver(
        local={"build-jobs": 8},
        user={"custom": {"flag": True}},
        environ={"ANVIL_CUSTOM_FLAG": "no", "ANVIL_OTHER_THING": "x", "ANVIL_SIGNING_KEY_LOCATION": "/x"},
        repo_mode=True,
    )
    keys = resolver.keys()
    assert keys == sorted(keys)
    assert {"build-jobs", "custom.flag", "other_thing", "signing.encrypted-keys", "use-tui"} <= set(keys)
    assert keys.count("custom.flag") == 1
    assert resolver.get("custom.flag") == (False, Layer.ENVIRONMENT)
    assert "kernels.config.x86_64" not in keys


def test_resolve_all_matches_keys() -> None:
    resolver = _resolver(user={"use-tui": False})
    values = resolver.resolve_all()
    assert [value.key for value in values] == resolver.keys()
    assert next(value for value in values if value.key == "use-tui").layer is Layer.USER


def test_map_env_keys_prefers_known_keys() -> None:
    mapped = map_env_keys(["ANVIL_SIGNING_ENCRYPTED_KEYS", "OTHER", "ANVIL_NEW_KEY"], "ANVIL", REGISTRY.paths())
    assert mapped == {"ANVIL_SIGNING_ENCRYPTED_KEYS": "signing.encrypted-keys", "ANVIL_NEW_KEY": "new_key"}


def test_ambiguous_store_tree_is_rejected() -> None:
    with pytest.raises(TraversalConflict) as info:
        _resolver(local={"signing.key.name": "A", "signing": {"key": {"name": "B"}}})
    assert info.value.key == "signing.key.name"
