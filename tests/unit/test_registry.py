"""Key registry tests: definition checks, catalogue invariants, built-in keys."""

from __future__ import annotations

import pytest

from lib_scoped_config.domain.errors import RegistryError
from lib_scoped_config.domain.registry import (
    Constraint,
    KeyDefinition,
    Kind,
    Location,
    Registry,
    Scope,
    builtin_registry,
    env_var_name,
)


def test_scope_other() -> None:
    assert Scope.LOCAL.other is Scope.USER
    assert Scope.USER.other is Scope.LOCAL


@pytest.mark.parametrize(
    "kwargs",
    [
        {"path": "a..b", "kind": Kind.STRING},
        {"path": "level", "kind": Kind.ENUM},
        {"path": "name", "kind": Kind.STRING, "enum_values": ("x",)},
        {"path": "flag", "kind": Kind.BOOLEAN, "default": "yes"},
        {"path": "jobs", "kind": Kind.NUMBER, "default": True},
        {"path": "level", "kind": Kind.ENUM, "default": "loud", "enum_values": ("quiet",)},
        {"path": "name", "kind": Kind.STRING, "pattern": "("},
        {"path": "flag", "kind": Kind.BOOLEAN, "pattern": "x"},
        {"path": "name", "kind": Kind.STRING, "repo_mode_locked_value": True},
        {"path": "name", "kind": Kind.STRING, "local": Constraint.REQUIRED, "user": Constraint.REQUIRED},
    ],
)
def test_invalid_definitions_are_rejected(kwargs) -> None:
    with pytest.raises(RegistryError):
        KeyDefinition(**kwargs)


def test_valid_definition_compiles_pattern() -> None:
    definition = KeyDefinition("signing.key.expiry", Kind.STRING, "1y", pattern=r"^(0|[0-9]+[dwmy])$")
    assert definition.compiled_pattern is not None
    assert definition.compiled_pattern.search("2w")
    assert definition.has_default
    assert definition.constraint(Scope.LOCAL) is Constraint.UNCONSTRAINED


def test_registry_rejects_duplicates() -> None:
    with pytest.raises(RegistryError):
        Registry([KeyDefinition("a", Kind.STRING), KeyDefinition("a", Kind.NUMBER)])


def test_registry_rejects_prefix_containers() -> None:
    with pytest.raises(RegistryError):
        Registry([KeyDefinition("a", Kind.STRING), KeyDefinition("a-b", Kind.STRING), KeyDefinition("a.b.c", Kind.STRING)])


def test_registry_rejects_env_collisions() -> None:
    with pytest.raises(RegistryError):
        Registry([KeyDefinition("use-tui", Kind.BOOLEAN), KeyDefinition("use.tui", Kind.BOOLEAN)])


def test_env_var_name_derivation() -> None:
    assert env_var_name("use-tui", "ANVIL") == "ANVIL_USE_TUI"
    assert env_var_name("signing.encrypted-keys", "ANVIL") == "ANVIL_SIGNING_ENCRYPTED_KEYS"


def test_builtin_registry_shape() -> None:
    registry = builtin_registry(keys_dir="/data/anvil/keys")
    assert "use-tui" in registry
    assert registry.paths() == sorted(registry.paths())
    assert len(registry) == len(registry.paths())
    assert registry.lookup("missing") is None
    assert registry.required_keys_for(Scope.LOCAL) == ["kernels.config.aarch64", "kernels.config.x86_64"]
    assert registry.required_keys_for(Scope.USER) == []

    location = registry.lookup("signing.key.location")
    assert location is not None
    assert location.default == "/data/anvil/keys"
    assert location.env_suppressed_in_repo_mode
    assert location.location is Location.DIRECTORY

    encrypted = registry.lookup("signing.encrypted-keys")
    assert encrypted is not None
    assert encrypted.repo_mode_locked_value is True
    assert encrypted.local is Constraint.FORBIDDEN

    token = registry.lookup("github-token")
    assert token is not None and token.local is Constraint.FORBIDDEN

    jobs = registry.lookup("build-jobs")
    assert jobs is not None and jobs.kind is Kind.NUMBER and not jobs.has_default
