"""Scope validator tests: forbidden placement, value checks, location rules, audits."""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_scoped_config.application.validation import (
    audit_store,
    misplaced_keys,
    missing_required,
    required_keys_for,
    validate_location,
    validate_scope,
    validate_value,
)
from lib_scoped_config.domain.errors import (
    EnumMismatch,
    ForbiddenInScope,
    LocationMismatch,
    PatternMismatch,
    TypeMismatch,
)
from lib_scoped_config.domain.registry import Scope, builtin_registry

REGISTRY = builtin_registry(keys_dir="/data/anvil/keys")


def test_forbidden_keys_are_rejected_per_scope() -> None:
    with pytest.raises(ForbiddenInScope) as info:
        validate_scope(REGISTRY, "github-token", Scope.LOCAL)
    assert info.value.key == "github-token"
    assert info.value.scope is Scope.LOCAL
    assert "user config" in str(info.value)

    with pytest.raises(ForbiddenInScope):
        validate_scope(REGISTRY, "kernels.config.x86_64", Scope.USER)
    with pytest.raises(ForbiddenInScope):
        validate_scope(REGISTRY, "signing.encrypted-keys", Scope.LOCAL)


def test_required_is_not_a_write_constraint() -> None:
    validate_scope(REGISTRY, "kernels.config.x86_64", Scope.LOCAL)
    validate_scope(REGISTRY, "github-token", Scope.USER)
    validate_scope(REGISTRY, "custom.unknown", Scope.LOCAL)


def test_value_kinds_are_checked() -> None:
    validate_value(REGISTRY, "use-tui", False, Scope.USER)
    validate_value(REGISTRY, "build-jobs", 8, Scope.LOCAL)
    validate_value(REGISTRY, "build-jobs", 2.5, Scope.LOCAL)
    with pytest.raises(TypeMismatch) as info:
        validate_value(REGISTRY, "use-tui", "maybe", Scope.USER)
    assert info.value.actual == "maybe"
    with pytest.raises(TypeMismatch):
        validate_value(REGISTRY, "build-jobs", "eight", Scope.LOCAL)
    with pytest.raises(TypeMismatch):
        validate_value(REGISTRY, "build-jobs", True, Scope.LOCAL)
    with pytest.raises(TypeMismatch):
        validate_value(REGISTRY, "signing.key.name", ["a"], Scope.LOCAL)


def test_enum_and_pattern_checks() -> None:
    validate_value(REGISTRY, "log-level", "disabled", Scope.USER)
    with pytest.raises(EnumMismatch) as info:
        validate_value(REGISTRY, "log-level", "verbose", Scope.USER)
    assert info.value.expected == ("disabled", "debug", "info", "warn", "error")

    validate_value(REGISTRY, "signing.key.expiry", "0", Scope.LOCAL)
    validate_value(REGISTRY, "signing.key.expiry", "18m", Scope.LOCAL)
    with pytest.raises(PatternMismatch):
        validate_value(REGISTRY, "signing.key.expiry", "forever", Scope.LOCAL)
    with pytest.raises(PatternMismatch):
        validate_value(REGISTRY, "signing.key.email", "not-an-email", Scope.USER)


def test_unknown_keys_accept_anything() -> None:
    validate_value(REGISTRY, "custom.anything", {"nested": 1}, Scope.LOCAL)


def test_directory_location_rules(tmp_path: Path) -> None:
    validate_location(REGISTRY, "signing.key.location", "keys", Scope.LOCAL, tmp_path)
    validate_location(REGISTRY, "signing.key.location", str(tmp_path / "abs"), Scope.USER, tmp_path)
    with pytest.raises(LocationMismatch):
        validate_location(REGISTRY, "signing.key.location", str(tmp_path / "abs"), Scope.LOCAL, tmp_path)
    with pytest.raises(LocationMismatch):
        validate_location(REGISTRY, "signing.key.location", "../outside", Scope.LOCAL, tmp_path)
    (tmp_path / "a-file").write_text("x", encoding="utf-8")
    with pytest.raises(LocationMismatch):
        validate_location(REGISTRY, "signing.key.location", "a-file", Scope.LOCAL, tmp_path)


def test_repo_file_location_rules(tmp_path: Path) -> None:
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "x86_64.config").write_text("CONFIG_KVM=y\n", encoding="utf-8")
    validate_location(REGISTRY, "kernels.config.x86_64", "configs/x86_64.config", Scope.LOCAL, tmp_path)
    for bad in ("configs/missing.config", "configs", "../x86_64.config", str(tmp_path / "configs" / "x86_64.config")):
        with pytest.raises(LocationMismatch):
            validate_location(REGISTRY, "kernels.config.x86_64", bad, Scope.LOCAL, tmp_path)


def test_keys_without_location_rule_are_ignored(tmp_path: Path) -> None:
    validate_location(REGISTRY, "signing.history.location", "/anywhere", Scope.LOCAL, tmp_path)
    validate_location(REGISTRY, "custom.path", "../anywhere", Scope.LOCAL, tmp_path)


def test_required_and_missing_keys() -> None:
    assert required_keys_for(REGISTRY, Scope.LOCAL) == ["kernels.config.aarch64", "kernels.config.x86_64"]
    tree = {"kernels": {"config": {"x86_64": "configs/x86_64.config"}}}
    assert missing_required(REGISTRY, tree) == ["kernels.config.aarch64"]
    assert missing_required(REGISTRY, {}, Scope.USER) == []


def test_audit_store_reports_first_offence() -> None:
    audit_store(REGISTRY, {"use-tui": "no", "signing": {"key": {"expiry": 0}}}, Scope.LOCAL)
    with pytest.raises(ForbiddenInScope):
        audit_store(REGISTRY, {"github-token": "ghp_x"}, Scope.LOCAL)
    with pytest.raises(EnumMismatch):
        audit_store(REGISTRY, {"log-level": "loud"}, Scope.LOCAL)


def test_misplaced_keys_lists_conventional_scope() -> None:
    tree = {"github-token": "x", "use-tui": True, "kernels": {"archive": {"location": "out"}}}
    assert misplaced_keys(REGISTRY, tree, Scope.USER) == [("kernels.archive.location", Scope.LOCAL)]
    assert misplaced_keys(REGISTRY, {"github-token": "x"}, Scope.LOCAL) == [("github-token", Scope.USER)]
