"""Shared sandbox helpers for the test-suite.

A sandbox is a temporary repository directory plus an isolated home with XDG
directories, so every test sees its own local and user stores and never the
developer's real configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from lib_scoped_config.core import Workspace, open_workspace

KERNEL_CONFIGS = {
    "kernels.config.x86_64": "configs/x86_64.config",
    "kernels.config.aarch64": "configs/aarch64.config",
}


@dataclass
class WorkspaceSandbox:
    root: Path
    home: Path
    env: dict[str, str] = field(default_factory=dict)

    @property
    def local_path(self) -> Path:
        return self.root / "anvil.yaml"

    @property
    def user_path(self) -> Path:
        return self.home / ".config" / "anvil" / "config.yaml"

    @property
    def keys_dir(self) -> Path:
        return self.home / ".local" / "share" / "anvil" / "keys"

    @property
    def cli_env(self) -> dict[str, str]:
        """Environment for CLI runs; logging is silenced so output stays parseable."""

        return {**self.env, "ANVIL_LOG_LEVEL": "disabled"}

    def workspace(self, extra_env: Mapping[str, str] | None = None) -> Workspace:
        environ = {**self.env, **(extra_env or {})}
        return open_workspace(cwd=self.root, environ=environ, platform="linux", home=self.home)

    def write_local(self, content: str) -> Path:
        self.local_path.write_text(content, encoding="utf-8")
        return self.local_path

    def write_user(self, content: str) -> Path:
        self.user_path.parent.mkdir(parents=True, exist_ok=True)
        self.user_path.write_text(content, encoding="utf-8")
        return self.user_path

    def make_repo(self, extra: str = "") -> Path:
        """Create kernel config files and a local store holding every required key."""

        lines = []
        for key, relative in KERNEL_CONFIGS.items():
            target = self.root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("CONFIG_KVM=y\n", encoding="utf-8")
            lines.append(f"    {key.rsplit('.', 1)[1]}: {relative}")
        body = "kernels:\n  config:\n" + "\n".join(lines) + "\n" + extra
        return self.write_local(body)


def create_workspace_sandbox(tmp_path: Path) -> WorkspaceSandbox:
    """Return a sandbox rooted at *tmp_path* with XDG variables pointing inside it."""

    root = tmp_path / "repo"
    home = tmp_path / "home"
    root.mkdir(parents=True, exist_ok=True)
    home.mkdir(parents=True, exist_ok=True)
    env = {
        "HOME": str(home),
        "XDG_CONFIG_HOME": str(home / ".config"),
        "XDG_DATA_HOME": str(home / ".local" / "share"),
    }
    return WorkspaceSandbox(root=root, home=home, env=env)
