"""Filesystem locations of the local and user stores.

Purpose
-------
Implement the :class:`lib_scoped_config.application.ports.PathResolver`
protocol. This adapter is the only component that knows platform directory
conventions.

Contents
--------
* :class:`DefaultPathResolver` – resolves store paths and the data directory.

System Role
-----------
Feeds :func:`lib_scoped_config.core.open_workspace`. Every input (working
directory, environment, platform) is injectable so tests stay deterministic.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping

from ...observability import log_debug

USER_STORE_NAME = "config.yaml"


class DefaultPathResolver:
    """Resolve the store files and data directory for *slug*.

    Layout
    ------
    * Local store: ``<cwd>/<slug>.yaml``.
    * User store (Linux, macOS): ``$XDG_CONFIG_HOME/<slug>/config.yaml``, falling
      back to ``~/.config``.
    * User store (Windows): ``%APPDATA%\\<slug>\\config.yaml``, falling back to
      ``~/AppData/Roaming``.
    * Data directory: ``$XDG_DATA_HOME/<slug>`` (fallback ``~/.local/share``);
      ``%LOCALAPPDATA%\\<slug>`` on Windows (fallback ``~/AppData/Local``).
    """

    def __init__(
        self,
        *,
        slug: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        platform: str | None = None,
        home: Path | None = None,
    ) -> None:
        self.slug = slug
        self.cwd = cwd or Path.cwd()
        self.env = dict(os.environ if env is None else env)
        self.platform = platform or sys.platform
        self.home = home or Path.home()

    def local(self) -> Path:
        """Return the local (project) store path; its presence enables repo mode.

        >>> DefaultPathResolver(slug="anvil", cwd=Path("/work/repo"), env={}, platform="linux").local().as_posix()
        '/work/repo/anvil.yaml'
        """

        return self.cwd / f"{self.slug}.yaml"

    def user(self) -> Path:
        """Return the user store path.

        >>> resolver = DefaultPathResolver(slug="anvil", env={"XDG_CONFIG_HOME": "/cfg"}, platform="linux")
        >>> resolver.user().as_posix()
        '/cfg/anvil/config.yaml'
        """

        if self._is_windows:
            base = self._env_dir("APPDATA", self.home / "AppData" / "Roaming")
        else:
            base = self._env_dir("XDG_CONFIG_HOME", self.home / ".config")
        path = base / self.slug / USER_STORE_NAME
        log_debug("path_resolved", layer="user", path=str(path))
        return path

    def data_dir(self) -> Path:
        """Return the per-user data directory."""

        if self._is_windows:
            base = self._env_dir("LOCALAPPDATA", self.home / "AppData" / "Local")
        else:
            base = self._env_dir("XDG_DATA_HOME", self.home / ".local" / "share")
        return base / self.slug

    def keys_dir(self) -> Path:
        """Return the default signing-key directory under :meth:`data_dir`."""

        return self.data_dir() / "keys"

    @property
    def _is_windows(self) -> bool:
        return self.platform.startswith("win")

    def _env_dir(self, name: str, fallback: Path) -> Path:
        value = self.env.get(name)
        return Path(value) if value else fallback
