"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts the composition root relies on, so the
resolver and the write path never depend on a concrete filesystem or
environment implementation.

Contents
--------
* :class:`PathResolver` – locates the local store, user store, and data dir.
* :class:`StoreFile` – loads and replaces one store document.
* :class:`EnvLoader` – snapshots prefixed environment variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable


@runtime_checkable
class PathResolver(Protocol):
    """Discover where each scope's store lives.

    Methods
    -------
    :meth:`local`
        Project store in the working directory (presence means repo mode).
    :meth:`user`
        Personal store under the platform configuration directory.
    :meth:`data_dir` / :meth:`keys_dir`
        Per-user data locations used for path-valued defaults.
    """

    def local(self) -> Path: ...

    def user(self) -> Path: ...

    def data_dir(self) -> Path: ...

    def keys_dir(self) -> Path: ...


@runtime_checkable
class StoreFile(Protocol):
    """Read and replace a single structured store document."""

    def exists(self, path: Path) -> bool: ...

    def load(self, path: Path) -> dict[str, Any]:
        """Return the stored mapping or raise ``StoreMissing``/``StoreUnreadable``."""
        ...

    def save(self, path: Path, data: Mapping[str, Any]) -> None:
        """Replace the document at *path* or raise ``StoreUnwritable``."""
        ...


@runtime_checkable
class EnvLoader(Protocol):
    """Snapshot environment variables carrying a prefix."""

    def load(self, prefix: str) -> Mapping[str, str]:
        """Return ``{name: raw_value}`` for non-empty variables starting with ``prefix_``."""
        ...
