"""Structured store files (YAML and JSON).

Purpose
-------
Read and write the persisted store of one scope. Each store is a single
document holding a nested mapping; it is read fresh for every command and, on
writes, replaced wholesale.

Contents
--------
* :class:`BaseStoreFile` – shared read/write plumbing (missing-file handling,
  mapping checks, atomic replacement).
* :class:`YAMLStoreFile` – PyYAML-backed store, the default format.
* :class:`JSONStoreFile` – JSON store for tooling that prefers it.
* :func:`store_for` – pick the adapter from the file suffix.

System Role
-----------
Used by :mod:`lib_scoped_config.core` for both the read path (building the
resolver) and the write path (``set``/``unset``).
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from ...domain.errors import InvalidFormat, StoreMissing, StoreUnreadable, StoreUnwritable
from ...observability import log_debug, log_error


class BaseStoreFile:
    """Common behaviour for the structured store adapters."""

    format_name = "text"

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def load(self, path: Path) -> dict[str, Any]:
        """Return the mapping stored at *path*.

        Raises
        ------
        StoreMissing
            When the file does not exist. Callers reading an optional store
            treat this as an empty store.
        StoreUnreadable / InvalidFormat
            When the file exists but cannot be read or parsed.
        """

        if not path.is_file():
            raise StoreMissing(f"Configuration file not found: {path}", path=str(path))
        try:
            payload = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log_error("store_unreadable", layer="file", path=str(path), error=str(exc))
            raise StoreUnreadable(f"Failed to read configuration file {path}: {exc}", path=str(path)) from exc
        data = self._parse(payload, path)
        log_debug("store_loaded", layer="file", path=str(path), format=self.format_name, keys=len(data))
        return data

    def save(self, path: Path, data: Mapping[str, Any]) -> None:
        """Replace the file at *path* with *data*.

        The document is written to a temporary sibling and moved into place,
        so readers never observe a half-written store.
        """

        text = self._render(data)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            log_error("store_unwritable", layer="file", path=str(path), error=str(exc))
            raise StoreUnwritable(f"Failed to write configuration to {path}: {exc}", path=str(path)) from exc
        log_debug("store_written", layer="file", path=str(path), format=self.format_name)

    def _parse(self, text: str, path: Path) -> dict[str, Any]:
        raise NotImplementedError

    def _render(self, data: Mapping[str, Any]) -> str:
        raise NotImplementedError

    @staticmethod
    def _ensure_mapping(data: object, *, path: Path) -> dict[str, Any]:
        """Return *data* as a dict or raise :class:`InvalidFormat`.

        >>> BaseStoreFile._ensure_mapping({"key": 1}, path=Path("demo"))
        {'key': 1}
        >>> BaseStoreFile._ensure_mapping([1], path=Path("demo"))
        Traceback (most recent call last):
        ...
        lib_scoped_config.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping", path=str(path))
        return dict(data)


class YAMLStoreFile(BaseStoreFile):
    """Store backed by a YAML document (``safe_load`` / ``safe_dump``)."""

    format_name = "yaml"

    def _parse(self, text: str, path: Path) -> dict[str, Any]:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            log_error("store_invalid", layer="file", path=str(path), format="yaml", error=str(exc))
            raise InvalidFormat(f"Invalid YAML in {path}: {exc}", path=str(path)) from exc
        if data is None:
            return {}
        return self._ensure_mapping(data, path=path)

    def _render(self, data: Mapping[str, Any]) -> str:
        if not data:
            return "{}\n"
        return yaml.safe_dump(dict(data), default_flow_style=False, sort_keys=False, allow_unicode=True)


class JSONStoreFile(BaseStoreFile):
    """Store backed by a JSON document."""

    format_name = "json"

    def _parse(self, text: str, path: Path) -> dict[str, Any]:
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            log_error("store_invalid", layer="file", path=str(path), format="json", error=str(exc))
            raise InvalidFormat(f"Invalid JSON in {path}: {exc}", path=str(path)) from exc
        return self._ensure_mapping(data, path=path)

    def _render(self, data: Mapping[str, Any]) -> str:
        return json.dumps(dict(data), indent=2, ensure_ascii=False) + "\n"


_STORES: dict[str, BaseStoreFile] = {
    ".yaml": YAMLStoreFile(),
    ".yml": YAMLStoreFile(),
    ".json": JSONStoreFile(),
}


def store_for(path: Path) -> BaseStoreFile:
    """Return the adapter responsible for *path* (YAML unless the suffix says JSON).

    >>> type(store_for(Path("anvil.json"))).__name__
    'JSONStoreFile'
    >>> type(store_for(Path("config.yaml"))).__name__
    'YAMLStoreFile'
    """

    return _STORES.get(path.suffix.lower(), _STORES[".yaml"])
