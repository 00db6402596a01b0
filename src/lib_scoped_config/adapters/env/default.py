"""Environment variable adapter.

Purpose
-------
Expose the process environment as the highest-precedence layer. Every key is
addressable through a derived variable name: the prefix, an underscore, and
the key upper-cased with ``.`` and ``-`` replaced by ``_``
(``use-tui`` → ``ANVIL_USE_TUI``).

Key behaviours
--------------
* Only variables carrying the prefix are captured.
* Empty values count as unset.
* Values stay raw strings; typing happens in the resolver, which knows the
  key definition.
"""

from __future__ import annotations

import os
from typing import Mapping

from ...observability import log_debug


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('anvil')
    'ANVIL'
    >>> default_env_prefix('crack-barrel')
    'CRACK_BARREL'
    """

    return slug.replace("-", "_").upper()


class DefaultEnvLoader:
    """Read prefixed variables from an injectable ``environ`` mapping."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def load(self, prefix: str) -> dict[str, str]:
        """Return ``{variable_name: raw_value}`` for non-empty variables with *prefix*.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={'ANVIL_USE_TUI': 'no', 'ANVIL_EMPTY': '', 'HOME': '/root'})
        >>> loader.load('ANVIL')
        {'ANVIL_USE_TUI': 'no'}
        """

        marker = f"{prefix}_"
        collected = {
            name: value
            for name, value in self._environ.items()
            if name.startswith(marker) and len(name) > len(marker) and value
        }
        log_debug("env_scanned", layer="environment", path=None, keys=sorted(collected))
        return collected
