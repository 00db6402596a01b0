"""Resolved values and the layers that supply them.

Purpose
-------
Carry the result of resolving one key through the precedence chain together
with its provenance, without any I/O.

Contents
--------
* :class:`Layer` – the ranked sources, highest precedence first.
* :class:`EffectiveValue` – a resolved value plus the layer and origin that
  produced it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Layer(Enum):
    """Source layer of an effective value.

    Precedence for ordinary keys is ``ENVIRONMENT > LOCAL > USER > DEFAULT``.
    ``POLICY`` marks values pinned by a repo-mode lock, which bypass the chain.
    """

    POLICY = "policy"
    ENVIRONMENT = "environment"
    LOCAL = "local"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class EffectiveValue:
    """Resolved value of *key*.

    Attributes
    ----------
    key:
        Dotted key that was resolved.
    value:
        The effective value after kind-aware coercion.
    layer:
        Layer that supplied the value.
    origin:
        Environment variable name or store file path; ``None`` for defaults and
        policy locks.

    Examples
    --------
    >>> EffectiveValue("use-tui", True, Layer.DEFAULT).as_tuple()
    (True, <Layer.DEFAULT: 'default'>)
    """

    key: str
    value: Any
    layer: Layer
    origin: str | None = None

    def as_tuple(self) -> tuple[Any, Layer]:
        """Return ``(value, layer)`` – the shape of the read API."""

        return self.value, self.layer
