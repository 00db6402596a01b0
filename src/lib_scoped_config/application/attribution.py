"""Source attribution for resolved values.

Purpose
-------
Explain where an effective value came from and what happened to every other
layer holding a value for the same key. The CLI uses this for ``list`` labels
and ``get --explain``.

Contents
--------
* :class:`Status` – fate of one layer's value.
* :class:`Contribution` / :class:`Attribution` – explanation records.
* :func:`attribute` – build an :class:`Attribution` from a resolver.
* :func:`source_label` – short human label for an effective value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..domain.effective import EffectiveValue, Layer
from .resolver import Candidate, Resolver


class Status(Enum):
    """What became of a layer's value during resolution."""

    EFFECTIVE = "effective"
    SHADOWED = "shadowed"
    SUPPRESSED = "suppressed"
    OVERRIDDEN = "overridden"


@dataclass(frozen=True)
class Contribution:
    candidate: Candidate
    status: Status


@dataclass(frozen=True)
class Attribution:
    """Effective value of *key* plus every contributing layer in precedence order."""

    key: str
    effective: EffectiveValue
    contributions: tuple[Contribution, ...]


def attribute(resolver: Resolver, key: str) -> Attribution:
    """Explain the resolution of *key*.

    Status rules
    ------------
    * the winning layer is ``EFFECTIVE``;
    * an environment value ignored in repo mode is ``SUPPRESSED``;
    * any other value is ``OVERRIDDEN`` when a policy lock won and ``SHADOWED``
      when a higher-precedence layer won.

    Raises
    ------
    NotFound
        When no layer supplies a value.
    """

    effective = resolver.resolve(key)
    contributions = []
    for candidate in resolver.candidates(key):
        if candidate.layer is effective.layer and not candidate.ignored:
            status = Status.EFFECTIVE
        elif candidate.ignored:
            status = Status.SUPPRESSED
        elif effective.layer is Layer.POLICY:
            status = Status.OVERRIDDEN
        else:
            status = Status.SHADOWED
        contributions.append(Contribution(candidate, status))
    return Attribution(key, effective, tuple(contributions))


def source_label(value: EffectiveValue | Candidate, *, home: Path | None = None) -> str:
    """Return the presentation label for the layer behind *value*.

    Examples
    --------
    >>> source_label(EffectiveValue("use-tui", False, Layer.ENVIRONMENT, "ANVIL_USE_TUI"))
    'from ENV: ANVIL_USE_TUI'
    >>> source_label(EffectiveValue("use-tui", False, Layer.LOCAL, "/work/repo/anvil.yaml"))
    'from ./anvil.yaml'
    >>> user = EffectiveValue("use-tui", False, Layer.USER, "/home/dev/.config/anvil/config.yaml")
    >>> source_label(user, home=Path("/home/dev"))
    'from ~/.config/anvil/config.yaml'
    >>> source_label(EffectiveValue("use-tui", True, Layer.DEFAULT))
    'default'
    """

    layer = value.layer
    if layer is Layer.DEFAULT:
        return "default"
    if layer is Layer.POLICY:
        return "locked by repo policy"
    if layer is Layer.ENVIRONMENT:
        return f"from ENV: {value.origin}"
    if value.origin is None:
        return f"from {layer.value} config"
    origin = Path(value.origin)
    if layer is Layer.LOCAL:
        return f"from ./{origin.name}"
    if home is not None:
        try:
            return f"from ~/{origin.relative_to(home).as_posix()}"
        except ValueError:
            pass
    return f"from {origin.as_posix()}"
