"""Structured logging helpers shared by the engine and the CLI.

Purpose
    Emit configuration lifecycle events (stores read and written, values set,
    integrity failures) with a stable shape, while leaving handler and format
    choices to the host application.

Contents
    - ``TRACE_ID``: context variable holding the active trace identifier.
    - ``get_logger``: returns the package logger (silent by default).
    - ``bind_trace_id``: binds or clears the trace identifier.
    - ``log_debug`` / ``log_info`` / ``log_error``: structured emitters.
    - ``make_event``: builder for ``layer``/``path`` event payloads.
    - ``LOG_LEVELS`` / ``attach_stderr_handler``: map the ``log-level`` setting
      onto :mod:`logging` for the CLI.

System Integration
    The resolver, the store adapters, and the composition root log through
    these helpers; the domain layer stays free of logging.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_scoped_config_trace_id", default=None)
"""Trace identifier attached to every structured event."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_scoped_config")
_LOGGER.addHandler(logging.NullHandler())

LOG_LEVELS: Final[dict[str, int | None]] = {
    "disabled": None,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}
"""Values of the ``log-level`` setting mapped to :mod:`logging` levels (``None`` = silent)."""


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('cmd-42')
    >>> TRACE_ID.get()
    'cmd-42'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug entry carrying the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info entry carrying the trace context."""

    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error entry carrying the trace context."""

    _emit(logging.ERROR, message, fields)


def make_event(
    layer: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured payload for an event about *layer*.

    Inputs
        layer: Layer or scope name (``"local"``, ``"user"``, ``"environment"``).
        path: Store file involved in the event, if any.
        payload: Optional extra detail merged on top.

    Examples
    --------
    >>> make_event('local', './anvil.yaml', {'keys': 2})
    {'layer': 'local', 'path': './anvil.yaml', 'keys': 2}
    """

    event: dict[str, Any] = {"layer": layer, "path": path}
    if payload:
        event |= dict(payload)
    return event


def attach_stderr_handler(level_name: str) -> logging.Handler | None:
    """Route package events to stderr at the verbosity named by *level_name*.

    ``"disabled"`` (and unknown names) attach nothing and return ``None``.
    The caller owns the returned handler and removes it when done.
    """

    level = LOG_LEVELS.get(level_name)
    if level is None:
        return None
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s %(context)s"))
    _LOGGER.addHandler(handler)
    _LOGGER.setLevel(min(_LOGGER.level or level, level))
    return handler


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    _LOGGER.log(level, message, extra={"context": context})
