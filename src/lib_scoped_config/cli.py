"""CLI adapter for ``lib_scoped_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose the read and write paths of the configuration engine as commands
(``get``, ``set``, ``unset``, ``list``, ``schema``) so operators can inspect and
edit settings without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` / :func:`cli_env_var` – diagnostics.
* :func:`cli_get` / :func:`cli_list` – read path, preceded by the repo
  integrity check.
* :func:`cli_set` / :func:`cli_unset` – write path.
* :func:`cli_schema` – JSON Schema export.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It calls the composition root
(:mod:`lib_scoped_config.core`) and only formats results; failures propagate
to ``lib_cli_exit_tools``, which prints them and maps the exit code.
"""

from __future__ import annotations

import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .application.attribution import source_label
from .application.schema import render_schema
from .core import (
    DEFAULT_SLUG,
    Workspace,
    check_repo_integrity,
    explain_value,
    get_value,
    list_values,
    load_resolver,
    open_workspace,
    schema_document,
    set_value,
    unset_value,
)
from .adapters.env.default import default_env_prefix
from .domain.errors import NotFound
from .domain.paths import split_path
from .domain.registry import Scope, env_var_name
from .domain.values import stringify
from .observability import attach_stderr_handler, get_logger

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

SCOPE_CHOICES: Final[dict[str, Scope]] = {
    "local": Scope.LOCAL,
    "repo": Scope.LOCAL,
    "user": Scope.USER,
    "global": Scope.USER,
}
PRECEDENCE_NOTE: Final[str] = "Configuration precedence: ENV > local config > user config > defaults"


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when not installed."""

    try:
        return metadata.version("lib_scoped_config")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Layered, scope-checked configuration for the anvil toolchain",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_scoped_config",
    message="lib_scoped_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


def _open(ctx: click.Context) -> Workspace:
    """Open the workspace for this command and route logs per ``log-level``.

    The stderr handler is detached again when the command finishes.
    """

    workspace = open_workspace(DEFAULT_SLUG)
    try:
        level, _ = load_resolver(workspace).get("log-level")
    except NotFound:
        level = "disabled"
    handler = attach_stderr_handler(stringify(level))
    if handler is not None:
        ctx.call_on_close(lambda: get_logger().removeHandler(handler))
    return workspace


def format_value(value: Any) -> str:
    """Render a value for terminal output (booleans in lower case).

    >>> format_value(True), format_value(8), format_value("armored")
    ('true', '8', 'armored')
    """

    return stringify(value)


def _store_label(workspace: Workspace, scope: Scope) -> str:
    path = workspace.store_path(scope)
    if scope is Scope.LOCAL:
        return f"./{path.name}"
    if workspace.home is not None:
        try:
            return f"~/{path.relative_to(workspace.home).as_posix()}"
        except ValueError:
            pass
    return path.as_posix()


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_scoped_config")
    except metadata.PackageNotFoundError:
        click.echo("lib_scoped_config (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_scoped_config')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("env-var", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
def cli_env_var(key: str) -> None:
    """Print the environment variable that overrides KEY.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> runner = CliRunner()
    >>> result = runner.invoke(cli, ["env-var", "signing.key.location"])
    >>> result.output.strip()
    'ANVIL_SIGNING_KEY_LOCATION'
    """

    split_path(key)
    click.echo(env_var_name(key, default_env_prefix(DEFAULT_SLUG)))


@cli.command("get", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option("--explain/--no-explain", default=False, help="Show every layer holding a value for KEY")
@click.pass_context
def cli_get(ctx: click.Context, key: str, explain: bool) -> None:
    """Get a configuration value and show its source.

    Output format: ``key = value (source)``. Sources in precedence order are
    the environment (``ANVIL_*``), the local store (``./anvil.yaml``), the user
    store, and the built-in default.
    """

    workspace = _open(ctx)
    check_repo_integrity(workspace)
    if not explain:
        effective = get_value(workspace, key)
        click.echo(f"{key} = {format_value(effective.value)} ({source_label(effective, home=workspace.home)})")
        return
    attribution = explain_value(workspace, key)
    effective = attribution.effective
    click.echo(f"{key} = {format_value(effective.value)} ({source_label(effective, home=workspace.home)})")
    for contribution in attribution.contributions:
        candidate = contribution.candidate
        click.echo(
            f"  {contribution.status.value:<10} {candidate.layer.value:<11} "
            f"{format_value(candidate.value)} ({source_label(candidate, home=workspace.home)})"
        )


@cli.command("set", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.argument("value")
@click.option("--global", "global_", is_flag=True, default=False, help="Write to the user config instead of ./anvil.yaml")
@click.pass_context
def cli_set(ctx: click.Context, key: str, value: str, global_: bool) -> None:
    """Set KEY to VALUE.

    Keys use dot notation for nested values (``signing.key.format``). Boolean
    keys accept ``true/yes/on/enable/enabled`` and ``false/no/off/disable/disabled``;
    numbers are detected automatically.
    """

    workspace = _open(ctx)
    scope = Scope.USER if global_ else Scope.LOCAL
    set_value(workspace, key, value, scope)
    scope_name = "global" if global_ else "local"
    click.echo(f"Set {key} = {value} ({scope_name}: {_store_label(workspace, scope)})")


@cli.command("unset", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option("--global", "global_", is_flag=True, default=False, help="Remove from the user config instead of ./anvil.yaml")
@click.pass_context
def cli_unset(ctx: click.Context, key: str, global_: bool) -> None:
    """Remove KEY (and everything nested below it) from a config file.

    Environment variables and defaults still apply after removal.
    """

    workspace = _open(ctx)
    scope = Scope.USER if global_ else Scope.LOCAL
    unset_value(workspace, key, scope)
    scope_name = "global" if global_ else "local"
    click.echo(f"Removed {key} from {scope_name} config ({_store_label(workspace, scope)})")


@cli.command("list", context_settings=CLICK_CONTEXT_SETTINGS)
@click.pass_context
def cli_list(ctx: click.Context) -> None:
    """List every configuration value with its source, sorted by key."""

    workspace = _open(ctx)
    check_repo_integrity(workspace)
    values = list_values(workspace)
    if not values:
        click.echo("No configuration set")
        return
    for effective in values:
        click.echo(f"{effective.key} = {format_value(effective.value)} ({source_label(effective, home=workspace.home)})")
    click.echo("")
    click.echo(PRECEDENCE_NOTE)


@cli.command("schema", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--scope",
    "scope_name",
    type=click.Choice(tuple(SCOPE_CHOICES), case_sensitive=False),
    default=None,
    help="Only keys allowed in this scope (default: all keys)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False, writable=True),
    default=None,
    help="Write the schema to a file instead of stdout",
)
@click.pass_context
def cli_schema(ctx: click.Context, scope_name: Optional[str], output: Optional[Path]) -> None:
    """Export the configuration schema (JSON Schema draft 2020-12)."""

    workspace = _open(ctx)
    scope = SCOPE_CHOICES[scope_name.lower()] if scope_name else None
    text = render_schema(schema_document(workspace, scope))
    if output is None:
        click.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Schema written to {output}")


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_scoped_config",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
