"""CLI adapter for ``lib_config_tree`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose the configuration tree via a command line interface so operators can see
what a key resolves to (files, environment, ``.env``) without writing Python.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_env_prefix` – helper exposing :func:`lib_config_tree.core.default_env_prefix`.
* :func:`cli_show` – builds a root tree, autoloads the requested keys, and
  prints JSON.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It invokes the composition root
(``read_config``) and never reaches into adapter implementation details.
``lib_cli_exit_tools`` centralises the exit code strategy so all commands
behave consistently across shells and CI.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .core import default_env_prefix as _default_env_prefix
from .core import read_config
from .domain.tree import ConfigTree

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` when metadata is missing."""

    try:
        return metadata.version("lib_config_tree")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Lazily populated configuration tree",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_config_tree",
    message="lib_config_tree version %(version)s",
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


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_config_tree")
    except metadata.PackageNotFoundError:
        click.echo("lib_config_tree (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_config_tree')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("env-prefix", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("slug")
def cli_env_prefix(slug: str) -> None:
    """Compute the canonical environment prefix for *slug*.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> runner = CliRunner()
    >>> result = runner.invoke(cli, ["env-prefix", "config-kit"])
    >>> result.output.strip()
    'CONFIG_KIT'
    """

    click.echo(_default_env_prefix(slug))


@cli.command("show", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("keys", nargs=-1)
@click.option("--vendor", required=True, help="Vendor namespace (e.g. organisation name)")
@click.option("--app", required=True, help="Application name used for user/system directories")
@click.option("--slug", required=True, help="Slug identifying the configuration set and env prefix")
@click.option(
    "--search-dir",
    "search_dirs",
    multiple=True,
    type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True, readable=True),
    help="Include-path directory (repeatable, searched in order); replaces platform defaults",
)
@click.option(
    "--prefer",
    multiple=True,
    help="Preferred file suffix when several formats exist for one identifier (repeatable)",
)
@click.option(
    "--start-dir",
    type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True, readable=True),
    default=None,
    help="Working directory for the include path and .env upward search (defaults to CWD)",
)
@click.option(
    "--load",
    "identifiers",
    multiple=True,
    help="Identifier to load eagerly before resolving KEYS (repeatable)",
)
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
def cli_show(
    keys: Sequence[str],
    vendor: str,
    app: str,
    slug: str,
    search_dirs: Sequence[Path],
    prefer: Sequence[str],
    start_dir: Optional[Path],
    identifiers: Sequence[str],
    indent: Optional[int],
) -> None:
    """Resolve KEYS through the configuration tree and print them as JSON.

    Each KEY is looked up on the root tree, so it autoloads from overrides or
    ``conf.<KEY>.*`` files. Without KEYS the whole tree is printed, which
    contains only what ``--load`` brought in.
    """

    tree = read_config(
        vendor=vendor,
        app=app,
        slug=slug,
        search_dirs=[str(directory) for directory in search_dirs] or None,
        prefer=_normalize_prefer(prefer),
        start_dir=str(start_dir) if start_dir is not None else None,
    )
    for identifier in identifiers:
        tree.load_file(identifier)
    if not keys:
        click.echo(tree.to_json(indent=indent))
        return
    payload = {key: _plain(tree.get(key)) for key in keys}
    click.echo(json.dumps(payload, indent=indent, separators=(",", ":"), ensure_ascii=False))


def _plain(value: object) -> object:
    """Return JSON-friendly data for a tree lookup result."""

    if isinstance(value, ConfigTree):
        return value.to_dict()
    return value


def _normalize_prefer(values: Sequence[str]) -> Optional[Sequence[str]]:
    """Normalise preferred suffixes to lowercase tuples without leading dots."""

    if not values:
        return None
    return tuple(value.lower().lstrip(".") for value in values)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_config_tree",
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
