"""CLI adapter for ``lib_dotenv_binder`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect what a `.env` document parses to, and what a binding
schema would resolve to, without writing Python.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command wiring traceback handling into ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_read` – prints the loaded entry store as JSON.
* :func:`cli_get` – prints a single value (exit code 1 when absent).
* :func:`cli_resolve` – resolves a schema document against the store.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer: it calls the composition root (``load_dotenv``) and the
resolver, never the adapters' internals.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.schema.structured import load_schema
from .application.resolver import resolve
from .core import DEFAULT_DIRECTORY, DEFAULT_FILENAME, load_dotenv

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DISTRIBUTION: Final[str] = "lib_dotenv_binder"


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _source_options(func):
    """Attach the ``--directory`` / ``--filename`` pair shared by every loading command."""

    func = click.option(
        "--filename",
        default=DEFAULT_FILENAME,
        show_default=True,
        help="Name of the .env document inside the directory",
    )(func)
    func = click.option(
        "--directory",
        default=DEFAULT_DIRECTORY,
        show_default=True,
        help="Directory, file: URI, or package: URI holding the .env document",
    )(func)
    return func


@click.group(
    help="Load .env files and bind them onto typed settings",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_dotenv_binder version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference for all subcommands.

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
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DISTRIBUTION} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.11')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("read", context_settings=CLICK_CONTEXT_SETTINGS)
@_source_options
@click.option(
    "--file-only/--with-environ",
    default=False,
    help="Print only entries from the .env document, without process environment variables",
)
@click.option(
    "--strict/--lenient",
    default=True,
    show_default=True,
    help="Fail on malformed entries instead of skipping them",
)
@click.option(
    "--require-source/--optional-source",
    default=False,
    show_default=True,
    help="Fail when the .env document cannot be found",
)
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_read(
    directory: str,
    filename: str,
    file_only: bool,
    strict: bool,
    require_source: bool,
    indent: Optional[int],
) -> None:
    """Load the .env document and print the resulting entries as JSON.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> runner = CliRunner()
    >>> with runner.isolated_filesystem():
    ...     _ = Path('.env').write_text('A=1\\n', encoding='utf-8')
    ...     result = runner.invoke(cli, ['read', '--file-only'])
    >>> json.loads(result.output)
    {'A': '1'}
    """

    store = load_dotenv(
        directory=directory,
        filename=filename,
        fail_on_missing=require_source,
        fail_on_malformed=strict,
        include_environ=not file_only,
    )
    click.echo(json.dumps(store.as_dict(file_only=file_only), indent=indent, sort_keys=True))


@cli.command("get", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@_source_options
@click.pass_context
def cli_get(ctx: click.Context, key: str, directory: str, filename: str) -> None:
    """Print the value stored under KEY; exit with status 1 when it is absent."""

    value = load_dotenv(directory=directory, filename=filename).get(key)
    if value is None:
        click.echo(f"{key} is not set", err=True)
        ctx.exit(1)
    click.echo(value)


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--schema",
    "schema_path",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
    required=True,
    help="TOML, JSON, or YAML document describing the fields to bind",
)
@_source_options
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_resolve(schema_path: Path, directory: str, filename: str, indent: Optional[int]) -> None:
    """Resolve every field of a schema document and print key, raw value, and origin.

    Fields that resolve to nothing are omitted; a required field without a
    value aborts with an error.
    """

    schema = load_schema(schema_path)
    store = load_dotenv(directory=directory, filename=filename)
    payload = {
        resolved.metadata.attribute: {"key": resolved.key, "value": resolved.raw, "origin": resolved.origin}
        for resolved in resolve(store, schema)
        if not resolved.is_absent
    }
    click.echo(json.dumps(payload, indent=indent))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
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
