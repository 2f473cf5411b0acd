# topmark:header:start
#
#   project      : ControlFile
#   file         : main.py
#   file_relpath : src/controlfile/cli/main.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Click CLI for ControlFile.

Key ideas:
- Group-level options (config file, verbosity) are initialized once and placed
  into ``ctx.obj``.
- Library errors are mapped to dedicated exit codes in
  [`controlfile.cli.errors`][controlfile.cli.errors].
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from controlfile.api import DecodeResult, decode_with_config
from controlfile.cli.errors import ControlFileConfigError, cli_error_for
from controlfile.config.logging import TRACE_LEVEL, get_logger, resolve_env_log_level, setup_logging
from controlfile.config.model import load_config
from controlfile.constants import CONTROLFILE_VERSION
from controlfile.errors import ControlFileError
from controlfile.marshal import render_paragraph

if TYPE_CHECKING:
    from typing import BinaryIO

    from controlfile.config.model import Config

logger = get_logger(__name__)

_VERBOSITY_LEVELS: tuple[int, ...] = (logging.WARNING, logging.INFO, logging.DEBUG, TRACE_LEVEL)


def resolve_log_level(verbose: int) -> int | None:
    """Map ``-v`` counts to a log level; without ``-v`` the environment decides."""
    if verbose <= 0:
        return resolve_env_log_level()
    return _VERBOSITY_LEVELS[min(verbose, len(_VERBOSITY_LEVELS) - 1)]


def _load_config(ctx: click.Context, cli_args: dict[str, Any]) -> Config:
    config_file: Path | None = ctx.obj.get("config_file")
    try:
        return load_config(
            config_file,
            cli_args=cli_args,
            discover_from=None if config_file is not None else Path.cwd(),
        )
    except (OSError, ValueError) as e:
        raise ControlFileConfigError(f"Cannot load configuration: {e}") from e


def _result_to_json(result: DecodeResult) -> str:
    payload: dict[str, Any] = {
        "signer": None,
        "paragraphs": [{"values": p.to_dict(), "order": list(p.order)} for p in result.paragraphs],
    }
    if result.signer is not None:
        payload["signer"] = {
            "fingerprint": result.signer.fingerprint,
            "key_id": result.signer.key_id,
            "user_id": result.signer.user_id,
            "trusted": result.signer.trusted,
        }
    if result.error is not None:
        payload["error"] = str(result.error)
    return json.dumps(payload, indent=2, ensure_ascii=False)


@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    help="ControlFile CLI",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (controlfile.toml or pyproject.toml). Disables discovery.",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv, -vvv).")
@click.pass_context
def cli(ctx: click.Context, config_file: Path | None, verbose: int) -> None:
    """Entry point for the ControlFile CLI."""
    ctx.obj = ctx.obj or {}
    level: int | None = resolve_log_level(verbose)
    ctx.obj["log_level"] = level
    ctx.obj["config_file"] = config_file
    setup_logging(level=level)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("decode")
@click.argument("source", type=click.File("rb"), default="-")
@click.option(
    "--keyring",
    "keyrings",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Keyring file to verify signed input against (repeatable).",
)
@click.option("--gpg", "gpg_binary", default=None, help="gpg executable used for verification.")
@click.option(
    "--homedir",
    type=click.Path(file_okay=False),
    default=None,
    help="GnuPG home directory.",
)
@click.option(
    "--require-signature/--allow-unsigned",
    default=None,
    help="Reject unsigned input.",
)
@click.option(
    "--partial/--strict",
    default=None,
    help="Print paragraphs read before a syntax error (still exits non-zero).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
)
@click.pass_context
def decode_command(
    ctx: click.Context,
    source: BinaryIO,
    keyrings: tuple[str, ...],
    gpg_binary: str | None,
    homedir: str | None,
    require_signature: bool | None,
    partial: bool | None,
    output_format: str,
) -> None:
    """Decode (and optionally verify) a paragraph file; '-' reads stdin."""
    config: Config = _load_config(
        ctx,
        {
            "keyrings": keyrings,
            "gpg_binary": gpg_binary,
            "homedir": homedir,
            "require_signature": require_signature,
            "partial": partial,
        },
    )

    try:
        result: DecodeResult = decode_with_config(source, config)
    except ControlFileError as e:
        raise cli_error_for(e) from e

    if result.signer is not None:
        click.secho(
            f"Good signature from {result.signer.user_id or result.signer.key_id} "
            f"({result.signer.fingerprint})",
            fg="green",
            err=True,
        )

    if output_format == "json":
        click.echo(_result_to_json(result))
    else:
        click.echo("\n".join(render_paragraph(p) for p in result.paragraphs), nl=False)

    if result.error is not None:
        raise cli_error_for(result.error)


@cli.command("config")
@click.pass_context
def config_command(ctx: click.Context) -> None:
    """Print the effective configuration as TOML."""
    config: Config = _load_config(ctx, {})
    click.echo(config.to_toml(), nl=False)


@cli.command("version")
def version_command() -> None:
    """Print the ControlFile version."""
    click.echo(CONTROLFILE_VERSION)


if __name__ == "__main__":
    cli()
