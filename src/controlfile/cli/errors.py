# topmark:header:start
#
#   project      : ControlFile
#   file         : errors.py
#   file_relpath : src/controlfile/cli/errors.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Exceptions for the ControlFile CLI.

Library errors ([`controlfile.errors`][controlfile.errors]) are translated to
these Click exceptions by [`cli_error_for`][controlfile.cli.errors.cli_error_for]
so that each failure class exits with its own code.
"""

from __future__ import annotations

from typing import IO, Any

import click

from controlfile.cli.exit_codes import ExitCode
from controlfile.errors import (
    ControlFileError,
    EnvelopeError,
    ParagraphSyntaxError,
    VerificationError,
)


class ControlFileCliError(click.ClickException):
    """Base class for all ControlFile CLI errors."""

    exit_code = ExitCode.FAILURE

    def format_message(self) -> str:  # pragma: no cover - trivial
        """Return the plain error message text."""
        return str(getattr(self, "message", ""))

    def show(self, file: IO[Any] | None = None) -> None:
        """Print the error to stderr in bright red."""
        click.secho(f"Error: {self.format_message()}", fg="bright_red", err=True, file=file)


class ControlFileSyntaxError(ControlFileCliError):
    """A line of the input is not valid paragraph syntax."""

    exit_code = ExitCode.SYNTAX_ERROR


class ControlFileEnvelopeError(ControlFileCliError):
    """The clear-sign envelope is malformed."""

    exit_code = ExitCode.ENVELOPE_ERROR


class ControlFileVerificationError(ControlFileCliError):
    """The signature could not be verified."""

    exit_code = ExitCode.VERIFICATION_ERROR


class ControlFileConfigError(ControlFileCliError):
    """Configuration errors (missing/invalid/malformed config)."""

    exit_code = ExitCode.CONFIG_ERROR


def cli_error_for(error: ControlFileError) -> ControlFileCliError:
    """Return the CLI exception matching a library error."""
    if isinstance(error, ParagraphSyntaxError):
        return ControlFileSyntaxError(str(error))
    if isinstance(error, EnvelopeError):
        return ControlFileEnvelopeError(str(error))
    if isinstance(error, VerificationError):
        return ControlFileVerificationError(str(error))
    return ControlFileCliError(str(error))
