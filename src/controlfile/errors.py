# topmark:header:start
#
#   project      : ControlFile
#   file         : errors.py
#   file_relpath : src/controlfile/errors.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Exceptions raised by the ControlFile library.

Every error surfaces to the immediate caller; the library never retries or
recovers on its own. The CLI maps these to exit codes in
[`controlfile.cli.errors`][controlfile.cli.errors].
"""

from __future__ import annotations


class ControlFileError(Exception):
    """Base class for all ControlFile errors."""


class EnvelopeError(ControlFileError):
    """The clear-sign envelope is malformed and could not be decoded."""


class VerificationError(ControlFileError):
    """A signature is present but invalid, its signer unknown, or the verifier unavailable."""


class UnsignedDataError(VerificationError):
    """A signature was required but the data is not signed."""

    def __init__(self, message: str = "Data is not signed") -> None:
        super().__init__(message)


class ParagraphSyntaxError(ControlFileError):
    """A line matches none of the scanner's line classes.

    Attributes:
        line (str): The raw offending line, including its terminator if any.
        lineno (int): 1-based line number in the scanned input.
    """

    def __init__(self, line: str, lineno: int, reason: str = "is not 'key: val'") -> None:
        self.line: str = line
        self.lineno: int = lineno
        super().__init__(f"Line {lineno}: {line!r} {reason}")


class UnsupportedTypeError(ControlFileError):
    """The structural mapper cannot render a field's value.

    Attributes:
        field (str): Name of the record field that could not be rendered.
        type_name (str): Name of the offending value's type.
    """

    def __init__(self, field: str, type_name: str) -> None:
        self.field: str = field
        self.type_name: str = type_name
        super().__init__(
            f"Field {field!r}: {type_name} is not renderable "
            "(not str/int/sequence and does not implement render_control())"
        )
