# topmark:header:start
#
#   project      : ControlFile
#   file         : __init__.py
#   file_relpath : src/controlfile/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""ControlFile package.

ControlFile reads and writes RFC2822-like "paragraph" files: blocks of
``key: value`` lines separated by blank lines, optionally wrapped in an
OpenPGP clear-sign envelope. It renders typed records into the same format.
"""

from __future__ import annotations

from controlfile.api import (
    DecodeResult,
    decode,
    decode_file,
    decode_with_config,
    decode_partial,
    encode,
    encode_many,
    iter_decode,
)
from controlfile.envelope import Trust, Unverified, Verify, open_envelope
from controlfile.errors import (
    ControlFileError,
    EnvelopeError,
    ParagraphSyntaxError,
    UnsignedDataError,
    UnsupportedTypeError,
    VerificationError,
)
from controlfile.escaping import escape
from controlfile.keyring import GpgKeyring, Keyring, SignerIdentity
from controlfile.marshal import Marshalable, Ref, render, render_many, render_paragraph
from controlfile.paragraph import Paragraph, ParagraphSequence
from controlfile.scanner import ParagraphScanner, iter_paragraphs, parse_paragraph, parse_paragraphs
from controlfile.schema import FieldDescriptor, Schema, control_field, describe, schema_for

__all__: list[str] = [
    "ControlFileError",
    "DecodeResult",
    "EnvelopeError",
    "FieldDescriptor",
    "GpgKeyring",
    "Keyring",
    "Marshalable",
    "Paragraph",
    "ParagraphScanner",
    "ParagraphSequence",
    "ParagraphSyntaxError",
    "Ref",
    "Schema",
    "SignerIdentity",
    "Trust",
    "UnsignedDataError",
    "UnsupportedTypeError",
    "Unverified",
    "VerificationError",
    "Verify",
    "control_field",
    "decode",
    "decode_file",
    "decode_with_config",
    "decode_partial",
    "describe",
    "encode",
    "encode_many",
    "escape",
    "iter_decode",
    "iter_paragraphs",
    "open_envelope",
    "parse_paragraph",
    "parse_paragraphs",
    "render",
    "render_many",
    "render_paragraph",
    "schema_for",
]
