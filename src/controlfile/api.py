# topmark:header:start
#
#   project      : ControlFile
#   file         : api.py
#   file_relpath : src/controlfile/api.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Public decode/encode pipeline.

Decoding composes the envelope and the scanner::

    source -> open_envelope(trust) -> ParagraphScanner -> paragraphs

Encoding runs the structural mapper. The two directions share no state; every
call works on its own input only.

Examples:
    ```python
    from controlfile import decode, encode

    result = decode(path.read_bytes())
    for paragraph in result.paragraphs:
        print(paragraph["Package"])
    ```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from controlfile.config.logging import get_logger
from controlfile.envelope import open_envelope
from controlfile.errors import ParagraphSyntaxError
from controlfile.marshal import render, render_many
from controlfile.scanner import ParagraphScanner, parse_paragraphs

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from controlfile.config.logging import ControlFileLogger
    from controlfile.config.model import Config
    from controlfile.envelope import Envelope, Trust
    from controlfile.keyring import SignerIdentity
    from controlfile.paragraph import Paragraph, ParagraphSequence
    from controlfile.scanner import Source
    from controlfile.schema import Schema

logger: ControlFileLogger = get_logger(__name__)


@dataclass(frozen=True)
class DecodeResult:
    """Paragraphs decoded from one input and the verified signer, if any.

    Attributes:
        paragraphs (ParagraphSequence): One paragraph per block, in input order.
        signer (SignerIdentity | None): The verified signer; ``None`` for unsigned input
            or when verification was not requested.
        error (ParagraphSyntaxError | None): Set only by partial decoding: the error that
            stopped the scan after ``paragraphs`` were read.
    """

    paragraphs: ParagraphSequence = field(default_factory=list)
    signer: SignerIdentity | None = None
    error: ParagraphSyntaxError | None = None

    @property
    def signed(self) -> bool:
        """Whether a signer was verified."""
        return self.signer is not None


def decode(source: Source, trust: Trust | None = None) -> DecodeResult:
    """Decode every paragraph of a (possibly clear-signed) input; all-or-nothing.

    Args:
        source (Source): ``str``, ``bytes`` or a text/binary stream.
        trust (Trust | None): ``Verify(keyring)`` or ``Unverified()`` (the default).

    Returns:
        DecodeResult: Paragraphs and signer.

    Raises:
        EnvelopeError: If the clear-sign envelope is malformed.
        VerificationError: If verification was requested and failed.
        ParagraphSyntaxError: On the first invalid line; no paragraphs are returned.
    """
    envelope: Envelope = open_envelope(source, trust)
    return DecodeResult(paragraphs=parse_paragraphs(envelope.body), signer=envelope.signer)


def iter_decode(
    source: Source, trust: Trust | None = None
) -> tuple[SignerIdentity | None, Iterator[Paragraph]]:
    """Open the envelope, then return the signer and a lazy paragraph iterator.

    Verification (when requested) completes before this function returns; the
    iterator raises `ParagraphSyntaxError` when it reaches an invalid line, after
    yielding every paragraph that precedes it.

    Args:
        source (Source): ``str``, ``bytes`` or a text/binary stream.
        trust (Trust | None): ``Verify(keyring)`` or ``Unverified()`` (the default).

    Returns:
        tuple[SignerIdentity | None, Iterator[Paragraph]]: The signer and the paragraphs.
    """
    envelope: Envelope = open_envelope(source, trust)
    return envelope.signer, ParagraphScanner(envelope.body)


def decode_partial(source: Source, trust: Trust | None = None) -> DecodeResult:
    """Decode like `decode`, but keep the valid prefix on a syntax error.

    Envelope and verification errors still raise: nothing is scanned before the
    envelope is accepted.

    Args:
        source (Source): ``str``, ``bytes`` or a text/binary stream.
        trust (Trust | None): ``Verify(keyring)`` or ``Unverified()`` (the default).

    Returns:
        DecodeResult: Paragraphs read before the first invalid line, and that line's
        error in ``error`` (``None`` when the whole input is valid).
    """
    signer, paragraphs = iter_decode(source, trust)
    collected: ParagraphSequence = []
    try:
        for paragraph in paragraphs:
            collected.append(paragraph)
    except ParagraphSyntaxError as e:
        logger.warning("Stopped after %d paragraph(s): %s", len(collected), e)
        return DecodeResult(paragraphs=collected, signer=signer, error=e)
    return DecodeResult(paragraphs=collected, signer=signer)


def decode_with_config(source: Source, config: Config) -> DecodeResult:
    """Decode ``source`` using the trust and error policy of ``config``.

    Args:
        source (Source): Text, bytes, a stream or an iterable of lines.
        config (Config): Effective configuration.

    Returns:
        DecodeResult: Paragraphs and signer. ``error`` is only ever set when
        ``config.partial`` is on.
    """
    if config.partial:
        return decode_partial(source, config.trust())
    return decode(source, config.trust())


def decode_file(path: Path, config: Config) -> DecodeResult:
    """Decode a file using the trust and error policy of ``config``.

    Args:
        path (Path): File to decode.
        config (Config): Effective configuration.

    Returns:
        DecodeResult: Paragraphs and signer.
    """
    logger.debug("Decoding %s", path)
    with path.open("rb") as fh:
        return decode_with_config(fh, config)


def encode(record: object, schema: Schema | None = None) -> str:
    """Render one record as a paragraph (see [`render`][controlfile.marshal.render])."""
    return render(record, schema)


def encode_many(records: Iterable[object], schema: Schema | None = None) -> str:
    """Render records as blank-line separated paragraphs."""
    return render_many(records, schema)
