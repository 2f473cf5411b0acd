# topmark:header:start
#
#   project      : ControlFile
#   file         : envelope.py
#   file_relpath : src/controlfile/envelope.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Clear-sign envelope detection, decoding and verification.

Input whose first 15 bytes are ``-----BEGIN PGP `` is treated as an OpenPGP
clear-signed message (RFC 4880, section 7). The whole stream is read, the
message is split into cleartext and detached signature, and the signature is
optionally checked against a caller-supplied keyring. Any other input passes
through untouched and unread beyond the 15-byte peek.

The signature block is de-armored and parsed by PGPy. The cleartext framing
(armor headers, dash-escaping) is handled here because PGPy only accepts
clear-signed messages whose cleartext is pure ASCII.

Whether to verify is an explicit choice of the caller:

- [`Verify(keyring)`][controlfile.envelope.Verify] checks the signature and
  fails hard on a bad one.
- [`Unverified()`][controlfile.envelope.Unverified] skips verification
  entirely. It is a trust opt-out, never a fallback from a failed check.

Verification always completes before the cleartext is handed to the scanner.
"""

from __future__ import annotations

import io
import itertools
import warnings
from dataclasses import dataclass, field
from typing import IO, TYPE_CHECKING, Union, cast

from pgpy import PGPMessage, PGPSignature
from pgpy.errors import PGPError
from pgpy.packet import Packet
from pgpy.packet.packets import Signature

from controlfile.config.logging import get_logger
from controlfile.constants import (
    ARMOR_PEEK_SIZE,
    ARMOR_PREFIX,
    CLEARSIGN_BEGIN,
    SIGNATURE_BEGIN,
    SIGNATURE_END,
)
from controlfile.errors import EnvelopeError, UnsignedDataError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from controlfile.config.logging import ControlFileLogger
    from controlfile.keyring import Keyring, SignerIdentity
    from controlfile.scanner import Source

logger: ControlFileLogger = get_logger(__name__)


@dataclass(frozen=True)
class Unverified:
    """Do not verify signatures; signed input yields no signer identity."""


@dataclass(frozen=True)
class Verify:
    """Verify signatures against ``keyring``.

    Attributes:
        keyring (Keyring): Trusted keys used to check the signature.
        require_signature (bool): Reject unsigned input with
            [`UnsignedDataError`][controlfile.errors.UnsignedDataError].
    """

    keyring: Keyring
    require_signature: bool = False


Trust = Union[Verify, Unverified]


@dataclass(frozen=True)
class ClearsignBlock:
    """A decoded clear-signed message.

    Attributes:
        cleartext (bytes): The message with dash-escaping removed, LF line endings and
            a final newline.
        signed_text (bytes): The canonical bytes covered by the signature (CRLF line
            endings, no final line ending).
        hash_algorithms (tuple[str, ...]): Hash algorithms used by the signatures, in
            the order the signatures appear.
        signature (bytes): The ASCII-armored signature block, markers included.
        signatures (tuple[PGPSignature, ...]): The parsed signature packets.
    """

    cleartext: bytes
    signed_text: bytes
    hash_algorithms: tuple[str, ...]
    signature: bytes
    signatures: tuple[PGPSignature, ...] = field(default=(), repr=False, compare=False)

    @property
    def key_ids(self) -> tuple[str, ...]:
        """Key ids of the keys that made the signatures."""
        return tuple(sig.signer for sig in self.signatures)


@dataclass(frozen=True)
class Envelope:
    """Outcome of opening a (possibly) signed stream.

    Attributes:
        body (Source): Text to scan. Cleartext bytes for signed input, otherwise a
            replay of the original stream.
        signer (SignerIdentity | None): The verified signer, if any.
        block (ClearsignBlock | None): The decoded clear-sign block, if any.
    """

    body: Source
    signer: SignerIdentity | None = None
    block: ClearsignBlock | None = field(default=None, repr=False)

    @property
    def signed(self) -> bool:
        """Whether the input was wrapped in a clear-sign envelope."""
        return self.block is not None


def is_clearsigned(data: bytes | bytearray | str) -> bool:
    """Return whether ``data`` starts with the ASCII-armor prefix."""
    if isinstance(data, str):
        return data.startswith(ARMOR_PREFIX.decode("ascii"))
    return data.startswith(ARMOR_PREFIX)


def load_signatures(armor: str) -> tuple[PGPSignature, ...]:
    """Parse an ASCII-armored signature block into its signature packets.

    Args:
        armor (str): The block, BEGIN and END lines included.

    Returns:
        tuple[PGPSignature, ...]: One entry per signature packet.

    Raises:
        EnvelopeError: If the armor or a packet is malformed, or the CRC-24
            checksum does not match.
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            unarmored = PGPSignature.ascii_unarmor(armor)
        except (PGPError, ValueError, TypeError) as e:
            raise EnvelopeError(f"Malformed signature block: {e}") from e
    # PGPy reports a bad checksum as a warning only
    if any("crc24" in str(w.message) for w in caught):
        raise EnvelopeError("Signature checksum mismatch")
    if unarmored["magic"] != "SIGNATURE":
        raise EnvelopeError(f"Expected a SIGNATURE block, got {unarmored['magic']!r}")

    data: bytearray = unarmored["body"]
    signatures: list[PGPSignature] = []
    while data:
        try:
            pkt = Packet(data)
        except (PGPError, ValueError, TypeError, IndexError, NotImplementedError) as e:
            raise EnvelopeError(f"Malformed signature packet: {e}") from e
        if not isinstance(pkt, Signature):
            raise EnvelopeError(f"Unexpected {type(pkt).__name__} packet in signature block")
        signatures.append(PGPSignature() | pkt)
    if not signatures:
        raise EnvelopeError("Signature block is empty")
    return tuple(signatures)


def decode_clearsign(data: bytes) -> ClearsignBlock:
    """Decode an ASCII-armored clear-signed message.

    Args:
        data (bytes): The complete armored message.

    Returns:
        ClearsignBlock: The cleartext and detached signature.

    Raises:
        EnvelopeError: If the block is malformed.
    """
    try:
        text: str = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EnvelopeError(f"Clear-signed message is not valid UTF-8: {e}") from e

    lines: list[str] = [ln.rstrip("\r") for ln in text.split("\n")]
    if not lines or lines[0].rstrip(" \t") != CLEARSIGN_BEGIN:
        raise EnvelopeError(f"Expected {CLEARSIGN_BEGIN!r}, got {lines[0][:64]!r}")

    # Armor headers up to the first blank line
    idx = 1
    while idx < len(lines) and lines[idx].strip(" \t") != "":
        if ":" not in lines[idx]:
            raise EnvelopeError(f"Malformed armor header {lines[idx]!r}")
        idx += 1
    if idx >= len(lines):
        raise EnvelopeError("Missing blank line after armor headers")
    idx += 1

    body_start: int = idx
    while idx < len(lines) and lines[idx].rstrip(" \t") != SIGNATURE_BEGIN:
        idx += 1
    if idx >= len(lines):
        raise EnvelopeError(f"Missing {SIGNATURE_BEGIN!r}")
    escaped: list[str] = lines[body_start:idx]

    sig_start: int = idx
    while idx < len(lines) and lines[idx].rstrip(" \t") != SIGNATURE_END:
        idx += 1
    if idx >= len(lines):
        raise EnvelopeError(f"Missing {SIGNATURE_END!r}")
    # Anything after the END marker is ignored
    armor: str = "\n".join(lines[sig_start : idx + 1]) + "\n"
    signatures: tuple[PGPSignature, ...] = load_signatures(armor)

    cleartext_lines: list[str] = []
    if escaped:
        unescaped: str = PGPMessage.dash_unescape("\n".join(escaped))
        # Trailing whitespace is not part of the signed text
        cleartext_lines = [ln.rstrip(" \t") for ln in unescaped.split("\n")]
    cleartext: str = "".join(f"{ln}\n" for ln in cleartext_lines)
    signed_text: str = "\r\n".join(cleartext_lines)
    hashes: tuple[str, ...] = tuple(dict.fromkeys(sig.hash_algorithm.name for sig in signatures))

    logger.debug(
        "clear-signed message: %d line(s), %d signature(s), hash=%s",
        len(cleartext_lines),
        len(signatures),
        ",".join(hashes),
    )
    return ClearsignBlock(
        cleartext=cleartext.encode("utf-8"),
        signed_text=signed_text.encode("utf-8"),
        hash_algorithms=hashes,
        signature=armor.encode("ascii", errors="replace"),
        signatures=signatures,
    )


def _replay(head: bytes | str, stream: IO[bytes] | IO[str]) -> Iterator[bytes | str]:
    """Yield the lines of ``stream`` as if ``head`` had never been read from it."""
    rest_of_line = stream.readline()
    if isinstance(head, bytes):
        yield from io.BytesIO(head + rest_of_line)  # type: ignore[operator]
    else:
        yield from io.StringIO(head + rest_of_line, newline="\n")  # type: ignore[operator]
    yield from stream


def _as_bytes(data: bytes | bytearray | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def open_envelope(source: Source, trust: Trust | None = None) -> Envelope:
    """Detect and open an optional clear-sign envelope.

    Args:
        source (Source): ``str``, ``bytes``, a text/binary stream or an iterable of
            lines.
        trust (Trust | None): ``Verify(keyring)`` to check the signature;
            ``Unverified()`` (or ``None``) to skip verification.

    Returns:
        Envelope: The text to scan and the verified signer, if any.

    Raises:
        EnvelopeError: If the input looks armored but cannot be decoded.
        VerificationError: If verification was requested and failed.
        UnsignedDataError: If ``trust.require_signature`` is set and the input is unsigned.
    """
    trust = trust if trust is not None else Unverified()

    data: bytes | None = None
    body: Source
    if isinstance(source, (str, bytes, bytearray)):
        if isinstance(source, bytearray):
            source = bytes(source)
        body = source
        if is_clearsigned(source):
            data = _as_bytes(source)
    elif hasattr(source, "read"):
        stream = cast("IO[bytes] | IO[str]", source)
        head = stream.read(ARMOR_PEEK_SIZE)
        if is_clearsigned(head):
            data = _as_bytes(head) + _as_bytes(stream.read())
        body = _replay(head, stream)
    else:
        lines: Iterator[str | bytes] = iter(cast("Iterable[str | bytes]", source))
        first: str | bytes | None = next(lines, None)
        if first is None:
            body = []
        else:
            if is_clearsigned(first):
                data = _as_bytes(first) + b"".join(_as_bytes(ln) for ln in lines)
            body = itertools.chain([first], lines)

    if data is None:
        if isinstance(trust, Verify) and trust.require_signature:
            raise UnsignedDataError()
        logger.debug("input is not clear-signed; passing through")
        return Envelope(body=body)

    block: ClearsignBlock = decode_clearsign(data)

    if isinstance(trust, Unverified):
        logger.info("clear-signed input accepted without verification")
        return Envelope(body=block.cleartext, block=block)

    logger.debug("verifying signature(s) from key id(s) %s", ", ".join(block.key_ids))
    signer: SignerIdentity = trust.keyring.verify(block.signed_text, block.signature)
    logger.debug("verified signer %s", signer)
    return Envelope(body=block.cleartext, signer=signer, block=block)
