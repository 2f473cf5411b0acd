# topmark:header:start
#
#   project      : ControlFile
#   file         : keyring.py
#   file_relpath : src/controlfile/keyring.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Keyring collaborators used to verify clear-sign signatures.

ControlFile does not implement OpenPGP. Signature verification is delegated to
a trusted service behind the [`Keyring`][controlfile.keyring.Keyring] protocol.
[`GpgKeyring`][controlfile.keyring.GpgKeyring] drives the ``gpg`` executable
and reads its machine-readable status output.
"""

from __future__ import annotations

import os
import re
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from controlfile.config.logging import get_logger
from controlfile.constants import DEFAULT_GPG_BINARY
from controlfile.errors import VerificationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from controlfile.config.logging import ControlFileLogger

logger: ControlFileLogger = get_logger(__name__)

_GOODSIG_RE = re.compile(rb"^\[GNUPG:\] GOODSIG ([0-9A-F]+)\s+(.*)$", flags=re.M)
_VALIDSIG_RE = re.compile(rb"^\[GNUPG:\] VALIDSIG ([0-9A-F]+) ", flags=re.M)
_TRUST_RE = re.compile(rb"^\[GNUPG:\] TRUST_(FULLY|ULTIMATE)", flags=re.M)
_BADSIG_RE = re.compile(rb"^\[GNUPG:\] BADSIG ([0-9A-F]+)", flags=re.M)
_NO_PUBKEY_RE = re.compile(rb"^\[GNUPG:\] NO_PUBKEY ([0-9A-F]+)", flags=re.M)
_ERRSIG_RE = re.compile(rb"^\[GNUPG:\] ERRSIG ([0-9A-F]+)", flags=re.M)


@dataclass(frozen=True)
class SignerIdentity:
    """The key that produced a valid signature.

    Attributes:
        fingerprint (str): Primary fingerprint of the signing key (may be empty when
            the verifier does not report one).
        key_id (str): Long key id of the signing key.
        user_id (str): User id the verifier associated with the key.
        trusted (bool): Whether the verifier reports full or ultimate trust.
    """

    fingerprint: str
    key_id: str = ""
    user_id: str = ""
    trusted: bool = False


@runtime_checkable
class Keyring(Protocol):
    """A set of trusted public keys able to verify a detached signature."""

    def verify(self, signed_text: bytes, signature: bytes) -> SignerIdentity:
        """Verify ``signature`` over ``signed_text``.

        Args:
            signed_text (bytes): The exact bytes covered by the signature.
            signature (bytes): The ASCII-armored detached signature.

        Returns:
            SignerIdentity: The signer, when the signature is good.

        Raises:
            VerificationError: If the signature is bad or the signer unknown.
        """
        ...


def parse_gpg_status(status: bytes) -> SignerIdentity | None:
    """Extract the signer from ``gpg --status-fd`` output.

    Args:
        status (bytes): Raw status lines (``[GNUPG:] ...``).

    Returns:
        SignerIdentity | None: The signer when both GOODSIG and VALIDSIG are reported,
        otherwise ``None``.
    """
    good = _GOODSIG_RE.search(status)
    valid = _VALIDSIG_RE.search(status)
    if not (good and valid):
        return None
    return SignerIdentity(
        fingerprint=valid.group(1).decode(),
        key_id=good.group(1).decode(),
        user_id=good.group(2).decode("utf-8", errors="replace").strip(),
        trusted=_TRUST_RE.search(status) is not None,
    )


class GpgKeyring:
    """Keyring backed by the ``gpg`` executable.

    Attributes:
        keyrings (tuple[Path, ...]): Keyring files to verify against. When empty the
            user's default keyring is used.
        gpg_binary (str): Name or path of the ``gpg`` executable.
        homedir (Path | None): Optional GnuPG home directory.
    """

    def __init__(
        self,
        keyrings: Iterable[str | os.PathLike[str]] = (),
        *,
        gpg_binary: str = DEFAULT_GPG_BINARY,
        homedir: str | os.PathLike[str] | None = None,
    ) -> None:
        self.keyrings: tuple[Path, ...] = tuple(Path(k) for k in keyrings)
        self.gpg_binary: str = gpg_binary
        self.homedir: Path | None = Path(homedir) if homedir is not None else None

    def __repr__(self) -> str:
        return f"GpgKeyring(keyrings={[str(k) for k in self.keyrings]!r}, gpg_binary={self.gpg_binary!r})"

    def command(self, sigfile: str) -> list[str]:
        """Build the ``gpg`` command line verifying ``sigfile`` against stdin."""
        args: list[str] = [
            self.gpg_binary,
            "--batch",
            "--no-auto-key-retrieve",
            "--no-auto-check-trustdb",
            "--status-fd=1",
        ]
        if self.homedir is not None:
            args += ["--homedir", str(self.homedir)]
        if self.keyrings:
            args.append("--no-default-keyring")
            for keyring in self.keyrings:
                args += ["--keyring", str(keyring.resolve())]
        args += ["--verify", sigfile, "-"]
        return args

    def verify(self, signed_text: bytes, signature: bytes) -> SignerIdentity:
        """Verify a detached signature by running ``gpg --verify``.

        Args:
            signed_text (bytes): The exact bytes covered by the signature.
            signature (bytes): The ASCII-armored detached signature.

        Returns:
            SignerIdentity: The signer reported by ``gpg``.

        Raises:
            VerificationError: If ``gpg`` cannot be run, the signing key is not in the
                keyring, or the signature does not match.
        """
        with tempfile.TemporaryDirectory(suffix=".controlfile") as td:
            sigfile = os.path.join(td, "signature.asc")
            with open(sigfile, "wb") as fh:
                fh.write(signature)
            cmd: list[str] = self.command(sigfile)
            logger.debug("Running %s", " ".join(cmd))
            try:
                cp = subprocess.run(cmd, input=signed_text, capture_output=True, check=False)
            except OSError as e:
                raise VerificationError(f"Could not run {self.gpg_binary!r}: {e}") from e

        logger.debug("gpg exited with %d", cp.returncode)
        logger.trace("gpg status:\n%s", cp.stdout.decode("utf-8", errors="replace"))

        if (m := _NO_PUBKEY_RE.search(cp.stdout)) is not None:
            raise VerificationError(f"No public key for signer {m.group(1).decode()}")
        if (m := _BADSIG_RE.search(cp.stdout)) is not None:
            raise VerificationError(f"Bad signature from {m.group(1).decode()}")
        if (m := _ERRSIG_RE.search(cp.stdout)) is not None:
            raise VerificationError(f"Cannot check signature from {m.group(1).decode()}")

        signer: SignerIdentity | None = parse_gpg_status(cp.stdout)
        if cp.returncode != 0 or signer is None:
            detail: str = cp.stderr.decode("utf-8", errors="replace").strip()
            raise VerificationError(f"Failed to validate PGP signature: {detail or 'no valid signature'}")

        logger.info("Good signature from %s (%s)", signer.user_id, signer.fingerprint)
        return signer
