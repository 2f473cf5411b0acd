# topmark:header:start
#
#   project      : ControlFile
#   file         : signing.py
#   file_relpath : tests/signing.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Helpers to build clear-signed messages and stand-in keyrings.

Messages are signed with a throwaway PGPy key, so their signature blocks are
genuine OpenPGP packets. Verification is done by
[`FakeKeyring`][tests.signing.FakeKeyring], which needs no ``gpg`` installation.
"""

from __future__ import annotations

from functools import lru_cache

from pgpy import PGPUID, PGPKey, PGPMessage
from pgpy.constants import (
    CompressionAlgorithm,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)

from controlfile.errors import VerificationError
from controlfile.keyring import SignerIdentity

ALICE = SignerIdentity(
    fingerprint="0123456789ABCDEF0123456789ABCDEF01234567",
    key_id="89ABCDEF01234567",
    user_id="Alice Archive <alice@example.org>",
    trusted=True,
)


@lru_cache(maxsize=None)
def signing_key() -> PGPKey:
    """Return an RSA signing key, generated once per test session."""
    key = PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    uid = PGPUID.new("Alice Archive", email="alice@example.org")
    key.add_uid(
        uid,
        usage={KeyFlags.Sign},
        hashes=[HashAlgorithm.SHA256, HashAlgorithm.SHA512],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.Uncompressed],
    )
    return key


def sign_cleartext(text: str, *hash_names: str) -> PGPMessage:
    """Clear-sign ``text`` once per hash algorithm (SHA256 when none is given)."""
    message = PGPMessage.new(text, cleartext=True)
    for name in hash_names or ("SHA256",):
        message |= signing_key().sign(message, hash=HashAlgorithm[name])
    return message


def make_clearsigned(text: str, *, hash_name: str = "SHA256") -> str:
    """Wrap ``text`` into a clear-signed message.

    PGPy dash-escapes lines starting with ``-`` and keeps trailing whitespace,
    exactly as found in ``text``.

    Args:
        text (str): Newline-terminated cleartext.
        hash_name (str): Hash algorithm of the signature.

    Returns:
        str: The armored message.
    """
    return str(sign_cleartext(text.removesuffix("\n"), hash_name))


class FakeKeyring:
    """Keyring stand-in: accepts every signature for a fixed signer, or rejects all."""

    def __init__(self, signer: SignerIdentity | None = None) -> None:
        self.signer: SignerIdentity | None = signer
        self.calls: list[tuple[bytes, bytes]] = []

    def verify(self, signed_text: bytes, signature: bytes) -> SignerIdentity:
        """Record the call, then return the signer or raise `VerificationError`."""
        self.calls.append((signed_text, signature))
        if self.signer is None:
            raise VerificationError("No public key for signer 89ABCDEF01234567")
        return self.signer
