# topmark:header:start
#
#   project      : ControlFile
#   file         : test_keyring.py
#   file_relpath : tests/envelope/test_keyring.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for the gpg-backed keyring.

Most tests replace `subprocess.run`; the end-to-end tests run the real ``gpg``
and are skipped when it is not installed.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from controlfile.api import decode
from controlfile.envelope import Verify
from controlfile.errors import VerificationError
from controlfile.keyring import GpgKeyring, Keyring, SignerIdentity, parse_gpg_status
from tests.signing import FakeKeyring

if TYPE_CHECKING:
    from collections.abc import Iterator

GOOD_STATUS = (
    b"[GNUPG:] NEWSIG\n"
    b"[GNUPG:] KEY_CONSIDERED 0123456789ABCDEF0123456789ABCDEF01234567 0\n"
    b"[GNUPG:] SIG_ID abc 2025-01-01 1735689600\n"
    b"[GNUPG:] GOODSIG 89ABCDEF01234567 Alice Archive <alice@example.org>\n"
    b"[GNUPG:] VALIDSIG 0123456789ABCDEF0123456789ABCDEF01234567 2025-01-01 1735689600 0 4 0 22 8 00 "
    b"0123456789ABCDEF0123456789ABCDEF01234567\n"
    b"[GNUPG:] TRUST_ULTIMATE 0 pgp\n"
)


class _Recorder:
    """Replacement for `subprocess.run` returning a canned result."""

    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> None:
        self.result = subprocess.CompletedProcess(
            args=[], returncode=returncode, stdout=stdout, stderr=stderr
        )
        self.cmd: list[str] = []
        self.input: bytes | None = None
        self.signature: bytes | None = None

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        self.cmd = cmd
        self.input = kwargs.get("input")
        # The signature file only exists while gpg runs
        sigfile: str = cmd[cmd.index("--verify") + 1]
        self.signature = Path(sigfile).read_bytes()
        return self.result


def test_parse_gpg_status_good_signature() -> None:
    """GOODSIG and VALIDSIG together yield the signer."""
    signer = parse_gpg_status(GOOD_STATUS)
    assert signer == SignerIdentity(
        fingerprint="0123456789ABCDEF0123456789ABCDEF01234567",
        key_id="89ABCDEF01234567",
        user_id="Alice Archive <alice@example.org>",
        trusted=True,
    )


def test_parse_gpg_status_untrusted_key() -> None:
    """A good signature without a TRUST line is reported as untrusted."""
    status = b"\n".join(ln for ln in GOOD_STATUS.split(b"\n") if b"TRUST_" not in ln)
    signer = parse_gpg_status(status)
    assert signer is not None and signer.trusted is False


@pytest.mark.parametrize(
    "status",
    [b"", b"[GNUPG:] GOODSIG 89ABCDEF01234567 Alice\n", b"[GNUPG:] BADSIG 89ABCDEF01234567 Alice\n"],
)
def test_parse_gpg_status_incomplete(status: bytes) -> None:
    """Without both GOODSIG and VALIDSIG there is no signer."""
    assert parse_gpg_status(status) is None


def test_keyrings_satisfy_protocol() -> None:
    """Both the gpg keyring and the test double are `Keyring`s."""
    assert isinstance(GpgKeyring(), Keyring)
    assert isinstance(FakeKeyring(), Keyring)


def test_command_line(tmp_path: Path) -> None:
    """Keyring files replace the default keyring and are passed as absolute paths."""
    keyring = GpgKeyring([tmp_path / "archive.gpg"], gpg_binary="gpg2", homedir=tmp_path)
    cmd = keyring.command("/tmp/sig.asc")
    assert cmd[0] == "gpg2"
    assert "--batch" in cmd
    assert "--status-fd=1" in cmd
    assert cmd[cmd.index("--homedir") + 1] == str(tmp_path)
    assert "--no-default-keyring" in cmd
    assert cmd[cmd.index("--keyring") + 1] == str((tmp_path / "archive.gpg").resolve())
    assert cmd[-3:] == ["--verify", "/tmp/sig.asc", "-"]


def test_command_line_default_keyring() -> None:
    """Without keyring files the default keyring is kept."""
    cmd = GpgKeyring().command("sig.asc")
    assert "--no-default-keyring" not in cmd
    assert "--keyring" not in cmd
    assert "--homedir" not in cmd


def test_verify_good_signature(monkeypatch: pytest.MonkeyPatch) -> None:
    """The signed text goes to stdin and the signature to a temporary file."""
    recorder = _Recorder(stdout=GOOD_STATUS)
    monkeypatch.setattr(subprocess, "run", recorder)
    signer = GpgKeyring().verify(b"A: 1", b"-----BEGIN PGP SIGNATURE-----\n")
    assert signer.key_id == "89ABCDEF01234567"
    assert recorder.input == b"A: 1"
    assert recorder.signature == b"-----BEGIN PGP SIGNATURE-----\n"


@pytest.mark.parametrize(
    ("returncode", "stdout", "message"),
    [
        (2, b"[GNUPG:] NO_PUBKEY 89ABCDEF01234567\n", "No public key"),
        (1, b"[GNUPG:] BADSIG 89ABCDEF01234567 Alice\n", "Bad signature"),
        (2, b"[GNUPG:] ERRSIG 89ABCDEF01234567 22 8 00 1735689600 9 -\n", "Cannot check"),
        (2, b"", "Failed to validate"),
        (0, b"[GNUPG:] NEWSIG\n", "Failed to validate"),
    ],
    ids=["no-pubkey", "bad-signature", "error-signature", "gpg-error", "no-signer"],
)
def test_verify_failures(
    monkeypatch: pytest.MonkeyPatch, returncode: int, stdout: bytes, message: str
) -> None:
    """Every failure mode surfaces as `VerificationError`."""
    monkeypatch.setattr(subprocess, "run", _Recorder(returncode=returncode, stdout=stdout))
    with pytest.raises(VerificationError, match=message):
        GpgKeyring().verify(b"A: 1", b"sig")


def test_verify_missing_gpg(monkeypatch: pytest.MonkeyPatch) -> None:
    """A missing executable is a verification failure, not a crash."""

    def _missing(cmd: list[str], **kwargs: Any) -> None:
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(subprocess, "run", _missing)
    with pytest.raises(VerificationError, match="Could not run"):
        GpgKeyring(gpg_binary="no-such-gpg").verify(b"A: 1", b"sig")


requires_gpg: pytest.MarkDecorator = pytest.mark.skipif(
    shutil.which("gpg") is None, reason="gpg is not installed"
)

SIGNER_UID = "Test Signer <signer@example.org>"


@pytest.fixture
def gpg_home() -> Iterator[Path]:
    """A throwaway GnuPG home holding one ed25519 signing key."""
    # gpg-agent puts its sockets here; tmp_path can exceed the socket path limit
    home = Path(tempfile.mkdtemp(prefix="cf-gpg-", dir="/tmp"))
    home.chmod(0o700)
    _gpg(home, "--quick-gen-key", SIGNER_UID, "ed25519", "sign", "never")
    yield home
    if shutil.which("gpgconf") is not None:
        subprocess.run(
            ["gpgconf", "--homedir", str(home), "--kill", "all"], capture_output=True, check=False
        )
    shutil.rmtree(home, ignore_errors=True)


def _gpg(home: Path, *args: str, stdin: bytes | None = None) -> bytes:
    cmd: list[str] = [
        "gpg",
        "--batch",
        "--homedir",
        str(home),
        "--pinentry-mode",
        "loopback",
        "--passphrase",
        "",
        *args,
    ]
    return subprocess.run(cmd, input=stdin, capture_output=True, check=True).stdout


@requires_gpg
def test_gpg_clearsigned_message_verifies(gpg_home: Path) -> None:
    """A message clear-signed by gpg decodes and verifies against the exported key."""
    pubring = gpg_home / "pub.gpg"
    pubring.write_bytes(_gpg(gpg_home, "--export", SIGNER_UID))
    text = "Origin: Test  \n-Dashed: value\t\n\nPackage: hello\n"
    armored: bytes = _gpg(gpg_home, "--clearsign", stdin=text.encode())
    assert b"\n- -Dashed: value" in armored

    result = decode(armored, Verify(GpgKeyring([pubring], homedir=gpg_home)))
    assert [p.to_dict() for p in result.paragraphs] == [
        {"Origin": "Test", "-Dashed": "value"},
        {"Package": "hello"},
    ]
    assert result.signer is not None
    assert result.signer.user_id == SIGNER_UID
    assert len(result.signer.fingerprint) == 40


@requires_gpg
def test_gpg_rejects_tampered_message(gpg_home: Path) -> None:
    """Changing the cleartext after signing makes gpg report a bad signature."""
    pubring = gpg_home / "pub.gpg"
    pubring.write_bytes(_gpg(gpg_home, "--export", SIGNER_UID))
    armored: bytes = _gpg(gpg_home, "--clearsign", stdin=b"Package: hello\n")

    tampered: bytes = armored.replace(b"Package: hello", b"Package: hellp")
    with pytest.raises(VerificationError, match="Bad signature"):
        decode(tampered, Verify(GpgKeyring([pubring], homedir=gpg_home)))
