# topmark:header:start
#
#   project      : ControlFile
#   file         : constants.py
#   file_relpath : src/controlfile/constants.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""ControlFile Constants."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

try:
    CONTROLFILE_VERSION: str = get_version("controlfile")
except PackageNotFoundError:  # running from a source checkout
    CONTROLFILE_VERSION = "0.0.0"

# Name of the project-local config file and the pyproject.toml table:
CONFIG_FILE_NAME: str = "controlfile.toml"
PYPROJECT_TABLE: tuple[str, str] = ("tool", "controlfile")

# Environment variable consulted by `controlfile.config.logging.setup_logging()`
LOG_LEVEL_ENV: str = "CONTROLFILE_LOG_LEVEL"

# Clear-sign envelope detection is a peek at exactly this many bytes:
ARMOR_PREFIX: bytes = b"-----BEGIN PGP "
ARMOR_PEEK_SIZE: int = len(ARMOR_PREFIX)

CLEARSIGN_BEGIN: str = "-----BEGIN PGP SIGNED MESSAGE-----"
SIGNATURE_BEGIN: str = "-----BEGIN PGP SIGNATURE-----"
SIGNATURE_END: str = "-----END PGP SIGNATURE-----"

# Characters trimmed around keys, values and continuation lines
NOOP_CHARS: str = " \n\r\t"

DEFAULT_DELIMITER: str = " "

DEFAULT_GPG_BINARY: str = "gpg"
