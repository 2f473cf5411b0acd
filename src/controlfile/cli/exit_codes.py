# topmark:header:start
#
#   project      : ControlFile
#   file         : exit_codes.py
#   file_relpath : src/controlfile/cli/exit_codes.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Standardized exit codes used by the ControlFile CLI.

Usage:
    ```python
    import subprocess
    from controlfile.cli.exit_codes import ExitCode

    result = subprocess.run(["controlfile", "decode", "--keyring", "trusted.gpg", "Release"])
    if result.returncode == ExitCode.VERIFICATION_ERROR:
        print("Untrusted or tampered file.")
    ```
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes returned by the ControlFile CLI.

    The data-related codes follow the BSD ``sysexits.h`` numbering range.
    """

    SUCCESS = 0
    FAILURE = 1
    USAGE_ERROR = 2
    SYNTAX_ERROR = 65
    ENVELOPE_ERROR = 66
    VERIFICATION_ERROR = 67
    CONFIG_ERROR = 78
