# topmark:header:start
#
#   project      : ControlFile
#   file         : __main__.py
#   file_relpath : src/controlfile/__main__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Module entry point so that ``python -m controlfile`` runs the CLI.

Examples:
    Decode a signed file::

        python -m controlfile decode --keyring trusted.gpg InRelease
"""

from __future__ import annotations

from controlfile.cli.main import cli

if __name__ == "__main__":
    cli()
