# topmark:header:start
#
#   project      : ControlFile
#   file         : escaping.py
#   file_relpath : src/controlfile/escaping.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

r"""Value escaping for multi-line paragraph values.

Embedded newlines become continuation lines (newline followed by one space).
An empty continuation line would read as the blank line that terminates a
paragraph, so it is dot-stuffed: ``"\n \n"`` becomes ``"\n .\n"``. The scanner
decodes a lone ``.`` continuation back to an empty line.
"""

from __future__ import annotations

DOT: str = "."


def escape(text: str) -> str:
    r"""Escape ``text`` so it survives as a paragraph value.

    Args:
        text (str): Raw, possibly multi-line value.

    Returns:
        str: The value with every ``"\n"`` turned into ``"\n "`` and every
        empty continuation line stuffed with a ``.``.
    """
    out = text.replace("\n", "\n ")
    # Overlapping matches ("\n \n \n") need a second pass; str.replace does not rescan.
    while "\n \n" in out:
        out = out.replace("\n \n", "\n .\n")
    return out


def unescape_continuation(remainder: str) -> str:
    """Decode one trimmed continuation line; a lone ``.`` stands for an empty line."""
    return "" if remainder == DOT else remainder
