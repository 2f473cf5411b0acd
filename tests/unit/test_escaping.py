# topmark:header:start
#
#   project      : ControlFile
#   file         : test_escaping.py
#   file_relpath : tests/unit/test_escaping.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Unit tests for multi-line value escaping."""

from __future__ import annotations

import pytest

from controlfile.escaping import escape, unescape_continuation


@pytest.mark.parametrize(
    ("raw", "escaped"),
    [
        ("", ""),
        ("plain", "plain"),
        ("a\nb", "a\n b"),
        ("a\n\nb", "a\n .\n b"),
        ("a\n\n\nb", "a\n .\n .\n b"),
        ("a\n\n\n\nb", "a\n .\n .\n .\n b"),
    ],
    ids=["empty", "plain", "one-newline", "one-empty-line", "two-empty-lines", "three-empty-lines"],
)
def test_escape(raw: str, escaped: str) -> None:
    """Newlines gain a leading space and empty continuation lines get a dot."""
    assert escape(raw) == escaped


def test_escaped_value_has_no_blank_line() -> None:
    """An escaped value never contains a line that would end a paragraph."""
    escaped = escape("x\n\n\n\n\n\ny")
    assert "\n\n" not in escaped
    assert "\n \n" not in escaped


def test_escape_does_not_touch_text_without_newlines() -> None:
    """Dots and spaces in single-line values are preserved."""
    assert escape(" . ") == " . "


def test_unescape_continuation() -> None:
    """Only a lone dot stands for an empty line."""
    assert unescape_continuation(".") == ""
    assert unescape_continuation("..") == ".."
    assert unescape_continuation("text.") == "text."
