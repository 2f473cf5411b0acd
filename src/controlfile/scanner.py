# topmark:header:start
#
#   project      : ControlFile
#   file         : scanner.py
#   file_relpath : src/controlfile/scanner.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

r"""Paragraph scanner: turns a character stream into `Paragraph` records.

The scanner reads one line at a time (the line keeps its terminator) and
classifies it, in priority order:

1. ``BLANK``: the line is exactly a line terminator. Closes the current
   paragraph when it holds at least one field.
2. ``COMMENT``: after left-trimming space/tab/CR/LF the line starts with ``#``.
   Discarded, even where it would otherwise be a continuation line.
3. ``CONTINUATION``: the line starts with a space. The trimmed remainder is
   appended as a new line to the most recently set key (a lone ``.`` stands for
   an empty line).
4. ``FIELD``: the line contains a colon. Split at the first colon, both sides
   trimmed; the value overwrites any earlier one and the key is appended to the
   paragraph order.
5. ``INVALID``: anything else. Raises
   [`ParagraphSyntaxError`][controlfile.errors.ParagraphSyntaxError].

End of stream closes a pending paragraph; no trailing blank line is required.

Two entry points are provided:

- [`iter_paragraphs`][controlfile.scanner.iter_paragraphs] yields paragraphs as
  they complete; on a syntax error the caller keeps what was already yielded.
- [`parse_paragraphs`][controlfile.scanner.parse_paragraphs] is all-or-nothing.
"""

from __future__ import annotations

import io
from collections.abc import Iterable
from enum import Enum
from typing import IO, TYPE_CHECKING, Union

from controlfile.config.logging import get_logger
from controlfile.constants import NOOP_CHARS
from controlfile.errors import ParagraphSyntaxError
from controlfile.escaping import unescape_continuation
from controlfile.paragraph import ParagraphBuilder

if TYPE_CHECKING:
    from collections.abc import Iterator

    from controlfile.config.logging import ControlFileLogger
    from controlfile.paragraph import Paragraph, ParagraphSequence

logger: ControlFileLogger = get_logger(__name__)

Source = Union[str, bytes, bytearray, IO[str], IO[bytes], Iterable[str], Iterable[bytes]]

_LINE_TERMINATORS: tuple[str, ...] = ("\n", "\r\n")


class ScanState(Enum):
    """States of the scanner."""

    AWAITING = "awaiting"
    ACCUMULATING = "accumulating"
    DONE = "done"


class LineClass(Enum):
    """Classification of a single raw line."""

    BLANK = "blank"
    COMMENT = "comment"
    CONTINUATION = "continuation"
    FIELD = "field"
    INVALID = "invalid"


def classify_line(line: str) -> LineClass:
    """Classify one raw line (terminator included) by the scanner's priority rules.

    Args:
        line (str): The raw line.

    Returns:
        LineClass: The line class.
    """
    if line in _LINE_TERMINATORS:
        return LineClass.BLANK
    if line.lstrip(NOOP_CHARS).startswith("#"):
        return LineClass.COMMENT
    if line.startswith(" "):
        return LineClass.CONTINUATION
    if ":" in line:
        return LineClass.FIELD
    return LineClass.INVALID


def split_field(line: str) -> tuple[str, str]:
    """Split a ``key: value`` line at its first colon and trim both sides."""
    key, _, value = line.partition(":")
    return key.strip(NOOP_CHARS), value.strip(NOOP_CHARS)


def _iter_raw_lines(source: Source) -> Iterator[str | bytes]:
    if isinstance(source, str):
        # newline="\n": split on LF only, never translate CR
        yield from io.StringIO(source, newline="\n")
    elif isinstance(source, (bytes, bytearray)):
        yield from io.BytesIO(bytes(source))
    else:
        yield from source


class ParagraphScanner:
    """Incremental paragraph scanner over a text or byte stream.

    Iterating the scanner yields one [`Paragraph`][controlfile.paragraph.Paragraph]
    per block. Byte input is decoded as UTF-8, line by line.

    Attributes:
        state (ScanState): Current state of the scanner.
        lineno (int): Number of lines consumed so far.
    """

    def __init__(self, source: Source) -> None:
        self._lines: Iterator[str | bytes] = _iter_raw_lines(source)
        self.state: ScanState = ScanState.AWAITING
        self.lineno: int = 0

    def __iter__(self) -> Iterator[Paragraph]:
        return self

    def __next__(self) -> Paragraph:
        paragraph: Paragraph | None = self.next_paragraph()
        if paragraph is None:
            raise StopIteration
        return paragraph

    def _decode(self, raw: str | bytes) -> str:
        if isinstance(raw, str):
            return raw
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            self.state = ScanState.DONE
            raise ParagraphSyntaxError(
                raw.decode("utf-8", errors="replace"), self.lineno, f"is not valid UTF-8 ({e.reason})"
            ) from e

    def next_paragraph(self) -> Paragraph | None:
        """Scan and return the next paragraph, or ``None`` at end of stream.

        Returns:
            Paragraph | None: The next completed paragraph.

        Raises:
            ParagraphSyntaxError: If a line matches none of the line classes, or a
                continuation line has no field to continue. The scanner is done afterwards.
        """
        if self.state is ScanState.DONE:
            return None

        builder = ParagraphBuilder()

        for raw in self._lines:
            self.lineno += 1
            line: str = self._decode(raw)
            kind: LineClass = classify_line(line)
            logger.trace("line %d: %s %r", self.lineno, kind.value, line)

            if kind is LineClass.BLANK:
                if builder.field_count:
                    self.state = ScanState.AWAITING
                    return builder.build()
                continue

            if kind is LineClass.COMMENT:
                continue

            if kind is LineClass.CONTINUATION:
                if builder.last_key is None:
                    self.state = ScanState.DONE
                    raise ParagraphSyntaxError(line, self.lineno, "continues no field")
                builder.append_line(unescape_continuation(line[1:].strip(NOOP_CHARS)))
                continue

            if kind is LineClass.FIELD:
                key, value = split_field(line)
                builder.set(key, value)
                self.state = ScanState.ACCUMULATING
                continue

            self.state = ScanState.DONE
            logger.debug("syntax error at line %d: %r", self.lineno, line)
            raise ParagraphSyntaxError(line, self.lineno)

        # End of stream is a valid paragraph terminator
        self.state = ScanState.DONE
        if builder.field_count:
            return builder.build()
        return None


def parse_paragraph(source: Source | ParagraphScanner) -> Paragraph | None:
    """Read exactly one paragraph.

    Args:
        source (Source | ParagraphScanner): Input, or a scanner to continue from.

    Returns:
        Paragraph | None: The first (next) paragraph, or ``None`` when the input is exhausted.
    """
    scanner = source if isinstance(source, ParagraphScanner) else ParagraphScanner(source)
    return scanner.next_paragraph()


def iter_paragraphs(source: Source) -> Iterator[Paragraph]:
    """Yield paragraphs as they complete.

    Paragraphs yielded before a syntax error remain valid; the error is raised
    when the offending line is reached.

    Args:
        source (Source): ``str``, ``bytes`` or a text/binary stream.

    Yields:
        Paragraph: One paragraph per block.
    """
    yield from ParagraphScanner(source)


def parse_paragraphs(source: Source) -> ParagraphSequence:
    """Parse every paragraph in ``source``; all-or-nothing.

    Args:
        source (Source): ``str``, ``bytes`` or a text/binary stream.

    Returns:
        ParagraphSequence: All paragraphs in input order.

    Raises:
        ParagraphSyntaxError: On the first offending line; no paragraphs are returned.
    """
    paragraphs: ParagraphSequence = list(ParagraphScanner(source))
    logger.debug("parsed %d paragraph(s)", len(paragraphs))
    return paragraphs
