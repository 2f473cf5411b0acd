# topmark:header:start
#
#   project      : ControlFile
#   file         : paragraph.py
#   file_relpath : src/controlfile/paragraph.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Paragraph data model.

A [`Paragraph`][controlfile.paragraph.Paragraph] is one block of RFC2822-like
``key: value`` lines. It exposes two views of the block:

- ``values``: a mapping from key to value. When a key repeats inside the block
  the last value wins.
- ``order``: the keys in the order they were encountered. A repeated key appears
  once per occurrence.

Paragraphs are assembled by a mutable
[`ParagraphBuilder`][controlfile.paragraph.ParagraphBuilder] while a block is
scanned, then frozen and handed to the caller. They are never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping


@dataclass(frozen=True)
class Paragraph:
    """Immutable block of key/value pairs with encounter order.

    Attributes:
        values (Mapping[str, str]): Read-only mapping of key to (last) value.
        order (tuple[str, ...]): Keys in encounter order, duplicates included.
    """

    values: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    order: tuple[str, ...] = ()

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value for ``key`` or ``default`` when absent."""
        return self.values.get(key, default)

    def keys(self) -> list[str]:
        """Return the distinct keys in first-encounter order."""
        return list(dict.fromkeys(self.order))

    def items(self) -> list[tuple[str, str]]:
        """Return ``(key, value)`` pairs for distinct keys in first-encounter order."""
        return [(k, self.values[k]) for k in self.keys()]

    def to_dict(self) -> dict[str, str]:
        """Return a plain, ordered ``dict`` copy of the values."""
        return dict(self.items())


class ParagraphBuilder:
    """Mutable accumulator used while one block is being scanned."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._order: list[str] = []
        self._last_key: str | None = None

    @property
    def field_count(self) -> int:
        """Number of ``key: value`` lines seen so far (duplicates counted)."""
        return len(self._order)

    @property
    def last_key(self) -> str | None:
        """The most recently set key, target of continuation lines."""
        return self._last_key

    def set(self, key: str, value: str) -> None:
        """Set ``key`` (overwriting any earlier value) and record it in the order."""
        self._values[key] = value
        self._order.append(key)
        self._last_key = key

    def append_line(self, text: str) -> None:
        """Append ``text`` as a new line of the most recently set key's value."""
        if self._last_key is None:
            raise ValueError("no key to continue")
        self._values[self._last_key] += "\n" + text

    def build(self) -> Paragraph:
        """Freeze the accumulated fields into a `Paragraph`."""
        return Paragraph(values=MappingProxyType(dict(self._values)), order=tuple(self._order))


ParagraphSequence = list[Paragraph]
