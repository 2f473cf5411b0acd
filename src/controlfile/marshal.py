# topmark:header:start
#
#   project      : ControlFile
#   file         : marshal.py
#   file_relpath : src/controlfile/marshal.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Structural mapper: render typed records as paragraph text.

For each field of the record's [`Schema`][controlfile.schema.Schema], in
declaration order, the mapper:

1. skips fields marked ``skip`` or ``embedded``;
2. follows one level of [`Ref`][controlfile.marshal.Ref] indirection;
3. renders the value: ``str`` verbatim, ``int`` in base 10, lists and tuples
   element by element joined with the field delimiter, and any other object
   through its [`Marshalable`][controlfile.marshal.Marshalable]
   ``render_control()`` method;
4. escapes the result (see [`controlfile.escaping`][controlfile.escaping]);
5. emits ``"<key>: <value>\\n"`` unless the escaped value is empty.

Rendering is fail-fast: the first unrenderable field raises
[`UnsupportedTypeError`][controlfile.errors.UnsupportedTypeError] and no text
is returned. The mapper does not separate paragraphs; use
[`render_many`][controlfile.marshal.render_many] for a stream of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar, runtime_checkable

from controlfile.config.logging import get_logger
from controlfile.errors import UnsupportedTypeError
from controlfile.escaping import escape
from controlfile.schema import schema_for

if TYPE_CHECKING:
    from collections.abc import Iterable

    from controlfile.config.logging import ControlFileLogger
    from controlfile.paragraph import Paragraph
    from controlfile.schema import FieldDescriptor, Schema

logger: ControlFileLogger = get_logger(__name__)

T = TypeVar("T")


@runtime_checkable
class Marshalable(Protocol):
    """A value that knows how to render itself as a paragraph value."""

    def render_control(self) -> str:
        """Return the (unescaped) paragraph value for this object."""
        ...


@dataclass(frozen=True)
class Ref(Generic[T]):
    """Explicit indirection to a value owned elsewhere.

    The mapper follows exactly one level: a ``Ref`` to a ``Ref`` is not renderable.
    """

    value: T | None


def _deref(value: object) -> object:
    return value.value if isinstance(value, Ref) else value


def render_value(value: object, descriptor: FieldDescriptor) -> str:
    """Render one field value, before escaping.

    Args:
        value (object): The (already dereferenced) value.
        descriptor (FieldDescriptor): The field being rendered; provides the delimiter
            and the name used in errors.

    Returns:
        str: The rendered value.

    Raises:
        UnsupportedTypeError: If the value (or a sequence element) cannot be rendered.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    # bool is an int subclass but has no base-10 paragraph form
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, (list, tuple)):
        return descriptor.delimiter.join(render_value(_deref(v), descriptor) for v in value)
    if isinstance(value, Marshalable):
        return value.render_control()
    raise UnsupportedTypeError(descriptor.name, type(value).__name__)


def render(record: object, schema: Schema | None = None) -> str:
    """Render ``record`` as one paragraph.

    Args:
        record (object): The record (or a `Ref` to it).
        schema (Schema | None): Field descriptors; defaults to the schema declared by
            the record's type (see [`schema_for`][controlfile.schema.schema_for]).

    Returns:
        str: ``key: value`` lines, each terminated by a newline; no trailing blank line.

    Raises:
        UnsupportedTypeError: If any field cannot be rendered. No partial text is returned.
    """
    record = _deref(record)
    if schema is None:
        schema = schema_for(type(record))

    lines: list[str] = []
    for descriptor in schema:
        if not descriptor.rendered:
            continue
        value: str = escape(render_value(_deref(descriptor.get(record)), descriptor))
        if value == "":
            logger.trace("field %s is empty; omitted", descriptor.name)
            continue
        lines.append(f"{descriptor.key}: {value}\n")

    logger.debug("rendered %s: %d field(s)", type(record).__name__, len(lines))
    return "".join(lines)


def render_many(records: Iterable[object], schema: Schema | None = None) -> str:
    """Render several records, separating paragraphs with one blank line.

    Args:
        records (Iterable[object]): Records to render.
        schema (Schema | None): Schema shared by all records, or ``None`` to use each
            record's declared schema.

    Returns:
        str: The rendered paragraphs.
    """
    return "\n".join(render(r, schema) for r in records)


def render_paragraph(paragraph: Paragraph) -> str:
    """Render a decoded `Paragraph` back to text.

    Each distinct key is written once, in first-encounter order, with its
    (last) value.

    Args:
        paragraph (Paragraph): The paragraph to render.

    Returns:
        str: ``key: value`` lines, each terminated by a newline.
    """
    return "".join(f"{key}: {escape(value)}\n" for key, value in paragraph.items())
