# topmark:header:start
#
#   project      : ControlFile
#   file         : schema.py
#   file_relpath : src/controlfile/schema.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Record schemas for the structural mapper.

A [`Schema`][controlfile.schema.Schema] is the ordered list of
[`FieldDescriptor`][controlfile.schema.FieldDescriptor] entries for one record
type. It is declared once per type and only read at render time.

There are two ways to declare one:

- Annotate a dataclass and tune individual fields with
  [`control_field`][controlfile.schema.control_field]; the schema is derived
  from the dataclass fields, in declaration order, and cached per type.
- Attach an explicit schema as the ``__control_schema__`` class attribute (or
  pass one to the mapper), built from [`describe`][controlfile.schema.describe]
  entries. Useful for classes that are not dataclasses.

Example:
    ```python
    @dataclass
    class Source:
        name: str = control_field(key="Source")
        binaries: list[str] = control_field(key="Binary", delimiter=", ")
        cache: dict[str, str] = control_field(skip=True, default_factory=dict)
    ```
"""

from __future__ import annotations

import dataclasses
import functools
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from controlfile.constants import DEFAULT_DELIMITER
from controlfile.errors import UnsupportedTypeError

if TYPE_CHECKING:
    from collections.abc import Iterator

# Key under which control options are stored in dataclass field metadata
METADATA_KEY: Final[str] = "controlfile"

# A key override of "-" skips the field
SKIP_KEY: Final[str] = "-"


@dataclass(frozen=True)
class FieldOptions:
    """Per-field options stored in dataclass field metadata."""

    key: str | None = None
    skip: bool = False
    delimiter: str = DEFAULT_DELIMITER
    embedded: bool = False


@dataclass(frozen=True)
class FieldDescriptor:
    """How one record field maps to a paragraph line.

    Attributes:
        name (str): Attribute name used to read the value from the record.
        key (str): Paragraph key (explicit override or the field name).
        skip (bool): Never render this field.
        delimiter (str): Separator used to join sequence values.
        embedded (bool): Transparent composition; the field contributes no key.
    """

    name: str
    key: str
    skip: bool = False
    delimiter: str = DEFAULT_DELIMITER
    embedded: bool = False

    @property
    def rendered(self) -> bool:
        """Whether the mapper emits a line for this field at all."""
        return not (self.skip or self.embedded)

    def get(self, record: object) -> object:
        """Read this field's value from ``record``."""
        return getattr(record, self.name)


@dataclass(frozen=True)
class Schema:
    """Ordered field descriptors for one record type."""

    fields: tuple[FieldDescriptor, ...]

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def keys(self) -> list[str]:
        """Return the paragraph keys this schema can emit, in order."""
        return [f.key for f in self.fields if f.rendered]


def control_field(
    *,
    key: str | None = None,
    skip: bool = False,
    delimiter: str = DEFAULT_DELIMITER,
    embedded: bool = False,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with control paragraph options.

    Args:
        key (str | None): Paragraph key; defaults to the field name. ``"-"`` skips the field.
        skip (bool): Never render this field.
        delimiter (str): Separator used to join sequence values.
        embedded (bool): Mark the field as a transparent composition that emits no key.
        **kwargs (Any): Forwarded to `dataclasses.field` (``default``, ``default_factory``...).

    Returns:
        Any: A `dataclasses.Field` carrying the options in its metadata.
    """
    metadata: dict[str, Any] = dict(kwargs.pop("metadata", None) or {})
    metadata[METADATA_KEY] = FieldOptions(key=key, skip=skip, delimiter=delimiter, embedded=embedded)
    return dataclasses.field(metadata=metadata, **kwargs)


def describe(
    name: str,
    key: str | None = None,
    *,
    skip: bool = False,
    delimiter: str = DEFAULT_DELIMITER,
    embedded: bool = False,
) -> FieldDescriptor:
    """Build a `FieldDescriptor`, resolving the key the same way dataclass fields do."""
    skip = skip or key == SKIP_KEY
    return FieldDescriptor(
        name=name,
        key=name if key in (None, "", SKIP_KEY) else key,
        skip=skip,
        delimiter=delimiter,
        embedded=embedded,
    )


@functools.lru_cache(maxsize=None)
def schema_for(record_type: type) -> Schema:
    """Return the schema declared for ``record_type``.

    Args:
        record_type (type): A dataclass, or a class with a ``__control_schema__`` attribute.

    Returns:
        Schema: The cached schema for the type.

    Raises:
        UnsupportedTypeError: If ``record_type`` declares no schema.
    """
    explicit = getattr(record_type, "__control_schema__", None)
    if isinstance(explicit, Schema):
        return explicit

    if not dataclasses.is_dataclass(record_type):
        raise UnsupportedTypeError("<record>", record_type.__name__)

    descriptors: list[FieldDescriptor] = []
    for f in dataclasses.fields(record_type):
        opts: FieldOptions = f.metadata.get(METADATA_KEY, FieldOptions())
        descriptors.append(
            describe(
                f.name,
                opts.key,
                skip=opts.skip,
                delimiter=opts.delimiter,
                embedded=opts.embedded,
            )
        )
    return Schema(fields=tuple(descriptors))
