# topmark:header:start
#
#   project      : ControlFile
#   file         : io.py
#   file_relpath : src/controlfile/config/io.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Lightweight TOML I/O helpers for ControlFile configuration.

Reading uses ``toml``; writing uses ``tomlkit`` so that dumped configuration
keeps a stable, readable layout. The helpers are pure: they never mutate
configuration objects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeGuard, cast

import toml
import tomlkit

from controlfile.config.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from controlfile.config.logging import ControlFileLogger

logger: ControlFileLogger = get_logger(__name__)

TomlTable = dict[str, Any]


def is_toml_table(val: Any) -> TypeGuard[TomlTable]:
    """Type guard for a TOML table-like mapping."""
    return isinstance(val, dict)


def get_table_value(table: TomlTable, *keys: str) -> TomlTable:
    """Return the nested subtable at ``keys`` or an empty dict.

    Args:
        table (TomlTable): Parsed TOML document or table.
        *keys (str): Path of table names, e.g. ``("tool", "controlfile")``.

    Returns:
        TomlTable: The subtable, or ``{}`` when any segment is missing or not a table.
    """
    current: Any = table
    for key in keys:
        current = current.get(key) if is_toml_table(current) else None
    return current if is_toml_table(current) else {}


def get_string_value_or_none(table: TomlTable, key: str) -> str | None:
    """Return ``table[key]`` when it is a string, otherwise ``None``."""
    val = table.get(key)
    if val is None:
        return None
    if not isinstance(val, str):
        logger.warning("Expected a string for '%s', got %r; ignoring", key, val)
        return None
    return val


def get_bool_value_or_none(table: TomlTable, key: str) -> bool | None:
    """Return ``table[key]`` when it is a boolean, otherwise ``None``."""
    val = table.get(key)
    if val is None:
        return None
    if not isinstance(val, bool):
        logger.warning("Expected a boolean for '%s', got %r; ignoring", key, val)
        return None
    return val


def get_list_value(table: TomlTable, key: str) -> list[str]:
    """Return ``table[key]`` as a list of strings; a bare string becomes a one-item list."""
    val = table.get(key)
    if val is None:
        return []
    if isinstance(val, str):
        return [val]
    if isinstance(val, list):
        items = cast("list[Any]", val)
        return [str(v) for v in items if isinstance(v, str)]
    logger.warning("Expected a list of strings for '%s', got %r; ignoring", key, val)
    return []


def load_toml_dict(path: Path) -> TomlTable:
    """Load and parse a TOML file from the filesystem.

    Args:
        path (Path): Path to a TOML document (``controlfile.toml`` or ``pyproject.toml``).

    Returns:
        TomlTable: The parsed TOML content.

    Raises:
        OSError: If the file cannot be read.
        toml.TomlDecodeError: If the file is not valid TOML.
    """
    try:
        return toml.load(path)
    except OSError as e:
        logger.error("Error loading TOML from %s: %s", path, e)
        raise
    except toml.TomlDecodeError as e:
        logger.error("Error decoding TOML from %s: %s", path, e)
        raise


def to_toml(toml_dict: TomlTable) -> str:
    """Serialize a TOML mapping to a string.

    Args:
        toml_dict (TomlTable): The table to serialize.

    Returns:
        str: The TOML document.
    """
    return tomlkit.dumps(toml_dict)
