# topmark:header:start
#
#   project      : ControlFile
#   file         : __init__.py
#   file_relpath : src/controlfile/config/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""ControlFile configuration: immutable `Config`, mutable builder, logging setup."""

from __future__ import annotations

from controlfile.config.model import Config, MutableConfig, load_config

__all__: list[str] = [
    "Config",
    "MutableConfig",
    "load_config",
]
