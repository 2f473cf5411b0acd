# topmark:header:start
#
#   project      : ControlFile
#   file         : model.py
#   file_relpath : src/controlfile/config/model.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Configuration model and merge policy.

This module defines:
    - `Config`: an immutable, runtime snapshot used by the decode pipeline.
    - `MutableConfig`: a mutable builder used while loading/merging; it can be
      frozen into `Config` and thawed back for edits.

Layering (later wins):
    1. defaults,
    2. ``[tool.controlfile]`` in ``pyproject.toml`` or a ``controlfile.toml`` file,
    3. CLI flags.

Path semantics:
    - Keyring paths declared in a config file are resolved against that file's directory.
    - CLI keyring paths are resolved against the invocation CWD.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from controlfile.config.io import (
    get_bool_value_or_none,
    get_list_value,
    get_string_value_or_none,
    get_table_value,
    load_toml_dict,
    to_toml,
)
from controlfile.config.logging import get_logger
from controlfile.constants import CONFIG_FILE_NAME, DEFAULT_GPG_BINARY, PYPROJECT_TABLE
from controlfile.envelope import Unverified, Verify
from controlfile.keyring import GpgKeyring

if TYPE_CHECKING:
    from collections.abc import Mapping

    from controlfile.config.io import TomlTable
    from controlfile.config.logging import ControlFileLogger
    from controlfile.envelope import Trust

logger: ControlFileLogger = get_logger(__name__)


@dataclass(frozen=True)
class Config:
    """Immutable runtime configuration.

    Attributes:
        keyrings (tuple[Path, ...]): Keyring files; when non-empty, signed input is verified.
        gpg_binary (str): The ``gpg`` executable used for verification.
        homedir (Path | None): Optional GnuPG home directory.
        require_signature (bool): Reject unsigned input.
        partial (bool): Keep paragraphs decoded before a syntax error.
        config_files (tuple[Path, ...]): Files this configuration was loaded from.
    """

    keyrings: tuple[Path, ...] = ()
    gpg_binary: str = DEFAULT_GPG_BINARY
    homedir: Path | None = None
    require_signature: bool = False
    partial: bool = False
    config_files: tuple[Path, ...] = ()

    @property
    def verifies(self) -> bool:
        """Whether signed input will be verified."""
        return bool(self.keyrings)

    def trust(self) -> Trust:
        """Build the trust mode for the envelope.

        Returns:
            Trust: ``Verify(GpgKeyring(...))`` when keyrings are configured or a
            signature is required, otherwise ``Unverified()``.
        """
        if not self.keyrings and not self.require_signature:
            return Unverified()
        keyring = GpgKeyring(self.keyrings, gpg_binary=self.gpg_binary, homedir=self.homedir)
        return Verify(keyring, require_signature=self.require_signature)

    def to_toml_dict(self) -> TomlTable:
        """Return this configuration as a ``[controlfile]``-style TOML table."""
        table: TomlTable = {
            "keyrings": [str(k) for k in self.keyrings],
            "gpg_binary": self.gpg_binary,
            "require_signature": self.require_signature,
            "partial": self.partial,
        }
        if self.homedir is not None:
            table["homedir"] = str(self.homedir)
        return table

    def to_toml(self) -> str:
        """Serialize this configuration as TOML."""
        return to_toml(self.to_toml_dict())

    def thaw(self) -> MutableConfig:
        """Return a mutable copy of this frozen config."""
        return MutableConfig(
            keyrings=list(self.keyrings),
            gpg_binary=self.gpg_binary,
            homedir=self.homedir,
            require_signature=self.require_signature,
            partial=self.partial,
            config_files=list(self.config_files),
        )


@dataclass
class MutableConfig:
    """Mutable configuration builder.

    ``None`` means "not set at this layer" so that merging keeps the lower layer's value.
    """

    keyrings: list[Path] = field(default_factory=list)
    gpg_binary: str | None = None
    homedir: Path | None = None
    require_signature: bool | None = None
    partial: bool | None = None
    config_files: list[Path] = field(default_factory=list)

    def freeze(self) -> Config:
        """Freeze this builder into an immutable `Config`, applying defaults."""
        return Config(
            keyrings=tuple(self.keyrings),
            gpg_binary=self.gpg_binary or DEFAULT_GPG_BINARY,
            homedir=self.homedir,
            require_signature=bool(self.require_signature),
            partial=bool(self.partial),
            config_files=tuple(self.config_files),
        )

    @classmethod
    def from_toml_dict(cls, table: TomlTable, *, base_dir: Path | None = None) -> MutableConfig:
        """Build a draft from a ``controlfile`` TOML table.

        Args:
            table (TomlTable): The ``[tool.controlfile]`` table or a ``controlfile.toml`` document.
            base_dir (Path | None): Directory relative keyring paths are resolved against.

        Returns:
            MutableConfig: The draft.
        """
        base: Path = base_dir or Path.cwd()
        homedir_raw: str | None = get_string_value_or_none(table, "homedir")
        unknown: set[str] = set(table) - {
            "keyrings",
            "gpg_binary",
            "homedir",
            "require_signature",
            "partial",
        }
        for key in sorted(unknown):
            logger.warning("Unknown configuration key '%s'; ignoring", key)
        return cls(
            keyrings=[base / p for p in get_list_value(table, "keyrings")],
            gpg_binary=get_string_value_or_none(table, "gpg_binary"),
            homedir=base / homedir_raw if homedir_raw else None,
            require_signature=get_bool_value_or_none(table, "require_signature"),
            partial=get_bool_value_or_none(table, "partial"),
        )

    @classmethod
    def from_toml_file(cls, path: Path) -> MutableConfig | None:
        """Load configuration from a single TOML file.

        Supports both ``controlfile.toml`` and ``pyproject.toml`` (``[tool.controlfile]``).

        Args:
            path (Path): Path to the TOML file.

        Returns:
            MutableConfig | None: The draft, or ``None`` when a ``pyproject.toml`` has
            no ``[tool.controlfile]`` table.
        """
        logger.debug("Creating MutableConfig from TOML config: %s", path)
        toml_data: TomlTable = load_toml_dict(path)

        if path.name == "pyproject.toml":
            toml_data = get_table_value(toml_data, *PYPROJECT_TABLE)
            if not toml_data:
                logger.debug("[tool.controlfile] section missing in %s", path)
                return None

        draft: MutableConfig = cls.from_toml_dict(toml_data, base_dir=path.parent.resolve())
        draft.config_files = [path]
        return draft

    @classmethod
    def discover(cls, start: Path) -> Path | None:
        """Return the nearest ``controlfile.toml`` or ``pyproject.toml`` (with a
        ``[tool.controlfile]`` table) found by walking upward from ``start``."""
        start = start.resolve()
        for directory in (start, *start.parents):
            candidate: Path = directory / CONFIG_FILE_NAME
            if candidate.is_file():
                return candidate
            pyproject: Path = directory / "pyproject.toml"
            if pyproject.is_file() and get_table_value(load_toml_dict(pyproject), *PYPROJECT_TABLE):
                return pyproject
        return None

    def merge_with(self, other: MutableConfig) -> MutableConfig:
        """Return a new draft where values set in ``other`` override this draft."""
        return MutableConfig(
            keyrings=other.keyrings or self.keyrings,
            gpg_binary=other.gpg_binary if other.gpg_binary is not None else self.gpg_binary,
            homedir=other.homedir if other.homedir is not None else self.homedir,
            require_signature=other.require_signature
            if other.require_signature is not None
            else self.require_signature,
            partial=other.partial if other.partial is not None else self.partial,
            config_files=self.config_files + other.config_files,
        )

    def apply_cli_args(self, args: Mapping[str, Any]) -> MutableConfig:
        """Override this draft with CLI arguments (``None``/empty means not given)."""
        cli = MutableConfig(
            keyrings=[Path(p).resolve() for p in args.get("keyrings") or ()],
            gpg_binary=args.get("gpg_binary"),
            homedir=Path(args["homedir"]).resolve() if args.get("homedir") else None,
            require_signature=args.get("require_signature"),
            partial=args.get("partial"),
        )
        return self.merge_with(cli)


def load_config(
    config_file: Path | None = None,
    *,
    cli_args: Mapping[str, Any] | None = None,
    discover_from: Path | None = None,
) -> Config:
    """Resolve the effective configuration.

    Args:
        config_file (Path | None): Explicit config file; disables discovery.
        cli_args (Mapping[str, Any] | None): CLI overrides.
        discover_from (Path | None): Directory to start discovery from; discovery is
            skipped when ``None`` and no ``config_file`` is given.

    Returns:
        Config: The frozen configuration.
    """
    draft = MutableConfig()
    path: Path | None = config_file
    if path is None and discover_from is not None:
        path = MutableConfig.discover(discover_from)
    if path is not None:
        loaded: MutableConfig | None = MutableConfig.from_toml_file(path)
        if loaded is not None:
            draft = draft.merge_with(loaded)
    if cli_args:
        draft = draft.apply_cli_args(cli_args)
    config: Config = draft.freeze()
    logger.debug("Effective config: %s", config)
    return config
