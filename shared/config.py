"""
DexDeps Configuration Management
=================================

Dataclass-based configuration with TOML persistence.  Settings are read
from ``config.toml`` in the project root (or an explicit path); missing
keys fall back to the dataclass defaults and unknown keys are ignored.

Example ``config.toml``::

    [global]
    log_level = "DEBUG"
    log_file = "logs/dexdeps.log"
    log_json = true

    [scan]
    scope = "external"
    fail_fast = true

References:
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Logging settings shared by every DexDeps component."""

    log_level: str = "INFO"
    log_file: str | None = None
    log_json: bool = False
    debug: bool = False


@dataclass(frozen=False, slots=True)
class ScanConfig:
    """Settings for reference extraction.

    ``scope`` is one of ``"all"``, ``"internal"``, ``"external"``.  With
    ``fail_fast`` a malformed DEX image aborts the whole container
    instead of being recorded as a failed source.
    """

    scope: str = "all"
    max_file_size: int = 268_435_456  # 256 MiB
    max_dex_entries: int = 100
    fail_fast: bool = False
    show_members: bool = True


@dataclass(frozen=False, slots=True)
class DepsConfig:
    """Top-level configuration.

    Usage:
        >>> config = DepsConfig.load()                 # from default path
        >>> config = DepsConfig.load("custom.toml")    # from custom path
        >>> config.scan.scope
        'all'
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> DepsConfig:
        """Load configuration from a TOML file.

        Args:
            path: TOML file.  Defaults to ``<project_root>/config.toml``.

        Raises:
            FileNotFoundError: *path* was given explicitly and does not exist.
            tomllib.TOMLDecodeError: The file is not valid TOML.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            scan=cls._build_section(ScanConfig, raw.get("scan", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def _build_section(section_cls: type, data: dict[str, Any]) -> Any:
        """Instantiate *section_cls* from the keys it declares."""
        valid_keys = {f.name for f in section_cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        return section_cls(**{k: v for k, v in data.items() if k in valid_keys})
