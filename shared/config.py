"""
elfmap Configuration Management
================================

Dataclass-based configuration with TOML persistence.

Example ``elfmap.toml``::

    [global]
    log_level = "DEBUG"
    log_file = "logs/elfmap.log"
    log_json = true

    [parser]
    affected_sections = [".text", ".data"]
    cstring_limit = 256

References:
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "elfmap.toml"


@dataclass(frozen=False, slots=True)
class ParserConfig:
    """Settings for the ELF decode pipeline and its display.

    ``affected_sections`` lists the sections whose ``.rel``/``.rela``
    companions are decoded.  A single name given as a bare string is
    treated as a one-element list.
    """

    affected_sections: list[str] = field(default_factory=lambda: [".text"])
    cstring_limit: int = 256
    max_file_size: int = 268_435_456  # 256 MiB
    max_members_displayed: int = 200

    def __post_init__(self) -> None:
        sections = self.affected_sections
        if isinstance(sections, str):
            sections = [sections]
        if not isinstance(sections, (list, tuple)) or not all(
            isinstance(name, str) for name in sections
        ):
            raise ValueError(
                f"parser.affected_sections must be a list of section names, got {sections!r}"
            )
        self.affected_sections = list(sections)


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Logging and general settings."""

    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False
    debug: bool = False
    version: str = "1.0.0"


@dataclass(frozen=False, slots=True)
class ElfmapConfig:
    """Complete elfmap configuration.

    Usage:
        >>> config = ElfmapConfig.load()                 # default path
        >>> config = ElfmapConfig.load("custom.toml")    # custom path
        >>> config.parser.affected_sections
        ['.text']
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> ElfmapConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``elfmap.toml`` in the
        project root and falls back to defaults when it is absent.  Missing
        keys use dataclass defaults.

        Raises:
            FileNotFoundError: An explicitly provided *path* does not exist.
            ValueError: The file is not valid TOML or a value has the wrong type.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            parser=cls._build_section(ParserConfig, raw.get("parser", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate dataclass *cls* from the keys it declares.

        Unknown keys are ignored so newer config files keep loading.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        return cls(**{k: v for k, v in data.items() if k in valid_keys})


def get_config(path: str | Path | None = None) -> ElfmapConfig:
    """Cached wrapper around :meth:`ElfmapConfig.load`.

    Passing *path* always reloads.
    """
    if not hasattr(get_config, "_cached") or path is not None:
        get_config._cached = ElfmapConfig.load(path)  # type: ignore[attr-defined]
    return get_config._cached  # type: ignore[attr-defined]
