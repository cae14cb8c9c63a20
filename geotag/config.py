"""Configuration management for geotag."""

from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

from .errors import ConfigError, ErrorCode

logger = logging.getLogger("geotag.config")

OUTPUT_FORMATS = ("text", "json")


def get_config_dir() -> Path:
    """Get the geotag config directory."""
    config_dir = Path.home() / ".geotag"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the path to config.json."""
    return get_config_dir() / "config.json"


@dataclass
class OutputConfig:
    """How lookup reports are rendered."""

    show_why: bool = True  # Print the matched rule type/value
    format: str = "text"  # "text" or "json"
    selector_width: int = 42

    def __post_init__(self):
        if self.format not in OUTPUT_FORMATS:
            raise ConfigError(
                ErrorCode.CONFIG_INVALID,
                f"output.format must be one of {', '.join(OUTPUT_FORMATS)}",
                details={"format": self.format},
            )


@dataclass
class ScanConfig:
    """Scanner settings."""

    selector_prefix: str = "geosite"
    jobs: int = 1  # Hosts classified in parallel

    def __post_init__(self):
        if self.jobs < 1:
            raise ConfigError(
                ErrorCode.CONFIG_INVALID,
                "scan.jobs must be >= 1",
                details={"jobs": self.jobs},
            )
        if not self.selector_prefix:
            raise ConfigError(ErrorCode.CONFIG_INVALID, "scan.selector_prefix must be set")


def _section(cls, data: dict, name: str):
    """Build a config section, skipping keys the dataclass does not know."""
    if not isinstance(data, dict):
        raise ConfigError(ErrorCode.CONFIG_INVALID, f"[{name}] section must be an object")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(
            "Ignoring unknown keys in [%s]: %s",
            name,
            ", ".join(unknown),
            extra={"section": name, "unknown_keys": unknown},
        )
    try:
        return cls(**{k: v for k, v in data.items() if k in known})
    except TypeError as e:
        raise ConfigError(ErrorCode.CONFIG_INVALID, f"invalid [{name}] section", cause=e) from e


@dataclass
class Config:
    """Main configuration for geotag."""

    catalog_path: str = "dlc.dat"
    input_path: str = "domains.txt"
    output: OutputConfig = field(default_factory=OutputConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)

    def save(self) -> None:
        """Save configuration to disk with owner-only permissions."""
        config_path = get_config_path()
        with open(config_path, "w") as f:
            json.dump(self._to_dict(), f, indent=2)
        config_path.chmod(stat.S_IRUSR | stat.S_IWUSR)

    def _to_dict(self) -> dict:
        """Convert config to dictionary for JSON serialization."""
        return {
            "catalog_path": self.catalog_path,
            "input_path": self.input_path,
            "output": asdict(self.output),
            "scan": asdict(self.scan),
        }

    @classmethod
    def load(cls) -> Config:
        """Load configuration from disk.

        Missing files yield defaults. GEOTAG_CATALOG and GEOTAG_INPUT
        override the stored paths.
        """
        config = cls()
        config_path = get_config_path()

        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(
                    ErrorCode.CONFIG_INVALID,
                    "config.json is not valid JSON",
                    details={"path": str(config_path)},
                    cause=e,
                ) from e

            if not isinstance(data, dict):
                raise ConfigError(
                    ErrorCode.CONFIG_INVALID,
                    "config.json must contain a JSON object",
                    details={"path": str(config_path)},
                )

            config.catalog_path = data.get("catalog_path", config.catalog_path)
            config.input_path = data.get("input_path", config.input_path)

            if "output" in data:
                config.output = _section(OutputConfig, data["output"], "output")
            if "scan" in data:
                config.scan = _section(ScanConfig, data["scan"], "scan")

        env_catalog = os.environ.get("GEOTAG_CATALOG")
        if env_catalog:
            config.catalog_path = env_catalog

        env_input = os.environ.get("GEOTAG_INPUT")
        if env_input:
            config.input_path = env_input

        return config
