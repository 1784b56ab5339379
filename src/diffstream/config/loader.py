"""Load and merge configuration from .diffstream.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from diffstream.config.schema import (
    LOG_LEVELS,
    DiffStreamConfig,
    LogConfig,
    OutputConfig,
    ParseLimits,
)

CONFIG_FILENAME = ".diffstream.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: DiffStreamConfig, path: Path) -> None:
    """Reject values of the wrong type before they reach the parser."""
    for f in dataclasses.fields(ParseLimits):
        value = getattr(cfg.limits, f.name)
        # bool is an int subclass
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise ConfigError(f"{path}: limits.{f.name} must be an integer, got {value!r}")
    if cfg.output.format not in ("terminal", "json"):
        raise ConfigError(f"{path}: output.format must be 'terminal' or 'json', got {cfg.output.format!r}")
    if not isinstance(cfg.output.show_lines, bool):
        raise ConfigError(f"{path}: output.show_lines must be true or false, got {cfg.output.show_lines!r}")
    if not isinstance(cfg.log.level, str) or cfg.log.level.upper() not in LOG_LEVELS:
        raise ConfigError(f"{path}: log.level must be one of {', '.join(LOG_LEVELS)}, got {cfg.log.level!r}")
    cfg.log.level = cfg.log.level.upper()


def _env_int(name: str) -> Optional[int]:
    val = os.environ.get(name)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        return None


def _merge_env_overrides(cfg: DiffStreamConfig) -> None:
    """Apply DIFFSTREAM_* environment variable overrides."""
    cfg.limits = cfg.limits.merged(
        ParseLimits(
            max_files=_env_int("DIFFSTREAM_MAX_FILES"),
            max_file_lines=_env_int("DIFFSTREAM_MAX_FILE_LINES"),
            max_line_chars=_env_int("DIFFSTREAM_MAX_LINE_CHARS"),
        )
    )
    if val := os.environ.get("DIFFSTREAM_FORMAT"):
        if val in ("terminal", "json"):
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("DIFFSTREAM_LOG_LEVEL"):
        if val.upper() in LOG_LEVELS:
            cfg.log.level = val.upper()


def load_config(
    root: Path,
    config_override: Optional[str] = None,
) -> DiffStreamConfig:
    """Load, validate, and return a DiffStreamConfig.

    Sources are applied in order: defaults, config file, environment.
    CLI flags are merged on top by the caller.
    """
    config_path = find_config_file(root, config_override)

    if config_path is None:
        cfg = DiffStreamConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = DiffStreamConfig(
                version=str(raw.get("version", "1.0")),
                limits=_build_section(raw, ParseLimits, "limits"),
                output=_build_section(raw, OutputConfig, "output"),
                log=_build_section(raw, LogConfig, "log"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc
        _validate(cfg, config_path)

    _merge_env_overrides(cfg)
    return cfg
