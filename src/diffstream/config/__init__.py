"""Configuration loading, schema, and defaults."""

from diffstream.config.loader import ConfigError, load_config
from diffstream.config.schema import DiffStreamConfig, ParseLimits, effective_limit

__all__ = [
    "ConfigError",
    "DiffStreamConfig",
    "ParseLimits",
    "effective_limit",
    "load_config",
]
