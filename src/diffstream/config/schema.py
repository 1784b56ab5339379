"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Literal, Optional

OutputFormat = Literal["terminal", "json"]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def effective_limit(value: Optional[int]) -> int:
    """Return *value* as a limit, 0 meaning unlimited."""
    if value is None or value <= 0:
        return 0
    return value


@dataclass(frozen=True)
class ParseLimits:
    """Truncation limits for the diff parser.

    ``None`` leaves a limit unset; a non-positive value means unlimited.
    """

    max_files: Optional[int] = None  # files beyond this are dropped
    max_file_lines: Optional[int] = None  # hunk lines per file
    max_line_chars: Optional[int] = None  # characters in a single line

    def merged(self, *overrides: ParseLimits) -> ParseLimits:
        """Apply *overrides* in order; a field set by a later one wins."""
        values = dataclasses.asdict(self)
        for override in overrides:
            for key, value in dataclasses.asdict(override).items():
                if value is not None:
                    values[key] = value
        return ParseLimits(**values)


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_lines: bool = False


@dataclass
class LogConfig:
    level: str = "WARNING"


@dataclass
class DiffStreamConfig:
    version: str = "1.0"
    limits: ParseLimits = field(default_factory=ParseLimits)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)
