"""Diff model and streaming parser."""

from diffstream.diff.models import (
    Diff,
    DiffFile,
    DiffLine,
    DiffSection,
    EntryMode,
    FileStatus,
    LineType,
)
from diffstream.diff.parser import DiffParseError, DiffParser, DiffReadError, unescape_chars
from diffstream.diff.stream import parse_diff, stream_parse_diff

__all__ = [
    "Diff",
    "DiffFile",
    "DiffLine",
    "DiffParseError",
    "DiffParser",
    "DiffReadError",
    "DiffSection",
    "EntryMode",
    "FileStatus",
    "LineType",
    "parse_diff",
    "stream_parse_diff",
    "unescape_chars",
]
