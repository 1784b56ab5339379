"""Data models for parsed diffs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional


class LineType(str, Enum):
    PLAIN = "plain"
    ADDED = "added"
    DELETED = "deleted"
    SECTION = "section"


class FileStatus(str, Enum):
    ADDED = "added"
    CHANGED = "changed"
    DELETED = "deleted"
    RENAMED = "renamed"


class EntryMode(IntEnum):
    """Well-known git tree entry modes."""

    TREE = 0o040000
    BLOB = 0o100644
    EXEC = 0o100755
    SYMLINK = 0o120000
    COMMIT = 0o160000  # submodule


@dataclass(frozen=True, slots=True)
class DiffLine:
    """A single line of a diff section.

    ``content`` keeps the diff marker; a line number of 0 means the line
    does not exist on that side.
    """

    line_type: LineType
    content: str
    left_line: int = 0
    right_line: int = 0


@dataclass
class DiffSection:
    """One hunk: the ``@@`` header line followed by its content lines."""

    lines: List[DiffLine] = field(default_factory=list)
    num_additions: int = 0
    num_deletions: int = 0

    @property
    def num_lines(self) -> int:
        return len(self.lines)

    @property
    def header(self) -> str:
        return self.lines[0].content if self.lines else ""

    def line(self, line_type: LineType, line_no: int) -> Optional[DiffLine]:
        """Return the added or deleted line displayed as *line_no*.

        Lines are paired across an add/delete run using the offset between
        the two sides at the last plain (or header) line before the run.
        Once a candidate is found the rest of its run is still counted, and
        the candidate is only returned when that run has as many additions
        as deletions. Unbalanced runs cannot be paired side by side, so
        they yield ``None`` even when a line with the number exists.
        """
        offset = 0
        add_count = 0
        del_count = 0
        matched: Optional[DiffLine] = None

        for diff_line in self.lines:
            if diff_line.line_type == LineType.ADDED:
                add_count += 1
            elif diff_line.line_type == LineType.DELETED:
                del_count += 1
            else:
                if matched is not None:
                    break
                offset = diff_line.right_line - diff_line.left_line
                add_count = 0
                del_count = 0

            if line_type == LineType.DELETED:
                if diff_line.right_line == 0 and diff_line.left_line == line_no - offset:
                    matched = diff_line
            elif line_type == LineType.ADDED:
                if diff_line.left_line == 0 and diff_line.right_line == line_no + offset:
                    matched = diff_line

        if add_count == del_count:
            return matched
        return None


@dataclass
class DiffFile:
    """Change record of one file in a diff."""

    name: str
    old_name: str = ""
    status: FileStatus = FileStatus.CHANGED
    index: str = ""  # new object hash
    old_index: str = ""
    mode: int = 0
    old_mode: int = 0
    sections: List[DiffSection] = field(default_factory=list)
    num_additions: int = 0
    num_deletions: int = 0
    is_binary: bool = False
    is_submodule: bool = False
    is_incomplete: bool = False

    @property
    def num_sections(self) -> int:
        return len(self.sections)

    @property
    def is_created(self) -> bool:
        return self.status == FileStatus.ADDED

    @property
    def is_deleted(self) -> bool:
        return self.status == FileStatus.DELETED

    @property
    def is_renamed(self) -> bool:
        return self.status == FileStatus.RENAMED


@dataclass
class Diff:
    """Result of parsing one diff stream.

    Treat as read-only once handed over by the parser.
    """

    files: List[DiffFile] = field(default_factory=list)
    total_additions: int = 0
    total_deletions: int = 0
    is_incomplete: bool = False

    @property
    def num_files(self) -> int:
        return len(self.files)

    def get_file(self, name: str) -> Optional[DiffFile]:
        """Return the file record whose new or old path is *name*."""
        for f in self.files:
            if f.name == name or f.old_name == name:
                return f
        return None
