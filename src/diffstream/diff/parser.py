"""Streaming unified diff parser.

Reads git diff output line by line from a binary stream and builds a
:class:`~diffstream.diff.models.Diff`. Parsing happens on read, so huge
diffs never have to be held in memory as text, and the configured limits
truncate the result instead of failing. Once a limit stops the parse the
rest of the stream is still read and discarded, so a process writing into
the other end of a pipe is never left blocked.
"""

from __future__ import annotations

import logging
import re
from typing import BinaryIO, Optional, Tuple

from diffstream.config.schema import ParseLimits, effective_limit
from diffstream.diff.models import (
    Diff,
    DiffFile,
    DiffLine,
    DiffSection,
    FileStatus,
    LineType,
)

_DIFF_HEAD = "diff --git "
_NO_NEWLINE = "\\ No newline at end of file"
_HUNK_RANGE_RE = re.compile(r"^@@ -(\d+)(?:,\d+)?(?: \+(\d+)(?:,\d+)?)?")
_ESCAPE_RE = re.compile(r'\\(["\\t])')
_SUBMODULE_SUFFIX = " 160000"
_DRAIN_CHUNK = 64 * 1024


class DiffParseError(Exception):
    """Raised when the diff stream cannot be parsed."""


class DiffReadError(DiffParseError):
    """Raised when reading the diff stream fails for a reason other than EOF."""


def unescape_chars(name: str) -> str:
    """Undo git's escaping of quotes, tabs and backslashes in a quoted path."""
    return _ESCAPE_RE.sub(lambda m: "\t" if m.group(1) == "t" else m.group(1), name)


def _parse_mode(field: str) -> int:
    try:
        return int(field, 8)
    except ValueError:
        return 0


def _last_field_mode(line: str) -> int:
    fields = line.split()
    return _parse_mode(fields[-1]) if fields else 0


def _parse_hunk_range(header: str) -> Tuple[int, int]:
    """Return the starting left and right line numbers of a hunk header."""
    m = _HUNK_RANGE_RE.match(header)
    if m is None:
        return 0, 0
    left = int(m.group(1))
    right = int(m.group(2)) if m.group(2) is not None else left
    return left, right


def _split_file_names(line: str) -> Tuple[str, str]:
    """Extract the old and new path of a ``diff --git`` line."""
    rest = line[len(_DIFF_HEAD):]
    quoted = rest.startswith('"')
    middle = rest.find(' "b/') if quoted else rest.find(" b/")
    if middle < 0:
        name = rest
        if quoted and len(name) > 1 and name.endswith('"'):
            name = unescape_chars(name[1:-1])
        if name.startswith("a/"):
            name = name[2:]
        return name, name

    # Skip the 'a/' (or '"a/') prefix and the ' b/' (or ' "b/') separator
    old = rest[2:middle]
    new = rest[middle + 3:]
    if quoted:
        old = unescape_chars(old[1:-1])
        new = unescape_chars(new[1:-1])
    return old, new


class DiffParser:
    """Parse a unified diff stream into a Diff.

    Usage::

        with open("change.patch", "rb") as f:
            diff = DiffParser(f, ParseLimits(max_files=100)).parse()
    """

    def __init__(
        self,
        stream: BinaryIO,
        limits: Optional[ParseLimits] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        limits = limits or ParseLimits()
        self._stream = stream
        self._max_files = effective_limit(limits.max_files)
        self._max_file_lines = effective_limit(limits.max_file_lines)
        self._max_line_chars = effective_limit(limits.max_line_chars)
        self._log = logger or logging.getLogger(__name__)

        # The next line that hasn't been processed yet
        self._buffer: Optional[str] = None
        self._eof = False

    # --- Input ---

    def _read_line(self) -> None:
        """Fill the buffer with the next line unless one is still pending."""
        if self._buffer is not None:
            return
        try:
            data = self._stream.readline()
        except (OSError, ValueError) as exc:
            raise DiffReadError(f"read line: {exc}") from exc

        if data.endswith(b"\n"):
            data = data[:-1]
        else:
            self._eof = True
        self._buffer = data.decode("utf-8", errors="replace")

    def _take(self) -> str:
        line = self._buffer or ""
        self._buffer = None
        return line

    def _drain(self) -> None:
        """Read and discard everything left in the stream."""
        self._buffer = None
        try:
            while self._stream.read(_DRAIN_CHUNK):
                pass
        except (OSError, ValueError) as exc:
            raise DiffReadError(f"drain: {exc}") from exc
        self._eof = True

    # --- File header ---

    def _parse_file_header(self) -> DiffFile:
        old, new = _split_file_names(self._take())
        file = DiffFile(name=new, old_name=old, status=FileStatus.CHANGED)

        while not self._eof:
            self._read_line()
            line = self._buffer or ""

            # Records without an index line end at the next hunk or file
            if line.startswith(("@", _DIFF_HEAD, "Binary")):
                break

            self._buffer = None
            if not line:
                continue

            if line.startswith("new file"):
                file.status = FileStatus.ADDED
                file.is_submodule = line.endswith(_SUBMODULE_SUFFIX)
                file.mode = _last_field_mode(line)
                if file.old_mode == 0:
                    file.old_mode = file.mode
            elif line.startswith("deleted"):
                file.status = FileStatus.DELETED
                file.is_submodule = line.endswith(_SUBMODULE_SUFFIX)
                file.mode = _last_field_mode(line)
                if file.old_mode == 0:
                    file.old_mode = file.mode
            elif line.startswith("index"):  # e.g. index ee791be..9997571 100644
                fields = line[6:].split()
                shas = fields[0].split("..") if fields else []
                if len(shas) != 2:
                    raise DiffParseError(
                        "malformed index: expect two SHAs in the form of <old>..<new>"
                    )
                file.old_index, file.index = shas
                if len(fields) > 1:
                    file.mode = _parse_mode(fields[1])
                    file.old_mode = file.mode
                break
            elif line.startswith("similarity index "):
                file.status = FileStatus.RENAMED
                file.old_name = old
                file.name = new
                # A pure rename has no index line
                if line.endswith("100%"):
                    break
            elif line.startswith("new mode"):
                file.mode = _last_field_mode(line)
            elif line.startswith("old mode"):
                file.old_mode = _last_field_mode(line)

        self._log.debug("file %s (%s)", file.name, file.status.value)
        return file

    # --- Section ---

    def _parse_section(self) -> Tuple[DiffSection, bool]:
        """Parse one hunk. Returns the section and whether it was cut short."""
        header = self._take()
        section = DiffSection(lines=[DiffLine(line_type=LineType.SECTION, content=header)])
        left, right = _parse_hunk_range(header)

        while not self._eof:
            self._read_line()
            if not self._buffer:
                self._buffer = None
                continue

            # Anything but content ends the section
            if self._buffer[0] not in " +-":
                if self._buffer.startswith(_NO_NEWLINE):
                    self._buffer = None
                    continue
                return section, False

            line = self._take()

            if self._max_line_chars and len(line) > self._max_line_chars:
                self._log.info(
                    "line of %d characters exceeds limit of %d",
                    len(line),
                    self._max_line_chars,
                )
                return section, True

            marker = line[0]
            if marker == " ":
                section.lines.append(DiffLine(LineType.PLAIN, line, left, right))
                left += 1
                right += 1
            elif marker == "+":
                section.lines.append(DiffLine(LineType.ADDED, line, 0, right))
                section.num_additions += 1
                right += 1
            else:
                section.lines.append(DiffLine(LineType.DELETED, line, left, 0))
                section.num_deletions += 1
                if left > 0:
                    left += 1

        return section, False

    # --- Main loop ---

    def parse(self) -> Diff:
        """Consume the stream and return the parsed Diff.

        Raises DiffParseError on a malformed index line and DiffReadError
        when the stream fails; no partial result is returned in either case.
        """
        diff = Diff()
        file: Optional[DiffFile] = None
        file_lines = 0

        # A line can still be pending when a header or section scan hit EOF
        while not self._eof or self._buffer is not None:
            self._read_line()
            line = self._buffer or ""

            if not line or line.startswith(("+++ ", "--- ")):
                self._buffer = None
                continue

            if line.startswith(_DIFF_HEAD):
                if self._max_files and diff.num_files >= self._max_files:
                    self._log.info("reached limit of %d files, discarding the rest", self._max_files)
                    diff.is_incomplete = True
                    self._drain()
                    break

                file = self._parse_file_header()
                diff.files.append(file)
                file_lines = 0
                continue

            if file is None or file.is_incomplete:
                self._buffer = None
                continue

            if line.startswith("Binary"):
                self._buffer = None
                file.is_binary = True
                continue

            # Skip until the next section header
            if line[0] != "@":
                self._buffer = None
                continue

            if self._max_file_lines and file_lines > self._max_file_lines:
                self._log.info(
                    "%s: %d lines exceed limit of %d",
                    file.name,
                    file_lines,
                    self._max_file_lines,
                )
                file.is_incomplete = True
                diff.is_incomplete = True
                continue

            section, is_incomplete = self._parse_section()
            self._log.debug("%s: %s (%d lines)", file.name, section.header, section.num_lines)
            file.sections.append(section)
            file.num_additions += section.num_additions
            file.num_deletions += section.num_deletions
            diff.total_additions += section.num_additions
            diff.total_deletions += section.num_deletions
            file_lines += section.num_lines
            if is_incomplete:
                file.is_incomplete = True
                diff.is_incomplete = True

        return diff
