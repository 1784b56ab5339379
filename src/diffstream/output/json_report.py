"""JSON reporter for parsed diffs."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from diffstream.diff.models import Diff, DiffFile, DiffSection


def _mode(value: int) -> str:
    return f"{value:06o}" if value else ""


def _section_dict(section: DiffSection) -> Dict[str, Any]:
    return {
        "header": section.header,
        "additions": section.num_additions,
        "deletions": section.num_deletions,
        "lines": [
            {
                "type": line.line_type.value,
                "content": line.content,
                "left": line.left_line,
                "right": line.right_line,
            }
            for line in section.lines
        ],
    }


def _file_dict(file: DiffFile, *, include_lines: bool) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": file.name,
        "old_name": file.old_name,
        "status": file.status.value,
        "index": file.index,
        "old_index": file.old_index,
        "mode": _mode(file.mode),
        "old_mode": _mode(file.old_mode),
        "additions": file.num_additions,
        "deletions": file.num_deletions,
        "sections": file.num_sections,
        "is_binary": file.is_binary,
        "is_submodule": file.is_submodule,
        "is_incomplete": file.is_incomplete,
    }
    if include_lines:
        data["hunks"] = [_section_dict(s) for s in file.sections]
    return data


def to_dict(diff: Diff, *, include_lines: bool = True) -> Dict[str, Any]:
    """Convert a Diff to a JSON-serialisable dict."""
    files: List[Dict[str, Any]] = [
        _file_dict(f, include_lines=include_lines) for f in diff.files
    ]
    return {
        "version": "1.0",
        "files_changed": diff.num_files,
        "total_additions": diff.total_additions,
        "total_deletions": diff.total_deletions,
        "is_incomplete": diff.is_incomplete,
        "files": files,
    }


def render(diff: Diff, *, include_lines: bool = True) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(diff, include_lines=include_lines), indent=2)
