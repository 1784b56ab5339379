"""Git interface layer — subprocess adapter feeding the diff parser."""

from diffstream.git.adapter import (
    GitContext,
    GitError,
    default_context,
    diff_args,
    diff_revision,
    get_parents,
    get_repo_root,
)

__all__ = [
    "GitContext",
    "GitError",
    "default_context",
    "diff_args",
    "diff_revision",
    "get_parents",
    "get_repo_root",
]
