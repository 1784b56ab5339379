"""Git subprocess wrapper — repo root, revision diffs, binary version."""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import List, Optional, Sequence

from diffstream.config.schema import ParseLimits
from diffstream.diff.models import Diff
from diffstream.diff.stream import stream_parse_diff

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git(args: List[str], cwd: Optional[Path], timeout: int = 30) -> str:
    """Run a git command and return stdout. Raises GitError on failure."""
    logger.debug("git %s", " ".join(args))
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        raise GitError(f"git error: {result.stderr.strip()}")
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def get_parents(repo_root: Path, rev: str) -> List[str]:
    """Return the parent commit IDs of *rev*."""
    out = _run_git(["rev-list", "--parents", "-n", "1", rev], cwd=repo_root)
    fields = out.split()
    if not fields:
        raise GitError(f"revision not found: {rev}")
    return fields[1:]


def diff_args(
    repo_root: Path,
    rev: str,
    base: Optional[str] = None,
    extra_args: Sequence[str] = (),
) -> List[str]:
    """Build the git arguments that print the diff of *rev*.

    Without *base* the diff is against the first parent, and a root
    commit is shown whole.
    """
    if base:
        return ["diff", *extra_args, "--full-index", "-M", base, "--end-of-options", rev]

    parents = get_parents(repo_root, rev)
    if not parents:
        return ["show", *extra_args, "--full-index", "--end-of-options", rev]
    return ["diff", *extra_args, "--full-index", "-M", parents[0], "--end-of-options", rev]


def diff_revision(
    repo_root: Path,
    rev: str,
    *,
    base: Optional[str] = None,
    limits: Optional[ParseLimits] = None,
    extra_args: Sequence[str] = (),
    timeout: int = 60,
) -> Diff:
    """Return the parsed diff of *rev* (against *base* when given).

    git writes into a pipe that is parsed while it is being produced.
    stderr is collected on its own thread. If parsing fails or *timeout*
    seconds pass first, git is killed and the error is raised.
    """
    args = ["--no-pager", *diff_args(repo_root, rev, base, extra_args)]
    logger.debug("git %s", " ".join(args))
    try:
        proc = subprocess.Popen(
            ["git", *args],
            cwd=repo_root,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")

    assert proc.stdout is not None and proc.stderr is not None
    deadline = time.monotonic() + timeout
    future = stream_parse_diff(proc.stdout, limits)
    stderr_chunks: List[bytes] = []
    stderr_reader = threading.Thread(
        target=lambda: stderr_chunks.append(proc.stderr.read()),
        name="diffstream-git-stderr",
        daemon=True,
    )
    stderr_reader.start()

    try:
        diff = future.result(timeout=timeout)
        returncode = proc.wait(timeout=max(deadline - time.monotonic(), 0))
    except (FutureTimeoutError, subprocess.TimeoutExpired):
        _kill(proc)
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")
    except Exception:
        # The parser stopped reading, so git would block on a full pipe
        _kill(proc)
        raise

    stderr_reader.join()
    proc.stdout.close()
    proc.stderr.close()

    stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace").strip()
    if returncode != 0:
        raise GitError(f"git error: {stderr}" if stderr else f"git exited with status {returncode}")
    return diff


def _kill(proc: subprocess.Popen) -> None:
    """Kill *proc* and reap it. Its pipes are left to the reader threads."""
    proc.kill()
    proc.wait()


class GitContext:
    """Process-wide facts about the git binary.

    The version is looked up once and cached; failed lookups are not
    cached so a later call can retry.
    """

    def __init__(self, timeout: int = 30) -> None:
        self._timeout = timeout
        self._lock = threading.Lock()
        self._version: Optional[str] = None

    def version(self) -> str:
        """Return the version of the git binary, e.g. ``2.43.0``."""
        with self._lock:
            if self._version is not None:
                return self._version

            out = _run_git(["version"], cwd=None, timeout=self._timeout)
            fields = out.split()
            if len(fields) < 3:
                raise GitError(f"not enough output: {out.strip()}")

            # e.g. "git version 2.41.0.windows.1"
            version = fields[2]
            i = version.find("windows")
            if i >= 1:
                version = version[: i - 1]

            self._version = version
            return version


_default_context = GitContext()


def default_context() -> GitContext:
    """Return the shared GitContext."""
    return _default_context
