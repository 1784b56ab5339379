"""diffstream CLI — Typer application with parse, show, line, and init commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import BinaryIO, Optional

import typer
from rich.console import Console
from rich.markup import escape

from diffstream import __version__
from diffstream.config.schema import DiffStreamConfig, ParseLimits
from diffstream.diff.models import Diff

app = typer.Typer(
    name="diffstream",
    help="Parse git diffs into files, hunks, and lines.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)
logger = logging.getLogger("diffstream.cli")


def _resolve_repo_root(repo: Optional[Path]) -> Path:
    """Find the git repo root, exit 2 on failure."""
    from diffstream.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root(repo)
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


def _load_settings(
    config: Optional[str],
    format: Optional[str],
    lines: bool,
    limits: ParseLimits,
    verbose: bool,
    debug: bool,
) -> DiffStreamConfig:
    """Load config and apply CLI overrides on top of it. Exits 2 on bad input."""
    from diffstream.config.loader import ConfigError, load_config
    from diffstream.log import setup_logging

    try:
        cfg = load_config(Path.cwd(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if format:
        if format not in ("terminal", "json"):
            console.print(f"[bold red]Invalid format:[/bold red] {escape(format)}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    if lines:
        cfg.output.show_lines = True
    cfg.limits = cfg.limits.merged(limits)

    level = "DEBUG" if debug else "INFO" if verbose else cfg.log.level
    setup_logging(level, console=console)
    logger.debug("limits: %s", cfg.limits)
    return cfg


def _parse_stream(stream: BinaryIO, limits: ParseLimits) -> Diff:
    """Parse *stream* on a worker thread, exit 2 on a parse error."""
    from diffstream.diff.parser import DiffParseError
    from diffstream.diff.stream import stream_parse_diff

    try:
        return stream_parse_diff(stream, limits).result()
    except DiffParseError as exc:
        console.print(f"[bold red]Parse error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


def _parse_patch_file(patch: Optional[Path], limits: ParseLimits) -> Diff:
    """Parse a patch file, or stdin when *patch* is omitted or '-'."""
    if patch is None or str(patch) == "-":
        return _parse_stream(sys.stdin.buffer, limits)

    if not patch.is_file():
        console.print(f"[bold red]Error:[/bold red] patch file not found: {escape(str(patch))}")
        raise typer.Exit(code=2)
    with open(patch, "rb") as f:
        return _parse_stream(f, limits)


def _emit(diff: Diff, cfg: DiffStreamConfig, output: Optional[str]) -> None:
    """Render *diff* in the configured format and optionally save a JSON copy."""
    from diffstream.output import json_report, terminal

    report_text: Optional[str] = None
    if cfg.output.format == "json":
        report_text = json_report.render(diff, include_lines=cfg.output.show_lines)
        print(report_text)
    else:
        terminal.render(diff, show_lines=cfg.output.show_lines)

    if output:
        if report_text is None:
            report_text = json_report.render(diff, include_lines=cfg.output.show_lines)
        Path(output).write_text(report_text, encoding="utf-8")
        logger.info("report written to %s", output)


# ── parse ─────────────────────────────────────────────────────────────────────


@app.command()
def parse(
    patch: Optional[Path] = typer.Argument(None, help="Patch file; omit or '-' to read stdin"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .diffstream.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    lines: bool = typer.Option(False, "--lines", "-l", help="Include hunk lines in the output"),
    max_files: Optional[int] = typer.Option(None, "--max-files", help="Stop after this many files"),
    max_file_lines: Optional[int] = typer.Option(None, "--max-file-lines", help="Truncate files past this many lines"),
    max_line_chars: Optional[int] = typer.Option(None, "--max-line-chars", help="Truncate hunks at longer lines"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Parse a patch file (or stdin) and print its files and hunks."""
    limits = ParseLimits(max_files=max_files, max_file_lines=max_file_lines, max_line_chars=max_line_chars)
    cfg = _load_settings(config, format, lines, limits, verbose, debug)

    diff = _parse_patch_file(patch, cfg.limits)
    _emit(diff, cfg, output)


# ── show ──────────────────────────────────────────────────────────────────────


@app.command()
def show(
    rev: str = typer.Argument("HEAD", help="Revision to show"),
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Diff against this revision instead of the parent"),
    repo: Optional[Path] = typer.Option(None, "--repo", "-C", help="Path inside the repository"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .diffstream.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    lines: bool = typer.Option(False, "--lines", "-l", help="Include hunk lines in the output"),
    max_files: Optional[int] = typer.Option(None, "--max-files", help="Stop after this many files"),
    max_file_lines: Optional[int] = typer.Option(None, "--max-file-lines", help="Truncate files past this many lines"),
    max_line_chars: Optional[int] = typer.Option(None, "--max-line-chars", help="Truncate hunks at longer lines"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Show the parsed diff of a commit from the repository."""
    from diffstream.diff.parser import DiffParseError
    from diffstream.git.adapter import GitError, default_context, diff_revision

    limits = ParseLimits(max_files=max_files, max_file_lines=max_file_lines, max_line_chars=max_line_chars)
    cfg = _load_settings(config, format, lines, limits, verbose, debug)
    repo_root = _resolve_repo_root(repo)

    try:
        logger.debug("git %s, repo %s", default_context().version(), repo_root)
        diff = diff_revision(repo_root, rev, base=base, limits=cfg.limits)
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    except DiffParseError as exc:
        console.print(f"[bold red]Parse error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    _emit(diff, cfg, output)


# ── line ──────────────────────────────────────────────────────────────────────


@app.command()
def line(
    patch: Path = typer.Argument(..., help="Patch file; '-' reads stdin"),
    file: str = typer.Option(..., "--file", help="Path of the file in the diff"),
    side: str = typer.Option("new", "--side", help="old (deleted line) | new (added line)"),
    number: int = typer.Option(..., "--number", "-n", help="Line number on that side"),
) -> None:
    """Look up the added or deleted line shown at a line number."""
    from diffstream.diff.models import LineType

    if side not in ("old", "new"):
        console.print(f"[bold red]Invalid side:[/bold red] {escape(side)}")
        raise typer.Exit(code=2)
    line_type = LineType.ADDED if side == "new" else LineType.DELETED

    diff = _parse_patch_file(patch, ParseLimits())
    diff_file = diff.get_file(file)
    if diff_file is None:
        console.print(f"[yellow]⚠[/yellow]  {escape(file)} is not part of the diff")
        raise typer.Exit(code=1)

    for section in diff_file.sections:
        match = section.line(line_type, number)
        if match is not None:
            print(match.content)
            raise typer.Exit(code=0)

    console.print(f"[yellow]⚠[/yellow]  No {line_type.value} line pairs with {side} line {number}")
    raise typer.Exit(code=1)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .diffstream.toml in the current directory."""
    from diffstream.config.defaults import DEFAULT_TOML
    from diffstream.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {escape(str(config_path))}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {escape(str(config_path))}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"diffstream {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """diffstream — Parse git diffs into files, hunks, and lines."""
