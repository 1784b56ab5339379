"""Rich terminal reporter — file table, coloured hunks, truncation notice."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from diffstream.diff.models import Diff, DiffFile, DiffSection, FileStatus, LineType

_STATUS_STYLE = {
    FileStatus.ADDED: "bold green",
    FileStatus.CHANGED: "bold yellow",
    FileStatus.DELETED: "bold red",
    FileStatus.RENAMED: "bold cyan",
}

_LINE_STYLE = {
    LineType.ADDED: "green",
    LineType.DELETED: "red",
    LineType.SECTION: "cyan",
    LineType.PLAIN: "",
}


def _path(file: DiffFile) -> str:
    if file.is_renamed:
        return f"{file.old_name} → {file.name}"
    return file.name


def _flags(file: DiffFile) -> str:
    flags = []
    if file.is_binary:
        flags.append("binary")
    if file.is_submodule:
        flags.append("submodule")
    if file.mode and file.old_mode and file.mode != file.old_mode:
        flags.append(f"mode {file.old_mode:o} → {file.mode:o}")
    if file.is_incomplete:
        flags.append("truncated")
    return ", ".join(flags)


def _line_number(value: int) -> str:
    return str(value) if value > 0 else ""


def _print_section(console: Console, section: DiffSection) -> None:
    for line in section.lines:
        text = Text(overflow="fold")
        if line.line_type != LineType.SECTION:
            text.append(f"{_line_number(line.left_line):>5} {_line_number(line.right_line):>5} ", style="dim")
        text.append(line.content, style=_LINE_STYLE[line.line_type])
        console.print(text)


def render(diff: Diff, *, show_lines: bool = False, console: Optional[Console] = None) -> None:
    """Print a parsed diff to the terminal using Rich."""
    console = console or Console()

    if not diff.files:
        console.print("[dim]No changes.[/dim]")
        if diff.is_incomplete:
            _print_omitted(console)
        return

    table = Table(title="Changed files", title_style="bold", border_style="dim")
    table.add_column("Status", justify="center")
    table.add_column("File", style="magenta")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    table.add_column("Hunks", justify="right")
    table.add_column("Notes", style="dim")

    for file in diff.files:
        table.add_row(
            Text(file.status.value, style=_STATUS_STYLE[file.status]),
            Text(_path(file)),
            str(file.num_additions),
            str(file.num_deletions),
            str(file.num_sections),
            _flags(file),
        )

    console.print(table)
    console.print(
        f"[bold]{diff.num_files}[/bold] file(s) changed, "
        f"[green]{diff.total_additions} addition(s)[/green], "
        f"[red]{diff.total_deletions} deletion(s)[/red]"
    )

    if show_lines:
        for file in diff.files:
            console.print()
            console.rule(Text(_path(file)), style="magenta")
            if file.is_binary:
                console.print("[dim]Binary file not shown.[/dim]")
            for section in file.sections:
                _print_section(console, section)
            if file.is_incomplete:
                console.print("[yellow]… remaining changes of this file omitted[/yellow]")

    if diff.is_incomplete:
        _print_omitted(console)


def _print_omitted(console: Console) -> None:
    console.print()
    console.print(
        "[bold yellow]⚠️  Diff output truncated — some output omitted "
        "by the configured limits.[/bold yellow]"
    )
