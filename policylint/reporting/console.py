# Rich console output: diagnostics grouped per file, colored by severity, with a summary.

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from policylint.findings.models import Diagnostic, DiagnosticKind

# Severity → Rich style
SEVERITY_STYLE = {
    "error": "bold red",
    "warning": "bold yellow",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: str) -> str:
    return SEVERITY_STYLE.get(severity.lower(), DEFAULT_SEVERITY_STYLE)


def display_path(path: Path, root: Optional[Path]) -> str:
    if root is not None:
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            pass
    return str(path)


def print_diagnostics(
    diagnostics: Sequence[Diagnostic],
    console: Optional[Console] = None,
    verbose: bool = False,
    root: Optional[Path] = None,
) -> None:
    """
    Print diagnostics as one table per file, then a severity summary.

    If verbose, shows the suggested fix once per rule and file.
    """
    console = console or Console()

    if not diagnostics:
        console.print(
            Panel(
                "[green]No issues found.[/green]",
                title="policylint",
                border_style="green",
                box=box.ROUNDED,
            )
        )
        return

    by_file: dict[str, list[Diagnostic]] = {}
    for d in diagnostics:
        by_file.setdefault(display_path(d.location.path, root), []).append(d)

    for path in sorted(by_file):
        file_diagnostics = sorted(by_file[path], key=lambda x: (x.location.line, x.location.column, x.rule_id))

        console.print()
        console.print(Panel(
            f"[bold cyan]{path}[/bold cyan]",
            box=box.SIMPLE_HEAD,
            border_style="blue",
            padding=(0, 1),
        ))

        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.SIMPLE,
            padding=(0, 1),
            expand=False,
        )
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Col", justify="right", style="dim", width=4)
        table.add_column("Severity", width=9)
        table.add_column("Rule", width=30)
        table.add_column("Message", style="white")

        for d in file_diagnostics:
            loc = d.location
            rule_style = "bold red" if d.kind is not DiagnosticKind.RULE else "dim"
            table.add_row(
                str(loc.line),
                str(loc.column),
                Text(d.severity.value.upper(), style=_severity_style(d.severity.value)),
                Text(f"[{d.rule_id}]", style=rule_style),
                d.message,
            )

        console.print(table)

        if verbose:
            seen_rules: set[str] = set()
            for d in file_diagnostics:
                if d.suggestion and d.rule_id not in seen_rules:
                    seen_rules.add(d.rule_id)
                    console.print(Text(f"  [Fix] [{d.rule_id}] {d.suggestion}", style="dim"))
            if seen_rules:
                console.print()

    _print_summary(diagnostics, console)


def _print_summary(diagnostics: Sequence[Diagnostic], console: Console) -> None:
    """Print a compact count of diagnostics per severity and of affected files."""
    by_severity: dict[str, int] = {}
    for d in diagnostics:
        by_severity[d.severity.value] = by_severity.get(d.severity.value, 0) + 1
    files = len({str(d.location.path) for d in diagnostics})

    total = len(diagnostics)
    summary_parts = [
        f"[bold]{total} diagnostic{'s' if total != 1 else ''}[/bold] in {files} file{'s' if files != 1 else ''}"
    ]
    for sev in ("error", "warning"):
        if sev in by_severity:
            summary_parts.append(f"[{_severity_style(sev)}]{by_severity[sev]} {sev}[/]")

    console.print()
    console.print(
        Panel(
            " | ".join(summary_parts),
            title="Summary",
            border_style="red" if "error" in by_severity else "yellow",
            box=box.ROUNDED,
        )
    )
