from __future__ import annotations

"""
Typer CLI entry point and orchestration of the analysis pipeline.

    policylint analyze <root-path> [--rules=id,id,...] [--max-parallel=N]
                                   [--format=text|json|table] [--config=FILE]
    policylint rules

Exit status: 0 no error diagnostics, 1 at least one error diagnostic,
2 invocation or configuration failure, 130 cancelled.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from policylint.config import build_config
from policylint.engine import analyze_path
from policylint.errors import AnalysisCancelled, ConfigurationError
from policylint.reporting.reporter import EXIT_CONFIG, Reporter
from policylint.rules.registry import RULES

logger = logging.getLogger(__name__)

EXIT_CANCELLED = 130

app = typer.Typer(
    help="policylint - checks C# sources against exception-handling and parallelism conventions.",
    no_args_is_help=True,
)


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich; stdout carries only the report."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ConfigurationError(f"unknown log level: {level}")
    logging.basicConfig(
        level=numeric,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(message: str, code: int = EXIT_CONFIG) -> typer.Exit:
    typer.echo(f"error: {message}", err=True)
    return typer.Exit(code=code)


@app.command()
def analyze(
    target: Path = typer.Argument(..., help="C# file or directory to analyze."),
    rules: Optional[str] = typer.Option(
        None, "--rules", help="Comma-separated rule ids to run (default: all)."
    ),
    max_parallel: Optional[int] = typer.Option(
        None, "--max-parallel", help="Maximum number of files analyzed concurrently."
    ),
    output_format: Optional[str] = typer.Option(
        None, "--format", help="Output format: text, json or table."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Configuration file (default: <target>/.policylint.toml)."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show suggested fixes and progress logging."
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level for stderr."),
) -> None:
    """
    Analyze a single C# file or all .cs files under a directory.
    """
    try:
        configure_logging("INFO" if verbose and log_level.upper() == "WARNING" else log_level)
        config = build_config(
            target,
            config_file=config_file,
            rules=rules,
            max_parallel=max_parallel,
            output_format=output_format,
            verbose=verbose,
        )
        logger.info("Analyzing %s with rules: %s", target, ", ".join(r.id for r in config.rules))
        diagnostics = analyze_path(target, config)
    except ConfigurationError as exc:
        raise _fail(str(exc)) from exc
    except AnalysisCancelled as exc:
        raise _fail(f"analysis cancelled ({exc})", code=EXIT_CANCELLED) from exc
    except KeyboardInterrupt as exc:
        raise _fail("analysis cancelled (interrupted)", code=EXIT_CANCELLED) from exc

    root = target.resolve() if target.is_dir() else target.resolve().parent
    reporter = Reporter(
        stream=sys.stdout,
        logger=logging.getLogger("policylint.report"),
        output_format=config.output_format,
        verbose=config.verbose,
        root=root,
    )
    raise typer.Exit(code=reporter.report(diagnostics))


@app.command("rules")
def list_rules() -> None:
    """List the available rules."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Rule", no_wrap=True)
    table.add_column("Name")
    table.add_column("Default severity")
    for rule in RULES.values():
        table.add_row(rule.id, rule.name, rule.severity.value)
    Console().print(table)


def main() -> None:
    """Entry point for the `policylint` script and `python -m policylint.main`."""
    app()


if __name__ == "__main__":
    main()
