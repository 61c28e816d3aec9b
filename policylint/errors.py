# Error taxonomy: configuration failures are fatal, parse and rule failures are per-unit.

from __future__ import annotations

from pathlib import Path
from typing import Optional


class PolicyLintError(Exception):
    """Base class for all errors raised by policylint."""


class ConfigurationError(PolicyLintError):
    """
    Bad CLI arguments, config file or input paths.

    Fatal: the CLI reports it and exits with status 2 before any analysis.
    """


class ParseError(PolicyLintError):
    """A source unit could not be parsed into a clean syntax tree."""

    def __init__(self, path: Path, line: int, column: int, detail: str = "syntax error") -> None:
        super().__init__(f"{path}:{line}:{column}: {detail}")
        self.path = path
        self.line = line
        self.column = column
        self.detail = detail


class RuleEvaluationError(PolicyLintError):
    """A rule implementation raised while evaluating one unit."""

    def __init__(self, rule_id: str, path: Path, cause: Optional[BaseException] = None) -> None:
        reason = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown failure"
        super().__init__(f"rule {rule_id} failed on {path}: {reason}")
        self.rule_id = rule_id
        self.path = path
        self.cause = cause


class AnalysisCancelled(PolicyLintError):
    """The run was cancelled between units; partial results were discarded."""
