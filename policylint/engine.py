"""
Rule engine: parse each source unit and run the enabled rules over it.

Units are independent, so they are processed on a thread pool bounded by
``Config.max_parallel``. Each worker thread owns its own tree-sitter parser.
Finished units hand their diagnostics to a single lock-guarded collector;
nothing else is shared between workers.

Failure isolation:

- a unit that does not parse yields exactly one ``parse-failure`` diagnostic
  and no rule runs on it;
- a rule that raises yields one ``internal-error`` diagnostic for that
  rule and unit, and every other rule and unit still runs;
- any other failure while building a unit (e.g. RecursionError) yields one
  ``internal-error`` diagnostic for that unit only;
- cancellation (``AnalysisEngine.cancel()``) stops the run between units and
  raises AnalysisCancelled; diagnostics of finished units are discarded.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional, Sequence

from tree_sitter import Parser

from policylint.config import Config, get_default_config
from policylint.context import FileContext, SourceUnit, parse_unit
from policylint.errors import AnalysisCancelled, ParseError, RuleEvaluationError
from policylint.findings.models import (
    INTERNAL_ERROR_RULE_ID,
    PARSE_FAILURE_RULE_ID,
    Diagnostic,
    DiagnosticKind,
    Location,
    RuleResult,
    Severity,
)
from policylint.loader import collect_source_paths, load_units
from policylint.parser import create_parser
from policylint.rules.base import Rule

logger = logging.getLogger(__name__)


class DiagnosticCollector:
    """Append-only sink for per-unit diagnostics, written once per finished unit."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._diagnostics: list[Diagnostic] = []
        self._units = 0

    def add_unit(self, diagnostics: Sequence[Diagnostic]) -> None:
        with self._lock:
            self._diagnostics.extend(diagnostics)
            self._units += 1

    @property
    def unit_count(self) -> int:
        with self._lock:
            return self._units

    def snapshot(self) -> list[Diagnostic]:
        with self._lock:
            return list(self._diagnostics)


def parse_failure_diagnostic(error: ParseError) -> Diagnostic:
    return Diagnostic(
        rule_id=PARSE_FAILURE_RULE_ID,
        message=f"could not parse file ({error.detail}); no rules were run on it",
        location=Location(path=error.path, line=error.line, column=error.column),
        severity=Severity.ERROR,
        kind=DiagnosticKind.PARSE_FAILURE,
    )


def internal_error_diagnostic(error: RuleEvaluationError) -> Diagnostic:
    cause = f"{type(error.cause).__name__}: {error.cause}" if error.cause is not None else "unknown failure"
    return Diagnostic(
        rule_id=INTERNAL_ERROR_RULE_ID,
        message=f"rule '{error.rule_id}' failed internally ({cause}); its results for this file are missing",
        location=Location(path=error.path, line=1, column=1),
        severity=Severity.ERROR,
        kind=DiagnosticKind.INTERNAL,
    )


def unit_failure_diagnostic(path: Path, cause: BaseException) -> Diagnostic:
    return Diagnostic(
        rule_id=INTERNAL_ERROR_RULE_ID,
        message=(
            f"analysis of this file failed internally ({type(cause).__name__}: {cause}); "
            "no rules were run on it"
        ),
        location=Location(path=path, line=1, column=1),
        severity=Severity.ERROR,
        kind=DiagnosticKind.INTERNAL,
    )


def evaluate_rule(rule: Rule, context: FileContext, config: Optional[Config] = None) -> RuleResult:
    """Run one rule on one unit, wrapping any failure in RuleEvaluationError."""
    try:
        return rule.run(context, config)
    except Exception as exc:
        raise RuleEvaluationError(rule.id, context.path, exc) from exc


def analyze_unit(
    unit: SourceUnit,
    rules: Sequence[Rule],
    config: Optional[Config] = None,
    parser: Optional[Parser] = None,
) -> list[Diagnostic]:
    """Parse unit and run every rule on it. Failures stay scoped to this unit and never raise."""
    try:
        context = parse_unit(unit, parser=parser)
    except ParseError as err:
        logger.warning("Skipping %s: %s", unit.path, err)
        return [parse_failure_diagnostic(err)]
    except Exception as exc:
        logger.exception("Analysis of %s failed", unit.path)
        return [unit_failure_diagnostic(unit.path, exc)]

    diagnostics: list[Diagnostic] = []
    for rule in rules:
        try:
            result = evaluate_rule(rule, context, config)
        except RuleEvaluationError as err:
            logger.exception("Rule %s failed on %s", err.rule_id, err.path)
            diagnostics.append(internal_error_diagnostic(err))
            continue
        logger.debug("Rule %s on %s: %d diagnostic(s)", rule.id, unit.path, len(result.diagnostics))
        diagnostics.extend(result.diagnostics)
    return diagnostics


class AnalysisEngine:
    """Runs rules over many units on a bounded thread pool."""

    def __init__(
        self,
        config: Optional[Config] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.config = config if config is not None else get_default_config()
        self._cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self._local = threading.local()

    def cancel(self) -> None:
        """Request cancellation; takes effect at the next unit boundary."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _thread_parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = create_parser()
            self._local.parser = parser
        return parser

    def _process(self, unit: SourceUnit, collector: DiagnosticCollector) -> None:
        if self.cancelled:
            raise AnalysisCancelled(f"cancelled before {unit.path}")
        diagnostics = analyze_unit(unit, self.config.rules, self.config, parser=self._thread_parser())
        if self.cancelled:
            raise AnalysisCancelled(f"cancelled after {unit.path}")
        collector.add_unit(diagnostics)

    def run(self, units: Sequence[SourceUnit]) -> list[Diagnostic]:
        """
        Analyze units and return all diagnostics, in no particular order.

        Raises:
            AnalysisCancelled: if cancel() was called before all units finished.
        """
        if self.cancelled:
            raise AnalysisCancelled("cancelled before start")
        collector = DiagnosticCollector()
        if not units:
            return []

        workers = max(1, min(self.config.max_parallel, len(units)))
        logger.info("Analyzing %d unit(s) with %d worker(s)", len(units), workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="policylint") as executor:
            futures: list[Future[None]] = [executor.submit(self._process, unit, collector) for unit in units]
            try:
                for future in as_completed(futures):
                    future.result()
            except (AnalysisCancelled, KeyboardInterrupt) as exc:
                self.cancel()
                for future in futures:
                    future.cancel()
                logger.warning(
                    "Analysis cancelled after %d of %d unit(s); results discarded",
                    collector.unit_count,
                    len(units),
                )
                if isinstance(exc, KeyboardInterrupt):
                    raise AnalysisCancelled("interrupted") from exc
                raise

        return collector.snapshot()


def analyze_path(
    target: Path,
    config: Optional[Config] = None,
    cancel_event: Optional[threading.Event] = None,
) -> list[Diagnostic]:
    """
    Load every .cs file under target and analyze it.

    Raises:
        ConfigurationError: bad target or unreadable source file.
        AnalysisCancelled: if cancel_event was set during the run.
    """
    if config is None:
        config = get_default_config()
    paths = collect_source_paths(target, ignore_dirs=config.ignore_dirs)
    units = load_units(paths, language_version=config.language_version)
    return AnalysisEngine(config, cancel_event=cancel_event).run(units)
