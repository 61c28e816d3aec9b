# Rule contract: a rule is an id plus a pure matcher function over one parsed file.
# The set of rules is closed (see rules/registry.py); new rules are new entries there,
# not subclasses.

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from tree_sitter import Node as TSNode

from policylint.context import FileContext, get_end_line_col, get_line_col, get_source_span
from policylint.findings.models import Diagnostic, Location, RuleResult, Severity

if TYPE_CHECKING:
    from policylint.config import Config


@dataclass(frozen=True)
class Match:
    """A node a matcher objects to, and why."""

    node: TSNode
    message: str


Matcher = Callable[[FileContext], Iterable[Match]]


def make_location(context: FileContext, node: TSNode) -> Location:
    line, col = get_line_col(context.source, node)
    end_line, end_col = get_end_line_col(context.source, node)
    return Location(
        path=context.path,
        line=line,
        column=col,
        end_line=end_line,
        end_column=end_col,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        snippet=get_source_span(context, node),
    )


@dataclass(frozen=True)
class Rule:
    """
    A static analysis rule.

    - id: unique rule identifier (e.g. "rethrow-hygiene")
    - name: human-readable rule name
    - matcher: pure function (FileContext) -> Iterable[Match]; must not mutate the tree
    - severity: default severity, overridable per run through Config
    - remediation: suggested fix text attached to every diagnostic

    The engine calls run() once per file.
    """

    id: str
    name: str
    matcher: Matcher
    severity: Severity = Severity.WARNING
    remediation: Optional[str] = None

    def effective_severity(self, config: Optional["Config"] = None) -> Severity:
        if config is None:
            return self.severity
        return config.severity_overrides.get(self.id, self.severity)

    def run(self, context: FileContext, config: Optional["Config"] = None) -> RuleResult:
        """
        Analyze one file and return its diagnostics in document order.

        Matches on lines carrying a `policylint: disable=<id>` comment (or a
        file-wide disable) are dropped.
        """
        severity = self.effective_severity(config)
        diagnostics: list[Diagnostic] = []
        for match in self.matcher(context):
            location = make_location(context, match.node)
            if context.suppressions.is_suppressed(self.id, location.line):
                continue
            diagnostics.append(
                Diagnostic(
                    rule_id=self.id,
                    message=match.message,
                    location=location,
                    severity=severity,
                    suggestion=self.remediation,
                )
            )
        diagnostics.sort(key=lambda d: (d.location.start_byte, d.message))
        return RuleResult(rule_id=self.id, path=context.path, diagnostics=tuple(diagnostics))
