# Pydantic data models for diagnostics: Severity, Location, Diagnostic, RuleResult.

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class DiagnosticKind(str, Enum):
    """Separates user-code findings from problems of the tool itself."""

    RULE = "rule"
    PARSE_FAILURE = "parse-failure"
    INTERNAL = "internal"


PARSE_FAILURE_RULE_ID = "parse-failure"
INTERNAL_ERROR_RULE_ID = "internal-error"


class Location(BaseModel):
    """Where in the source a diagnostic was reported (file, line, column, byte span)."""

    path: Path
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    end_line: Optional[int] = Field(None, ge=1)
    end_column: Optional[int] = Field(None, ge=1)
    start_byte: int = Field(0, ge=0)
    end_byte: int = Field(0, ge=0)
    snippet: Optional[str] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Diagnostic(BaseModel):
    """A single located violation (e.g. `throw ex;` at line 42)."""

    rule_id: str
    message: str
    location: Location
    severity: Severity = Severity.WARNING
    kind: DiagnosticKind = DiagnosticKind.RULE
    suggestion: Optional[str] = Field(None, description="Suggested fix, as prose")

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def sort_key(self) -> tuple[str, int, int, str, str]:
        loc = self.location
        return (str(loc.path), loc.line, loc.column, self.rule_id, self.message)

    def to_json_dict(self) -> dict[str, object]:
        """The external JSON shape: {file, line, column, severity, ruleId, message}."""
        return {
            "file": str(self.location.path),
            "line": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "ruleId": self.rule_id,
            "message": self.message,
        }


class RuleResult(BaseModel):
    """Ordered diagnostics produced by one rule over one unit."""

    rule_id: str
    path: Path
    diagnostics: tuple[Diagnostic, ...] = ()

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
