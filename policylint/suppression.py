"""
Inline suppression comments.

Two forms are recognised inside ``//`` comments:

    Parallel.ForEach(items, Handle); // policylint: disable=unbounded-parallel-iteration
    // policylint: disable-file=overly-broad-catch,null-return-after-catch

``disable`` applies to diagnostics starting on the same line, ``disable-file``
to the whole file. The id ``all`` matches every rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_DIRECTIVE_RE = re.compile(
    r"//\s*policylint:\s*(?P<scope>disable|disable-file)\s*=\s*(?P<ids>[\w\-]+(?:\s*,\s*[\w\-]+)*)"
)

ALL_RULES = "all"


@dataclass(frozen=True)
class Suppressions:
    by_line: dict[int, frozenset[str]] = field(default_factory=dict)
    file_wide: frozenset[str] = frozenset()

    def is_suppressed(self, rule_id: str, line: int) -> bool:
        if rule_id in self.file_wide or ALL_RULES in self.file_wide:
            return True
        ids = self.by_line.get(line)
        if not ids:
            return False
        return rule_id in ids or ALL_RULES in ids


def parse_suppressions(source: bytes) -> Suppressions:
    """
    Scan raw source for policylint directives. Line numbers are 1-based.

    Only LF ends a line, matching tree-sitter rows; form feeds and other
    Unicode line separators stay inside their line.
    """
    text = source.decode("utf-8", errors="replace")
    by_line: dict[int, frozenset[str]] = {}
    file_wide: set[str] = set()
    for lineno, line in enumerate(text.split("\n"), start=1):
        if "policylint" not in line:
            continue
        for m in _DIRECTIVE_RE.finditer(line):
            ids = {part.strip() for part in m.group("ids").split(",") if part.strip()}
            if m.group("scope") == "disable-file":
                file_wide.update(ids)
            else:
                by_line[lineno] = by_line.get(lineno, frozenset()) | ids
    return Suppressions(by_line=by_line, file_wide=frozenset(file_wide))
