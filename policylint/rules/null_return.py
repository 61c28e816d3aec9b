# Null return after catch: a catch block ending in `return null;` hides the failure as data
# when the method's declared return type does not admit null.

from __future__ import annotations

from typing import Iterator

from policylint.context import FileContext
from policylint.findings.models import Severity
from policylint.rules.base import Match, Rule
from policylint.syntax import (
    ANONYMOUS_FUNCTION_TYPES,
    catch_body,
    declared_return_type,
    enclosing_function,
    function_name,
    is_non_optional_type,
    is_null_sentinel,
    node_text,
    statement_expression,
    terminal_statement,
    walk_type,
)


def find_null_returns_after_catch(context: FileContext) -> Iterator[Match]:
    for catch in walk_type(context.root_node, "catch_clause"):
        last = terminal_statement(catch_body(catch))
        if last is None or last.type != "return_statement":
            continue
        value = statement_expression(last)
        if not is_null_sentinel(context, value):
            continue

        function = enclosing_function(catch)
        # Lambdas and anonymous methods carry no declared return type
        if function is None or function.type in ANONYMOUS_FUNCTION_TYPES:
            continue
        return_type = declared_return_type(function)
        if not is_non_optional_type(context, return_type):
            continue

        sentinel = node_text(context, value) if value is not None else "null"
        yield Match(
            node=last,
            message=(
                f"catch block returns '{sentinel}' from '{function_name(context, function)}', whose "
                f"return type '{node_text(context, return_type)}' is not nullable; "
                "the failure is hidden as ambiguous data"
            ),
        )


NULL_RETURN_AFTER_CATCH = Rule(
    id="null-return-after-catch",
    name="Null returned from catch",
    matcher=find_null_returns_after_catch,
    severity=Severity.WARNING,
    remediation=(
        "Let the exception propagate (or rethrow with context), return an empty collection, "
        "or declare the return type nullable (T?) so callers must handle the missing value."
    ),
)
