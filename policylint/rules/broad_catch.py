# Overly broad catch: `catch (Exception)` or a bare `catch` that does not rethrow.

from __future__ import annotations

from typing import Iterator

from policylint.context import FileContext
from policylint.findings.models import Severity
from policylint.rules.base import Match, Rule
from policylint.syntax import (
    catch_body,
    catch_declaration,
    catch_has_filter,
    catch_type,
    node_text,
    terminal_statement,
    walk_type,
)

UNIVERSAL_EXCEPTION_TYPES = frozenset(
    {
        "Exception",
        "System.Exception",
        "global::System.Exception",
    }
)


def find_overly_broad_catches(context: FileContext) -> Iterator[Match]:
    for catch in walk_type(context.root_node, "catch_clause"):
        if catch_declaration(catch) is None:
            caught = "all exceptions"
        else:
            type_node = catch_type(catch)
            if type_node is None or node_text(context, type_node) not in UNIVERSAL_EXCEPTION_TYPES:
                continue
            caught = f"'{node_text(context, type_node)}'"

        # `when (...)` narrows the catch to what the filter accepts
        if catch_has_filter(catch):
            continue
        last = terminal_statement(catch_body(catch))
        if last is not None and last.type == "throw_statement":
            continue

        yield Match(
            node=catch,
            message=(
                f"catch of {caught} handles every failure the same way without rethrowing; "
                "catch the specific exceptions you can handle"
            ),
        )


OVERLY_BROAD_CATCH = Rule(
    id="overly-broad-catch",
    name="Overly broad catch",
    matcher=find_overly_broad_catches,
    severity=Severity.WARNING,
    remediation=(
        "Catch specific exception types, add an exception filter (catch (Exception ex) when (...)), "
        "or end the catch block with 'throw;'."
    ),
)
