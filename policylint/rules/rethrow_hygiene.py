# Rethrow hygiene: `throw ex;` inside `catch (... ex)` resets the stack trace; `throw;` keeps it.

from __future__ import annotations

from typing import Iterator, Optional

from tree_sitter import Node as TSNode

from policylint.context import FileContext, get_source_span
from policylint.findings.models import Severity
from policylint.rules.base import Match, Rule
from policylint.syntax import FUNCTION_TYPES, catch_variable, statement_expression, walk

THROW_TYPES = frozenset({"throw_statement", "throw_expression"})


def _binding_catch(context: FileContext, node: TSNode, name: str) -> Optional[TSNode]:
    """
    Nearest catch clause above node that binds name.

    The search crosses lambdas (they capture the variable) but stops at
    method-like declarations.
    """
    n = node.parent
    while n is not None and n.type not in FUNCTION_TYPES:
        if n.type == "catch_clause" and catch_variable(context, n) == name:
            return n
        n = n.parent
    return None


def find_reconstructed_rethrows(context: FileContext) -> Iterator[Match]:
    for node in walk(context.root_node):
        if node.type not in THROW_TYPES:
            continue
        operand = statement_expression(node)
        if operand is None or operand.type != "identifier":
            continue
        name = get_source_span(context, operand).strip()
        if _binding_catch(context, node, name) is None:
            continue
        yield Match(
            node=node,
            message=(
                f"'throw {name};' rethrows the caught exception as new and discards its "
                "original stack trace; use 'throw;' to rethrow it unchanged"
            ),
        )


RETHROW_HYGIENE = Rule(
    id="rethrow-hygiene",
    name="Rethrow discards failure origin",
    matcher=find_reconstructed_rethrows,
    severity=Severity.WARNING,
    remediation=(
        "Replace 'throw ex;' with 'throw;', or wrap it: "
        "throw new SomeException(\"context\", ex); to add context while keeping the original as InnerException."
    ),
)
