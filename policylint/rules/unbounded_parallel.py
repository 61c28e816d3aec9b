# Unbounded parallel iteration: Parallel.For/ForEach/ForEachAsync without ParallelOptions
# limiting MaxDegreeOfParallelism, and PLINQ AsParallel() without WithDegreeOfParallelism().

from __future__ import annotations

from typing import Iterator, Optional

from tree_sitter import Node as TSNode

from policylint.context import FileContext
from policylint.findings.models import Severity
from policylint.rules.base import Match, Rule
from policylint.syntax import (
    FUNCTION_TYPES,
    assignment_sides,
    enclosing,
    enclosing_type_declaration,
    invocation_arguments,
    invocation_target,
    named_children,
    node_text,
    walk,
    walk_type,
)

PARALLEL_METHODS = frozenset({"For", "ForEach", "ForEachAsync"})
LIMIT_PROPERTY = "MaxDegreeOfParallelism"
PLINQ_ENTRY = "AsParallel"
PLINQ_LIMIT = "WithDegreeOfParallelism"

OBJECT_CREATION_TYPES = frozenset({"object_creation_expression", "implicit_object_creation_expression"})
LOCAL_DECLARATION_TYPES = frozenset({"variable_declarator", "parameter"})

# MaxDegreeOfParallelism = -1 means "no limit"
_UNLIMITED_VALUES = frozenset({"-1"})


def _is_parallel_class(context: FileContext, receiver: Optional[TSNode]) -> bool:
    if receiver is None:
        return False
    text = node_text(context, receiver)
    return text == "Parallel" or text.endswith(".Parallel")


def _sets_limit(context: FileContext, assignment: TSNode, target: str) -> bool:
    left, right = assignment_sides(assignment)
    if left is None or right is None:
        return False
    return node_text(context, left) == target and node_text(context, right) not in _UNLIMITED_VALUES


def _is_limited_options_creation(context: FileContext, node: TSNode) -> bool:
    """`new ParallelOptions { MaxDegreeOfParallelism = n }` (or target-typed `new() { ... }`)."""
    if node.type not in OBJECT_CREATION_TYPES:
        return False
    if node.type == "object_creation_expression":
        type_node = node.child_by_field_name("type")
        if type_node is not None and not node_text(context, type_node).endswith("ParallelOptions"):
            return False
    for child in node.children:
        if child.type != "initializer_expression":
            continue
        for entry in named_children(child):
            if entry.type == "assignment_expression" and _sets_limit(context, entry, LIMIT_PROPERTY):
                return True
    return False


def _declared_name(context: FileContext, node: TSNode) -> Optional[str]:
    declared = node.child_by_field_name("name")
    if declared is None:
        inner = named_children(node)
        declared = inner[0] if inner else None
    return node_text(context, declared) if declared is not None else None


def _declares_local(context: FileContext, function: TSNode, name: str) -> bool:
    """True if function declares name as a local variable or parameter."""
    for node in walk(function):
        if node.type in LOCAL_DECLARATION_TYPES and _declared_name(context, node) == name:
            return True
    return False


def _binding_scopes(context: FileContext, call: TSNode, name: str, member: bool) -> list[TSNode]:
    """
    Where an options value passed to call may be configured.

    A local name is looked up in its own method only. The enclosing type is
    searched for members: `this.x`, `Holder.x`, or a name the method does not
    declare itself.
    """
    scopes: list[TSNode] = []
    function = enclosing(call, FUNCTION_TYPES)
    if function is not None and not member:
        scopes.append(function)
    if member or function is None or not _declares_local(context, function, name):
        owner = enclosing_type_declaration(call)
        if owner is not None:
            scopes.append(owner)
    return scopes


def _identifier_is_limited(context: FileContext, name: str, scopes: list[TSNode]) -> bool:
    """
    True if name is declared with a limiting initializer, or has
    `name.MaxDegreeOfParallelism = n` assigned, in one of the scopes.
    """
    member_target = f"{name}.{LIMIT_PROPERTY}"
    bare_name = name.split(".")[-1]
    for scope in scopes:
        for node in walk(scope):
            if node.type == "assignment_expression":
                left, right = assignment_sides(node)
                if _sets_limit(context, node, member_target) or _sets_limit(
                    context, node, f"this.{member_target}"
                ):
                    return True
                if (
                    left is not None
                    and right is not None
                    and node_text(context, left) in (name, bare_name)
                    and _is_limited_options_creation(context, right)
                ):
                    return True
            elif node.type == "variable_declarator":
                if _declared_name(context, node) != bare_name:
                    continue
                if any(_is_limited_options_creation(context, n) for n in walk(node)):
                    return True
    return False


def _has_limit_argument(context: FileContext, call: TSNode) -> bool:
    for arg in invocation_arguments(call):
        if _is_limited_options_creation(context, arg):
            return True
        if arg.type in ("identifier", "member_access_expression"):
            name = node_text(context, arg)
            if name.startswith("this."):
                name = name[len("this."):]
            scopes = _binding_scopes(context, call, name, member=arg.type == "member_access_expression")
            if _identifier_is_limited(context, name, scopes):
                return True
    return False


def _plinq_chain_is_limited(context: FileContext, call: TSNode) -> bool:
    """Walk outward along `.AsParallel().Where(...).WithDegreeOfParallelism(n)...`."""
    node = call
    while node.parent is not None and node.parent.type in ("member_access_expression", "invocation_expression"):
        parent = node.parent
        if parent.type == "invocation_expression":
            _, name = invocation_target(parent)
            if name is not None and node_text(context, name) == PLINQ_LIMIT:
                return True
        node = parent
    return False


def find_unbounded_parallel_iterations(context: FileContext) -> Iterator[Match]:
    for call in walk_type(context.root_node, "invocation_expression"):
        receiver, name_node = invocation_target(call)
        if name_node is None:
            continue
        name = node_text(context, name_node)

        if name in PARALLEL_METHODS and _is_parallel_class(context, receiver):
            if _has_limit_argument(context, call):
                continue
            yield Match(
                node=call,
                message=(
                    f"'Parallel.{name}' runs without a concurrency limit; pass ParallelOptions "
                    f"with {LIMIT_PROPERTY} set"
                ),
            )
        elif name == PLINQ_ENTRY and receiver is not None:
            if _plinq_chain_is_limited(context, call):
                continue
            yield Match(
                node=call,
                message=f"'AsParallel()' query runs without a concurrency limit; add .{PLINQ_LIMIT}(n)",
            )


UNBOUNDED_PARALLEL_ITERATION = Rule(
    id="unbounded-parallel-iteration",
    name="Unbounded parallel iteration",
    matcher=find_unbounded_parallel_iterations,
    severity=Severity.WARNING,
    remediation=(
        "Bound CPU-bound parallelism: new ParallelOptions { MaxDegreeOfParallelism = Environment.ProcessorCount } "
        "for Parallel.*, or .WithDegreeOfParallelism(n) for PLINQ."
    ),
)
