# C# syntax helpers shared by rules: tree walking, enclosing scopes, catch clauses, types.
# Everything here is structural (node kinds and subtree shape); no type inference.

from __future__ import annotations

from typing import Iterator, Optional

from tree_sitter import Node as TSNode

from policylint.context import FileContext, get_source_span
from policylint.parser import walk

# Boundaries a `return` or a catch variable cannot cross
FUNCTION_TYPES = frozenset(
    {
        "method_declaration",
        "local_function_statement",
        "constructor_declaration",
        "destructor_declaration",
        "operator_declaration",
        "conversion_operator_declaration",
        "accessor_declaration",
    }
)

ANONYMOUS_FUNCTION_TYPES = frozenset({"lambda_expression", "anonymous_method_expression"})

TYPE_DECLARATION_TYPES = frozenset(
    {
        "class_declaration",
        "struct_declaration",
        "record_declaration",
        "record_struct_declaration",
        "interface_declaration",
    }
)

_WRAPPER_TYPES = frozenset({"parenthesized_expression", "literal"})


def walk_type(node: TSNode, node_type: str) -> Iterator[TSNode]:
    for n in walk(node):
        if n.type == node_type:
            yield n


def node_text(context: FileContext, node: TSNode) -> str:
    """Source text of node with all whitespace removed (for name comparisons)."""
    return "".join(get_source_span(context, node).split())


def is_trivia(node: TSNode) -> bool:
    return node.type == "comment" or node.type.startswith("preproc")


def named_children(node: TSNode) -> list[TSNode]:
    """Named children of node, without comments and preprocessor lines."""
    return [c for c in node.children if c.is_named and not is_trivia(c)]


def unwrap_expression(node: Optional[TSNode]) -> Optional[TSNode]:
    """Strip parentheses and literal wrappers: ((null)) -> null_literal."""
    while node is not None and node.type in _WRAPPER_TYPES:
        inner = named_children(node)
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def enclosing(node: TSNode, types: frozenset[str], stop: frozenset[str] = frozenset()) -> Optional[TSNode]:
    """Return the nearest ancestor of one of types, or None if a stop type is reached first."""
    n = node.parent
    while n is not None:
        if n.type in types:
            return n
        if n.type in stop:
            return None
        n = n.parent
    return None


def enclosing_function(node: TSNode) -> Optional[TSNode]:
    """Nearest enclosing method-like declaration, lambda or anonymous method."""
    return enclosing(node, FUNCTION_TYPES | ANONYMOUS_FUNCTION_TYPES)


def enclosing_type_declaration(node: TSNode) -> Optional[TSNode]:
    return enclosing(node, TYPE_DECLARATION_TYPES)


# --- catch clauses ---------------------------------------------------------


def catch_declaration(catch: TSNode) -> Optional[TSNode]:
    for child in catch.children:
        if child.type == "catch_declaration":
            return child
    return None


def catch_type(catch: TSNode) -> Optional[TSNode]:
    decl = catch_declaration(catch)
    if decl is None:
        return None
    type_node = decl.child_by_field_name("type")
    if type_node is not None:
        return type_node
    inner = named_children(decl)
    return inner[0] if inner else None


def catch_variable(context: FileContext, catch: TSNode) -> Optional[str]:
    """Name bound by `catch (T name)`, or None for `catch (T)` and bare `catch`."""
    decl = catch_declaration(catch)
    if decl is None:
        return None
    name = decl.child_by_field_name("name")
    if name is None:
        inner = named_children(decl)
        if len(inner) < 2 or inner[-1].type != "identifier":
            return None
        name = inner[-1]
    return get_source_span(context, name).strip()


def catch_has_filter(catch: TSNode) -> bool:
    return any(child.type == "catch_filter_clause" for child in catch.children)


def catch_body(catch: TSNode) -> Optional[TSNode]:
    body = catch.child_by_field_name("body")
    if body is not None:
        return body
    for child in reversed(catch.children):
        if child.type == "block":
            return child
    return None


def block_statements(block: Optional[TSNode]) -> list[TSNode]:
    if block is None:
        return []
    return named_children(block)


def terminal_statement(block: Optional[TSNode]) -> Optional[TSNode]:
    statements = block_statements(block)
    return statements[-1] if statements else None


# --- statements and expressions -------------------------------------------


def statement_expression(node: TSNode) -> Optional[TSNode]:
    """The operand of `return x;`, `throw x;` or `throw x` (expression form), if any."""
    inner = named_children(node)
    return unwrap_expression(inner[0]) if inner else None


def is_null_sentinel(context: FileContext, node: Optional[TSNode]) -> bool:
    """True for `null`, `default`, `default(T)` and casts of those, e.g. `(List<T>)null`."""
    node = unwrap_expression(node)
    if node is None:
        return False
    if node.type in ("null_literal", "default_expression"):
        return True
    if node.type == "cast_expression":
        value = node.child_by_field_name("value")
        if value is None:
            inner = named_children(node)
            value = inner[-1] if inner else None
        return is_null_sentinel(context, value)
    return node_text(context, node) in ("null", "default")


def invocation_target(node: TSNode) -> tuple[Optional[TSNode], Optional[TSNode]]:
    """
    Split an invocation's function into (receiver, name node).

    `Parallel.ForEach(...)` -> (Parallel, ForEach); `Run(...)` -> (None, Run).
    Generic names (`ForEach<int>`) resolve to their identifier.
    """
    function = node.child_by_field_name("function")
    if function is None:
        inner = named_children(node)
        function = inner[0] if inner else None
    if function is None:
        return None, None
    receiver: Optional[TSNode] = None
    name = function
    if function.type == "member_access_expression":
        receiver = function.child_by_field_name("expression")
        name = function.child_by_field_name("name")
        if name is None:
            inner = named_children(function)
            receiver, name = (inner[0], inner[-1]) if len(inner) >= 2 else (None, None)
    if name is not None and name.type == "generic_name":
        for child in name.children:
            if child.type == "identifier":
                name = child
                break
    return receiver, name


def invocation_arguments(node: TSNode) -> list[TSNode]:
    """Argument expressions of an invocation, with `name:` and ref/out/in prefixes stripped."""
    args = node.child_by_field_name("arguments")
    if args is None:
        for child in node.children:
            if child.type == "argument_list":
                args = child
                break
    if args is None:
        return []
    expressions: list[TSNode] = []
    for arg in named_children(args):
        if arg.type != "argument":
            continue
        inner = named_children(arg)
        if inner:
            expressions.append(unwrap_expression(inner[-1]) or inner[-1])
    return expressions


def assignment_sides(node: TSNode) -> tuple[Optional[TSNode], Optional[TSNode]]:
    left = node.child_by_field_name("left")
    right = node.child_by_field_name("right")
    if left is None or right is None:
        inner = named_children(node)
        if len(inner) >= 2:
            left, right = inner[0], inner[-1]
    return left, right


# --- declared types --------------------------------------------------------


def declared_return_type(function: TSNode) -> Optional[TSNode]:
    """
    Return-type node of a method, local function or property getter.

    None when the type is not written down (lambdas, constructors, setters).
    """
    if function.type in ("method_declaration", "local_function_statement"):
        return function.child_by_field_name("returns") or function.child_by_field_name("type")
    if function.type == "accessor_declaration":
        if not any(child.type == "get" for child in function.children):
            return None
        owner = function.parent
        while owner is not None and owner.type not in ("property_declaration", "indexer_declaration"):
            owner = owner.parent
        if owner is not None:
            return owner.child_by_field_name("type")
    return None


def function_name(context: FileContext, function: TSNode) -> str:
    if function.type == "accessor_declaration":
        owner = function.parent
        while owner is not None and owner.type not in ("property_declaration", "indexer_declaration"):
            owner = owner.parent
        if owner is None:
            return "<accessor>"
        if owner.type == "indexer_declaration":
            return "this[].get"
        owner_name = owner.child_by_field_name("name")
        return (get_source_span(context, owner_name).strip() if owner_name is not None else "<property>") + ".get"
    name = function.child_by_field_name("name")
    if name is not None:
        return get_source_span(context, name).strip()
    return "<anonymous>"


def _generic_parts(context: FileContext, type_node: TSNode) -> tuple[str, list[TSNode]]:
    """(simple name, type arguments) for Foo, Foo<T>, A.B.Foo<T>."""
    if type_node.type == "qualified_name":
        name = type_node.child_by_field_name("name")
        if name is None:
            inner = named_children(type_node)
            name = inner[-1] if inner else None
        if name is None:
            return node_text(context, type_node), []
        type_node = name
    if type_node.type == "generic_name":
        simple = ""
        arguments: list[TSNode] = []
        for child in type_node.children:
            if child.type == "identifier":
                simple = get_source_span(context, child).strip()
            elif child.type == "type_argument_list":
                arguments = named_children(child)
        return simple, arguments
    return node_text(context, type_node), []


def is_non_optional_type(context: FileContext, type_node: Optional[TSNode]) -> bool:
    """
    True when the declared type rules out null as a value.

    `void`, `T?`, bare `Task`/`ValueTask` are optional or valueless; for
    `Task<T>`/`ValueTask<T>` the awaited type T decides.
    """
    if type_node is None:
        return False
    if type_node.type == "nullable_type":
        return False
    text = node_text(context, type_node)
    if text == "void" or text.endswith("?"):
        return False
    simple, arguments = _generic_parts(context, type_node)
    if simple in ("Task", "ValueTask"):
        if len(arguments) != 1:
            return False
        return is_non_optional_type(context, arguments[0])
    return True
