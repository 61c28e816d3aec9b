# Tree-sitter setup and AST parsing: parse C# source code into AST trees.

import logging
from typing import Iterator, Optional

import tree_sitter
from tree_sitter import Language
from tree_sitter import Node as TSNode
from tree_sitter_c_sharp import language as _csharp_language_capsule

logger = logging.getLogger(__name__)

# C# language grammar: wrap tree-sitter-c-sharp capsule for use with tree_sitter.Parser
_CSHARP_LANGUAGE = Language(_csharp_language_capsule())


def create_parser() -> tree_sitter.Parser:
    """Create and return a Tree-sitter Parser configured for C#."""
    parser = tree_sitter.Parser(_CSHARP_LANGUAGE)
    return parser


def walk(node: TSNode) -> Iterator[TSNode]:
    """
    Yield node and every descendant in document order (pre-order DFS).

    Uses an explicit stack: generated code nests deep enough (long string
    concatenations, huge initializers) to exceed Python's recursion limit.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def first_error_node(node: TSNode) -> Optional[TSNode]:
    """
    Return the first ERROR or MISSING node under node in document order.

    Only subtrees flagged with has_error are descended into.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    # has_error set but no error child found (should not happen); report the node itself
    return node if node.has_error else None


def parse_bytes(
    source: bytes,
    parser: Optional[tree_sitter.Parser] = None,
) -> tree_sitter.Tree:
    """
    Parse C# source bytes into an AST.

    Args:
        source: UTF-8 encoded C# source code.
        parser: Optional parser instance; if None, a new one is created.

    Returns:
        The parse tree. Check tree.root_node.has_error for syntax errors.
    """
    if parser is None:
        parser = create_parser()
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.warning(
            "Parse completed with errors: root=%s",
            tree.root_node.type,
        )
    else:
        logger.debug(
            "Parse succeeded: root=%s",
            tree.root_node.type,
        )
    return tree
