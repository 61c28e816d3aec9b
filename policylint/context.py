# Per-file analysis context: source unit, AST, suppressions, and span/location helpers.
# Parsing a unit with syntax errors raises ParseError so the engine can skip the
# unit's rules and report a single parse failure instead.

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tree_sitter import Node as TSNode
from tree_sitter import Parser, Tree

from policylint.errors import ParseError
from policylint.parser import first_error_node, parse_bytes, walk
from policylint.suppression import Suppressions, parse_suppressions

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE_VERSION = "latest"

METHOD_LIKE_TYPES = frozenset({"method_declaration", "local_function_statement"})


@dataclass(frozen=True)
class SourceUnit:
    """One loaded source file. Immutable after load."""

    path: Path
    text: bytes
    language_version: str = DEFAULT_LANGUAGE_VERSION


def count_tree_stats(root: TSNode) -> tuple[int, int]:
    """Return (total node count, method declaration count) for the tree."""
    nodes = methods = 0
    for node in walk(root):
        nodes += 1
        if node.type in METHOD_LIKE_TYPES:
            methods += 1
    return nodes, methods


class FileContext:
    """
    Per-file state for static analysis: the source unit, its AST and suppressions.

    Rules use context.path, context.source and context.root_node. Use
    get_source_span(context, node) and get_line_col(context.source, node) for locations/snippets.
    """

    def __init__(
        self,
        unit: SourceUnit,
        tree: Tree,
        *,
        has_parse_errors: bool = False,
        suppressions: Optional[Suppressions] = None,
    ) -> None:
        self.unit = unit
        self.tree = tree
        self.has_parse_errors = has_parse_errors
        self.suppressions = suppressions if suppressions is not None else parse_suppressions(unit.text)

    @property
    def path(self) -> Path:
        return self.unit.path

    @property
    def source(self) -> bytes:
        return self.unit.text

    @property
    def root_node(self) -> TSNode:
        """Convenience access to the AST root."""
        return self.tree.root_node


def get_source_span(context: FileContext, node: TSNode) -> str:
    """
    Return the substring of context.source for the given node's byte range.

    Decodes with errors="replace" so bad UTF-8 does not crash.
    """
    return context.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _char_column(source: bytes, byte_offset: int, byte_column: int) -> int:
    """Turn a tree-sitter byte column into a character column on the same line."""
    if byte_column == 0:
        return 0
    return len(source[byte_offset - byte_column : byte_offset].decode("utf-8", errors="replace"))


def get_line_col(source: bytes, node: TSNode, one_based: bool = True) -> tuple[int, int]:
    """
    Return (line, column) for the node's start position.

    Tree-sitter uses 0-based (row, byte column); the column is converted to
    characters so it matches what editors show after non-ASCII text. If
    one_based=True (default), returns 1-based line and column for display.
    """
    row, byte_col = node.start_point
    col = _char_column(source, node.start_byte, byte_col)
    if one_based:
        return row + 1, col + 1
    return row, col


def get_end_line_col(source: bytes, node: TSNode, one_based: bool = True) -> tuple[int, int]:
    """Same as get_line_col, for the node's end position."""
    row, byte_col = node.end_point
    col = _char_column(source, node.end_byte, byte_col)
    if one_based:
        return row + 1, col + 1
    return row, col


def build_context(unit: SourceUnit, parser: Optional[Parser] = None) -> FileContext:
    """
    Parse a loaded unit into a FileContext, tolerating syntax errors.

    The returned context has has_parse_errors=True when the tree contains
    ERROR or MISSING nodes.
    """
    tree = parse_bytes(unit.text, parser=parser)
    has_errors = tree.root_node.has_error
    node_count, method_count = count_tree_stats(tree.root_node)
    logger.debug(
        "Parsed %s: %d nodes, %d method(s)%s",
        unit.path,
        node_count,
        method_count,
        " (with parse errors)" if has_errors else "",
    )
    return FileContext(unit=unit, tree=tree, has_parse_errors=has_errors)


def parse_unit(unit: SourceUnit, parser: Optional[Parser] = None) -> FileContext:
    """
    Parse a loaded unit, raising ParseError if the source is malformed.

    The error carries the 1-based position of the first ERROR/MISSING node.
    """
    context = build_context(unit, parser=parser)
    if context.has_parse_errors:
        bad = first_error_node(context.root_node)
        line, col = get_line_col(unit.text, bad) if bad is not None else (1, 1)
        detail = "missing token" if bad is not None and bad.is_missing else "syntax error"
        raise ParseError(unit.path, line, col, detail)
    return context

