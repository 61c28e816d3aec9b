"""Tests for policylint.context: SourceUnit, FileContext, parse_unit, spans and locations."""

from pathlib import Path

import pytest

from policylint.context import (
    FileContext,
    SourceUnit,
    build_context,
    count_tree_stats,
    get_end_line_col,
    get_line_col,
    get_source_span,
    parse_unit,
)
from policylint.errors import ParseError
from policylint.parser import create_parser, parse_bytes, walk

VALID = b"class C {\n    int A() { return 1; }\n    void B() { int Local() => 2; }\n}\n"


def test_count_tree_stats_counts_methods_and_local_functions():
    tree = parse_bytes(VALID, parser=create_parser())
    nodes, methods = count_tree_stats(tree.root_node)
    assert nodes > 1
    assert methods == 3


def test_source_unit_is_immutable():
    unit = SourceUnit(path=Path("A.cs"), text=b"class A { }")
    with pytest.raises(AttributeError):
        unit.text = b""  # type: ignore[misc]
    assert unit.language_version == "latest"


def test_parse_unit_valid():
    unit = SourceUnit(path=Path("A.cs"), text=VALID)
    ctx = parse_unit(unit)
    assert ctx.path == Path("A.cs")
    assert ctx.source == VALID
    assert ctx.root_node.type == "compilation_unit"
    assert ctx.has_parse_errors is False


def test_parse_unit_malformed_raises_parse_error():
    unit = SourceUnit(path=Path("Bad.cs"), text=b"class C {\n    void M() { if ( }\n}\n")
    with pytest.raises(ParseError) as excinfo:
        parse_unit(unit)
    assert excinfo.value.path == Path("Bad.cs")
    assert excinfo.value.line >= 1
    assert excinfo.value.column >= 1


def test_build_context_tolerates_errors():
    unit = SourceUnit(path=Path("Bad.cs"), text=b"class C { void M( }")
    ctx = build_context(unit)
    assert ctx.has_parse_errors is True


def test_get_source_span_and_line_col():
    source = b"class C {\n    int A() { return 1; }\n}\n"
    tree = parse_bytes(source)
    ctx = FileContext(unit=SourceUnit(path=Path("C.cs"), text=source), tree=tree)
    assert get_source_span(ctx, ctx.root_node).startswith("class C")
    class_node = ctx.root_node.named_children[0]
    assert get_line_col(source, class_node) == (1, 1)
    assert get_line_col(source, class_node, one_based=False) == (0, 0)


def test_context_parses_suppressions():
    source = b"class C { } // policylint: disable-file=overly-broad-catch\n"
    ctx = parse_unit(SourceUnit(path=Path("C.cs"), text=source))
    assert ctx.suppressions.is_suppressed("overly-broad-catch", 42)


def test_line_col_counts_characters_not_bytes():
    source = 'class C { string S = "héllo wörld"; int N; }\n'.encode("utf-8")
    tree = parse_bytes(source)
    field = [n for n in walk(tree.root_node) if n.type == "field_declaration"][-1]
    assert field.start_point[1] == 38
    assert get_line_col(source, field) == (1, 37)
    assert get_end_line_col(source, field) == (1, 43)


def test_count_tree_stats_deeply_nested_expression():
    source = b"class D { string M() { return " + b" + ".join([b'"a"'] * 3000) + b"; } }"
    ctx = parse_unit(SourceUnit(path=Path("D.cs"), text=source))
    nodes, methods = count_tree_stats(ctx.root_node)
    assert methods == 1
    assert nodes > 3000
