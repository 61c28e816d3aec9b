"""Unit tests for the null-return-after-catch rule."""

from pathlib import Path

from policylint.context import SourceUnit, parse_unit
from policylint.rules.null_return import NULL_RETURN_AFTER_CATCH


def _run_rule(source: bytes) -> list:
    unit = SourceUnit(path=Path("Test.cs"), text=source)
    return list(NULL_RETURN_AFTER_CATCH.run(parse_unit(unit)).diagnostics)


def _method(return_type: str, catch_body: str, name: str = "Load") -> bytes:
    return f"""
class Repository
{{
    public {return_type} {name}(int id)
    {{
        try
        {{
            return Fetch(id);
        }}
        catch (SqlException ex)
        {{
            {catch_body}
        }}
    }}
}}
""".encode()


def test_null_from_non_optional_sequence_fires_once():
    source = _method("List<Order>", "_log.Error(ex); return null;")
    findings = _run_rule(source)
    assert len(findings) == 1
    d = findings[0]
    assert d.rule_id == "null-return-after-catch"
    assert d.location.snippet == "return null;"
    assert d.location.line == 12
    assert "Load" in d.message
    assert "List<Order>" in d.message
    start = source.index(b"return null;")
    assert d.location.start_byte == start
    assert d.location.end_byte == start + len(b"return null;")


def test_nullable_return_type_does_not_fire():
    assert _run_rule(_method("List<Order>?", "return null;")) == []


def test_void_method_does_not_fire():
    assert _run_rule(_method("void", "return;")) == []


def test_default_literal_fires():
    assert len(_run_rule(_method("Order", "return default;"))) == 1


def test_default_of_type_fires():
    assert len(_run_rule(_method("Order", "return default(Order);"))) == 1


def test_empty_collection_does_not_fire():
    assert _run_rule(_method("List<Order>", "return new List<Order>();")) == []


def test_rethrow_does_not_fire():
    assert _run_rule(_method("List<Order>", "throw;")) == []


def test_null_not_terminal_does_not_fire():
    source = _method("Order", "if (ex.Number == 1205) { return null; } throw;")
    assert _run_rule(source) == []


def test_task_of_non_nullable_fires():
    source = _method("async Task<IReadOnlyList<Order>>", "return null;")
    assert len(_run_rule(source)) == 1


def test_task_of_nullable_does_not_fire():
    assert _run_rule(_method("async Task<Order?>", "return null;")) == []


def test_qualified_task_of_non_nullable_fires():
    assert len(_run_rule(_method("System.Threading.Tasks.Task<Order>", "return null;"))) == 1


def test_catch_inside_lambda_is_skipped():
    source = b"""
class Repository
{
    public Func<Order> Loader()
    {
        return () =>
        {
            try { return Fetch(); }
            catch (Exception) { return null; }
        };
    }
}
"""
    assert _run_rule(source) == []


def test_local_function_uses_its_own_return_type():
    source = b"""
class Repository
{
    public void Run()
    {
        Order Find()
        {
            try { return Fetch(); }
            catch (Exception) { return null; }
        }
    }
}
"""
    findings = _run_rule(source)
    assert len(findings) == 1
    assert "Find" in findings[0].message


def test_property_getter_with_non_nullable_type_fires():
    source = b"""
class Settings
{
    public string Name
    {
        get
        {
            try { return Read("name"); }
            catch (IOException) { return null; }
        }
    }
}
"""
    findings = _run_rule(source)
    assert len(findings) == 1
    assert "Name.get" in findings[0].message
