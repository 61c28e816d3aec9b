"""Unit tests for the overly-broad-catch rule."""

from pathlib import Path

from policylint.context import SourceUnit, parse_unit
from policylint.rules.broad_catch import OVERLY_BROAD_CATCH


def _run_rule(source: bytes) -> list:
    unit = SourceUnit(path=Path("Test.cs"), text=source)
    return list(OVERLY_BROAD_CATCH.run(parse_unit(unit)).diagnostics)


def _catch(clause: str) -> bytes:
    return f"""
class Importer
{{
    void Import()
    {{
        try
        {{
            Read();
        }}
        {clause}
    }}
}}
""".encode()


def test_catch_exception_without_rethrow_fires():
    findings = _run_rule(_catch("catch (Exception ex) { _log.Error(ex); }"))
    assert len(findings) == 1
    assert findings[0].rule_id == "overly-broad-catch"
    assert "'Exception'" in findings[0].message
    assert findings[0].location.line == 10
    assert findings[0].location.snippet.startswith("catch")


def test_qualified_system_exception_fires():
    assert len(_run_rule(_catch("catch (System.Exception) { }"))) == 1


def test_bare_catch_fires():
    findings = _run_rule(_catch("catch { Recover(); }"))
    assert len(findings) == 1
    assert "all exceptions" in findings[0].message


def test_specific_exception_does_not_fire():
    assert _run_rule(_catch("catch (IOException ex) { _log.Error(ex); }")) == []


def test_unconditional_rethrow_does_not_fire():
    assert _run_rule(_catch("catch (Exception ex) { _log.Error(ex); throw; }")) == []


def test_wrap_and_throw_does_not_fire():
    assert _run_rule(_catch('catch (Exception ex) { throw new ImportException("failed", ex); }')) == []


def test_conditional_rethrow_still_fires():
    source = _catch("catch (Exception ex) { if (IsFatal(ex)) { throw; } _log.Error(ex); }")
    assert len(_run_rule(source)) == 1


def test_exception_filter_does_not_fire():
    assert _run_rule(_catch("catch (Exception ex) when (ex.Message != null) { }")) == []


def test_multiple_catches_only_broad_one_fires():
    source = _catch(
        """catch (IOException io) { Retry(); }
        catch (Exception ex) { _log.Error(ex); }"""
    )
    findings = _run_rule(source)
    assert len(findings) == 1
    assert findings[0].location.line == 11


def test_suppressed_file_wide():
    source = b"// policylint: disable-file=overly-broad-catch\n" + _catch("catch { }")
    assert _run_rule(source) == []
