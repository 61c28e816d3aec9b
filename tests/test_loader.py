"""Tests for the asynchronous source loader."""

import os
import sys
from pathlib import Path

import pytest

from policylint.errors import ConfigurationError
from policylint.loader import collect_source_paths, load_units


def test_collect_single_file(tmp_path):
    f = tmp_path / "Program.cs"
    f.write_text("class Program { }")
    assert collect_source_paths(f) == [f.resolve()]


def test_collect_rejects_non_cs_file(tmp_path):
    f = tmp_path / "notes.txt"
    f.write_text("hello")
    with pytest.raises(ConfigurationError):
        collect_source_paths(f)


def test_collect_rejects_missing_path(tmp_path):
    with pytest.raises(ConfigurationError):
        collect_source_paths(tmp_path / "missing")


def test_collect_directory_warns_when_empty(tmp_path, caplog):
    assert collect_source_paths(tmp_path) == []
    assert "No .cs files found" in caplog.text


def test_load_units_preserves_order_and_content(tmp_path):
    paths = []
    for i in range(5):
        p = tmp_path / f"F{i}.cs"
        p.write_bytes(f"class F{i} {{ }}".encode())
        paths.append(p)
    units = load_units(paths, language_version="12")
    assert [u.path for u in units] == paths
    assert units[3].text == b"class F3 { }"
    assert all(u.language_version == "12" for u in units)


def test_load_units_empty():
    assert load_units([]) == []


def test_load_units_missing_file_is_configuration_error(tmp_path):
    good = tmp_path / "Good.cs"
    good.write_text("class Good { }")
    with pytest.raises(ConfigurationError) as excinfo:
        load_units([good, tmp_path / "Gone.cs"])
    assert "Gone.cs" in str(excinfo.value)


@pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
def test_load_units_unreadable_file(tmp_path):
    f = tmp_path / "Secret.cs"
    f.write_text("class Secret { }")
    f.chmod(0)
    try:
        with pytest.raises(ConfigurationError):
            load_units([Path(f)])
    finally:
        f.chmod(0o644)
