"""Tests for file system traversal functionality."""

from pathlib import Path

import pytest

from policylint.traversal import (
    DEFAULT_IGNORE_DIRS,
    find_cs_files,
    find_source_files,
    is_cs_file,
    is_generated_file,
    should_ignore_directory,
)


class TestFileTypeChecks:
    """Test file type checking functions."""

    def test_is_cs_file_recognizes_cs_extension(self):
        assert is_cs_file(Path("Program.cs"))
        assert is_cs_file(Path("src/Orders/OrderService.cs"))

    def test_is_cs_file_case_insensitive(self):
        assert is_cs_file(Path("PROGRAM.CS"))

    def test_is_cs_file_rejects_other_files(self):
        assert not is_cs_file(Path("App.csproj"))
        assert not is_cs_file(Path("View.cshtml"))
        assert not is_cs_file(Path("script.csx"))
        assert not is_cs_file(Path("README.md"))

    def test_is_generated_file(self):
        assert is_generated_file(Path("Form1.Designer.cs"))
        assert is_generated_file(Path("obj/App.g.cs"))
        assert is_generated_file(Path("Api.generated.cs"))
        assert not is_generated_file(Path("Form1.cs"))


class TestDirectoryFiltering:
    """Test directory ignore logic."""

    def test_should_ignore_directory(self):
        ignore_set = {"bin", "obj"}
        assert should_ignore_directory(Path("bin"), ignore_set)
        assert should_ignore_directory(Path("src/obj"), ignore_set)
        assert not should_ignore_directory(Path("src"), ignore_set)

    def test_should_ignore_directory_case_sensitive(self):
        assert not should_ignore_directory(Path("Bin"), {"bin"})

    def test_default_ignore_dirs_includes_common_patterns(self):
        assert "bin" in DEFAULT_IGNORE_DIRS
        assert "obj" in DEFAULT_IGNORE_DIRS
        assert ".git" in DEFAULT_IGNORE_DIRS
        assert ".vs" in DEFAULT_IGNORE_DIRS


class TestTraversal:
    """Test file traversal functions."""

    @pytest.fixture
    def temp_solution(self, tmp_path):
        # tmp_path/
        #   src/Program.cs
        #   src/Orders/OrderService.cs
        #   src/Orders/OrderForm.Designer.cs   (generated)
        #   src/App.csproj
        #   src/bin/Debug/Leftover.cs          (ignored: bin)
        #   src/obj/App.AssemblyInfo.cs        (ignored: obj)
        #   tests/OrderServiceTests.cs
        src = tmp_path / "src"
        (src / "Orders").mkdir(parents=True)
        (src / "bin" / "Debug").mkdir(parents=True)
        (src / "obj").mkdir()
        (tmp_path / "tests").mkdir()
        (src / "Program.cs").write_text("class Program { }")
        (src / "Orders" / "OrderService.cs").write_text("class OrderService { }")
        (src / "Orders" / "OrderForm.Designer.cs").write_text("partial class OrderForm { }")
        (src / "App.csproj").write_text("<Project />")
        (src / "bin" / "Debug" / "Leftover.cs").write_text("class Leftover { }")
        (src / "obj" / "App.AssemblyInfo.cs").write_text("class Info { }")
        (tmp_path / "tests" / "OrderServiceTests.cs").write_text("class OrderServiceTests { }")
        return tmp_path

    def test_find_cs_files_skips_ignored_and_generated(self, temp_solution):
        files = find_cs_files(temp_solution)
        names = [f.name for f in files]
        assert names.count("Program.cs") == 1
        assert "OrderService.cs" in names
        assert "OrderServiceTests.cs" in names
        assert "OrderForm.Designer.cs" not in names
        assert "Leftover.cs" not in names
        assert "App.AssemblyInfo.cs" not in names
        assert "App.csproj" not in names

    def test_find_source_files_include_generated(self, temp_solution):
        files = find_source_files(temp_solution, include_generated=True)
        assert "OrderForm.Designer.cs" in [f.name for f in files]

    def test_results_sorted_and_absolute(self, temp_solution):
        files = find_cs_files(temp_solution)
        assert files == sorted(files)
        assert all(f.is_absolute() for f in files)

    def test_custom_ignore_dirs(self, temp_solution):
        files = find_cs_files(temp_solution, ignore_dirs={"tests", "bin", "obj"})
        assert "OrderServiceTests.cs" not in [f.name for f in files]

    def test_filter_fn(self, temp_solution):
        files = find_source_files(temp_solution, filter_fn=lambda p: p.name.startswith("Order"))
        assert sorted(f.name for f in files) == ["OrderService.cs", "OrderServiceTests.cs"]

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_cs_files(tmp_path / "missing")

    def test_file_root_raises(self, tmp_path):
        f = tmp_path / "Program.cs"
        f.write_text("class P { }")
        with pytest.raises(NotADirectoryError):
            find_cs_files(f)

    def test_empty_directory(self, tmp_path):
        assert find_cs_files(tmp_path) == []
