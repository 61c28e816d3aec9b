"""Tests for inline suppression comments."""

from policylint.suppression import parse_suppressions


def test_line_suppression():
    s = parse_suppressions(b"a();\nb(); // policylint: disable=rethrow-hygiene\n")
    assert s.is_suppressed("rethrow-hygiene", 2)
    assert not s.is_suppressed("rethrow-hygiene", 1)
    assert not s.is_suppressed("overly-broad-catch", 2)


def test_multiple_ids_and_spacing():
    s = parse_suppressions(b"x(); //policylint:disable = rethrow-hygiene , overly-broad-catch\n")
    assert s.is_suppressed("rethrow-hygiene", 1)
    assert s.is_suppressed("overly-broad-catch", 1)


def test_file_wide_and_all():
    s = parse_suppressions(b"// policylint: disable-file=all\nclass C { }\n")
    assert s.is_suppressed("unbounded-parallel-iteration", 99)


def test_no_directives():
    s = parse_suppressions(b"class C { } // just a comment about policylint\n")
    assert s.by_line == {}
    assert s.file_wide == frozenset()


def test_only_newline_ends_a_line():
    source = "// page\x0cbreak \x85  \nb(); // policylint: disable=rethrow-hygiene\n".encode("utf-8")
    s = parse_suppressions(source)
    assert s.is_suppressed("rethrow-hygiene", 2)
    assert not s.is_suppressed("rethrow-hygiene", 3)
