"""
File system traversal: walk directories and collect C# source files.

This module provides utilities for recursively traversing directories to find
C# source files (.cs) for analysis. Build output, package caches and IDE
folders are skipped by default; generated designer files can be excluded too.

Typical usage:
    from pathlib import Path
    from policylint.traversal import find_cs_files

    files = find_cs_files(Path("./MySolution"))

    # Custom ignore patterns
    files = find_cs_files(Path("./MySolution"), ignore_dirs={"bin", "obj", "Migrations"})
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Set

logger = logging.getLogger(__name__)

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Build output
    "bin",
    "obj",
    "out",
    "artifacts",
    "TestResults",

    # Dependency and package directories
    "packages",
    "node_modules",
    "vendor",

    # Version control
    ".git",
    ".svn",
    ".hg",

    # IDE and editor directories
    ".vs",
    ".vscode",
    ".idea",
}

# Tool-generated sources that nobody edits by hand
GENERATED_SUFFIXES = (".designer.cs", ".g.cs", ".g.i.cs", ".generated.cs")


def is_cs_file(path: Path) -> bool:
    """
    Check if a file is a C# source file (.cs extension).

    Examples:
        >>> is_cs_file(Path("Program.cs"))
        True
        >>> is_cs_file(Path("App.csproj"))
        False
    """
    return path.suffix.lower() == ".cs"


def is_generated_file(path: Path) -> bool:
    """
    Check if a file name marks it as generated code (e.g. Form1.Designer.cs).

    Examples:
        >>> is_generated_file(Path("Form1.Designer.cs"))
        True
        >>> is_generated_file(Path("Form1.cs"))
        False
    """
    name = path.name.lower()
    return any(name.endswith(suffix) for suffix in GENERATED_SUFFIXES)


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """
    Check if a directory should be ignored during traversal.

    Only the directory name is compared (case-sensitive), not the full path.

    Examples:
        >>> should_ignore_directory(Path("bin"), {"bin", "obj"})
        True
        >>> should_ignore_directory(Path("src"), {"bin", "obj"})
        False
    """
    return dir_path.name in ignore_dirs


def find_source_files(
    root: Path,
    ignore_dirs: Optional[Iterable[str]] = None,
    include_generated: bool = False,
    follow_symlinks: bool = False,
    filter_fn: Optional[Callable[[Path], bool]] = None,
) -> list[Path]:
    """
    Recursively find all C# source files in a directory tree.

    Args:
        root: Root directory to start traversal from.
        ignore_dirs: Directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
        include_generated: If True, also collect *.Designer.cs / *.g.cs files.
        follow_symlinks: If True, follow symbolic links during traversal.
                         If False (default), symlinks are skipped.
        filter_fn: Optional additional filter function. If provided, only files
                   for which filter_fn(path) returns True are included.

    Returns:
        List of resolved Path objects, sorted for deterministic ordering.

    Raises:
        FileNotFoundError: If the root directory does not exist.
        NotADirectoryError: If root is not a directory.

    Notes:
        Permission errors on subdirectories are logged but do not stop traversal.
    """
    ignore_set: Set[str] = set(DEFAULT_IGNORE_DIRS if ignore_dirs is None else ignore_dirs)

    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)
    logger.debug(
        "Traversal config: include_generated=%s, follow_symlinks=%s, ignore_dirs=%s",
        include_generated,
        follow_symlinks,
        sorted(ignore_set),
    )

    collected_files: list[Path] = []

    def _walk_directory(current_dir: Path) -> None:
        try:
            for entry in current_dir.iterdir():
                if entry.is_symlink() and not follow_symlinks:
                    logger.debug("Skipping symlink: %s", entry)
                    continue

                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_set):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    _walk_directory(entry)

                elif entry.is_file():
                    if not is_cs_file(entry):
                        continue
                    if not include_generated and is_generated_file(entry):
                        logger.debug("Skipping generated file: %s", entry)
                        continue
                    if filter_fn is not None and not filter_fn(entry):
                        logger.debug("Filtered out by custom filter: %s", entry)
                        continue

                    logger.debug("Found source file: %s", entry)
                    collected_files.append(entry)

        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root)

    collected_files.sort()

    logger.info(
        "Traversal complete: found %d source file(s) in %s",
        len(collected_files),
        root,
    )

    return collected_files


def find_cs_files(
    root: Path,
    ignore_dirs: Optional[Iterable[str]] = None,
    follow_symlinks: bool = False,
) -> list[Path]:
    """
    Recursively find all hand-written .cs files in a directory tree.

    Convenience wrapper around find_source_files() that skips generated files.
    """
    return find_source_files(
        root=root,
        ignore_dirs=ignore_dirs,
        include_generated=False,
        follow_symlinks=follow_symlinks,
    )
