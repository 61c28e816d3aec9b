# Source loader: resolve the analysis target and read every file into a SourceUnit.
# Reads are I/O bound, so they are issued concurrently without a cap.

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from policylint.context import DEFAULT_LANGUAGE_VERSION, SourceUnit
from policylint.errors import ConfigurationError
from policylint.traversal import find_cs_files, is_cs_file

logger = logging.getLogger(__name__)


def collect_source_paths(target: Path, ignore_dirs: Optional[Iterable[str]] = None) -> list[Path]:
    """
    Resolve a target path into the list of .cs files to analyze.

    - A .cs file yields [target]
    - A directory is traversed with find_cs_files()
    - Anything else is a ConfigurationError
    """
    if target.is_file():
        if not is_cs_file(target):
            raise ConfigurationError(f"target file must have .cs extension, got: {target}")
        return [target.resolve()]

    if target.is_dir():
        files = find_cs_files(target, ignore_dirs=ignore_dirs)
        if not files:
            logger.warning("No .cs files found under %s", target)
        return files

    raise ConfigurationError(f"target path is neither a file nor a directory: {target}")


async def _read_unit(path: Path, language_version: str) -> SourceUnit:
    try:
        text = await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise ConfigurationError(f"cannot read source file {path}: {exc.strerror or exc}") from exc
    logger.debug("Loaded %s (%d bytes)", path, len(text))
    return SourceUnit(path=path, text=text, language_version=language_version)


async def load_units_async(
    paths: Sequence[Path],
    language_version: str = DEFAULT_LANGUAGE_VERSION,
) -> list[SourceUnit]:
    """Read all paths concurrently. Order of the result matches paths."""
    return list(await asyncio.gather(*(_read_unit(p, language_version) for p in paths)))


def load_units(
    paths: Sequence[Path],
    language_version: str = DEFAULT_LANGUAGE_VERSION,
) -> list[SourceUnit]:
    """
    Synchronous entry point around load_units_async().

    Raises:
        ConfigurationError: if any file cannot be read. No units are returned
        in that case, so a run never starts on a partial file set.
    """
    if not paths:
        return []
    units = asyncio.run(load_units_async(paths, language_version))
    logger.info("Loaded %d source unit(s)", len(units))
    return units
