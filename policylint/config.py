from __future__ import annotations

"""
Analyzer configuration: enabled rules, severity mapping, parallelism and filters.

Values come from three layers, later ones winning:

1. built-in defaults (get_default_config)
2. an optional ``.policylint.toml`` in the analyzed directory, or ``--config FILE``
3. command-line flags

Example ``.policylint.toml``::

    rules = ["rethrow-hygiene", "overly-broad-catch"]
    max-parallel = 4
    format = "json"
    exclude = ["Migrations"]
    language-version = "12"

    [severity]
    rethrow-hygiene = "error"

Anything invalid raises ConfigurationError; the CLI turns that into exit code 2.
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

from policylint.context import DEFAULT_LANGUAGE_VERSION
from policylint.errors import ConfigurationError
from policylint.findings.models import Severity
from policylint.rules.base import Rule
from policylint.rules.registry import RULES, get_rule
from policylint.traversal import DEFAULT_IGNORE_DIRS

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".policylint.toml"
OUTPUT_FORMATS = ("text", "json", "table")

_KNOWN_KEYS = frozenset({"rules", "max-parallel", "format", "exclude", "language-version", "severity"})


def default_max_parallel() -> int:
    return os.cpu_count() or 1


@dataclass
class Config:
    """Settings for one analysis run."""

    rules: Sequence[Rule] = field(default_factory=lambda: tuple(RULES.values()))
    max_parallel: int = field(default_factory=default_max_parallel)
    output_format: str = "text"
    severity_overrides: dict[str, Severity] = field(default_factory=dict)
    ignore_dirs: frozenset[str] = frozenset(DEFAULT_IGNORE_DIRS)
    language_version: str = DEFAULT_LANGUAGE_VERSION
    verbose: bool = False


def get_default_config() -> Config:
    """Return the default configuration with every registered rule enabled."""
    return Config()


# --- value parsing ---------------------------------------------------------


def parse_rule_ids(value: str | Iterable[str]) -> tuple[Rule, ...]:
    """
    Resolve "id,id" (or a list of ids) to rules, keeping registry order.

    Raises:
        ConfigurationError: for unknown ids or an empty selection.
    """
    if isinstance(value, str):
        ids = [part.strip() for part in value.split(",")]
    else:
        ids = [str(part).strip() for part in value]
    ids = [i for i in ids if i]
    if not ids:
        raise ConfigurationError("no rules selected")
    unknown = sorted(set(ids) - set(RULES))
    if unknown:
        raise ConfigurationError(
            f"unknown rule id(s): {', '.join(unknown)} (known: {', '.join(RULES)})"
        )
    wanted = set(ids)
    return tuple(get_rule(rule_id) for rule_id in RULES if rule_id in wanted)


def parse_max_parallel(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        try:
            value = int(str(value))
        except ValueError:
            raise ConfigurationError(f"max-parallel must be an integer, got {value!r}") from None
    if value < 1:
        raise ConfigurationError(f"max-parallel must be at least 1, got {value}")
    return value


def parse_output_format(value: Any) -> str:
    fmt = str(value).strip().lower()
    if fmt not in OUTPUT_FORMATS:
        raise ConfigurationError(f"unknown format {value!r} (expected one of: {', '.join(OUTPUT_FORMATS)})")
    return fmt


def parse_severity_overrides(table: Mapping[str, Any]) -> dict[str, Severity]:
    overrides: dict[str, Severity] = {}
    for rule_id, raw in table.items():
        if rule_id not in RULES:
            raise ConfigurationError(f"[severity] names unknown rule id: {rule_id}")
        try:
            overrides[rule_id] = Severity(str(raw).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"[severity] {rule_id} = {raw!r} is not one of: warning, error"
            ) from None
    return overrides


# --- config file -----------------------------------------------------------


def find_config_file(target: Path) -> Optional[Path]:
    """Return <target dir>/.policylint.toml if it exists (target's parent for a file target)."""
    base = target if target.is_dir() else target.parent
    candidate = base / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def load_config_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc.strerror or exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"invalid TOML in {path}: {exc}") from exc

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(f"unknown key(s) in {path}: {', '.join(unknown)}")
    logger.info("Loaded configuration from %s", path)
    return data


def apply_file_settings(config: Config, data: Mapping[str, Any], source: Path) -> Config:
    updates: dict[str, Any] = {}
    if "rules" in data:
        if not isinstance(data["rules"], list):
            raise ConfigurationError(f"'rules' in {source} must be a list of rule ids")
        updates["rules"] = parse_rule_ids(data["rules"])
    if "max-parallel" in data:
        updates["max_parallel"] = parse_max_parallel(data["max-parallel"])
    if "format" in data:
        updates["output_format"] = parse_output_format(data["format"])
    if "exclude" in data:
        if not isinstance(data["exclude"], list):
            raise ConfigurationError(f"'exclude' in {source} must be a list of directory names")
        updates["ignore_dirs"] = config.ignore_dirs | frozenset(str(d) for d in data["exclude"])
    if "language-version" in data:
        updates["language_version"] = str(data["language-version"])
    if "severity" in data:
        if not isinstance(data["severity"], dict):
            raise ConfigurationError(f"'severity' in {source} must be a table")
        updates["severity_overrides"] = parse_severity_overrides(data["severity"])
    return replace(config, **updates)


def build_config(
    target: Path,
    *,
    config_file: Optional[Path] = None,
    rules: Optional[str] = None,
    max_parallel: Optional[int] = None,
    output_format: Optional[str] = None,
    verbose: bool = False,
) -> Config:
    """
    Build the run configuration for target from defaults, config file and CLI values.

    Raises:
        ConfigurationError: missing target, unreadable/invalid config file or bad values.
    """
    if not target.exists():
        raise ConfigurationError(f"path does not exist: {target}")

    config = get_default_config()

    if config_file is not None and not config_file.is_file():
        raise ConfigurationError(f"config file not found: {config_file}")
    source = config_file or find_config_file(target)
    if source is not None:
        config = apply_file_settings(config, load_config_file(source), source)

    updates: dict[str, Any] = {"verbose": verbose}
    if rules is not None:
        updates["rules"] = parse_rule_ids(rules)
    if max_parallel is not None:
        updates["max_parallel"] = parse_max_parallel(max_parallel)
    if output_format is not None:
        updates["output_format"] = parse_output_format(output_format)
    config = replace(config, **updates)

    logger.debug(
        "Configuration: rules=%s max_parallel=%d format=%s",
        [r.id for r in config.rules],
        config.max_parallel,
        config.output_format,
    )
    return config
