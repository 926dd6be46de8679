"""Configuration handling for clonewatch."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from clonewatch.collector import CollectorOptions
from clonewatch.types import ProgressFn, frozen_slots

OUTPUT_FORMATS = ("human", "json")


@frozen_slots
class Config:
    """Runtime configuration for a clonewatch scan."""

    exclude_patterns: tuple[str, ...] = ()
    include_patterns: tuple[str, ...] = ()
    languages: tuple[str, ...] = ()
    min_confidence: float = 0.0
    max_findings: int = 200
    output_format: str = "human"
    workers: int = 1
    timeout: float = 0.0  # seconds; 0 disables the deadline

    def collector_options(self, progress: ProgressFn | None = None) -> CollectorOptions:
        return CollectorOptions(
            exclude_patterns=self.exclude_patterns,
            include_patterns=self.include_patterns,
            languages=self.languages,
            min_confidence=self.min_confidence,
            max_findings=self.max_findings,
            workers=self.workers,
            progress=progress,
        )


class ConfigFileError(Exception):
    """Raised when pyproject.toml contains invalid clonewatch configuration."""


_SECTION = "[tool.clonewatch]"

_TOML_KEY_TO_FIELD: dict[str, str] = {
    "exclude": "exclude_patterns",
    "include": "include_patterns",
    "languages": "languages",
    "min-confidence": "min_confidence",
    "max-findings": "max_findings",
    "format": "output_format",
    "workers": "workers",
    "timeout": "timeout",
}

_TUPLE_FIELDS = frozenset({"exclude_patterns", "include_patterns", "languages"})
_POSITIVE_INT_FIELDS = frozenset({"max_findings", "workers"})


def _require_strict_int(toml_key: str, value: object) -> int:
    """Raise ConfigFileError unless *value* is a positive int (not bool)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigFileError(
            f"{_SECTION} '{toml_key}' must be an integer, got {type(value).__name__}"
        )
    if value < 1:
        raise ConfigFileError(f"{_SECTION} '{toml_key}' must be at least 1, got {value}")
    return value


def _require_number(toml_key: str, value: object) -> float:
    """Raise ConfigFileError unless *value* is an int or float (not bool)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigFileError(
            f"{_SECTION} '{toml_key}' must be a number, got {type(value).__name__}"
        )
    return float(value)


def _convert_value(toml_key: str, field_name: str, value: object) -> object:
    """Validate and convert a single TOML value to its Config-compatible type."""
    if field_name in _POSITIVE_INT_FIELDS:
        return _require_strict_int(toml_key, value)

    if field_name == "min_confidence":
        number = _require_number(toml_key, value)
        if not 0.0 <= number <= 1.0:
            raise ConfigFileError(
                f"{_SECTION} '{toml_key}' must be between 0 and 1, got {value}"
            )
        return number

    if field_name == "timeout":
        number = _require_number(toml_key, value)
        if number < 0:
            raise ConfigFileError(
                f"{_SECTION} '{toml_key}' must not be negative, got {value}"
            )
        return number

    if field_name == "output_format":
        if not isinstance(value, str):
            raise ConfigFileError(
                f"{_SECTION} '{toml_key}' must be a string, got {type(value).__name__}"
            )
        if value not in OUTPUT_FORMATS:
            raise ConfigFileError(
                f"{_SECTION} '{toml_key}' must be 'human' or 'json', got '{value}'"
            )
        return value

    if field_name in _TUPLE_FIELDS:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigFileError(f"{_SECTION} '{toml_key}' must be a list of strings")
        return tuple(value)

    raise ConfigFileError(f"{_SECTION} unhandled field '{toml_key}'")


def _parse_toml_section(section: dict[str, Any]) -> dict[str, object]:
    """Validate and convert a [tool.clonewatch] dict into Config-compatible fields."""
    result: dict[str, object] = {}
    for toml_key, value in section.items():
        field_name = _TOML_KEY_TO_FIELD.get(toml_key)
        if field_name is None:
            raise ConfigFileError(f"{_SECTION} unknown key '{toml_key}'")
        result[field_name] = _convert_value(toml_key, field_name, value)
    return result


def load_file_config(path: Path | None = None) -> dict[str, object]:
    """Read [tool.clonewatch] from pyproject.toml, returning Config-compatible dict.

    Returns an empty dict if the file doesn't exist or has no
    [tool.clonewatch] section.
    """
    if path is None:
        path = Path("pyproject.toml")
    if not path.is_file():
        return {}
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileError(f"Invalid TOML in {path}: {exc}") from None
    section = data.get("tool", {}).get("clonewatch")
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigFileError(f"{_SECTION} must be a table")
    return _parse_toml_section(section)


def build_config(
    cli_overrides: dict[str, object],
    file_config: dict[str, object],
) -> Config:
    """Merge file config and CLI overrides into a Config instance.

    CLI values always win. For tuple fields (exclude/include patterns and
    languages), CLI values are appended to file values rather than
    replacing them.
    """
    merged: dict[str, object] = {}
    merged.update(file_config)

    for key, cli_val in cli_overrides.items():
        if key in _TUPLE_FIELDS and key in file_config:
            file_val = file_config[key]
            assert isinstance(file_val, tuple)
            assert isinstance(cli_val, tuple)
            merged[key] = file_val + cli_val
        else:
            merged[key] = cli_val

    return Config(**merged)
