"""Load parser settings from a JSON file.

A settings file overrides any of the ParserConfig defaults, e.g. to chart
with a different keyboard layout::

    {
        "positions": "ZXCVASDFQWERzxcvasdfqwer",
        "directions": "824679135",
        "bomb": "*",
        "obstacle_open": "[",
        "obstacle_close": "]",
        "strict_directions": false,
        "default_difficulty_mask": 31
    }

Unknown keys are ignored. Values are checked before they are used.
"""

from __future__ import annotations

import json
from dataclasses import fields
from pathlib import Path
from typing import Any

from textsaber.errors import SettingsError
from textsaber.grid_codec import ParserConfig

_STRING_KEYS = ("positions", "directions", "bomb", "obstacle_open", "obstacle_close")


def _get_value(data: dict, key: str, expected: type) -> Any:
    """Extract a typed value from the settings document, or None if absent."""
    if key not in data:
        return None
    value = data[key]
    # bool is an int subclass; a mask of `true` is a mistake
    if expected is int and isinstance(value, bool):
        raise SettingsError(f"{key}: expected an integer, got {value!r}")
    if not isinstance(value, expected):
        raise SettingsError(
            f"{key}: expected {expected.__name__}, got {type(value).__name__}"
        )
    return value


def settings_from_dict(data: dict) -> ParserConfig:
    """Build a validated ParserConfig from a decoded settings document."""
    if not isinstance(data, dict):
        raise SettingsError("settings must be a JSON object")

    config = ParserConfig()

    for key in _STRING_KEYS:
        val = _get_value(data, key, str)
        if val is not None:
            setattr(config, key, val)

    val = _get_value(data, "strict_directions", bool)
    if val is not None:
        config.strict_directions = val

    val = _get_value(data, "default_difficulty_mask", int)
    if val is not None:
        config.default_difficulty_mask = val

    config.validate()
    return config


def parse_settings_file(path: str | Path) -> ParserConfig:
    """Parse a parser settings file.

    Args:
        path: Path to the JSON settings file

    Returns:
        ParserConfig with the file's overrides applied

    Raises:
        SettingsError: If the file is not valid JSON or has bad values
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"{path.name}: invalid JSON: {exc}") from exc
    try:
        return settings_from_dict(data)
    except SettingsError as exc:
        raise SettingsError(f"{path.name}: {exc}") from exc


def settings_to_dict(config: ParserConfig) -> dict[str, Any]:
    """Return the settings document that reproduces ``config``."""
    return {f.name: getattr(config, f.name) for f in fields(config)}
