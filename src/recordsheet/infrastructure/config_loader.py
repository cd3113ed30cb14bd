"""
Configuration loader module.

Loads generator options from a JSON file:

    {
        "auto_filter": true,
        "freeze_first_row": true,
        "hidden_sheets": ["Lookups"],
        "dropdown_values": {"Status": ["Open", "Closed"]}
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from recordsheet.domain.config import GeneratorOptions
from recordsheet.domain.errors import ConfigError


__all__ = ["load_options"]

logger = logging.getLogger(__name__)


def _load_json_file(filepath: Path) -> dict:
    """
    Load and parse a JSON object with clear error messages.

    Raises:
        ConfigError: File missing, unreadable, empty, invalid JSON, or not an object
    """
    if not filepath.exists():
        raise ConfigError(str(filepath), "Configuration file not found")

    try:
        content = filepath.read_text(encoding="utf-8")
    except PermissionError as e:
        raise ConfigError(str(filepath), "Permission denied reading configuration") from e
    except OSError as e:
        raise ConfigError(str(filepath), f"Cannot read configuration ({e})") from e

    if not content.strip():
        raise ConfigError(str(filepath), "Configuration file is empty")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigError(
            str(filepath), f"Invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e

    if not isinstance(data, dict):
        raise ConfigError(
            str(filepath), f"Expected a JSON object, got {type(data).__name__}"
        )
    return data


def load_options(path: str | Path | None = None) -> GeneratorOptions:
    """
    Load generator options from a JSON file.

    Args:
        path: Configuration file; None returns the defaults

    Returns:
        Validated GeneratorOptions

    Raises:
        ConfigError: If the file cannot be loaded or fails validation
    """
    if path is None:
        return GeneratorOptions()

    filepath = Path(path)
    data = _load_json_file(filepath)

    try:
        options = GeneratorOptions.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(str(filepath), f"Invalid configuration ({problems})") from e

    logger.info("Loaded generator options from %s", filepath)
    return options
