"""
Input validation helpers for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import os
import re
from pathlib import Path
from typing import Any, Dict

from ..constants import (
    PACKAGE_NAME_PATTERN,
    MAX_PACKAGE_NAME_LENGTH,
    MAX_SCRIPT_TIMEOUT_SECONDS,
    NONE_VERSION,
)
from .logger import get_logger

logger = get_logger(__name__)

# Expected type per config key; None is also accepted for data_file
CONFIG_SCHEMA: Dict[str, type] = {
    "data_file": str,
    "script_timeout_seconds": int,
    "history_enabled": bool,
    "history_retention_days": int,
    "debug_mode": bool,
    "verbose_logging": bool,
    "use_color": bool,
}


def validate_package_name(name: str) -> bool:
    """
    Validate a package name.

    Names become keys in the store and are printed in tables, so they must be
    a single printable token.

    Args:
        name: Package name to validate

    Returns:
        True if package name is valid
    """
    if not name:
        return False

    if len(name) > MAX_PACKAGE_NAME_LENGTH:
        logger.warning(f"Package name too long ({len(name)} chars)")
        return False

    if name == NONE_VERSION:
        return False

    if not re.match(PACKAGE_NAME_PATTERN, name):
        logger.debug(f"Invalid package name format: {name!r}")
        return False

    return True


def validate_script_path(path: str) -> Path:
    """
    Resolve a check-script path and make sure it can be executed.

    Args:
        path: Path given by the user

    Returns:
        Absolute path with symlinks resolved

    Raises:
        ValueError: If the script is missing, not a file or not executable
    """
    if not path:
        raise ValueError("Empty script path not allowed")

    try:
        resolved = Path(path).expanduser().resolve(strict=True)
    except FileNotFoundError:
        raise ValueError(f"Script not found: {path}")
    except (OSError, RuntimeError) as e:
        raise ValueError(f"Cannot resolve script path {path}: {e}")

    if not resolved.is_file():
        raise ValueError(f"Script is not a regular file: {resolved}")

    if not os.access(resolved, os.X_OK):
        raise ValueError(f"Script is not executable: {resolved} (try chmod +x)")

    return resolved


def validate_config_path(path: str) -> bool:
    """
    Validate a configuration file path.

    Raises:
        ValueError: If the path cannot be used as a config file
    """
    if not path:
        raise ValueError("Empty path not allowed")

    resolved_path = Path(path).expanduser().resolve()

    if resolved_path.suffix.lower() != '.json':
        raise ValueError(f"Invalid config file extension: {resolved_path.suffix or '(none)'}")

    if resolved_path.exists() and not resolved_path.is_file():
        raise ValueError(f"Config path is not a file: {resolved_path}")

    return True


def validate_config_value(key: str, value: Any) -> bool:
    """
    Validate a single configuration value against the schema.

    Raises:
        ValueError: If the key is unknown or the value has the wrong type or range
    """
    if key not in CONFIG_SCHEMA:
        raise ValueError(f"Unknown config key: {key}")

    expected = CONFIG_SCHEMA[key]

    if value is None:
        if key == "data_file":
            return True
        raise ValueError(f"{key} cannot be null")

    # bool is a subclass of int
    if expected is int and isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if not isinstance(value, expected):
        raise ValueError(f"{key} must be of type {expected.__name__}, got {type(value).__name__}")

    if key == "script_timeout_seconds" and not 1 <= value <= MAX_SCRIPT_TIMEOUT_SECONDS:
        raise ValueError(f"{key} must be between 1 and {MAX_SCRIPT_TIMEOUT_SECONDS}")
    if key == "history_retention_days" and value < 1:
        raise ValueError(f"{key} must be positive")

    return True


def validate_config_json(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a loaded configuration dict, keeping only valid known keys.

    Raises:
        ValueError: If data is not a JSON object
    """
    if not isinstance(data, dict):
        raise ValueError("Configuration must be a JSON object")

    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        try:
            validate_config_value(key, value)
        except ValueError as e:
            logger.warning(f"Ignoring config entry: {e}")
            continue
        sanitized[key] = value
    return sanitized
