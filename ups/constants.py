"""
Application constants for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import os
from pathlib import Path

# Application info
APP_NAME = "ups"

# File permissions (octal)
CONFIG_DIR_PERMISSIONS = 0o700  # rwx------
CONFIG_FILE_PERMISSIONS = 0o600  # rw-------
DATA_DIR_PERMISSIONS = 0o700

# Placeholder stored and displayed for a missing version
NONE_VERSION = "NONE"

# Default values
DEFAULT_SCRIPT_TIMEOUT_SECONDS = 60
MAX_SCRIPT_TIMEOUT_SECONDS = 3600
DEFAULT_HISTORY_RETENTION_DAYS = 365

# Script output larger than this is rejected
MAX_SCRIPT_OUTPUT_BYTES = 64 * 1024

# Store/config files larger than this are refused
MAX_DATA_FILE_BYTES = 10 * 1024 * 1024

# Package name validation
PACKAGE_NAME_PATTERN = r'^[a-zA-Z0-9][a-zA-Z0-9\-_.+@]*$'
MAX_PACKAGE_NAME_LENGTH = 128

# Exit codes
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_OUTDATED = 10
EXIT_FAILURE = 20
EXIT_INTERRUPTED = 130


# Paths
def get_config_dir() -> Path:
    """Get the configuration directory path."""
    base = os.environ.get("XDG_CONFIG_HOME")
    return (Path(base) if base else Path.home() / ".config") / APP_NAME


def get_data_dir() -> Path:
    """Get the data directory path."""
    base = os.environ.get("XDG_DATA_HOME")
    return (Path(base) if base else Path.home() / ".local" / "share") / APP_NAME


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return get_config_dir() / "config.json"


def get_default_store_path() -> Path:
    """Get the default package store path."""
    return get_data_dir() / "packages.json"


def get_default_history_path() -> Path:
    """Get the default snapshot history path."""
    return get_data_dir() / "history.json"
