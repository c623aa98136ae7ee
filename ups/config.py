"""
Configuration management for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional

from .exceptions import ConfigurationError
from .utils.logger import get_logger
from .utils.validators import validate_config_path, validate_config_json, validate_config_value
from .constants import (
    CONFIG_DIR_PERMISSIONS, CONFIG_FILE_PERMISSIONS,
    DEFAULT_SCRIPT_TIMEOUT_SECONDS, DEFAULT_HISTORY_RETENTION_DAYS,
    MAX_DATA_FILE_BYTES,
    get_default_config_path, get_default_store_path,
)
from .models import AppConfig

logger = get_logger(__name__)


class Config:
    """Manages configuration for Ups."""

    def __init__(self, config_file: Optional[str] = None) -> None:
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file
        """
        if config_file:
            try:
                validate_config_path(config_file)
            except ValueError as e:
                raise ConfigurationError(f"Invalid config file path: {e}")
            self.config_file = str(Path(config_file).expanduser())
        else:
            self.config_file = str(get_default_config_path())

        self._app_config = self._load_config()
        # Plain dict view used by `ups config get/set`
        self.config = self._app_config.to_dict()

    def _load_config(self) -> AppConfig:
        """
        Load configuration from file or fall back to defaults.

        Returns:
            AppConfig instance
        """
        if not os.path.exists(self.config_file):
            return AppConfig()

        try:
            file_size = os.path.getsize(self.config_file)
            if file_size > MAX_DATA_FILE_BYTES:
                raise ValueError(f"Config file too large: {file_size} bytes")

            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)

            sanitized = validate_config_json(data)
            logger.info(f"Loaded configuration from {self.config_file}")
            return AppConfig.from_dict(sanitized)

        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in config file {self.config_file}: {e}")
        except PermissionError as e:
            logger.error(f"Permission denied reading config file {self.config_file}: {e}")
        except OSError as e:
            logger.error(f"Error reading config file {self.config_file}: {e}")
        except ValueError as e:
            logger.error(f"Config file validation error: {e}")

        logger.info("Using default configuration")
        return AppConfig()

    def save_config(self) -> None:
        """
        Save current configuration to file.

        Raises:
            ConfigurationError: If saving fails
        """
        try:
            config_dir = Path(self.config_file).parent
            config_dir.mkdir(parents=True, exist_ok=True)

            try:
                os.chmod(config_dir, CONFIG_DIR_PERMISSIONS)
            except OSError as e:
                logger.warning(f"Failed to set permissions on config directory: {e}")

            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.config, f, indent=2, ensure_ascii=False)

            try:
                os.chmod(self.config_file, CONFIG_FILE_PERMISSIONS)
            except OSError as e:
                logger.warning(f"Failed to set permissions on config file: {e}")

            logger.info(f"Saved configuration to {self.config_file}")

        except PermissionError as e:
            raise ConfigurationError(f"Permission denied saving config: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to save config: {e}")

    def get(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        """
        Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set and persist a configuration value.

        Raises:
            ConfigurationError: If the key is unknown or the value is invalid
        """
        try:
            validate_config_value(key, value)
        except ValueError as e:
            raise ConfigurationError(str(e))

        self.config[key] = value
        self._app_config = AppConfig.from_dict(self.config)
        self.save_config()

    @property
    def app_config(self) -> AppConfig:
        return self._app_config

    def get_store_path(self) -> Path:
        """Get the package store location."""
        data_file = self.config.get("data_file")
        if data_file:
            return Path(data_file).expanduser()
        return get_default_store_path()

    def get_script_timeout(self) -> int:
        """Get the per-script timeout in seconds."""
        value = self.config.get("script_timeout_seconds", DEFAULT_SCRIPT_TIMEOUT_SECONDS)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        logger.warning(f"Invalid script timeout {value}, using default {DEFAULT_SCRIPT_TIMEOUT_SECONDS}")
        return DEFAULT_SCRIPT_TIMEOUT_SECONDS

    def get_history_retention_days(self) -> int:
        """Get how long snapshot history is kept."""
        value = self.config.get("history_retention_days", DEFAULT_HISTORY_RETENTION_DAYS)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        logger.warning(f"Invalid history retention {value}, using default {DEFAULT_HISTORY_RETENTION_DAYS}")
        return DEFAULT_HISTORY_RETENTION_DAYS

    def is_history_enabled(self) -> bool:
        return bool(self.config.get("history_enabled", True))

    def get_all_settings(self) -> Dict[str, Any]:
        """Get all settings as a dictionary."""
        return self.config.copy()
