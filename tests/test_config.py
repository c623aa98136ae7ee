"""
Tests for configuration management.
"""

import json
import os
import stat

import pytest

from ups.config import Config
from ups.exceptions import ConfigurationError


class TestConfig:
    """Test configuration loading and saving."""

    def test_defaults(self, config, isolated_dirs):
        assert config.config_file == str(isolated_dirs['config'] / 'ups' / 'config.json')
        assert config.get_script_timeout() == 60
        assert config.is_history_enabled() is True
        assert config.get_history_retention_days() == 365
        assert config.get_store_path() == isolated_dirs['data'] / 'ups' / 'packages.json'

    def test_load_from_file(self, config_file):
        path = config_file({'script_timeout_seconds': 5, 'history_enabled': False})

        config = Config(str(path))

        assert config.get_script_timeout() == 5
        assert config.is_history_enabled() is False
        assert config.app_config.script_timeout_seconds == 5

    def test_invalid_values_are_dropped(self, config_file):
        path = config_file({'script_timeout_seconds': 'soon', 'unknown': 1, 'use_color': False})

        config = Config(str(path))

        assert config.get_script_timeout() == 60
        assert config.get('use_color') is False
        assert 'unknown' not in config.config

    def test_corrupted_file_falls_back_to_defaults(self, isolated_dirs):
        path = isolated_dirs['config'] / 'broken.json'
        path.write_text('{not json')

        config = Config(str(path))

        assert config.get_all_settings() == Config().get_all_settings()

    def test_invalid_extension(self, tmp_path):
        with pytest.raises(ConfigurationError, match='Invalid config file path'):
            Config(str(tmp_path / 'config.yaml'))

    def test_set_persists(self, config):
        config.set('script_timeout_seconds', 120)

        with open(config.config_file) as f:
            data = json.load(f)
        assert data['script_timeout_seconds'] == 120
        assert Config().get_script_timeout() == 120

    def test_set_restricts_permissions(self, config):
        config.set('use_color', False)

        mode = stat.S_IMODE(os.stat(config.config_file).st_mode)
        assert mode == 0o600

    @pytest.mark.parametrize('key,value', [
        ('unknown_key', 1),
        ('script_timeout_seconds', 0),
        ('script_timeout_seconds', True),
        ('history_enabled', 'yes'),
        ('use_color', None),
    ])
    def test_set_rejects_invalid(self, config, key, value):
        with pytest.raises(ConfigurationError):
            config.set(key, value)

    def test_data_file_override(self, config, tmp_path):
        config.set('data_file', str(tmp_path / 'store.json'))
        assert config.get_store_path() == tmp_path / 'store.json'

        config.set('data_file', None)
        assert config.get_store_path().name == 'packages.json'
