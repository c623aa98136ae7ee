"""
Pytest configuration and shared fixtures.
"""

import json
import os
import stat
import subprocess
import sys
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Point XDG config/data dirs at a temporary location for every test."""
    config_home = tmp_path / "config"
    data_home = tmp_path / "data"
    config_home.mkdir()
    data_home.mkdir()
    monkeypatch.setenv('XDG_CONFIG_HOME', str(config_home))
    monkeypatch.setenv('XDG_DATA_HOME', str(data_home))
    return {'config': config_home, 'data': data_home}


@pytest.fixture
def data_dir(isolated_dirs):
    """The ups data directory inside the temporary XDG data home."""
    path = isolated_dirs['data'] / 'ups'
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def make_script(tmp_path):
    """Factory creating executable shell check-scripts."""
    scripts_dir = tmp_path / "scripts"
    scripts_dir.mkdir()

    def _make(name: str, body: str, executable: bool = True) -> Path:
        path = scripts_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        mode = stat.S_IRUSR | stat.S_IWUSR
        if executable:
            mode |= stat.S_IXUSR
        os.chmod(path, mode)
        return path

    return _make


@pytest.fixture
def version_script(make_script):
    """Factory for a script printing a fixed version."""
    def _make(name: str, version: str) -> Path:
        return make_script(name, f"echo '{version}'")
    return _make


@pytest.fixture
def config_file(isolated_dirs):
    """Write a config file and return its path."""
    def _write(content: dict) -> Path:
        path = isolated_dirs['config'] / 'test_config.json'
        path.write_text(json.dumps(content))
        return path
    return _write


@pytest.fixture
def config(isolated_dirs):
    """Config instance using the default (temporary) location."""
    from ups.config import Config
    return Config()


@pytest.fixture
def tracker(config):
    """UpstreamTracker backed by temporary store and history files."""
    from ups.tracker import UpstreamTracker
    return UpstreamTracker(config)


@pytest.fixture
def cli_runner(isolated_dirs):
    """Run the CLI in a subprocess with the temporary environment."""
    def run_cli(*args, **kwargs):
        env = os.environ.copy()
        env['XDG_CONFIG_HOME'] = str(isolated_dirs['config'])
        env['XDG_DATA_HOME'] = str(isolated_dirs['data'])

        cmd = [sys.executable, '-m', 'ups.cli.main'] + list(args)

        kwargs.setdefault('capture_output', True)
        kwargs.setdefault('text', True)
        kwargs.setdefault('env', env)
        kwargs.setdefault('cwd', str(Path(__file__).resolve().parent.parent))
        return subprocess.run(cmd, **kwargs)

    return run_cli
