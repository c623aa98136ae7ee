"""
Execution of registered check-scripts.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import os
import subprocess
import time
from pathlib import Path
from typing import Dict, Optional, Union

from .constants import DEFAULT_SCRIPT_TIMEOUT_SECONDS, MAX_SCRIPT_OUTPUT_BYTES, NONE_VERSION
from .exceptions import ScriptError
from .utils.logger import get_logger

logger = get_logger(__name__)


class ScriptRunner:
    """Runs a check-script and returns the version it prints."""

    def __init__(self, timeout: int = DEFAULT_SCRIPT_TIMEOUT_SECONDS,
                 env: Optional[Dict[str, str]] = None):
        """
        Initialize the runner.

        Args:
            timeout: Seconds a script may run before it is killed
            env: Environment for scripts (defaults to the current one)
        """
        self.timeout = timeout
        self.env = env

    def run(self, script_path: Union[str, Path], package: str = "") -> str:
        """
        Execute a script and capture its standard output.

        The script is executed directly, never through a shell. Its output is
        stripped; an empty output yields the NONE placeholder.

        Args:
            script_path: Absolute path of the script
            package: Package name, used in errors and logs

        Returns:
            The version printed by the script

        Raises:
            ScriptError: If the script is missing, times out, exits non-zero
                or prints something that is not text
        """
        path = str(script_path)

        if not os.path.isfile(path):
            raise ScriptError(f"Script not found: {path}", package=package)
        if not os.access(path, os.X_OK):
            raise ScriptError(f"Script is not executable: {path}", package=package)

        logger.debug(f"Running check-script for {package or path}: {path}")
        start = time.monotonic()

        env = self.env if self.env is not None else os.environ.copy()
        try:
            result = subprocess.run(
                [path],
                capture_output=True,
                check=False,
                timeout=self.timeout,
                env=env,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Check-script timed out after {self.timeout}s: {path}")
            raise ScriptError(f"Script timed out after {self.timeout}s: {path}", package=package)
        except OSError as e:
            logger.error(f"Failed to execute check-script {path}: {e}")
            raise ScriptError(f"Failed to execute {path}: {e}", package=package)

        duration = time.monotonic() - start
        logger.debug(f"Check-script for {package or path} exited {result.returncode} in {duration:.2f}s")

        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        if result.returncode != 0:
            raise ScriptError(
                f"Failed:\n{stderr}" if stderr else f"Failed with exit code {result.returncode}",
                package=package,
                exit_code=result.returncode,
                stderr=stderr,
            )

        if len(result.stdout) > MAX_SCRIPT_OUTPUT_BYTES:
            raise ScriptError(
                f"Script output too large ({len(result.stdout)} bytes)",
                package=package,
                exit_code=result.returncode,
            )

        try:
            value = result.stdout.decode('utf-8').strip()
        except UnicodeDecodeError as e:
            raise ScriptError(f"Script output is not valid UTF-8: {e}", package=package,
                              exit_code=result.returncode)

        return value if value else NONE_VERSION
