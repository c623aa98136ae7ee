"""
Instance locking so two `ups` runs never interleave store updates.

A mutating command (insert, snapshot, check, remove) loads the whole store,
runs scripts and writes it back. The lock serializes those cycles across
processes; stale locks from crashed runs are detected with psutil.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import fcntl
import json
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union, Dict, Any, TextIO

import psutil  # type: ignore[import-untyped]

from ..constants import APP_NAME, get_data_dir
from .logger import get_logger

logger = get_logger(__name__)

MAX_LOCK_AGE_SECONDS = 86400  # 24 hours
LOCK_FILE_VERSION = "1.0"


class InstanceLockError(Exception):
    """Raised when instance lock operations fail."""
    pass


class InstanceAlreadyRunningError(InstanceLockError):
    """Raised when another instance is already running."""
    pass


class InstanceLock:
    """
    File-based instance lock.

    Uses fcntl for atomic, cross-process locking. The lock file records the
    holder's PID so a lock left behind by a dead process can be reclaimed.
    """

    def __init__(self, app_name: str = APP_NAME, lock_dir: Optional[Union[str, Path]] = None):
        """
        Initialize instance lock.

        Args:
            app_name: Application name for lock file
            lock_dir: Directory for lock files (defaults to the data dir)
        """
        self.app_name = app_name
        self.lock_file_path = Path(lock_dir or get_data_dir()) / f".{app_name}.lock"
        self.lock_file: Optional[TextIO] = None
        self.locked = False
        self.pid = os.getpid()

    def acquire(self, timeout: float = 0.0, check_stale: bool = True) -> bool:
        """
        Acquire the instance lock.

        Args:
            timeout: Maximum time to wait for lock (0 = non-blocking)
            check_stale: Whether to check for and clean stale locks

        Returns:
            True once the lock is held

        Raises:
            InstanceAlreadyRunningError: If another instance holds the lock
            InstanceLockError: If lock operation fails
        """
        if self.locked:
            return True

        try:
            self.lock_file_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.lock_file_path), os.O_CREAT | os.O_RDWR, 0o600)
            self.lock_file = os.fdopen(fd, 'r+')
        except OSError as e:
            raise InstanceLockError(f"Failed to open lock file {self.lock_file_path}: {e}")

        start_time = time.time()
        while True:
            try:
                fcntl.flock(self.lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if timeout > 0 and (time.time() - start_time) < timeout:
                    time.sleep(0.1)
                    continue

                existing_pid = self._get_existing_pid()
                if check_stale and self._is_stale():
                    logger.warning(f"Found stale lock from PID {existing_pid}, cleaning up")
                    self._close_lock_file()
                    try:
                        self.lock_file_path.unlink()
                    except FileNotFoundError:
                        pass
                    return self.acquire(timeout=timeout, check_stale=False)

                self._close_lock_file()
                raise InstanceAlreadyRunningError(
                    f"Another instance of {self.app_name} is already running "
                    f"(PID: {existing_pid or 'unknown'})"
                )
            except OSError as e:
                self._close_lock_file()
                raise InstanceLockError(f"Failed to acquire instance lock: {e}")

        lock_data = {
            'pid': self.pid,
            'timestamp': time.time(),
            'version': LOCK_FILE_VERSION,
            'app_name': self.app_name,
        }
        self.lock_file.seek(0)
        self.lock_file.truncate()
        json.dump(lock_data, self.lock_file)
        self.lock_file.flush()

        self.locked = True
        logger.debug(f"Acquired instance lock {self.lock_file_path} - PID: {self.pid}")
        return True

    def release(self) -> None:
        """Release the instance lock."""
        if not self.locked:
            return

        if self.lock_file is not None:
            try:
                self.lock_file.seek(0)
                self.lock_file.truncate()
                fcntl.flock(self.lock_file.fileno(), fcntl.LOCK_UN)
            except OSError as e:
                logger.debug(f"Could not unlock {self.lock_file_path}: {e}")

        self._close_lock_file()
        self.locked = False
        logger.debug(f"Released instance lock {self.lock_file_path}")

    def _close_lock_file(self) -> None:
        """Close the lock file handle."""
        if self.lock_file:
            try:
                self.lock_file.close()
            except OSError:
                pass
            self.lock_file = None

    def _get_lock_data(self) -> Optional[Dict[str, Any]]:
        """Read the lock file, None if absent or unreadable."""
        try:
            with open(self.lock_file_path, 'r') as f:
                data = json.load(f)
            if isinstance(data, dict) and 'pid' in data:
                return data
        except (OSError, ValueError):
            pass
        return None

    def _get_existing_pid(self) -> Optional[int]:
        data = self._get_lock_data()
        if data and isinstance(data.get('pid'), int):
            return data['pid']
        return None

    def _is_stale(self) -> bool:
        """True if the lock holder is gone or the lock is very old."""
        lock_data = self._get_lock_data()
        if not lock_data:
            return False

        if time.time() - lock_data.get('timestamp', 0) > MAX_LOCK_AGE_SECONDS:
            return True

        existing_pid = lock_data.get('pid')
        if not isinstance(existing_pid, int) or existing_pid == self.pid:
            return False
        return not psutil.pid_exists(existing_pid)

    def __enter__(self):
        """Context manager entry."""
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.release()


@contextmanager
def ensure_single_instance(lock_dir: Optional[Union[str, Path]] = None, timeout: float = 0.0):
    """
    Context manager to ensure single instance execution.

    Args:
        lock_dir: Directory holding the lock file
        timeout: Maximum time to wait for lock

    Yields:
        InstanceLock object

    Raises:
        InstanceAlreadyRunningError: If another instance is running
    """
    lock = InstanceLock(lock_dir=lock_dir)
    lock.acquire(timeout=timeout)
    try:
        yield lock
    finally:
        lock.release()
