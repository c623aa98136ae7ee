"""
Utils package for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

from .logger import get_logger, set_global_config, set_console_level
from .validators import (
    validate_package_name,
    validate_script_path,
)
from .snapshot_history import SnapshotHistoryManager, SnapshotEvent
from .instance_lock import (
    InstanceLock,
    InstanceLockError,
    InstanceAlreadyRunningError,
    ensure_single_instance,
)

__all__ = [
    "get_logger",
    "set_global_config",
    "set_console_level",
    "validate_package_name",
    "validate_script_path",
    "SnapshotHistoryManager",
    "SnapshotEvent",
    "InstanceLock",
    "InstanceLockError",
    "InstanceAlreadyRunningError",
    "ensure_single_instance",
]
