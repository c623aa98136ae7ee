"""
Data models for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict, Any
from enum import Enum

from .constants import (
    NONE_VERSION,
    DEFAULT_SCRIPT_TIMEOUT_SECONDS,
    DEFAULT_HISTORY_RETENTION_DAYS,
)


class CheckStatus(Enum):
    """Outcome of running a single check-script."""
    OK = "ok"
    ERROR = "error"


def display_version(version: Optional[str]) -> str:
    """Render a possibly missing version."""
    return version if version is not None else NONE_VERSION


def _parse_version(value: Any) -> Optional[str]:
    if value is None or value == "" or value == NONE_VERSION:
        return None
    return str(value)


@dataclass
class PackageEntry:
    """A registered package and the versions known for it."""

    name: str
    script_path: str
    snapshot_version: Optional[str] = None
    latest_version: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate entry data."""
        if not self.name:
            raise ValueError("Package name cannot be empty")
        if not self.script_path:
            raise ValueError("Script path cannot be empty")
        self.snapshot_version = _parse_version(self.snapshot_version)
        self.latest_version = _parse_version(self.latest_version)

    @property
    def is_outdated(self) -> bool:
        """True when the latest version differs from the snapshot."""
        return self.latest_version != self.snapshot_version

    def record_latest(self, version: Optional[str]) -> None:
        """Store the output of the check-script as the latest version."""
        self.latest_version = _parse_version(version)

    def mark_snapshot(self) -> None:
        """Record the latest version as the one currently packaged."""
        self.snapshot_version = self.latest_version

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "script_path": self.script_path,
            "snapshot_version": self.snapshot_version,
            "latest_version": self.latest_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PackageEntry':
        """Create from dictionary."""
        return cls(
            name=data["name"],
            script_path=data["script_path"],
            snapshot_version=_parse_version(data.get("snapshot_version")),
            latest_version=_parse_version(data.get("latest_version")),
        )

    def __str__(self) -> str:
        """String representation."""
        return (f"{self.name} {display_version(self.snapshot_version)} -> "
                f"{display_version(self.latest_version)}")


@dataclass
class CheckResult:
    """Result of running one package's check-script."""
    entry: PackageEntry
    status: CheckStatus = CheckStatus.OK
    error_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == CheckStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        data = self.entry.to_dict()
        data["outdated"] = self.entry.is_outdated
        data["status"] = self.status.value
        data["error"] = self.error_message
        return data


@dataclass
class CheckReport:
    """Result of a check run over every registered package."""
    results: List[CheckResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def entries(self) -> List[PackageEntry]:
        return [r.entry for r in self.results]

    @property
    def outdated(self) -> List[PackageEntry]:
        """Entries whose latest version differs from the snapshot."""
        return [r.entry for r in self.results if r.entry.is_outdated]

    @property
    def failed(self) -> List[CheckResult]:
        """Results whose script could not be run successfully."""
        return [r for r in self.results if r.failed]

    @property
    def has_outdated(self) -> bool:
        return len(self.outdated) > 0

    @property
    def has_failures(self) -> bool:
        return len(self.failed) > 0


@dataclass
class AppConfig:
    """Application configuration."""
    data_file: Optional[str] = None
    script_timeout_seconds: int = DEFAULT_SCRIPT_TIMEOUT_SECONDS
    history_enabled: bool = True
    history_retention_days: int = DEFAULT_HISTORY_RETENTION_DAYS
    debug_mode: bool = False
    verbose_logging: bool = False
    use_color: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "data_file": self.data_file,
            "script_timeout_seconds": self.script_timeout_seconds,
            "history_enabled": self.history_enabled,
            "history_retention_days": self.history_retention_days,
            "debug_mode": self.debug_mode,
            "verbose_logging": self.verbose_logging,
            "use_color": self.use_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppConfig':
        """Create from dictionary."""
        return cls(
            data_file=data.get("data_file"),
            script_timeout_seconds=data.get("script_timeout_seconds", DEFAULT_SCRIPT_TIMEOUT_SECONDS),
            history_enabled=data.get("history_enabled", True),
            history_retention_days=data.get("history_retention_days", DEFAULT_HISTORY_RETENTION_DAYS),
            debug_mode=data.get("debug_mode", False),
            verbose_logging=data.get("verbose_logging", False),
            use_color=data.get("use_color", True),
        )
