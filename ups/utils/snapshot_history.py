"""
Snapshot history for tracking when packaged versions changed.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import csv
import fcntl
import json
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from ..constants import get_default_history_path, NONE_VERSION
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Hard cap so the history file cannot grow without bound
MAX_HISTORY_ENTRIES = 10000


@dataclass
class SnapshotEvent:
    """Represents a single snapshot taken by the user."""
    timestamp: datetime            # when the snapshot was recorded
    package: str                   # package name
    old_version: Optional[str]     # snapshot before this event
    new_version: Optional[str]     # snapshot after this event

    @property
    def changed(self) -> bool:
        return self.old_version != self.new_version

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "package": self.package,
            "old_version": self.old_version,
            "new_version": self.new_version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SnapshotEvent':
        """Create from dictionary."""
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            package=data["package"],
            old_version=data.get("old_version"),
            new_version=data.get("new_version"),
        )


class SnapshotHistoryManager:
    """Manages snapshot history storage and retrieval."""

    def __init__(self, path: Optional[str] = None, retention_days: int = 365):
        """
        Initialize the snapshot history manager.

        Args:
            path: Path to history file (defaults to data dir)
            retention_days: Days to retain history entries
        """
        if path is None:
            path = str(get_default_history_path())
        self.path = Path(path)
        self.retention_days = retention_days
        self._lock = threading.Lock()
        self._cached_entries: Optional[List[SnapshotEvent]] = None

        logger.debug(f"Initialized SnapshotHistoryManager with path: {self.path}")

    def all(self) -> List[SnapshotEvent]:
        """
        Get all snapshot history entries.

        Returns:
            List of entries (newest first)
        """
        with self._lock:
            if self._cached_entries is None:
                self._cached_entries = self._load_entries()
            return sorted(self._cached_entries, key=lambda e: e.timestamp, reverse=True)

    def for_package(self, package: str) -> List[SnapshotEvent]:
        """Entries of one package, newest first."""
        return [e for e in self.all() if e.package == package]

    def add(self, event: SnapshotEvent) -> None:
        """
        Append an event and persist the history.

        Args:
            event: The snapshot event to add
        """
        with self._lock:
            entries = self._load_entries()
            entries.append(event)
            self._save_entries(entries)
            self._cached_entries = self._trim_entries(entries)
            logger.info(f"Recorded snapshot of {event.package}: {event.old_version} -> {event.new_version}")

    def record(self, package: str, old_version: Optional[str], new_version: Optional[str]) -> SnapshotEvent:
        """
        Helper to add an event for the current time.

        Args:
            package: Package name
            old_version: Previous snapshot
            new_version: New snapshot

        Returns:
            The recorded event
        """
        event = SnapshotEvent(
            timestamp=datetime.now(),
            package=package,
            old_version=old_version,
            new_version=new_version,
        )
        self.add(event)
        return event

    def clear(self) -> None:
        """Clear all snapshot history entries."""
        with self._lock:
            self._save_entries([])
            self._cached_entries = []
            logger.info("Cleared snapshot history")

    def export(self, filename: str, format_: str = "json") -> None:
        """
        Export snapshot history to file.

        Args:
            filename: Destination file path
            format_: Export format (json or csv)
        """
        entries = self.all()

        if format_ == "json":
            self._export_json(entries, filename)
        elif format_ == "csv":
            self._export_csv(entries, filename)
        else:
            raise ValueError(f"Unsupported export format: {format_}")

        logger.info(f"Exported {len(entries)} entries to {filename}")

    def _load_entries(self) -> List[SnapshotEvent]:
        """Load entries from disk with file locking."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = json.load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            entries = [SnapshotEvent.from_dict(d) for d in data]
            return self._trim_entries(entries)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            # History is informational; a broken file must not block snapshots
            logger.error(f"Corrupted history file {self.path}: {e}")
            self._move_aside()
            return []
        except OSError as e:
            logger.error(f"Failed to load snapshot history: {e}")
            return []

    def _move_aside(self) -> None:
        """Keep an unreadable history file as <name>.corrupt so it is not overwritten."""
        backup = self.path.with_name(self.path.name + ".corrupt")
        try:
            self.path.replace(backup)
            logger.warning(f"Moved unreadable history to {backup}")
        except OSError as e:
            logger.error(f"Failed to move aside corrupted history {self.path}: {e}")

    def _save_entries(self, entries: List[SnapshotEvent]) -> None:
        """Save entries to disk with file locking."""
        entries = self._trim_entries(entries)
        data = [entry.to_dict() for entry in entries]

        temp_path = self.path.with_suffix('.tmp')
        self.path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)

            temp_path.replace(self.path)

        except OSError as e:
            logger.error(f"Failed to save snapshot history: {e}")
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _trim_entries(self, entries: List[SnapshotEvent]) -> List[SnapshotEvent]:
        """
        Drop entries older than the retention period.

        Args:
            entries: List of entries to trim

        Returns:
            Trimmed list of entries, oldest first
        """
        cutoff = datetime.now() - timedelta(days=self.retention_days)
        entries = sorted((e for e in entries if e.timestamp > cutoff), key=lambda e: e.timestamp)
        return entries[-MAX_HISTORY_ENTRIES:]

    def _export_json(self, entries: List[SnapshotEvent], dst_path: str) -> None:
        """Export entries as JSON."""
        data = [entry.to_dict() for entry in entries]
        with open(dst_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    def _export_csv(self, entries: List[SnapshotEvent], dst_path: str) -> None:
        """Export entries as CSV."""
        with open(dst_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(['timestamp', 'package', 'old_version', 'new_version'])

            for entry in entries:
                writer.writerow([
                    entry.timestamp.isoformat(),
                    entry.package,
                    entry.old_version or NONE_VERSION,
                    entry.new_version or NONE_VERSION,
                ])
