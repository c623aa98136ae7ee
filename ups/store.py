"""
Persistent package store.

Entries live in a single JSON file (a list of objects). Reads take a shared
``fcntl`` lock, writes go to a temporary sibling under an exclusive lock and
are renamed into place so a crash never leaves a half-written store.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import fcntl
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Iterator

from .constants import DATA_DIR_PERMISSIONS, MAX_DATA_FILE_BYTES, get_default_store_path
from .exceptions import StoreError, PackageNotFoundError, DuplicatePackageError
from .models import PackageEntry
from .utils.logger import get_logger
from .utils.validators import validate_package_name

logger = get_logger(__name__)


class PackageStore:
    """Keeps the registered packages, keyed by name."""

    def __init__(self, path: Optional[str] = None):
        """
        Initialize the store.

        Args:
            path: Path to the store file (defaults to the data dir)
        """
        if path is None:
            path = str(get_default_store_path())
        self.path = Path(path)
        self._entries: Dict[str, PackageEntry] = {}
        self._loaded = False

        logger.debug(f"Initialized PackageStore with path: {self.path}")

    def __contains__(self, name: str) -> bool:
        self._ensure_loaded()
        return name in self._entries

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._entries)

    def __iter__(self) -> Iterator[PackageEntry]:
        return iter(self.all())

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def load(self) -> None:
        """
        Load entries from disk.

        A missing file is an empty store.

        Raises:
            StoreError: If the file cannot be read or is corrupted
        """
        self._entries = {entry.name: entry for entry in self._load_entries()}
        self._loaded = True
        logger.debug(f"Loaded {len(self._entries)} packages from {self.path}")

    def save(self) -> None:
        """
        Write all entries to disk.

        Raises:
            StoreError: If the file cannot be written
        """
        self._ensure_loaded()
        self._save_entries(self.all())
        logger.debug(f"Saved {len(self._entries)} packages to {self.path}")

    def names(self) -> List[str]:
        """Registered package names, sorted."""
        self._ensure_loaded()
        return sorted(self._entries)

    def all(self) -> List[PackageEntry]:
        """All entries sorted by name."""
        self._ensure_loaded()
        return [self._entries[name] for name in sorted(self._entries)]

    def get(self, name: str) -> PackageEntry:
        """
        Get an entry by name.

        Raises:
            PackageNotFoundError: If no entry has this name
        """
        self._ensure_loaded()
        try:
            return self._entries[name]
        except KeyError:
            raise PackageNotFoundError(name)

    def add(self, entry: PackageEntry, replace: bool = False) -> None:
        """
        Add a new entry.

        Args:
            entry: Entry to add
            replace: Overwrite an entry with the same name instead of failing

        Raises:
            DuplicatePackageError: If the name exists and replace is False
        """
        self._ensure_loaded()
        if entry.name in self._entries and not replace:
            raise DuplicatePackageError(entry.name)
        self._entries[entry.name] = entry

    def update(self, entry: PackageEntry) -> None:
        """
        Replace an existing entry.

        Raises:
            PackageNotFoundError: If the entry was never added
        """
        self._ensure_loaded()
        if entry.name not in self._entries:
            raise PackageNotFoundError(entry.name)
        self._entries[entry.name] = entry

    def remove(self, name: str) -> PackageEntry:
        """
        Remove an entry and return it.

        Raises:
            PackageNotFoundError: If no entry has this name
        """
        self._ensure_loaded()
        try:
            return self._entries.pop(name)
        except KeyError:
            raise PackageNotFoundError(name)

    def _load_entries(self) -> List[PackageEntry]:
        """Load entries from disk with file locking."""
        if not self.path.exists():
            return []

        try:
            file_size = self.path.stat().st_size
            if file_size > MAX_DATA_FILE_BYTES:
                raise StoreError(f"Store file too large: {file_size} bytes ({self.path})")

            with open(self.path, 'r', encoding='utf-8') as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    content = f.read()
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            raise StoreError(f"Failed to read package store {self.path}: {e}")

        if not content.strip():
            return []

        try:
            data = json.loads(content)
            if not isinstance(data, list):
                raise ValueError("expected a list of packages")
            for record in data:
                self._check_record(record)
            entries = [PackageEntry.from_dict(d) for d in data]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Corrupted package store {self.path}: {e}")
            raise StoreError(f"Corrupted package store {self.path}: {e}")

        names = [e.name for e in entries]
        if len(names) != len(set(names)):
            raise StoreError(f"Corrupted package store {self.path}: duplicate package names")

        return entries

    @staticmethod
    def _check_record(record: Any) -> None:
        """Reject records that `insert` could never have written."""
        if not isinstance(record, dict):
            raise ValueError(f"expected an object, got {type(record).__name__}")

        name = record.get("name")
        if not isinstance(name, str) or not validate_package_name(name):
            raise ValueError(f"invalid package name {name!r}")

        if not isinstance(record.get("script_path"), str):
            raise ValueError(f"invalid script path for {name}")

        for key in ("snapshot_version", "latest_version"):
            value = record.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"invalid {key} for {name}: {value!r}")

    def _save_entries(self, entries: List[PackageEntry]) -> None:
        """Save entries to disk with file locking."""
        data = [entry.to_dict() for entry in entries]

        temp_path = self.path.with_suffix('.tmp')

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            try:
                os.chmod(self.path.parent, DATA_DIR_PERMISSIONS)
            except OSError as e:
                logger.debug(f"Failed to set permissions on data directory: {e}")

            with open(temp_path, 'w', encoding='utf-8') as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)

            # Atomic rename
            temp_path.replace(self.path)

        except OSError as e:
            logger.error(f"Failed to save package store: {e}")
            if temp_path.exists():
                temp_path.unlink()
            raise StoreError(f"Failed to save package store {self.path}: {e}")
