"""
Upstream version tracker: the operations behind every `ups` command.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from .config import Config
from .exceptions import ScriptError, ValidationError
from .models import PackageEntry, CheckReport, CheckResult, CheckStatus
from .runner import ScriptRunner
from .store import PackageStore
from .utils.instance_lock import ensure_single_instance
from .utils.logger import get_logger
from .utils.snapshot_history import SnapshotHistoryManager
from .utils.validators import validate_package_name, validate_script_path

logger = get_logger(__name__)

# Called with the package name before a script runs (ok=None) and after it
# finished (ok=True/False)
ProgressCallback = Callable[[str, Optional[bool]], None]


class UpstreamTracker:
    """Registers check-scripts, runs them and records snapshots."""

    def __init__(self, config: Config,
                 store: Optional[PackageStore] = None,
                 runner: Optional[ScriptRunner] = None,
                 history: Optional[SnapshotHistoryManager] = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 use_lock: bool = True) -> None:
        """
        Initialize the tracker.

        Args:
            config: Configuration instance
            store: Package store (defaults to the configured location)
            runner: Script runner (defaults to one using the configured timeout)
            history: Snapshot history (defaults to the data dir)
            progress_callback: Notified around every script run
            use_lock: Serialize mutating operations with an instance lock
        """
        self.config = config
        self.store = store if store is not None else PackageStore(str(config.get_store_path()))
        self.runner = runner if runner is not None else ScriptRunner(timeout=config.get_script_timeout())
        self.history = history if history is not None else SnapshotHistoryManager(
            str(self.store.path.with_name("history.json")),
            retention_days=config.get_history_retention_days(),
        )
        self.progress_callback = progress_callback
        self.use_lock = use_lock

        logger.debug(f"Initialized UpstreamTracker (store: {self.store.path})")

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the instance lock and work on a freshly loaded store."""
        if self.use_lock:
            with ensure_single_instance(lock_dir=self.store.path.parent):
                self.store.load()
                yield
        else:
            self.store.load()
            yield

    def _notify(self, name: str, ok: Optional[bool]) -> None:
        if self.progress_callback is not None:
            self.progress_callback(name, ok)

    def _run_script(self, entry: PackageEntry) -> str:
        self._notify(entry.name, None)
        try:
            value = self.runner.run(entry.script_path, package=entry.name)
        except ScriptError:
            self._notify(entry.name, False)
            raise
        self._notify(entry.name, True)
        return value

    def entries(self) -> List[PackageEntry]:
        """Stored entries, sorted by name, without running any script."""
        self.store.load()
        return self.store.all()

    def insert(self, name: str, script_path: str, replace: bool = False) -> PackageEntry:
        """
        Register a package and its check-script.

        Args:
            name: Package name
            script_path: Path of an executable check-script
            replace: Replace an existing registration with the same name

        Returns:
            The new entry

        Raises:
            ValidationError: If the name or script is not usable
            DuplicatePackageError: If the name exists and replace is False
        """
        if not validate_package_name(name):
            raise ValidationError(f"Invalid package name: {name!r}")

        try:
            resolved = validate_script_path(script_path)
        except ValueError as e:
            raise ValidationError(str(e))

        entry = PackageEntry(name=name, script_path=str(resolved))
        with self._exclusive():
            self.store.add(entry, replace=replace)
            self.store.save()

        logger.info(f"Registered {name} with script {resolved}")
        return entry

    def latest(self, name: str) -> str:
        """
        Run the check-script of a package and return its output.

        Nothing is persisted.

        Raises:
            PackageNotFoundError: If the package is not registered
            ScriptError: If the script fails
        """
        self.store.load()
        entry = self.store.get(name)
        return self._run_script(entry)

    def snapshot(self, name: str) -> PackageEntry:
        """
        Record the latest upstream version as the packaged one.

        Raises:
            PackageNotFoundError: If the package is not registered
            ScriptError: If the script fails (the store is left untouched)
        """
        with self._exclusive():
            entry = self.store.get(name)
            previous = entry.snapshot_version
            value = self._run_script(entry)

            entry.record_latest(value)
            entry.mark_snapshot()
            self.store.update(entry)
            self.store.save()

        logger.info(f"Snapshot of {name}: {previous} -> {entry.snapshot_version}")

        if self.config.is_history_enabled():
            try:
                self.history.record(name, previous, entry.snapshot_version)
            except OSError as e:
                logger.warning(f"Could not record snapshot history: {e}")

        return entry

    def check(self) -> CheckReport:
        """
        Run every check-script and update the latest versions.

        A failing script is reported in its result and does not stop the
        remaining ones. The store is written once at the end.

        Returns:
            CheckReport with one result per registered package
        """
        report = CheckReport()
        with self._exclusive():
            for entry in self.store.all():
                try:
                    value = self._run_script(entry)
                except ScriptError as e:
                    logger.warning(f"Check-script of {entry.name} failed: {e}")
                    report.results.append(
                        CheckResult(entry=entry, status=CheckStatus.ERROR, error_message=str(e.args[0]))
                    )
                    continue
                entry.record_latest(value)
                report.results.append(CheckResult(entry=entry))

            if report.results:
                self.store.save()

        logger.info(
            f"Checked {len(report.results)} packages: {len(report.outdated)} outdated, "
            f"{len(report.failed)} failed"
        )
        return report

    def remove(self, name: str) -> PackageEntry:
        """
        Unregister a package.

        Raises:
            PackageNotFoundError: If the package is not registered
        """
        with self._exclusive():
            entry = self.store.remove(name)
            self.store.save()
        logger.info(f"Removed {name}")
        return entry
