"""
Output formatting utilities for the CLI.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

import json
import sys
from typing import Any, List, Optional

from ..constants import NONE_VERSION
from ..models import PackageEntry, CheckResult
from ..ui.colors import Colors
from ..utils.snapshot_history import SnapshotEvent


class OutputFormatter:
    """Handles output formatting for the CLI."""

    def __init__(self, use_color: bool = True, json_output: bool = False, quiet: bool = False):
        """
        Initialize output formatter.

        Args:
            use_color: Whether to use ANSI colors
            json_output: Whether to output JSON
            quiet: Suppress informational messages and progress
        """
        self.use_color = use_color
        self.json_output = json_output
        self.quiet = quiet

    def _paint(self, text: str, color: str) -> str:
        return Colors.colored(text, color) if self.use_color else text

    def success(self, message: str) -> None:
        """Print success message."""
        if not self.json_output and not self.quiet:
            print(self._paint(message, Colors.SUCCESS))

    def warning(self, message: str) -> None:
        """Print warning message."""
        if not self.json_output:
            print(self._paint(f"Warning: {message}", Colors.WARNING), file=sys.stderr)

    def error(self, message: str) -> None:
        """Print error message."""
        print(self._paint(f"Error: {message}", Colors.ERROR), file=sys.stderr)

    def info(self, message: str) -> None:
        """Print info message."""
        if not self.json_output and not self.quiet:
            print(self._paint(message, Colors.INFO))

    def header(self, message: str) -> None:
        """Print header message."""
        if not self.json_output and not self.quiet:
            print(f"\n{self._paint(message, Colors.HEADER)}")
            print(self._paint('─' * len(message), Colors.HEADER))

    def progress(self, name: str, ok: Optional[bool]) -> None:
        """
        Report a script run on stderr.

        Called once before the script starts (ok is None) and once after.
        """
        if self.json_output or self.quiet:
            return
        if ok is None:
            text = self._paint(f"Fetching latest version of `{name}`...", Colors.YELLOW)
            print(text, end=' ', file=sys.stderr, flush=True)
        elif ok:
            print(self._paint("Ok", Colors.SUCCESS), file=sys.stderr)
        else:
            print(self._paint("Failed", Colors.ERROR), file=sys.stderr)

    def format_packages_table(self, entries: List[PackageEntry],
                              failures: Optional[List[CheckResult]] = None) -> str:
        """
        Format packages as a table of snapshot vs latest version.

        Versions are green when they match and red when they differ.

        Args:
            entries: Entries to show
            failures: Results whose script failed, marked in the table

        Returns:
            Formatted table string
        """
        if not entries:
            return "No packages registered"

        failed_names = {r.entry.name for r in failures or []}

        rows = []
        for entry in entries:
            rows.append((
                entry.name,
                entry.snapshot_version or NONE_VERSION,
                entry.latest_version or NONE_VERSION,
                entry.script_path,
            ))

        width_name = max(max(len(r[0]) for r in rows), len('Package'))
        width_snapshot = max(max(len(r[1]) for r in rows), len('Snapshot'))
        width_latest = max(max(len(r[2]) for r in rows), len('Latest'))

        lines = []
        header = (f"  {'Package':<{width_name}}  {'Snapshot':<{width_snapshot}}  "
                  f"{'Latest':<{width_latest}}  Script")
        lines.append(self._paint(header, Colors.HEADER))
        lines.append(f"  {'─' * width_name}  {'─' * width_snapshot}  {'─' * width_latest}  {'─' * 6}")

        for entry, (name, snapshot, latest, script) in zip(entries, rows):
            version_color = Colors.OUTDATED if entry.is_outdated else Colors.CURRENT
            row = (
                f"  {self._paint(f'{name:<{width_name}}', Colors.PACKAGE)}"
                f"  {self._paint(f'{snapshot:<{width_snapshot}}', version_color)}"
                f"  {self._paint(f'{latest:<{width_latest}}', version_color)}"
                f"  {self._paint(script, Colors.SCRIPT)}"
            )
            if name in failed_names:
                row += f"  {self._paint('(check failed)', Colors.ERROR)}"
            lines.append(row)

        return '\n'.join(lines)

    def format_history_table(self, events: List[SnapshotEvent]) -> str:
        """
        Format snapshot history entries as a table.

        Args:
            events: History entries, newest first

        Returns:
            Formatted table string
        """
        if not events:
            return "No snapshot history"

        width_package = max(max(len(e.package) for e in events), len('Package'))

        lines = []
        lines.append(f"  {'Date/Time':<19}  {'Package':<{width_package}}  Change")
        lines.append(f"  {'─' * 19}  {'─' * width_package}  {'─' * 6}")

        for event in events:
            date_str = event.timestamp.strftime('%Y-%m-%d %H:%M:%S')
            old = event.old_version or NONE_VERSION
            new = event.new_version or NONE_VERSION
            change = f"{old} -> {new}" if event.changed else f"{new} (unchanged)"
            lines.append(f"  {date_str:<19}  {event.package:<{width_package}}  {change}")

        return '\n'.join(lines)

    def output_json(self, data: Any) -> None:
        """
        Output data as JSON.

        Args:
            data: Data to output
        """
        print(json.dumps(data, indent=2, default=str))
