"""
Custom exceptions for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Optional


class UpsError(Exception):
    """Base exception for all Ups errors."""

    pass


class ConfigurationError(UpsError):
    """Raised when configuration is invalid."""

    pass


class StoreError(UpsError):
    """Raised when the package store cannot be read or written."""

    pass


class ValidationError(UpsError):
    """Raised when user input fails validation."""

    pass


class PackageNotFoundError(UpsError):
    """Raised when a package is not registered."""

    def __init__(self, name: str) -> None:
        """Initialize the error."""
        super().__init__(f"Package `{name}` is not registered.")
        self.name = name


class DuplicatePackageError(UpsError):
    """Raised when inserting a package name that already exists."""

    def __init__(self, name: str) -> None:
        """Initialize the error."""
        super().__init__(f"Package `{name}` is already registered (use --force to replace it).")
        self.name = name


class ScriptError(UpsError):
    """Raised when a check-script cannot be run or fails."""

    def __init__(self, message: str, package: str = "", exit_code: Optional[int] = None,
                 stderr: str = "") -> None:
        """Initialize the error."""
        super().__init__(message)
        self.package = package
        self.exit_code = exit_code
        self.stderr = stderr

    def __str__(self) -> str:
        if self.package:
            return f"{self.args[0]} (Package: {self.package})"
        return str(self.args[0])
