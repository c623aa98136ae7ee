"""
Terminal presentation helpers for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

from .colors import Colors

__all__ = ["Colors"]
