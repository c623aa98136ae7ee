"""
Ups - Upstream Version Tracker

Register a check-script per package, run it to discover the latest upstream
version, and snapshot the version you currently package so the two can be
compared at any time.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

__version__ = "0.3.0"
__author__ = "Ups contributors"
