"""
Command-line interface for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later
