"""
Color utilities for terminal output.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

from colorama import Fore, Style, init  # type: ignore[import-untyped]

# Initialize colorama for cross-platform color support
init()


class Colors:
    """Color constants for terminal output."""

    # Foreground colors
    RED = Fore.RED
    GREEN = Fore.GREEN
    YELLOW = Fore.YELLOW
    BLUE = Fore.BLUE
    MAGENTA = Fore.MAGENTA
    CYAN = Fore.CYAN

    # Styles
    BRIGHT = Style.BRIGHT
    RESET = Style.RESET_ALL

    # Semantic colors
    SUCCESS = GREEN + BRIGHT
    WARNING = YELLOW + BRIGHT
    ERROR = RED + BRIGHT
    INFO = CYAN + BRIGHT
    HEADER = BLUE + BRIGHT

    # Table cells
    PACKAGE = YELLOW
    SCRIPT = MAGENTA
    CURRENT = GREEN
    OUTDATED = RED

    @staticmethod
    def colored(text: str, color: str) -> str:
        """
        Apply color to text.

        Args:
            text: Text to colorize
            color: Color to apply

        Returns:
            Colored text
        """
        return f"{color}{text}{Style.RESET_ALL}"
