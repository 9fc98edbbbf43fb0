"""Color output support for the pacmeta CLI.

Color palette:
  - Red: errors
  - Green: package names
  - Blue: field labels
"""

import os
import sys

# ANSI color codes
_COLORS = {
    'reset': '\033[0m',
    'bold': '\033[1m',
    'red': '\033[91m',
    'green': '\033[92m',
    'blue': '\033[94m',
}

# Global state
_colors_enabled = True


def init(nocolor: bool = False):
    """Initialize color support.

    Args:
        nocolor: If True, disable colors unconditionally
    """
    global _colors_enabled

    if nocolor:
        _colors_enabled = False
    elif os.environ.get('NO_COLOR'):
        # Respect NO_COLOR environment variable (https://no-color.org/)
        _colors_enabled = False
    elif not sys.stdout.isatty():
        _colors_enabled = False
    else:
        _colors_enabled = True


def _wrap(text: str, color: str) -> str:
    if not _colors_enabled:
        return text
    code = _COLORS.get(color, '')
    reset = _COLORS['reset']
    return f"{code}{text}{reset}"


def error(text: str) -> str:
    """Format text as error (red)."""
    return _wrap(text, 'red')


def package(text: str) -> str:
    """Format a package name (bold green)."""
    return _wrap(_wrap(text, 'bold'), 'green')


def label(text: str) -> str:
    """Format a field label (blue)."""
    return _wrap(text, 'blue')

