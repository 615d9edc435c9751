"""Color output support for the depsolve CLI.

Color palette:
  - Red: problems and errors
  - Orange: warnings
  - Green: installs
  - Blue: updates
"""

import os
import sys

# ANSI color codes
_COLORS = {
    'reset': '\033[0m',
    'bold': '\033[1m',
    'red': '\033[91m',
    'orange': '\033[93m',   # no true orange in ANSI
    'green': '\033[92m',
    'blue': '\033[94m',
    'dim': '\033[2m',
}

_colors_enabled = True


def init(nocolor: bool = False, stream=None):
    """Initialize color support.

    Args:
        nocolor: If True, disable colors unconditionally
        stream: Stream checked for a terminal (default: sys.stdout)
    """
    global _colors_enabled

    stream = stream or sys.stdout
    if nocolor or os.environ.get('NO_COLOR'):
        # https://no-color.org/
        _colors_enabled = False
    else:
        _colors_enabled = stream.isatty()


def enabled() -> bool:
    return _colors_enabled


def _wrap(text: str, color: str) -> str:
    if not _colors_enabled:
        return text
    return f"{_COLORS[color]}{text}{_COLORS['reset']}"


def error(text: str) -> str:
    return _wrap(text, 'red')


def warning(text: str) -> str:
    return _wrap(text, 'orange')


def success(text: str) -> str:
    return _wrap(text, 'green')


def info(text: str) -> str:
    return _wrap(text, 'blue')


def dim(text: str) -> str:
    return _wrap(text, 'dim')


def bold(text: str) -> str:
    return _wrap(text, 'bold')


def operation(op) -> str:
    """Format a solver operation with the color of its kind."""
    text = str(op)
    command = op.job_command.value
    if command in ('install', 'mark-alias-installed'):
        return success(text)
    if command in ('uninstall', 'mark-alias-uninstalled'):
        return error(text)
    return info(text)
