"""Logging utilities for Blocksworld planning runs.

Provides color-coded console output so planning steps, conflicts and outcomes
are easy to tell apart when a run is traced.
"""

import os
from enum import Enum

from .config import Config


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # Deterministic planning steps
    YELLOW = "\033[93m"    # Conflicts and deferrals
    RED = "\033[91m"       # Errors and illegal moves
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if BLOCKSWORLD_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("BLOCKSWORLD_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def verbose_enabled() -> bool:
    """Per-cycle output is opt-in; run summaries are always printed."""
    flag = os.getenv("BLOCKSWORLD_VERBOSE")
    if flag is not None:
        return flag.strip().lower() in ("1", "true", "yes", "on")
    return Config.VERBOSE


def log_deterministic(message: str) -> None:
    """Log a planning step (blue)."""
    print(colored(message, Color.BLUE))


def log_conflict(message: str) -> None:
    """Log a conflict or deferral (yellow)."""
    print(colored(message, Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error or dropped move (red)."""
    print(colored(message, Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    print(colored(message, Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(message, Color.CYAN))


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"  # Planning step
LOG_TAG_CONFLICT = "[⇄]"       # Conflict detected / proposal deferred
LOG_TAG_ERROR = "[!]"          # Error / illegal move
LOG_TAG_SUCCESS = "[✓]"        # Success
LOG_TAG_INFO = "[i]"           # Information
