"""
utils/file_utils.py

Purpose: Filename and size helpers

- Filename sanitization (the only guard against path traversal)
- Extension lookup
- Human-readable byte sizes
"""

import re
from typing import Optional

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def sanitize_filename(name: Optional[str]) -> str:
    """
    Turns an untrusted filename into a safe one.

    Drops any directory component (both '/' and '\\' separators), then
    replaces every character outside [A-Za-z0-9_.-] with '_'.

    Args:
        name: Filename as supplied by the user or the platform

    Returns:
        Sanitized filename; empty string for empty input
    """
    if not name:
        return ""

    base = re.split(r"[\\/]", name)[-1]
    return _UNSAFE_CHARS.sub("_", base)


def is_valid_filename(name: str) -> bool:
    """
    Checks that a sanitized filename can be used as a file in a user directory.
    """
    if not name:
        return False
    # "." and ".." resolve to directories
    return name.strip(".") != ""


def get_extension(name: str) -> str:
    """
    Returns the lowercase extension without the dot ('' when there is none).
    """
    if "." not in name.lstrip("."):
        return ""
    return name.rsplit(".", 1)[-1].lower()


def format_bytes(size: int, decimals: int = 2) -> str:
    """
    Formats a byte count for display.

    Examples:
        format_bytes(50) -> "50 B"
        format_bytes(10 * 1024 * 1024) -> "10.00 MB"
    """
    if size < 1024:
        return f"{size} B"

    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1

    return f"{value:.{decimals}f} {SIZE_UNITS[unit]}"
