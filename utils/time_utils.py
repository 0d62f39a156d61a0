"""
utils/time_utils.py

Purpose: Timestamp helpers

- File modification times
- Bot API epoch timestamps
"""

from datetime import datetime
from typing import Optional, Union


def format_timestamp(dt: Optional[datetime], format_str: str = "%Y-%m-%d %H:%M:%S") -> str:
    """
    Formats a datetime object to string.
    """
    if not dt:
        return "N/A"
    return dt.strftime(format_str)


def from_epoch(value: Optional[Union[int, float]]) -> Optional[datetime]:
    """
    Converts a Unix timestamp (as returned by the Bot API) to a datetime.
    """
    if not value:
        return None
    return datetime.fromtimestamp(value)
