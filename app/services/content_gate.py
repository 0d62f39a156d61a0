"""
app/services/content_gate.py

Purpose: Script content gate

- Scans uploaded scripts for deny-listed function calls
  (process execution, dynamic evaluation, obfuscation primitives)
- Only used when the upload policy enables it
"""

import re
from typing import Dict, Iterable, Pattern, Set, Union

from utils.constants import DISALLOWED_FUNCTIONS


def _compile(names: Iterable[str]) -> Dict[str, Pattern]:
    # name followed by optional whitespace and an opening parenthesis
    return {
        name: re.compile(r"\b" + re.escape(name) + r"\s*\(", re.IGNORECASE)
        for name in names
    }


_PATTERNS = _compile(DISALLOWED_FUNCTIONS)


def scan(content: Union[bytes, str]) -> Set[str]:
    """
    Scans script content for disallowed function calls.

    Args:
        content: Raw file content

    Returns:
        Names of the disallowed functions found (empty set means accepted)
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")

    return {name for name, pattern in _PATTERNS.items() if pattern.search(content)}
