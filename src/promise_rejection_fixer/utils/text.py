"""Text utility functions for the promise rejection fixer.

This module provides common text manipulation utilities used across
the fixer.
"""

import re

_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


def count_marker(text: str, marker: str) -> int:
    """Count non-overlapping literal occurrences of ``marker`` in ``text``.

    Returns:
        The number of matches; 0 for an empty marker.
    """
    if not marker:
        return 0
    return text.count(marker)


def is_js_identifier(name: str) -> bool:
    """Return True if ``name`` is a plain (ASCII) JavaScript identifier."""
    return bool(_IDENTIFIER_PATTERN.fullmatch(name))
