"""Locate ``.then`` chain markers in raw text.

The search is purely literal: markers inside string literals or comments are
reported too. That is a known limitation of the text-level approach.
"""

import re

from promise_rejection_fixer.core.document import Document
from promise_rejection_fixer.core.models import CHAIN_MARKER, ChainSite

_CHAIN_PATTERN = re.compile(re.escape(CHAIN_MARKER))


def locate(text: str) -> list[int]:
    """Return the offsets of every non-overlapping chain marker, in ascending order."""
    return [match.start() for match in _CHAIN_PATTERN.finditer(text)]


def locate_sites(document: Document) -> list[ChainSite]:
    """Return a ChainSite (offset and position) for every chain marker in the Document."""
    return [
        ChainSite(offset=offset, position=document.position_at(offset))
        for offset in locate(document.text)
    ]
