"""Rejection-handling classification for ``.then(...)`` chain sites.

Two patterns count as handled:

* **Chained catch** - ``.catch(`` appears within a short lookahead window after
  the call's closing parenthesis (``p.then(f).catch(g)``, tolerating whitespace
  and line breaks in between).
* **Second callback** - the first callback's body ``{...}`` is immediately
  followed by a comma, so a rejection callback is passed as the second argument
  (``p.then(function (v) {...}, function (e) {...})``).

Anything else, including unbalanced source, is classified as unhandled.
"""

import logging

from promise_rejection_fixer.analysis.scanner import find_matching_close
from promise_rejection_fixer.core.models import (
    CALL_OPEN_LENGTH,
    HANDLER_CALL,
    ChainSite,
    HandlingPattern,
    site_offset,
)

logger = logging.getLogger(__name__)

DEFAULT_CATCH_LOOKAHEAD = 20


class HandlerClassifier:
    """Decides whether a chain site already has rejection handling."""

    def __init__(self, catch_lookahead: int = DEFAULT_CATCH_LOOKAHEAD) -> None:
        """Initialize the classifier.

        Args:
            catch_lookahead: Number of characters after the call's closing parenthesis
                searched for a chained ``.catch(``.
        """
        if catch_lookahead < 0:
            raise ValueError(f"catch_lookahead must be >= 0, got {catch_lookahead}")
        self.catch_lookahead = catch_lookahead

    def classify(self, text: str, site: ChainSite | int) -> HandlingPattern:
        """Return the rejection-handling pattern matched at ``site``."""
        block_start = site_offset(site) + CALL_OPEN_LENGTH
        close = find_matching_close(text, block_start, "(", ")")
        if close is None:
            logger.debug(f"Unbalanced call at offset {site_offset(site)}, treating as unhandled")
            return HandlingPattern.NONE

        if HANDLER_CALL in text[close : close + self.catch_lookahead]:
            return HandlingPattern.CHAINED_CATCH

        if self._has_second_callback(text, block_start, close):
            return HandlingPattern.SECOND_CALLBACK

        return HandlingPattern.NONE

    def is_handled(self, text: str, site: ChainSite | int) -> bool:
        """Return True if the chain at ``site`` already has rejection handling."""
        return self.classify(text, site).handled

    def _has_second_callback(self, text: str, block_start: int, close: int) -> bool:
        brace = text.find("{", block_start, close)
        if brace == -1:
            return False
        body_end = find_matching_close(text, brace + 1, "{", "}")
        if body_end is None or body_end >= len(text):
            return False
        return text[body_end] == ","
