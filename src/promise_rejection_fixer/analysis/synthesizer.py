"""Synthesis of rejection-handler insertions for unhandled chain sites."""

import logging

from promise_rejection_fixer.analysis.scanner import find_matching_close
from promise_rejection_fixer.core.document import Document
from promise_rejection_fixer.core.models import (
    CALL_OPEN_LENGTH,
    HANDLER_CALL,
    ChainSite,
    InsertionEdit,
    site_offset,
)

logger = logging.getLogger(__name__)

DEFAULT_NOOP_HANDLER = "noop"
DEFAULT_STATEMENT_TERMINATOR = ";"


class FixSynthesizer:
    """Builds the ``.catch(<noop>)`` insertion for a chain without rejection handling."""

    def __init__(
        self,
        noop_handler: str = DEFAULT_NOOP_HANDLER,
        statement_terminator: str = DEFAULT_STATEMENT_TERMINATOR,
    ) -> None:
        """Initialize the synthesizer.

        Args:
            noop_handler: Identifier of the do-nothing function passed to ``.catch``.
            statement_terminator: Character appended when the call is not already
                followed by it.
        """
        self.noop_handler = noop_handler
        self.statement_terminator = statement_terminator

    @property
    def handler_text(self) -> str:
        """Literal catch clause inserted after the call."""
        return f"{HANDLER_CALL}{self.noop_handler})"

    def synthesize_fix(
        self, text: str, site: ChainSite | int, document: Document | None = None
    ) -> InsertionEdit:
        """Compute the insertion for the chain at ``site``.

        The edit goes immediately after the call's closing parenthesis. For an
        unbalanced call the edit lands at the end of the text; the placement may
        then be wrong, but an edit is always produced.

        Args:
            text: Pre-edit text snapshot.
            site: Chain site (or its offset) classified as unhandled.
            document: Document over ``text`` used to resolve positions. Built on
                demand when omitted.

        Returns:
            InsertionEdit with an absolute offset into ``text``.
        """
        document = document if document is not None else Document(text)
        offset = site_offset(site)
        close = find_matching_close(text, offset + CALL_OPEN_LENGTH, "(", ")")
        if close is None:
            logger.debug(f"Unbalanced call at offset {offset}, inserting at end of text")
            close = len(text)

        insertion = self.handler_text
        if text[close : close + 1] != self.statement_terminator:
            insertion += self.statement_terminator

        if isinstance(site, ChainSite):
            chain_site = site
        else:
            chain_site = ChainSite(offset=offset, position=document.position_at(offset))
        return InsertionEdit(
            offset=close,
            text=insertion,
            site=chain_site,
            position=document.position_at(close),
        )
