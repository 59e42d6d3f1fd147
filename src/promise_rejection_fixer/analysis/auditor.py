"""Advisory consistency check between chain markers and handler markers.

Both counts are literal substring counts, so markers in comments or unrelated
identifiers skew them. A mismatch is a warning for the user, never an error.
"""

from promise_rejection_fixer.core.models import CHAIN_MARKER, HANDLER_MARKER, AuditResult
from promise_rejection_fixer.utils.text import count_marker


def audit(original_text: str, insert_count: int) -> AuditResult:
    """Compare chain markers with handler markers plus the edits about to be applied.

    The counts come from the pre-edit text; ``insert_count`` stands in for the
    handler markers the edits add. This holds as long as inserted text never
    contains the chain marker itself.
    """
    return AuditResult(
        chain_count=count_marker(original_text, CHAIN_MARKER),
        handler_count=count_marker(original_text, HANDLER_MARKER),
        insert_count=insert_count,
    )
