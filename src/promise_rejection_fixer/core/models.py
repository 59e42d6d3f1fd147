"""Data models for the promise rejection fixer.

This module contains the core data classes used throughout the system
to represent chain sites, insertion edits, audit results, and fix results.

Example:
    >>> from promise_rejection_fixer.core.models import ChainSite, Position
    >>> site = ChainSite(offset=3, position=Position(line=0, column=3))
    >>> site.position.display()
    '1:4'
"""

from dataclasses import dataclass, field
from enum import Enum

# Literal markers recognised by the text scanners
CHAIN_MARKER = ".then"
HANDLER_MARKER = ".catch"
HANDLER_CALL = ".catch("


class HandlingPattern(Enum):
    """Which rejection-handling pattern (if any) a chain site matched."""

    CHAINED_CATCH = "chained-catch"
    SECOND_CALLBACK = "second-callback"
    NONE = "none"

    @property
    def handled(self) -> bool:
        """Return True when the pattern represents existing rejection handling."""
        return self is not HandlingPattern.NONE


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """Zero-based (line, column) coordinate inside a Document."""

    line: int
    column: int

    def display(self) -> str:
        """Render the position one-based as ``line:column`` for humans."""
        return f"{self.line + 1}:{self.column + 1}"


@dataclass(frozen=True, slots=True, order=True)
class ChainSite:
    """Start of a ``.then`` chain marker.

    Identity and ordering are the offset; the position is carried along for reporting.
    """

    offset: int
    position: Position = field(compare=False)


@dataclass(frozen=True, slots=True)
class InsertionEdit:
    """Literal text to splice into a Document at an absolute offset.

    Attributes:
        offset: Insertion offset, computed against the pre-edit snapshot.
        text: Literal text to insert.
        site: Chain site the edit was synthesized for.
        position: Position of the insertion point (used to mark edited locations).
    """

    offset: int
    text: str
    site: ChainSite
    position: Position


@dataclass(frozen=True, slots=True)
class AuditResult:
    """Outcome of the chain-marker vs handler-marker consistency check.

    Attributes:
        chain_count: Occurrences of the chain marker in the pre-edit text.
        handler_count: Occurrences of the handler marker in the pre-edit text.
        insert_count: Number of edits applied in this pass.
    """

    chain_count: int
    handler_count: int
    insert_count: int

    @property
    def adjusted_handler_count(self) -> int:
        """Handler markers once the inserted edits are accounted for."""
        return self.handler_count + self.insert_count

    @property
    def mismatch(self) -> bool:
        """True when chain markers and adjusted handler markers differ."""
        return self.chain_count != self.adjusted_handler_count

    @property
    def message(self) -> str:
        """Human-readable summary of the audit."""
        if not self.mismatch:
            return (
                f"Consistent: {self.chain_count} chains, "
                f"{self.adjusted_handler_count} rejection handlers"
            )
        return (
            f"Count mismatch: {self.chain_count} '{CHAIN_MARKER}' chains but "
            f"{self.adjusted_handler_count} '{HANDLER_MARKER}' handlers "
            f"({self.handler_count} existing + {self.insert_count} inserted). "
            "Some chains may still lack rejection handling."
        )


@dataclass(frozen=True, slots=True)
class SiteVerdict:
    """Classification of a single chain site."""

    site: ChainSite
    pattern: HandlingPattern

    @property
    def handled(self) -> bool:
        """Return True if the site already has rejection handling."""
        return self.pattern.handled


@dataclass(frozen=True, slots=True)
class FixResult:
    """Result of one fix pass over a single Document.

    Attributes:
        path: Source file path, or None when the text did not come from a file.
        verdicts: Classification of every chain site, in document order.
        edits: Edits synthesized for unhandled sites, in document order.
        fixed_text: Text after all edits were applied.
        audit: Consistency audit, or None when no chain sites were found.
        written: True when the fixed text was written back to ``path``.
        backup_path: Path of the backup copy, if one was created.
    """

    path: str | None
    verdicts: list[SiteVerdict]
    edits: list[InsertionEdit]
    fixed_text: str
    audit: AuditResult | None = None
    written: bool = False
    backup_path: str | None = None

    @property
    def sites(self) -> list[ChainSite]:
        """Chain sites found in the Document."""
        return [verdict.site for verdict in self.verdicts]

    @property
    def has_matches(self) -> bool:
        """True when at least one chain site was found."""
        return bool(self.verdicts)

    @property
    def handled_count(self) -> int:
        """Number of chain sites that already had rejection handling."""
        return sum(1 for verdict in self.verdicts if verdict.handled)


# Length of ``.then(``: the argument block starts right after it
CALL_OPEN_LENGTH = len(CHAIN_MARKER) + 1


def site_offset(site: ChainSite | int) -> int:
    """Return the offset of a chain site given as a ChainSite or a bare offset."""
    return site.offset if isinstance(site, ChainSite) else site
