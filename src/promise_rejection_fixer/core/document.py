"""Immutable text snapshot with offset/position translation."""

import bisect

from promise_rejection_fixer.core.models import Position


class Document:
    """Text snapshot addressable by linear offset and by (line, column).

    Lines are separated by ``\\n``; a ``\\r`` preceding it counts as an ordinary
    column. Every offset in ``[0, len(text)]`` maps to exactly one Position and back.

    Example:
        >>> doc = Document("a\\nbc")
        >>> doc.position_at(3)
        Position(line=1, column=1)
        >>> doc.offset_at(Position(1, 1))
        3
    """

    __slots__ = ("_line_starts", "_path", "_text")

    def __init__(self, text: str, path: str | None = None) -> None:
        """Create a Document over ``text``.

        Args:
            text: Full text of the source buffer.
            path: Optional path the text was read from (for reporting only).
        """
        self._text = text
        self._path = path
        self._line_starts = [0]
        self._line_starts.extend(i + 1 for i, ch in enumerate(text) if ch == "\n")

    @property
    def text(self) -> str:
        return self._text

    @property
    def path(self) -> str | None:
        return self._path

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def __len__(self) -> int:
        return len(self._text)

    def position_at(self, offset: int) -> Position:
        """Translate a linear offset into a Position.

        Raises:
            ValueError: If offset is outside ``[0, len(text)]``.
        """
        if offset < 0 or offset > len(self._text):
            raise ValueError(f"Offset {offset} out of range 0..{len(self._text)}")
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return Position(line=line, column=offset - self._line_starts[line])

    def offset_at(self, position: Position) -> int:
        """Translate a Position into a linear offset.

        Raises:
            ValueError: If the line does not exist or the column runs past the line end.
        """
        if position.line < 0 or position.line >= len(self._line_starts):
            raise ValueError(f"Line {position.line} out of range 0..{len(self._line_starts) - 1}")
        start = self._line_starts[position.line]
        if position.line + 1 < len(self._line_starts):
            # Column may point at the newline itself, not past it
            line_end = self._line_starts[position.line + 1] - 1
        else:
            line_end = len(self._text)
        if position.column < 0 or start + position.column > line_end:
            raise ValueError(
                f"Column {position.column} out of range for line {position.line} "
                f"(length {line_end - start})"
            )
        return start + position.column
