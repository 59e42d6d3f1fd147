"""Balanced-delimiter scanning.

The scan is the only primitive the classifier and synthesizer need: it walks the
raw text counting one delimiter pair and never tokenizes, so delimiters inside
strings or comments are counted like any other character.
"""


def _check_delimiters(open_char: str, close_char: str, start_depth: int) -> None:
    if len(open_char) != 1 or len(close_char) != 1:
        raise ValueError("Delimiters must be single characters")
    if open_char == close_char:
        raise ValueError(f"Delimiters must differ, got {open_char!r} twice")
    if start_depth < 1:
        raise ValueError(f"start_depth must be >= 1, got {start_depth}")


def find_matching_close(
    text: str,
    start: int,
    open_char: str = "(",
    close_char: str = ")",
    start_depth: int = 1,
) -> int | None:
    """Find the offset just past the delimiter that closes an already-open block.

    Args:
        text: Text to scan.
        start: Offset to begin scanning at (just past the consumed opening delimiter).
        open_char: Opening delimiter, increments depth.
        close_char: Closing delimiter, decrements depth.
        start_depth: Nesting depth at ``start``.

    Returns:
        Offset immediately after the closing delimiter, or None when the end of the
        text is reached first (degenerate scan).

    Raises:
        ValueError: If the delimiters or start depth are unusable.

    Example:
        >>> find_matching_close("f(a(b)) + 1", 2)
        7
        >>> find_matching_close("f(a(b", 2) is None
        True
    """
    _check_delimiters(open_char, close_char, start_depth)
    depth = start_depth
    for index in range(max(start, 0), len(text)):
        ch = text[index]
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def scan_balanced(
    text: str,
    start: int,
    open_char: str = "(",
    close_char: str = ")",
    start_depth: int = 1,
) -> int:
    """Like :func:`find_matching_close` but returns ``len(text)`` for a degenerate scan."""
    end = find_matching_close(text, start, open_char, close_char, start_depth)
    return len(text) if end is None else end
