"""Text utility functions."""

from bisect import bisect_right
from typing import List, Tuple


def line_starts(text: str) -> List[int]:
    """Return the character offset at which each line of ``text`` starts."""
    starts = [0]
    for index, char in enumerate(text):
        if char == "\n":
            starts.append(index + 1)
    return starts


def offset_to_position(text: str, offset: int) -> Tuple[int, int]:
    """Convert a character offset to a 0-based (line, character) pair."""
    offset = max(0, min(offset, len(text)))
    starts = line_starts(text)
    line = bisect_right(starts, offset) - 1
    return line, offset - starts[line]


def position_to_offset(text: str, line: int, character: int) -> int:
    """Convert a 0-based (line, character) pair to a character offset."""
    starts = line_starts(text)
    if line >= len(starts):
        return len(text)
    line_end = starts[line + 1] - 1 if line + 1 < len(starts) else len(text)
    return min(starts[line] + max(0, character), line_end)
