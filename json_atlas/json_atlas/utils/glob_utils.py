"""Glob matching for document-to-schema mappings.

Patterns follow minimatch with ``dot`` enabled: the path and the pattern are
split on ``/`` and matched segment by segment with ``fnmatch``, so ``*``, ``?``
and ``[...]`` never cross a directory boundary. A ``**`` segment matches zero
or more whole segments, and ``{a,b}`` alternatives are expanded first.
"""

import fnmatch
import re
from functools import lru_cache
from typing import List, Sequence

_BRACE_RE = re.compile(r"\{([^{}]*)\}")

GLOBSTAR = "**"


def expand_braces(pattern: str) -> List[str]:
    match = _BRACE_RE.search(pattern)
    if not match:
        return [pattern]
    head, tail = pattern[:match.start()], pattern[match.end():]
    expanded: List[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def _match_segments(parts: Sequence[str], segments: Sequence[str]) -> bool:
    @lru_cache(maxsize=None)
    def match(i: int, j: int) -> bool:
        if i == len(segments):
            return j == len(parts)
        if segments[i] == GLOBSTAR:
            return any(match(i + 1, k) for k in range(j, len(parts) + 1))
        if j == len(parts):
            return False
        return fnmatch.fnmatchcase(parts[j], segments[i]) and match(i + 1, j + 1)

    return match(0, 0)


def glob_match(path: str, pattern: str) -> bool:
    """Return True if the forward-slash ``path`` matches ``pattern``.

    >>> glob_match("configs/app.json", "*.json")
    False
    >>> glob_match("configs/app.json", "**/*.json")
    True
    """
    if not path or not pattern:
        return False
    parts = path.split("/")
    for expanded in expand_braces(pattern):
        if _match_segments(parts, expanded.split("/")):
            return True
    return False
