from __future__ import annotations

from typing import Optional

# ASCII whitespace only; no locale or Unicode word-boundary rules
_SEPARATORS = frozenset(" \t\r\n")


def count_words(text: Optional[str]) -> int:
    """Count maximal runs of non-separator characters."""
    if not text:
        return 0

    count = 0
    in_word = False
    for ch in text:
        if ch in _SEPARATORS:
            in_word = False
        elif not in_word:
            in_word = True
            count += 1
    return count
