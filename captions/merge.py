"""Fuzzy merging of caption text that scrolls and gets re-punctuated on screen."""

from __future__ import annotations

PUNCTUATION_CHARS = frozenset(".!?,")


def words_in(text: str) -> int:
    return text.count(" ") + 1


def find_overlap_start(main: str, update: str, required_overlap: int = 15) -> int | None:
    """Return the smallest offset in ``main`` where ``update`` starts, or None.

    The comparison is case-insensitive and skips punctuation on either side,
    since captions get re-cased and re-punctuated as the recognizer revises them.
    Only the first ``required_overlap`` characters of ``update`` need to match.
    """
    required = min(required_overlap, len(update))
    if required == 0:
        return None

    idx_start = idx_main = idx_update = 0
    while idx_main < len(main) and idx_update < required:
        char_main = main[idx_main].lower()
        char_update = update[idx_update].lower()
        if char_main == char_update:
            idx_main += 1
            idx_update += 1
        elif char_main in PUNCTUATION_CHARS:
            idx_main += 1
        elif char_update in PUNCTUATION_CHARS:
            idx_update += 1
        else:
            idx_start += 1
            idx_main = idx_start
            idx_update = 0

    if idx_update >= required:
        return idx_start
    return None


def merge_text(
    main: str,
    update: str,
    short_text_threshold: int = 30,
    required_overlap: int = 15,
) -> str:
    """Complete ``main`` with an on-screen ``update`` of the same caption line.

    Handles:
    - a full substitution ("abc", "abcdef") -> "abcdef"
    - a correction ("abc", "acb") -> "acb"
    - a partial addition ("a b c d", "c d e f") -> "a b c d e f"

    Short strings are simply replaced. For longer ones the beginning of the
    update usually overlaps text already seen, with older text scrolled away:

        <no longer displayed> <displayed>
        a b c d e f g h i j k  l m n o p
                               <update>
                               l m n o p q r s

    so the head of the update is looked up in ``main`` and everything from
    there on is replaced. Without any overlap the update is appended.
    """
    if len(main) < short_text_threshold and len(update) < short_text_threshold:
        return update
    if not update:
        return main

    start = find_overlap_start(main, update, required_overlap)
    if start is None:
        return main + update
    return main[:start] + update
