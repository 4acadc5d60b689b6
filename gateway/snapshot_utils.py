from __future__ import annotations

import logging
from typing import Any, Iterable

logger = logging.getLogger(__name__)


def normalize_snapshot(lines: Iterable[Any], visible: bool = True) -> list[tuple[str, str]]:
    """Convert raw caption lines into ``(speaker, text)`` pairs, top to bottom.

    A line is either a ``{"speaker": ..., "text": ...}`` mapping or a two-item
    sequence. Lines that don't have that shape are dropped; a hidden caption
    panel shows no lines at all.
    """
    if not visible:
        return []

    snapshot = []
    for line in lines:
        pair = _as_pair(line)
        if pair is None:
            logger.debug("Skipping malformed caption line: %r", line)
            continue
        snapshot.append(pair)
    return snapshot


def _as_pair(line: Any) -> tuple[str, str] | None:
    if isinstance(line, dict):
        speaker, text = line.get("speaker"), line.get("text")
    elif isinstance(line, (list, tuple)) and len(line) == 2:
        speaker, text = line
    else:
        return None
    if not isinstance(speaker, str) or not isinstance(text, str):
        return None
    return speaker, text
