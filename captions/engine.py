"""Reconciles successive caption-panel snapshots into a finalized transcript.

The captioning widget shows a handful of lines, each attributed to a speaker,
whose text is rewritten in place, scrolls away, or gets replaced. Nothing
identifies a line across snapshots, so lines are matched by position:

- the front of the buffer mirrors the top-most visible line;
- once a line is no longer the oldest visible one it is finalized into an
  append-only log;
- each newly finalized turn is checked for closing an interjection, i.e. a
  brief turn by someone else sandwiched between two turns of one speaker.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from captions.models import CaptionTurn
from captions.render import to_markdown
from common.config import CaptionSettings
from common.timefmt import now_ms

logger = logging.getLogger(__name__)

Snapshot = Sequence[tuple[str, str]]


def classify_latest(
    turns: Sequence[CaptionTurn],
    ratio: float = 5.0,
    short_sequence_max_ms: int = 3000,
) -> bool:
    """Flag interjections closed by the last turn of ``turns``.

    Walks back to the previous turn of the same speaker. If only short turns
    from others lie in between, and that previous turn was long compared to
    the gap before the current one, the turns in between are interjections
    and the current one is a continuation. Returns True when it flagged.
    """
    count = len(turns)
    if count < 3:
        return False

    current = turns[-1]
    idx = count - 2
    while idx >= 0:
        turn = turns[idx]
        if turn.speaker == current.speaker:
            gap = current.started_at - turn.last_updated_at
            if idx < count - 2 and turn.duration > gap * ratio:
                for between in turns[idx + 1 : count - 1]:
                    between.interjection = True
                current.continuation = True
                return True
            logger.debug(
                "Turn %r didn't close an interjection: turn %d vs %d, length %d vs gap %d",
                current.text[:10], idx, count - 1, turn.duration, gap,
            )
            return False
        if turn.duration > short_sequence_max_ms:
            logger.debug(
                "Turn %r didn't close an interjection: %r is too long (%d ms)",
                current.text[:10], turn.text[:10], turn.duration,
            )
            return False
        idx -= 1
    return False


class CaptionReconciler:
    """Per-meeting caption state: the in-flight buffer and the finalized log."""

    def __init__(self, settings: CaptionSettings | None = None):
        self.settings = settings or CaptionSettings()
        self._buffer: list[CaptionTurn] = []
        self._finalized: list[CaptionTurn] = []

    @property
    def buffered(self) -> tuple[CaptionTurn, ...]:
        return tuple(self._buffer)

    @property
    def finalized(self) -> tuple[CaptionTurn, ...]:
        return tuple(self._finalized)

    def clear(self) -> None:
        """Drop the finalized log, e.g. once it was copied elsewhere."""
        self._finalized.clear()

    def reconcile(self, snapshot: Snapshot, now: int | None = None) -> None:
        """Fold one snapshot of the visible caption lines (top to bottom) in."""
        now = now_ms() if now is None else now

        # Lines no longer displayed are done.
        while len(self._buffer) > len(snapshot):
            self._finalize_oldest(now)

        # Retire buffered turns until the top speaker lines up again.
        while snapshot and self._buffer and snapshot[0][0] != self._buffer[0].speaker:
            self._finalize_oldest(now)

        if len(snapshot) < len(self._buffer):
            logger.debug(
                "Ignoring snapshot of %d lines against %d buffered turns",
                len(snapshot), len(self._buffer),
            )
            return

        last = len(snapshot) - 1
        for idx, (speaker, text) in enumerate(snapshot):
            if idx < len(self._buffer):
                # Only the bottom line is still being spoken.
                self._buffer[idx].complete_from_update(
                    text, now, same_time=idx != last, settings=self.settings
                )
            else:
                self._buffer.append(
                    CaptionTurn.first_seen(speaker, text, now, self.settings.per_word_ms)
                )

    def _finalize_oldest(self, now: int) -> None:
        turn = self._buffer.pop(0)
        if turn.duration == 0:
            # never timed while on screen: it lasted at least until it left
            turn.duration = now - turn.started_at
        self._finalized.append(turn)
        logger.debug("Finalized turn from %s (%d ms)", turn.speaker, turn.duration)
        if classify_latest(
            self._finalized,
            ratio=self.settings.interjection_ratio,
            short_sequence_max_ms=self.settings.short_sequence_max_ms,
        ):
            logger.debug("Turn from %s closed an interjection", turn.speaker)

    def turns(self, live: bool = False) -> Iterable[CaptionTurn]:
        if live:
            return self.finalized + self.buffered
        return self.finalized

    def to_text(self, live: bool = False) -> str:
        return to_markdown(self.turns(live))
