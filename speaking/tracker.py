"""Per-participant speaking time, driven by the "emitting sound" flag."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from common.config import SpeakingSettings

logger = logging.getLogger(__name__)


class ParticipantEventKind(str, Enum):
    joined = "joined"
    start_speaking = "start_speaking"
    stop_speaking = "stop_speaking"


@dataclass
class ParticipantEvent:
    kind: ParticipantEventKind
    at: int


class SpeakingTracker:
    """Edge-triggered speaking time accounting for one participant.

    A "strike" is an uninterrupted run of speaking. ``strike_time`` is reset
    by ``interrupt()`` when someone else takes the floor, ``total_time`` never is.
    """

    def __init__(
        self,
        participant_id: str,
        now: int,
        name: str = "",
        image_url: str = "",
        settings: SpeakingSettings | None = None,
    ):
        self.participant_id = participant_id
        self.name = name
        self.image_url = image_url
        self.settings = settings or SpeakingSettings()

        self.strike_start: int | None = None
        self.last_speaking_end: int | None = None
        self.strike_time = 0
        self.total_time = 0

        self.events: list[ParticipantEvent] = []
        self._record(ParticipantEventKind.joined, now)

    @property
    def is_speaking(self) -> bool:
        return self.strike_start is not None

    def on_signal(self, is_speaking: bool, now: int) -> None:
        if is_speaking:
            if self.strike_start is None:
                self._record(ParticipantEventKind.start_speaking, now)
                logger.debug("[%s] started speaking at %d", self.participant_id, now)
                self.strike_start = now
            return

        if self.strike_start is None:
            return
        elapsed = now - self.strike_start
        self._record(ParticipantEventKind.stop_speaking, now)
        self.strike_start = None
        self.last_speaking_end = now
        self.strike_time += elapsed
        self.total_time += elapsed
        logger.debug(
            "[%s] spoke %d ms, total now %d ms", self.participant_id, elapsed, self.total_time
        )

    def close(self, now: int) -> None:
        """Commit any open run, e.g. when the participant's tile goes away."""
        self.on_signal(False, now)

    def live_time(self, now: int) -> int:
        """Time accrued in the still-open run, 0 when not speaking."""
        if self.strike_start is None:
            return 0
        return now - self.strike_start

    def strike_time_at(self, now: int) -> int:
        return self.strike_time + self.live_time(now)

    def total_time_at(self, now: int) -> int:
        return self.total_time + self.live_time(now)

    def spoke_recently(self, reference_time: int, threshold_ms: int | None = None) -> bool:
        """Whether the last utterance ended within ``threshold_ms`` of ``reference_time``."""
        if threshold_ms is None:
            threshold_ms = self.settings.recency_threshold_ms
        if self.last_speaking_end is None:
            return False
        return not self.last_speaking_end < reference_time - threshold_ms

    def interrupt(self) -> None:
        """Someone else is the most recent speaker: end the strike."""
        self.last_speaking_end = None
        self.strike_start = None
        self.strike_time = 0

    def _record(self, kind: ParticipantEventKind, now: int) -> None:
        if self.settings.persist_events:
            self.events.append(ParticipantEvent(kind=kind, at=now))
