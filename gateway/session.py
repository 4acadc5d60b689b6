from __future__ import annotations

import asyncio
import logging

from captions.engine import CaptionReconciler, Snapshot
from common.config import CaptionSettings, SpeakingSettings
from common.schemas import (
    MeetingInformation,
    ParticipantEventRecord,
    ParticipantSummary,
    TranscriptTurn,
)
from common.timefmt import format_duration
from speaking.tracker import SpeakingTracker

logger = logging.getLogger(__name__)


class MeetingSession:
    """Everything tracked for one meeting: a caption reconciler and one
    speaking tracker per participant tile."""

    def __init__(
        self,
        meeting_id: str,
        started_at: int,
        caption_settings: CaptionSettings | None = None,
        speaking_settings: SpeakingSettings | None = None,
    ) -> None:
        self.meeting_id = meeting_id
        self.started_at = started_at
        self.speaking_settings = speaking_settings or SpeakingSettings()
        self.captions = CaptionReconciler(caption_settings)
        self.participants: dict[str, SpeakingTracker] = {}
        self._attached: set[str] = set()

    def attach(
        self, participant_id: str, now: int, name: str = "", image_url: str = ""
    ) -> SpeakingTracker | None:
        tracker = self.participants.get(participant_id)
        if tracker is None:
            if not name and not image_url:
                logger.debug("Ignoring presentation tile %s", participant_id)
                return None
            tracker = SpeakingTracker(
                participant_id, now, name=name, image_url=image_url,
                settings=self.speaking_settings,
            )
            self.participants[participant_id] = tracker
            logger.info("Participant added: %s (%s)", participant_id, name)
        else:
            logger.debug("Participant already known: %s", participant_id)
        self._attached.add(participant_id)
        return tracker

    def detach(self, participant_id: str, now: int) -> None:
        tracker = self.participants.get(participant_id)
        if tracker is None or participant_id not in self._attached:
            return
        tracker.close(now)
        self._attached.discard(participant_id)
        logger.info("Participant detached: %s", participant_id)

    def on_mic(self, participant_id: str, is_speaking: bool, now: int) -> None:
        if participant_id not in self._attached:
            logger.debug("Mic signal for unattached participant %s ignored", participant_id)
            return
        self.participants[participant_id].on_signal(is_speaking, now)

    def on_captions(self, snapshot: Snapshot, now: int) -> None:
        self.captions.reconcile(snapshot, now)

    def total_spoken_time(self, now: int) -> int:
        return sum(p.total_time_at(now) for p in self.participants.values())

    def reset_interrupted_strikes(self) -> None:
        """End the strike of everyone who stopped talking well before the most
        recent speaker did."""
        ends = [
            p.last_speaking_end
            for p in self.participants.values()
            if p.last_speaking_end is not None
        ]
        if not ends:
            return
        most_recent_end = max(ends)
        for p in self.participants.values():
            if p.last_speaking_end is None or p.is_speaking:
                continue
            if not p.spoke_recently(most_recent_end):
                strike_time = p.strike_time
                p.interrupt()
                logger.debug("%s stopped speaking, strike time was %d", p.name, strike_time)

    def summarize(self, now: int) -> MeetingInformation:
        self.reset_interrupted_strikes()

        total = self.total_spoken_time(now)
        rows = []
        for p in self.participants.values():
            spoken = p.total_time_at(now)
            percentage = spoken / total * 100 if total else 0.0
            rows.append(
                ParticipantSummary(
                    name=p.name,
                    formatted_total_time=format_duration(spoken),
                    percentage=f"{percentage:.1f}%",
                    image_url=p.image_url,
                    total_time_ms=spoken,
                )
            )
        rows.sort(key=lambda row: row.total_time_ms, reverse=True)

        return MeetingInformation(
            meeting_id=self.meeting_id,
            started_at=self.started_at,
            elapsed=now - self.started_at,
            participants=rows,
        )

    def participant_events(self) -> list[ParticipantEventRecord]:
        """Recorded join/speaking events of all participants, oldest first.
        Empty unless event persistence is enabled."""
        records = [
            ParticipantEventRecord(participant_id=p.participant_id, kind=e.kind.value, at=e.at)
            for p in self.participants.values()
            for e in p.events
        ]
        records.sort(key=lambda r: r.at)
        return records

    def transcript_turns(self, live: bool = False) -> list[TranscriptTurn]:
        return [
            TranscriptTurn(
                speaker=t.speaker,
                text=t.text,
                started_at=t.started_at,
                last_updated_at=t.last_updated_at,
                duration=t.duration,
                interjection=t.interjection,
                continuation=t.continuation,
            )
            for t in self.captions.turns(live)
        ]


class SessionManager:
    def __init__(self, max_sessions: int = 10) -> None:
        self._max = max_sessions
        self._sessions: dict[str, MeetingSession] = {}
        self._lock = asyncio.Lock()

    async def create(self, meeting_id: str, started_at: int, **kwargs) -> MeetingSession:
        async with self._lock:
            if len(self._sessions) >= self._max:
                raise RuntimeError(f"Max sessions ({self._max}) reached")
            if meeting_id in self._sessions:
                raise RuntimeError(f"Session {meeting_id} already exists")
            session = MeetingSession(meeting_id=meeting_id, started_at=started_at, **kwargs)
            self._sessions[meeting_id] = session
            logger.info("Session created: %s (%d active)", meeting_id, len(self._sessions))
            return session

    async def remove(self, meeting_id: str) -> None:
        async with self._lock:
            self._sessions.pop(meeting_id, None)
            logger.info("Session removed: %s (%d active)", meeting_id, len(self._sessions))

    def get(self, meeting_id: str) -> MeetingSession | None:
        return self._sessions.get(meeting_id)

    @property
    def active_count(self) -> int:
        return len(self._sessions)
