from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


# --- WebSocket messages: scraper -> gateway ---

class ClientMessageType(str, Enum):
    start = "start"
    participant_joined = "participant_joined"
    participant_left = "participant_left"
    mic = "mic"
    captions = "captions"
    summary = "summary"
    clear_transcript = "clear_transcript"
    end = "end"


class StartMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.start
    meeting_id: str
    started_at: Optional[int] = None
    timestamp_ms: Optional[int] = None


class ParticipantJoinedMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.participant_joined
    participant_id: str
    name: str = ""
    image_url: str = ""
    timestamp_ms: Optional[int] = None


class ParticipantLeftMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.participant_left
    participant_id: str
    timestamp_ms: Optional[int] = None


class MicMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.mic
    participant_id: str
    speaking: bool
    timestamp_ms: Optional[int] = None


class CaptionsMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.captions
    # raw lines, validated one by one so a malformed line doesn't drop the snapshot
    lines: list[Any] = []
    visible: bool = True
    timestamp_ms: Optional[int] = None


class SummaryRequestMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.summary
    live: bool = False
    timestamp_ms: Optional[int] = None


class ClearTranscriptMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.clear_transcript


class EndMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.end
    timestamp_ms: Optional[int] = None


# --- gateway -> client ---

class ParticipantSummary(BaseModel):
    name: str
    formatted_total_time: str
    percentage: str
    image_url: str = ""
    total_time_ms: int


class MeetingInformation(BaseModel):
    meeting_id: str
    started_at: int
    elapsed: int
    participants: list[ParticipantSummary]


class ParticipantEventRecord(BaseModel):
    participant_id: str
    kind: str
    at: int


class TranscriptTurn(BaseModel):
    speaker: str
    text: str
    started_at: int
    last_updated_at: int
    duration: int
    interjection: bool = False
    continuation: bool = False


class ServerMessageType(str, Enum):
    summary = "summary"
    meeting_complete = "meeting_complete"
    error = "error"


class SummaryMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.summary
    meeting_id: str
    summary: MeetingInformation
    transcript: str


class MeetingCompleteMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.meeting_complete
    meeting_id: str
    summary: MeetingInformation
    transcript: str
    turns: list[TranscriptTurn]
    events: list[ParticipantEventRecord] = []


class ErrorMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.error
    meeting_id: str
    detail: str
