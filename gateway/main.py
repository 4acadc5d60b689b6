from __future__ import annotations

import json
import logging

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from common.config import CaptionSettings, GatewaySettings, SpeakingSettings
from common.schemas import (
    CaptionsMessage,
    ClearTranscriptMessage,
    ClientMessageType,
    EndMessage,
    ErrorMessage,
    MeetingCompleteMessage,
    MeetingInformation,
    MicMessage,
    ParticipantJoinedMessage,
    ParticipantLeftMessage,
    StartMessage,
    SummaryMessage,
    SummaryRequestMessage,
)
from common.timefmt import now_ms
from gateway.session import MeetingSession, SessionManager
from gateway.snapshot_utils import normalize_snapshot

logger = logging.getLogger(__name__)

settings = GatewaySettings()
app = FastAPI(title="Meeting Analytics Gateway")
manager = SessionManager(max_sessions=settings.max_sessions)


@app.get("/health")
async def health():
    return {"status": "ok", "active_sessions": manager.active_count}


@app.get("/meetings/{meeting_id}/summary", response_model=MeetingInformation)
async def meeting_summary(meeting_id: str):
    session = _get_or_404(meeting_id)
    return session.summarize(now_ms())


@app.get("/meetings/{meeting_id}/transcript")
async def meeting_transcript(meeting_id: str, live: bool = False):
    session = _get_or_404(meeting_id)
    return {"meeting_id": meeting_id, "transcript": session.captions.to_text(live=live)}


def _get_or_404(meeting_id: str) -> MeetingSession:
    session = manager.get(meeting_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown meeting {meeting_id}")
    return session


@app.websocket("/events")
async def events_endpoint(ws: WebSocket):
    await ws.accept()
    meeting_id: str | None = None
    try:
        # Expect a start message first
        raw = await ws.receive_text()
        msg = json.loads(raw)
        if msg.get("type") != ClientMessageType.start:
            await ws.send_text(ErrorMessage(meeting_id="", detail="Expected start message").model_dump_json())
            await ws.close()
            return

        start = StartMessage(**msg)
        started_at = start.started_at if start.started_at is not None else _at(start.timestamp_ms)
        session = await manager.create(
            meeting_id=start.meeting_id,
            started_at=started_at,
            caption_settings=CaptionSettings(),
            speaking_settings=SpeakingSettings(),
        )
        meeting_id = start.meeting_id

        while True:
            message = await ws.receive()
            if message.get("type") == "websocket.disconnect":
                break
            if message.get("text") is None:
                continue

            try:
                data = json.loads(message["text"])
                reply = handle_message(session, data)
            except (ValueError, ValidationError) as exc:
                logger.warning("Invalid message for %s: %s", meeting_id, exc)
                await ws.send_text(ErrorMessage(meeting_id=meeting_id, detail=str(exc)).model_dump_json())
                continue

            if reply is not None:
                await ws.send_text(reply.model_dump_json())
            if isinstance(reply, MeetingCompleteMessage):
                await ws.close()
                break

    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", meeting_id)
    except ValidationError as exc:
        logger.warning("Invalid start message: %s", exc)
        await ws.send_text(ErrorMessage(meeting_id="", detail=str(exc)).model_dump_json())
        await ws.close()
    except RuntimeError as exc:
        logger.warning("Session error: %s", exc)
        await ws.send_text(ErrorMessage(meeting_id=meeting_id or "", detail=str(exc)).model_dump_json())
        await ws.close()
    except Exception:
        logger.exception("Unexpected error in events endpoint")
    finally:
        if meeting_id:
            await manager.remove(meeting_id)


def _at(timestamp_ms: int | None) -> int:
    return now_ms() if timestamp_ms is None else timestamp_ms


def handle_message(session: MeetingSession, data: dict):
    """Apply one client message to the session; returns the reply, if any."""
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    kind = data.get("type")
    if kind == ClientMessageType.mic:
        mic = MicMessage(**data)
        session.on_mic(mic.participant_id, mic.speaking, _at(mic.timestamp_ms))
    elif kind == ClientMessageType.captions:
        captions = CaptionsMessage(**data)
        snapshot = normalize_snapshot(captions.lines, visible=captions.visible)
        session.on_captions(snapshot, _at(captions.timestamp_ms))
    elif kind == ClientMessageType.participant_joined:
        joined = ParticipantJoinedMessage(**data)
        session.attach(
            joined.participant_id,
            _at(joined.timestamp_ms),
            name=joined.name,
            image_url=joined.image_url,
        )
    elif kind == ClientMessageType.participant_left:
        left = ParticipantLeftMessage(**data)
        session.detach(left.participant_id, _at(left.timestamp_ms))
    elif kind == ClientMessageType.summary:
        request = SummaryRequestMessage(**data)
        return SummaryMessage(
            meeting_id=session.meeting_id,
            summary=session.summarize(_at(request.timestamp_ms)),
            transcript=session.captions.to_text(live=request.live),
        )
    elif kind == ClientMessageType.clear_transcript:
        ClearTranscriptMessage(**data)
        session.captions.clear()
    elif kind == ClientMessageType.end:
        end = EndMessage(**data)
        now = _at(end.timestamp_ms)
        for participant_id in list(session.participants):
            session.detach(participant_id, now)
        return MeetingCompleteMessage(
            meeting_id=session.meeting_id,
            summary=session.summarize(now),
            transcript=session.captions.to_text(live=True),
            turns=session.transcript_turns(live=True),
            events=session.participant_events(),
        )
    else:
        raise ValueError(f"Unknown message type: {kind!r}")
    return None


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)
