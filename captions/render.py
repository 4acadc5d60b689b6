from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from common.timefmt import format_duration

if TYPE_CHECKING:
    from captions.models import CaptionTurn

INTERJECTION_MARKER = "⚡️"


def _duration_suffix(ms: int) -> str:
    formatted = format_duration(ms)
    return f" ({formatted})" if formatted else ""


def to_markdown(turns: Iterable[CaptionTurn]) -> str:
    """Render turns as markdown, one line per speaker turn.

    Interjections are inlined in italics and continuations are appended to
    the line they continue, without repeating the speaker.
    """
    out = ""
    for i, turn in enumerate(turns):
        suffix = _duration_suffix(turn.duration)
        if turn.interjection:
            out += f" {INTERJECTION_MARKER}*{turn.speaker}: {turn.text}{suffix}*"
        elif turn.continuation:
            out += f" {turn.text}{suffix}"
        else:
            if i > 0:
                out += "\n"
            out += f"**{turn.speaker}**: {turn.text}{suffix}"
    return out + "\n"
