"""Caption turns tracked by the reconciler."""

from __future__ import annotations

from dataclasses import dataclass

from captions.merge import merge_text, words_in
from common.config import CaptionSettings


@dataclass
class CaptionTurn:
    speaker: str
    text: str
    started_at: int  # ms, backdated from first appearance
    last_updated_at: int  # ms
    duration: int = 0  # ms
    interjection: bool = False
    continuation: bool = False

    @classmethod
    def first_seen(cls, speaker: str, text: str, now: int, per_word_ms: int = 100) -> CaptionTurn:
        """Captions lag speech, so a freshly displayed line is assumed to have
        taken ``per_word_ms`` per word to say."""
        duration = per_word_ms * words_in(text)
        return cls(
            speaker=speaker,
            text=text,
            started_at=now - duration,
            last_updated_at=now,
            duration=duration,
        )

    def complete_from_update(
        self,
        text: str,
        now: int,
        same_time: bool,
        settings: CaptionSettings | None = None,
    ) -> None:
        """Merge the on-screen text of this line into the turn.

        Duration only grows when merging changed the text length and the
        update isn't part of a same-timestamp batch (a redraw of lines above
        the live one). A redraw of text already merged changes nothing.
        """
        settings = settings or CaptionSettings()
        merged = merge_text(
            self.text,
            text,
            short_text_threshold=settings.short_text_threshold,
            required_overlap=settings.required_overlap,
        )
        if len(merged) != len(self.text) and not same_time:
            self.duration += now - self.last_updated_at
            self.last_updated_at = now
        self.text = merged
