from __future__ import annotations

import time


def format_duration(ms: int | float) -> str:
    """Format milliseconds as "H:MM:SS", "M:SS" or just "Ss".

    Anything under a second formats as the empty string.
    """
    total_seconds = int(max(ms, 0) // 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)

    out = ""
    if hours:
        out += f"{hours}:"
    if out or minutes:
        out += f"{minutes:02d}:" if out else f"{minutes}:"
    if out or seconds:
        out += f"{seconds:02d}" if out else f"{seconds}s"
    return out


def now_ms() -> int:
    return int(time.time() * 1000)
