"""
Tempo descriptor parsing.

A tempo such as "3-0-1-0" lists four phase durations in seconds:
eccentric, bottom pause, concentric, top pause.  "3010" is accepted as a
compact form.  Anything unparseable falls back to 3-0-1-0.
"""

import re

DEFAULT_TEMPO: tuple[int, int, int, int] = (3, 0, 1, 0)

_PHASE_NAMES: tuple[str, ...] = ("Eccentric", "Pause (bottom)", "Concentric", "Pause (top)")


def parse_tempo(tempo: str | None) -> tuple[int, int, int, int]:
    """
    Parse a tempo descriptor into four non-negative ints.

    Dash form: each non-numeric phase (e.g. "X" for explosive) falls back to
    the default value for that position.  A dash form with the wrong number
    of parts, or any other shape, yields the default tempo.

    Args:
        tempo: Descriptor like "3-0-1-0", "2-1-X-0" or "3010"

    Returns:
        (eccentric, bottom, concentric, top) in seconds
    """
    if not tempo:
        return DEFAULT_TEMPO

    text = re.sub(r"\s+", "", tempo)

    if "-" in text:
        parts = text.split("-")
        if len(parts) != 4:
            return DEFAULT_TEMPO
        values = [
            int(part) if part.isdigit() else DEFAULT_TEMPO[i]
            for i, part in enumerate(parts)
        ]
        return values[0], values[1], values[2], values[3]

    if re.fullmatch(r"\d{4}", text):
        return int(text[0]), int(text[1]), int(text[2]), int(text[3])

    return DEFAULT_TEMPO


def time_under_tension(tempo: str | None) -> int:
    """Seconds under tension for one rep."""
    return sum(parse_tempo(tempo))


def set_time_under_tension(tempo: str | None, reps: int) -> int:
    """Seconds under tension for a whole set."""
    return time_under_tension(tempo) * reps


def format_tempo(tempo: str | None) -> str:
    """Canonical dash form, e.g. "3010" -> "3-0-1-0"."""
    return "-".join(str(v) for v in parse_tempo(tempo))


def describe_tempo(tempo: str | None) -> list[str]:
    """Human readable phase list for display, e.g. ["Eccentric: 3s", ...]."""
    return [f"{name}: {value}s" for name, value in zip(_PHASE_NAMES, parse_tempo(tempo))]
