"""Duration entry and display helpers (``hh:mm:ss``)."""

from __future__ import annotations

import re
from datetime import timedelta

_HMS_RE = re.compile(r"^(?:(\d+):)?(\d+):(\d+)$")
_SECONDS_RE = re.compile(r"^\d+$")


def normalize_hms(hours: int, minutes: int, seconds: int) -> tuple[int, int, int]:
    """Carry overflowing fields upward and borrow for negative ones.

    Mirrors what a spinner-style ``hh:mm:ss`` input does as the user steps
    past a boundary: ``(0, 0, 75) -> (0, 1, 15)``, ``(1, 0, -1) -> (0, 59, 59)``.
    Nothing goes below ``00:00:00``.
    """
    total = max(0, hours * 3600 + minutes * 60 + seconds)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return hours, minutes, seconds


def from_hms(hours: int = 0, minutes: int = 0, seconds: int = 0) -> timedelta:
    h, m, s = normalize_hms(hours, minutes, seconds)
    return timedelta(hours=h, minutes=m, seconds=s)


def parse_duration(text: str) -> timedelta:
    """Parse ``hh:mm:ss``, ``mm:ss`` or a plain number of seconds.

    Raises :class:`ValueError` for anything else.
    """
    text = text.strip()
    if _SECONDS_RE.match(text):
        return timedelta(seconds=int(text))
    match = _HMS_RE.match(text)
    if match is None:
        raise ValueError(f"not a duration: {text!r} (use hh:mm:ss, mm:ss or seconds)")
    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return from_hms(hours, minutes, seconds)


def format_duration(value: timedelta) -> str:
    """``hh:mm:ss``, truncated to whole seconds, with a ``-`` when negative."""
    sign = "-" if value < timedelta(0) else ""
    total = int(abs(value).total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
