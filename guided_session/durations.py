"""Parsing and formatting of exercise quantities.

Quantities arrive as short human-readable strings such as ``"2 min"``,
``"45 seg"``, ``"1:30"`` or a bare repetition count like ``"12"``.  They are
converted to a number of seconds where ``0`` means the step is not timed and
elapsed time is measured instead of counted down.
"""

from __future__ import annotations

import re

MINUTE_TOKENS = ("min",)
SECOND_TOKENS = ("seg", "sec")

_LEADING_INT = re.compile(r"\d+")


def _leading_int(text: str) -> int | None:
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else None


def parse_duration(text) -> int:
    """Return the duration described by ``text`` in seconds.

    The rules are checked in order: ``MM:SS``, a minutes unit, a seconds
    unit.  Anything else, including non-string input, yields ``0``.
    """

    if not text or not isinstance(text, str):
        return 0
    compact = re.sub(r"\s+", "", text.lower())
    if ":" in compact:
        for token in MINUTE_TOKENS:
            compact = compact.replace(token, "")
        parts = compact.split(":")
        if len(parts) == 2:
            minutes = _leading_int(parts[0])
            seconds = _leading_int(parts[1])
            if minutes is not None and seconds is not None:
                return minutes * 60 + seconds
        return 0
    if any(token in compact for token in MINUTE_TOKENS):
        minutes = _leading_int(compact)
        return minutes * 60 if minutes is not None else 0
    if any(token in compact for token in SECOND_TOKENS):
        seconds = _leading_int(compact)
        return seconds if seconds is not None else 0
    return 0


def format_time(total_seconds: int) -> str:
    """Return ``total_seconds`` as ``MM:SS``."""

    total_seconds = max(0, int(total_seconds))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def _seconds_phrase(seconds: int) -> str:
    return f"{seconds} {'segundo' if seconds == 1 else 'segundos'}"


def format_spoken_time(total_seconds: int) -> str:
    """Return a spoken Spanish rendering of ``total_seconds``.

    ``150`` becomes ``"2 minutos y medio"`` and ``65`` becomes
    ``"1 minuto y 5 segundos"``.  Non-positive values give an empty string.
    """

    if total_seconds <= 0:
        return ""
    minutes, seconds = divmod(int(total_seconds), 60)
    if minutes == 0:
        return _seconds_phrase(seconds)
    minute_str = f"{minutes} {'minuto' if minutes == 1 else 'minutos'}"
    if seconds == 0:
        return minute_str
    if seconds == 30:
        return f"{minute_str} y medio"
    return f"{minute_str} y {_seconds_phrase(seconds)}"
