"""Spoken cues for the guided session.

Cues are best effort: a new cue always interrupts the one being spoken, and
when no speech engine is available every call quietly does nothing.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from guided_session import (
    COUNTDOWN_CUE_EXERCISES,
    EXERCISE_CUE_THRESHOLDS,
    REST_COUNTDOWN_FROM,
)
from guided_session.durations import format_spoken_time
from guided_session.steps import Phase, Step


class SpeechUnavailable(Exception):
    """The platform speech engine cannot be used."""


class Speaker:
    """Interface implemented by platform text-to-speech engines."""

    def speak(self, text: str) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    def bind_finished(self, callback: Callable[[], None]) -> None:
        """Register ``callback`` for when an utterance ends."""

    def shutdown(self) -> None:
        """Release the engine; no further speech follows."""


# Cues spoken a fixed number of seconds before a timed exercise ends
THRESHOLD_CUES = {
    60: "Quedan 60 segundos",
    30: "30 segundos, ya queda poco",
    10: "10 segundos, ya terminamos. ¡Ánimo!",
}

_SPRINT = re.compile(r"^Sprint\s+(\d+)\s*m$", re.IGNORECASE)
_METRES = re.compile(r"(\d+)\s*m\b", re.IGNORECASE)
_SETS_BY_REPS = re.compile(r"^\d+\s*x\s*\d+\s*$", re.IGNORECASE)


def spoken_exercise_name(name: str) -> str:
    """Expand metre abbreviations so the name reads naturally."""

    match = _SPRINT.match(name)
    if match:
        return f"Sprint {match.group(1)} metros"
    if "progresión de menos a más" in name.lower() and " m" in name:
        return _METRES.sub(r"\1 metros", name, count=1)
    return name


def spoken_repetitions(quantity: str) -> str:
    """Return ``"3 series de 10 repeticiones"`` style text, or ``""``."""

    text = quantity.strip()
    if _SETS_BY_REPS.match(text):
        return re.sub(r"\s*x\s*", " series de ", text.lower(), count=1) + " repeticiones"
    if text.isdigit():
        count = int(text)
        return f"{count} {'repetición' if count == 1 else 'repeticiones'}"
    return ""


def entry_cue(step: Step, phase: Phase, duration: int) -> str:
    """Describe the phase being entered."""

    if phase is Phase.REST:
        return f"Descanso de {format_spoken_time(duration)}" if duration > 0 else ""
    text = spoken_exercise_name(step.name)
    detail = format_spoken_time(duration) if duration > 0 else spoken_repetitions(step.quantity)
    return f"{text}, {detail}" if detail else text


def countdown_cue(
    step: Step,
    phase: Phase,
    time_left: int,
    countdown_exercises=COUNTDOWN_CUE_EXERCISES,
) -> str:
    """Return the cue due at ``time_left`` seconds remaining, or ``""``."""

    if phase is Phase.REST:
        if 1 <= time_left <= REST_COUNTDOWN_FROM:
            return str(time_left)
        return ""
    if step.matches(countdown_exercises) and time_left in EXERCISE_CUE_THRESHOLDS:
        return THRESHOLD_CUES[time_left]
    return ""


class AnnouncementChannel:
    """Emit cues through an optional :class:`Speaker`."""

    def __init__(
        self,
        speaker: Speaker | None = None,
        *,
        enabled: bool = True,
        countdown_exercises=COUNTDOWN_CUE_EXERCISES,
    ):
        self._speaker = speaker
        self.enabled = enabled
        self.countdown_exercises = frozenset(countdown_exercises)
        self.speaking = False
        self.last_cue: str | None = None
        if speaker is not None:
            speaker.bind_finished(self._on_finished)

    @property
    def available(self) -> bool:
        return self.enabled and self._speaker is not None

    def say(self, text: str) -> None:
        if not text or not self.available:
            return
        self.cancel()
        try:
            self._speaker.speak(text)
        except SpeechUnavailable as exc:
            logging.debug("Speech failed for %r: %s", text, exc)
            return
        self.speaking = True
        self.last_cue = text

    def cancel(self) -> None:
        """Interrupt the utterance in progress."""

        if not self.available:
            return
        try:
            self._speaker.stop()
        except SpeechUnavailable as exc:
            logging.debug("Cancelling speech failed: %s", exc)
        self.speaking = False

    def announce_entry(self, step: Step, phase: Phase, duration: int) -> None:
        self.say(entry_cue(step, phase, duration))

    def announce_countdown(self, step: Step, phase: Phase, time_left: int) -> None:
        self.say(countdown_cue(step, phase, time_left, self.countdown_exercises))

    def shutdown(self) -> None:
        """Stop speaking and release the speech engine."""

        if self._speaker is None:
            return
        self.cancel()
        self._speaker.shutdown()
        self._speaker = None

    def _on_finished(self) -> None:
        self.speaking = False
