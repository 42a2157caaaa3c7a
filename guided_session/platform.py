"""Device capabilities backed by Kivy, plyer and pyttsx3.

These adapters are only imported by the application; the session engine
talks to the small interfaces in :mod:`guided_session.clock`,
:mod:`guided_session.location` and :mod:`guided_session.announcements`.
"""

from __future__ import annotations

import logging
import time

import pyttsx3
from kivy.clock import Clock, mainthread
from plyer import gps

from guided_session import LOCATION_MIN_TIME_MS, LOCATION_TIMEOUT, settings
from guided_session.announcements import AnnouncementChannel, Speaker, SpeechUnavailable
from guided_session.clock import TickSource
from guided_session.location import LocationSource, LocationTrace, LocationUnavailable


class KivyClock(TickSource):
    """Tick source running on the Kivy main loop."""

    def now(self) -> float:
        return time.monotonic()

    def schedule_interval(self, callback, interval):
        return Clock.schedule_interval(lambda _dt: callback(), interval)


class PlyerLocationSource(LocationSource):
    """Continuous GPS fixes from :mod:`plyer`.

    plyer delivers fixes on a platform thread; they are moved onto the Kivy
    main thread before reaching the trace.  If no fix arrives within
    ``timeout`` seconds the stream reports ``"timeout"``.
    """

    def __init__(
        self,
        min_time_ms: int = LOCATION_MIN_TIME_MS,
        min_distance: float = 0,
        timeout: float = LOCATION_TIMEOUT,
    ):
        self._min_time = min_time_ms
        self._min_distance = min_distance
        self._timeout = timeout
        self._timeout_event = None
        self._on_sample = None
        self._on_error = None

    def start(self, on_sample, on_error) -> None:
        self._on_sample = on_sample
        self._on_error = on_error
        try:
            gps.configure(on_location=self._handle_location, on_status=self._handle_status)
            gps.start(minTime=self._min_time, minDistance=self._min_distance)
        except NotImplementedError as exc:
            raise LocationUnavailable("unsupported") from exc
        self._timeout_event = Clock.schedule_once(self._handle_timeout, self._timeout)

    def stop(self) -> None:
        self._cancel_timeout()
        self._on_sample = None
        self._on_error = None
        try:
            gps.stop()
        except NotImplementedError as exc:
            raise LocationUnavailable("unsupported") from exc

    def _cancel_timeout(self) -> None:
        if self._timeout_event is not None:
            self._timeout_event.cancel()
            self._timeout_event = None

    @mainthread
    def _handle_location(self, **kwargs) -> None:
        self._cancel_timeout()
        if self._on_sample is not None:
            self._on_sample(kwargs["lat"], kwargs["lon"], int(time.time() * 1000))

    @mainthread
    def _handle_status(self, stype, status) -> None:
        if stype == "provider-disabled" and self._on_error is not None:
            self._on_error("provider-disabled")

    def _handle_timeout(self, _dt) -> None:
        self._timeout_event = None
        if self._on_error is not None:
            self._on_error("timeout")


class Pyttsx3Speaker(Speaker):
    """Text-to-speech through :mod:`pyttsx3` pumped by the Kivy clock.

    The engine runs its own loop in external mode so speaking never blocks
    the main loop; ``stop`` interrupts the current utterance.
    """

    def __init__(self, rate: int | None = None, language: str = "es", pump_interval: float = 0.1):
        try:
            self._engine = pyttsx3.init()
        except (ImportError, RuntimeError, OSError) as exc:
            raise SpeechUnavailable(str(exc)) from exc
        voice = self._pick_voice(language)
        if voice is not None:
            self._engine.setProperty("voice", voice.id)
        if rate:
            self._engine.setProperty("rate", rate)
        self._finished = None
        self._engine.connect("finished-utterance", self._handle_finished)
        self._engine.startLoop(False)
        self._pump_event = Clock.schedule_interval(self._pump, pump_interval)

    def _pick_voice(self, language: str):
        for voice in self._engine.getProperty("voices") or []:
            langs = "".join(str(x).lower() for x in (getattr(voice, "languages", None) or []))
            ident = (getattr(voice, "id", "") or "").lower()
            if language in langs or f"{language}_" in ident or f"/{language}" in ident:
                return voice
        return None

    def bind_finished(self, callback) -> None:
        self._finished = callback

    def speak(self, text: str) -> None:
        try:
            self._engine.say(text)
        except RuntimeError as exc:
            raise SpeechUnavailable(str(exc)) from exc

    def stop(self) -> None:
        try:
            self._engine.stop()
        except RuntimeError as exc:
            raise SpeechUnavailable(str(exc)) from exc

    def _pump(self, _dt) -> None:
        self._engine.iterate()

    def _handle_finished(self, name, completed) -> None:
        if self._finished is not None:
            self._finished()

    def shutdown(self) -> None:
        if self._pump_event is None:
            return
        self._pump_event.cancel()
        self._pump_event = None
        self._engine.endLoop()


def build_capabilities() -> tuple[KivyClock, AnnouncementChannel, LocationTrace]:
    """Create the clock, announcer and trace configured by the user settings.

    Missing speech or location support leaves the matching capability
    without a backend instead of failing.
    """

    speaker = None
    voice_on = bool(settings.get_value("voice_on"))
    if voice_on:
        try:
            speaker = Pyttsx3Speaker(rate=settings.get_value("speech_rate"))
        except SpeechUnavailable as exc:
            logging.warning("Speech engine unavailable: %s", exc)
    source = None
    if settings.get_value("location_tracking_on"):
        source = PlyerLocationSource()
    announcer = AnnouncementChannel(speaker, enabled=voice_on)
    return KivyClock(), announcer, LocationTrace(source)
