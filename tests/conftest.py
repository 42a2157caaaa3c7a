from pathlib import Path
import sys
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from guided_session.announcements import AnnouncementChannel, Speaker, SpeechUnavailable
from guided_session.clock import ManualClock
from guided_session.controller import SessionController, SessionListener
from guided_session.location import LocationSource, LocationTrace, LocationUnavailable
from guided_session.steps import Step


class FakeSpeaker(Speaker):
    """Record every utterance and cancellation in one ordered log."""

    def __init__(self, fail: bool = False):
        self.log = []
        self.fail = fail
        self._finished = None

    @property
    def spoken(self):
        return [text for kind, text in self.log if kind == "speak"]

    def speak(self, text):
        if self.fail:
            raise SpeechUnavailable("no engine")
        self.log.append(("speak", text))

    def stop(self):
        self.log.append(("stop", None))

    def bind_finished(self, callback):
        self._finished = callback

    def shutdown(self):
        self.log.append(("shutdown", None))

    def finish(self):
        if self._finished:
            self._finished()


class FakeLocationSource(LocationSource):
    """Location source driven by the test."""

    def __init__(self, unavailable: bool = False):
        self.unavailable = unavailable
        self.starts = 0
        self.stops = 0
        self.on_sample = None
        self.on_error = None
        self.callbacks = []

    def start(self, on_sample, on_error):
        if self.unavailable:
            raise LocationUnavailable("unsupported")
        self.starts += 1
        self.on_sample = on_sample
        self.on_error = on_error
        self.callbacks.append((on_sample, on_error))

    def stop(self):
        self.stops += 1

    def push(self, lat, lng, timestamp):
        self.on_sample(lat, lng, timestamp)

    def fail(self, reason="timeout"):
        self.on_error(reason)


class RecordingListener(SessionListener):
    def __init__(self):
        self.closed = []
        self.paused = []

    def on_close(self, outcome):
        self.closed.append(outcome)

    def on_pause_and_exit(self, snapshot, visited_indices):
        self.paused.append((snapshot, visited_indices))


@pytest.fixture
def three_step_day():
    """Timed run with rest, untimed reps with rest, timed finisher without rest."""
    return [
        Step("Carrera suave", "1 min", "20 seg"),
        Step("Sentadillas", "12", "30 seg"),
        Step("Plancha", "40 seg"),
    ]


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def speaker():
    return FakeSpeaker()


@pytest.fixture
def location_source():
    return FakeLocationSource()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def make_controller(three_step_day, clock, speaker, location_source, listener):
    """Build a controller wired to the fakes; ``steps`` overrides the day."""

    def _make(steps=None, **kwargs):
        return SessionController(
            three_step_day if steps is None else steps,
            listener,
            clock,
            announcer=AnnouncementChannel(speaker),
            trace=LocationTrace(location_source),
            **kwargs,
        )

    return _make
