"""Tick sources driving the session countdown.

The controller only talks to :class:`TickSource`.  The Kivy-backed
implementation lives in :mod:`guided_session.platform`; :class:`ManualClock`
advances time explicitly so sessions can be driven without waiting.
"""

from __future__ import annotations

from typing import Callable

from guided_session import TICK_INTERVAL


class TickSource:
    """Interface for a clock that can call back at a fixed interval."""

    def now(self) -> float:
        """Return the current time in seconds."""
        raise NotImplementedError

    def schedule_interval(self, callback: Callable[[], None], interval: float):
        """Call ``callback`` every ``interval`` seconds.

        The returned event exposes ``cancel()``.
        """
        raise NotImplementedError


class _ManualEvent:
    def __init__(self, clock: "ManualClock", callback, interval: float, due: float):
        self._clock = clock
        self.callback = callback
        self.interval = interval
        self.next_due = due
        self.cancelled = False

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self._clock._events.remove(self)


class ManualClock(TickSource):
    """Deterministic clock whose time only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._events: list[_ManualEvent] = []

    def now(self) -> float:
        return self._now

    def schedule_interval(self, callback, interval: float = TICK_INTERVAL):
        event = _ManualEvent(self, callback, float(interval), self._now + interval)
        self._events.append(event)
        return event

    @property
    def pending(self) -> int:
        """Number of active interval subscriptions."""
        return len(self._events)

    def advance(self, seconds: float) -> None:
        """Move time forward by ``seconds`` firing every callback that falls due.

        Callbacks run in due order and may cancel or schedule events.
        """

        target = self._now + seconds
        while True:
            due = [e for e in self._events if e.next_due <= target]
            if not due:
                break
            event = min(due, key=lambda e: e.next_due)
            self._now = event.next_due
            event.next_due += event.interval
            event.callback()
        self._now = target

    def tick(self, count: int = 1) -> None:
        """Advance by ``count`` whole tick intervals."""
        for _ in range(count):
            self.advance(TICK_INTERVAL)
