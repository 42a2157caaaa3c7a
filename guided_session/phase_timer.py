from __future__ import annotations


class PhaseTimer:
    """Countdown for the active phase of a step.

    The timer does not own a clock; the controller calls :meth:`tick` once
    per tick while it is running.  A phase whose initial duration is ``0``
    is not timed and the timer stays inert.
    """

    def __init__(self):
        self.time_left = 0
        self.initial_duration = 0
        self.running = False

    @property
    def unbounded(self) -> bool:
        return self.initial_duration == 0

    def start(self, duration: int, time_left: int | None = None) -> None:
        """Start a new phase of ``duration`` seconds.

        ``time_left`` restores a partially consumed phase and is clamped to
        ``[0, duration]``.
        """

        self.initial_duration = max(0, int(duration))
        if time_left is None:
            time_left = self.initial_duration
        self.time_left = min(max(0, int(time_left)), self.initial_duration)
        self.running = True

    def tick(self) -> bool:
        """Consume one second and return ``True`` once the phase has expired."""

        if not self.running or self.unbounded:
            return False
        self.time_left = max(0, self.time_left - 1)
        return self.time_left == 0

    def pause(self) -> None:
        self.running = False

    def resume(self) -> None:
        self.running = True

    def reset(self, duration: int | None = None) -> None:
        """Restart the current phase from its full duration."""
        self.start(self.initial_duration if duration is None else duration)

    @property
    def consumed(self) -> int:
        return self.initial_duration - self.time_left
