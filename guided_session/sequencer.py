from __future__ import annotations

from typing import NamedTuple

from guided_session.steps import Phase, Step


class Cursor(NamedTuple):
    """Position of the session: an exercise index and its phase."""

    index: int
    phase: Phase


class StepSequencer:
    """Resolve where the session goes from a given position.

    ``next`` and ``previous`` return a :class:`Cursor`.  ``next`` returns
    ``None`` when the session is complete and ``previous`` returns ``None``
    when there is nowhere to go back to.
    """

    def __init__(self, steps: list[Step]):
        self.steps = list(steps)

    def __len__(self) -> int:
        return len(self.steps)

    def has_rest(self, index: int) -> bool:
        return self.steps[index].rest_duration > 0

    def duration_for(self, index: int, phase: Phase) -> int:
        step = self.steps[index]
        return step.duration if phase is Phase.EXERCISE else step.rest_duration

    def is_last(self, index: int) -> bool:
        return index >= len(self.steps) - 1

    def next(self, index: int, phase: Phase) -> Cursor | None:
        if phase is Phase.EXERCISE and self.has_rest(index):
            return Cursor(index, Phase.REST)
        if not self.is_last(index):
            return Cursor(index + 1, Phase.EXERCISE)
        return None

    def previous(self, index: int, phase: Phase) -> Cursor | None:
        if phase is Phase.REST:
            return Cursor(index, Phase.EXERCISE)
        if index > 0:
            return Cursor(index - 1, Phase.EXERCISE)
        return None

    def finishes_session(self, index: int, phase: Phase) -> bool:
        """Return ``True`` if moving on from here completes the session."""
        return self.next(index, phase) is None
