"""State machine that guides the user through one workout day.

:class:`SessionController` owns the current position (exercise index, phase
and countdown) and is the only object that changes it.  Position changes
come from two places: the recurring tick of a :class:`TickSource` and the
navigation commands called by the user interface.  Location samples and
speech completion arrive asynchronously but only ever touch auxiliary state
in :class:`LocationTrace` and :class:`AnnouncementChannel`.

Every transition runs the same two halves in order.  Leaving stops the tick,
cancels speech, stops the location stream (flushing its route under the index
being left) and commits or discards the exercise time.  Entering starts the
new phase timer, opens a visit in the recorder, starts tracking when the
exercise is trackable and announces the phase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from guided_session import TICK_INTERVAL, TRACKABLE_EXERCISES
from guided_session.announcements import AnnouncementChannel
from guided_session.clock import TickSource
from guided_session.durations import format_time
from guided_session.location import LocationTrace, RoutePoint
from guided_session.performance import PerformanceRecorder
from guided_session.phase_timer import PhaseTimer
from guided_session.sequencer import Cursor, StepSequencer
from guided_session.snapshot import CloseReason, Outcome, Snapshot
from guided_session.steps import Phase, Step


class SessionListener:
    """Receives the terminal events of a session.

    Exactly one of the two methods is called, once, per controller.
    """

    def on_close(self, outcome: Outcome) -> None:
        pass

    def on_pause_and_exit(self, snapshot: Snapshot, visited_indices: frozenset[int]) -> None:
        pass


@dataclass(frozen=True)
class SessionPosition:
    index: int
    phase: Phase
    time_left: int
    initial_duration: int


@dataclass(frozen=True)
class SessionView:
    """Read model for rendering the running session."""

    step_name: str
    phase: Phase
    position: int
    total: int
    display: str
    running: bool
    location_status: str | None
    next_label: str
    next_finishes: bool


# Lifecycle states of the controller
IDLE = "idle"
ACTIVE = "active"
PAUSED = "paused"
COMPLETED = "completed"
CLOSED = "closed"

NEXT_LABEL_REST = "Descansar"
NEXT_LABEL_EXERCISE = "Siguiente Ejercicio"
NEXT_LABEL_FINISH = "Finalizar Sesión"


class SessionController:
    """Run a guided session over an ordered list of :class:`Step`."""

    def __init__(
        self,
        steps: list[Step],
        listener: SessionListener,
        clock: TickSource,
        *,
        announcer: AnnouncementChannel | None = None,
        trace: LocationTrace | None = None,
        trackable_exercises=TRACKABLE_EXERCISES,
        week_number: int | None = None,
        day_name: str | None = None,
    ):
        self.steps = list(steps)
        self.listener = listener
        self.clock = clock
        self.announcer = announcer or AnnouncementChannel()
        self.trace = trace or LocationTrace()
        self.trackable_exercises = frozenset(n.strip().lower() for n in trackable_exercises)
        self.week_number = week_number
        self.day_name = day_name

        self.sequencer = StepSequencer(self.steps)
        self.timer = PhaseTimer()
        self.recorder = PerformanceRecorder()
        self._visited: set[int] = set()
        self._tick_event = None
        self.index = 0
        self.phase = Phase.EXERCISE
        self.state = IDLE

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self.state in (PAUSED, COMPLETED, CLOSED)

    @property
    def running(self) -> bool:
        return self.state == ACTIVE and self.timer.running

    @property
    def current_step(self) -> Step:
        return self.steps[self.index]

    @property
    def visited_indices(self) -> frozenset[int]:
        return frozenset(self._visited)

    @property
    def performance(self) -> dict[int, float]:
        return self.recorder.totals

    @property
    def routes(self) -> dict[int, list[RoutePoint]]:
        return self.trace.routes

    @property
    def position(self) -> SessionPosition:
        return SessionPosition(
            self.index, self.phase, self.timer.time_left, self.timer.initial_duration
        )

    def is_trackable(self, index: int) -> bool:
        return self.steps[index].matches(self.trackable_exercises)

    def view(self) -> SessionView:
        step = self.current_step
        if self.timer.unbounded:
            display = step.quantity
        else:
            display = format_time(self.timer.time_left)
        finishes = self.sequencer.finishes_session(self.index, self.phase)
        if finishes:
            label = NEXT_LABEL_FINISH
        elif self.phase is Phase.EXERCISE and self.sequencer.has_rest(self.index):
            label = NEXT_LABEL_REST
        else:
            label = NEXT_LABEL_EXERCISE
        tracking = self.phase is Phase.EXERCISE and self.is_trackable(self.index)
        return SessionView(
            step_name=step.name,
            phase=self.phase,
            position=self.index + 1,
            total=len(self.steps),
            display=display,
            running=self.running,
            location_status=self.trace.status if tracking else None,
            next_label=label,
            next_finishes=finishes,
        )

    def elapsed_in_step(self) -> float:
        """Seconds gathered by the current exercise visit."""
        return self.recorder.elapsed(self.timer.time_left, self.clock.now())

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def _arm_clock(self) -> None:
        self._disarm_clock()
        self._tick_event = self.clock.schedule_interval(self._on_tick, TICK_INTERVAL)

    def _disarm_clock(self) -> None:
        if self._tick_event is not None:
            self._tick_event.cancel()
            self._tick_event = None

    def _on_tick(self) -> None:
        if self.state != ACTIVE or not self.timer.running or self.timer.unbounded:
            return
        expired = self.timer.tick()
        if expired:
            self._advance()
        else:
            self.announcer.announce_countdown(
                self.current_step, self.phase, self.timer.time_left
            )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _enter(
        self,
        cursor: Cursor,
        *,
        time_left: int | None = None,
        initial_duration: int | None = None,
        restored: bool = False,
    ) -> None:
        index, phase = cursor
        if initial_duration is None:
            initial_duration = self.sequencer.duration_for(index, phase)
        self.index = index
        self.phase = phase
        self.timer.start(initial_duration, time_left)
        step = self.steps[index]
        logging.debug(
            "Entering %s %s (%s/%ss)",
            phase.value, index, self.timer.time_left, self.timer.initial_duration,
        )
        if phase is Phase.EXERCISE:
            self.recorder.enter(
                index,
                timed=not self.timer.unbounded,
                time_left=self.timer.time_left,
                now=self.clock.now(),
                restored=restored,
            )
            if self.is_trackable(index):
                self.trace.start(index, new_step=True)
        self.announcer.announce_entry(step, phase, self.timer.initial_duration)
        self._arm_clock()

    def _leave(self, *, commit: bool = True) -> None:
        self._disarm_clock()
        self.announcer.cancel()
        self.trace.stop(flush=commit)
        if self.phase is Phase.EXERCISE:
            if commit:
                self.recorder.commit(self.timer.time_left, self.clock.now())
            else:
                self.recorder.discard()

    def _advance(self) -> None:
        index, phase = self.index, self.phase
        self._leave()
        if phase is Phase.EXERCISE:
            self._visited.add(index)
        target = self.sequencer.next(index, phase)
        if target is None:
            self._finish(CloseReason.COMPLETED)
        else:
            self._enter(target)

    def _finish(self, reason: CloseReason) -> Outcome:
        self.state = COMPLETED if reason is CloseReason.COMPLETED else CLOSED
        outcome = Outcome(
            reason=reason,
            visited_indices=self.visited_indices,
            performance=self.performance,
            routes=self.routes,
        )
        logging.info(
            "Guided session %s: %d exercises visited", reason.value, len(self._visited)
        )
        self.listener.on_close(outcome)
        return outcome

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin the session at the first exercise."""

        if self.state != IDLE:
            return
        if not self.steps:
            self._finish(CloseReason.CLOSED_MANUALLY)
            return
        self.state = ACTIVE
        self._enter(Cursor(0, Phase.EXERCISE))

    def resume(self, snapshot: Snapshot) -> None:
        """Continue a session exactly where ``snapshot`` left it."""

        if self.state != IDLE:
            return
        if not 0 <= snapshot.index < len(self.steps):
            raise ValueError(
                f"Snapshot index {snapshot.index} outside {len(self.steps)} steps"
            )
        phase = Phase(snapshot.phase)
        self.recorder.merge(snapshot.performance_so_far)
        self.trace.merge(snapshot.routes_so_far)
        self.state = ACTIVE
        self._enter(
            Cursor(snapshot.index, phase),
            time_left=snapshot.time_left,
            initial_duration=snapshot.initial_duration,
            restored=True,
        )

    def next(self) -> None:
        """Skip to the next phase regardless of the remaining time."""

        if self.state != ACTIVE:
            return
        self._advance()

    def previous(self) -> None:
        """Go back one phase, restarting it from its full duration."""

        if self.state != ACTIVE:
            return
        target = self.sequencer.previous(self.index, self.phase)
        if target is None:
            return
        self._leave()
        if self.phase is Phase.REST:
            # index is visited again only once the redone exercise is left forwards
            self._visited.discard(self.index)
        self._enter(target)

    def toggle_pause(self) -> None:
        """Stop or restart the clock without leaving the current phase."""

        if self.state != ACTIVE:
            return
        now = self.clock.now()
        if self.timer.running:
            self._disarm_clock()
            self.timer.pause()
            self.announcer.cancel()
            if self.phase is Phase.EXERCISE:
                self.recorder.suspend(self.timer.time_left, now)
                self.trace.stop()
        else:
            self.timer.resume()
            if self.phase is Phase.EXERCISE:
                self.recorder.resume(self.timer.time_left, now)
                if self.is_trackable(self.index):
                    self.trace.start(self.index)
            self._arm_clock()

    def reset_phase(self) -> None:
        """Restart the current phase from its full duration.

        Time gathered by the current visit is dropped.
        """

        if self.state != ACTIVE:
            return
        self.announcer.cancel()
        self.timer.reset()
        if self.phase is Phase.EXERCISE:
            self.recorder.discard()
            self.recorder.enter(
                self.index,
                timed=not self.timer.unbounded,
                time_left=self.timer.time_left,
                now=self.clock.now(),
            )
            if self.is_trackable(self.index) and not self.trace.active:
                self.trace.start(self.index)
        self._arm_clock()

    def restart(self) -> None:
        """Start the day over from the first exercise, forgetting all progress."""

        if self.state != ACTIVE:
            return
        self._leave(commit=False)
        self.recorder.clear()
        self.trace.clear()
        self._visited.clear()
        self._enter(Cursor(0, Phase.EXERCISE))

    def pause_and_exit(self) -> Snapshot | None:
        """Suspend the session and hand a resumable snapshot to the listener."""

        if self.state != ACTIVE:
            return None
        self._leave()
        self.state = PAUSED
        snapshot = Snapshot(
            index=self.index,
            phase=self.phase,
            time_left=self.timer.time_left,
            initial_duration=self.timer.initial_duration,
            performance_so_far=self.performance,
            routes_so_far=self.routes,
            week_number=self.week_number,
            day_name=self.day_name,
        )
        logging.info(
            "Guided session paused at %s %s", self.phase.value, self.index
        )
        self.listener.on_pause_and_exit(snapshot, self.visited_indices)
        return snapshot

    def close(self) -> Outcome | None:
        """End the session on user request, keeping only committed progress."""

        if self.state != ACTIVE:
            return None
        self._leave(commit=False)
        return self._finish(CloseReason.CLOSED_MANUALLY)
