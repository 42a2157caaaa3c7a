"""Per-exercise accounting of the time actually spent.

A *visit* starts when an exercise phase is entered and ends when it is left
in any direction.  While a visit is open its time is gathered in segments:
a segment runs between entry (or clock resume) and the next clock pause or
the end of the visit.  Timed phases measure a segment as the countdown
consumed since the segment started; untimed phases use the wall clock.
Segments are banked into the visit and the visit is added to the running
total for its index exactly once, when it is committed.
"""

from __future__ import annotations


class PerformanceRecorder:
    """Accumulate seconds spent per exercise index."""

    def __init__(self):
        self._totals: dict[int, float] = {}
        self._index: int | None = None
        self._timed = False
        self._baseline: float | None = None
        self._pending = 0.0

    # ------------------------------------------------------------------
    # Visit lifecycle
    # ------------------------------------------------------------------

    @property
    def visiting(self) -> int | None:
        """Index of the open visit, if any."""
        return self._index

    def enter(
        self,
        index: int,
        *,
        timed: bool,
        time_left: int,
        now: float,
        restored: bool = False,
    ) -> None:
        """Open a visit for ``index``.

        Any visit still open is dropped; callers commit before entering.
        A ``restored`` visit continues one saved in a snapshot and leaves the
        totals untouched until it gathers time.
        """

        if not restored:
            self._totals.setdefault(index, 0.0)
        self._index = index
        self._timed = timed
        self._pending = 0.0
        self._baseline = time_left if timed else now

    def _segment(self, time_left: int, now: float) -> float:
        if self._baseline is None:
            return 0.0
        if self._timed:
            return float(max(0, self._baseline - time_left))
        return max(0.0, now - self._baseline)

    def suspend(self, time_left: int, now: float) -> None:
        """Bank the running segment while the clock is paused."""

        if self._index is None:
            return
        self._pending += self._segment(time_left, now)
        self._baseline = None

    def resume(self, time_left: int, now: float) -> None:
        """Start a new segment from the current position."""

        if self._index is None or self._baseline is not None:
            return
        self._baseline = time_left if self._timed else now

    def elapsed(self, time_left: int, now: float) -> float:
        """Seconds gathered by the open visit so far."""

        if self._index is None:
            return 0.0
        return self._pending + self._segment(time_left, now)

    def commit(self, time_left: int, now: float) -> float:
        """Close the open visit and add its time to the index total.

        Returns the seconds added.  Without an open visit nothing happens,
        so a leave event can never be counted twice.
        """

        if self._index is None:
            return 0.0
        spent = self.elapsed(time_left, now)
        if spent or self._index in self._totals:
            self._totals[self._index] = self._totals.get(self._index, 0.0) + spent
        self._close()
        return spent

    def discard(self) -> None:
        """Close the open visit without recording its time."""
        self._close()

    def _close(self) -> None:
        self._index = None
        self._baseline = None
        self._pending = 0.0

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def merge(self, totals: dict[int, float]) -> None:
        """Add previously recorded ``totals`` (e.g. from a snapshot)."""

        for index, seconds in totals.items():
            index = int(index)
            self._totals[index] = self._totals.get(index, 0.0) + float(seconds)

    def clear(self) -> None:
        """Forget every total and any open visit."""
        self._totals.clear()
        self._close()

    @property
    def totals(self) -> dict[int, float]:
        return dict(self._totals)

    def __getitem__(self, index: int) -> float:
        return self._totals[index]
