"""GPS route capture for trackable exercises.

:class:`LocationTrace` owns at most one location stream at a time.  Samples
are buffered while the stream runs and moved into the route map under the
exercise index when the stream stops.  Every stream gets a generation number
so samples or errors delivered after it was stopped are ignored and can never
be attributed to a later step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable


class LocationUnavailable(Exception):
    """The platform cannot provide location samples."""


@dataclass(frozen=True)
class RoutePoint:
    lat: float
    lng: float
    timestamp: int

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict) -> "RoutePoint":
        return cls(float(data["lat"]), float(data["lng"]), int(data["timestamp"]))


class LocationSource:
    """Interface implemented by platform location providers.

    ``start`` begins a continuous stream and calls ``on_sample(lat, lng,
    timestamp_ms)`` for each fix and ``on_error(reason)`` when the stream
    fails.  Both raise :class:`LocationUnavailable` when the platform has no
    location support.
    """

    def start(
        self,
        on_sample: Callable[[float, float, int], None],
        on_error: Callable[[str], None],
    ) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


STATUS_REQUESTING = "requesting"
STATUS_ACTIVE = "active"
STATUS_STOPPED = "stopped"
ERROR_PREFIX = "error:"


class LocationTrace:
    """Record routes per exercise index from a :class:`LocationSource`."""

    def __init__(self, source: LocationSource | None = None):
        self._source = source
        self._routes: dict[int, list[RoutePoint]] = {}
        self._buffer: list[RoutePoint] = []
        self._index: int | None = None
        self._generation = 0
        self._failed_index: int | None = None
        self.active = False
        self.status: str | None = None

    @property
    def failed(self) -> bool:
        return bool(self.status and self.status.startswith(ERROR_PREFIX))

    def start(self, index: int, *, new_step: bool = False) -> None:
        """Begin tracking for exercise ``index``.

        A stream that failed stays off until the step is entered anew, which
        callers signal with ``new_step``.
        """

        self.stop()
        if new_step:
            self._failed_index = None
            self.status = None
        if self._failed_index == index:
            return
        self._index = index
        self._generation += 1
        generation = self._generation
        if self._source is None:
            self._fail(index, "unavailable")
            return
        self.active = True
        self.status = STATUS_REQUESTING
        try:
            self._source.start(
                partial(self._on_sample, generation),
                partial(self._on_error, generation),
            )
        except LocationUnavailable as exc:
            self.active = False
            self._generation += 1
            self._fail(index, str(exc) or "unavailable")

    def stop(self, *, flush: bool = True) -> None:
        """Stop the stream and move buffered samples into the route map."""

        if self.active:
            self.active = False
            self._generation += 1
            try:
                self._source.stop()
            except LocationUnavailable as exc:
                logging.warning("Stopping location updates failed: %s", exc)
            if not self.failed:
                self.status = STATUS_STOPPED
        if flush and self._buffer and self._index is not None:
            self._routes.setdefault(self._index, []).extend(self._buffer)
        self._buffer = []

    def _on_sample(self, generation: int, lat: float, lng: float, timestamp: int) -> None:
        if generation != self._generation or not self.active:
            logging.debug("Ignoring stale location sample for step %s", self._index)
            return
        self._buffer.append(RoutePoint(float(lat), float(lng), int(timestamp)))
        self.status = STATUS_ACTIVE

    def _on_error(self, generation: int, reason: str) -> None:
        if generation != self._generation:
            return
        self._fail(self._index, reason)
        self.stop()

    def _fail(self, index: int | None, reason: str) -> None:
        self.status = f"{ERROR_PREFIX}{reason}"
        self._failed_index = index
        logging.warning("Location tracking disabled for step %s: %s", index, reason)

    # ------------------------------------------------------------------
    # Route map
    # ------------------------------------------------------------------

    @property
    def routes(self) -> dict[int, list[RoutePoint]]:
        return {index: list(points) for index, points in self._routes.items()}

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def merge(self, routes: dict[int, list[RoutePoint]]) -> None:
        for index, points in routes.items():
            if points:
                self._routes.setdefault(int(index), []).extend(points)

    def clear(self) -> None:
        self.stop(flush=False)
        self._routes.clear()
        self._failed_index = None
        self.status = None
