"""Values handed back to the surrounding application.

A :class:`Snapshot` is everything needed to resume a paused session and an
:class:`Outcome` is the final result of one.  Snapshots travel as plain JSON
dictionaries (see :meth:`Snapshot.to_dict`) so the caller can persist them
anywhere; :class:`SnapshotStore` keeps them in local recovery files.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from guided_session import DEFAULT_RECOVERY_BASE
from guided_session.location import RoutePoint
from guided_session.steps import Phase


class CloseReason(str, Enum):
    COMPLETED = "completed"
    CLOSED_MANUALLY = "closed_manually"


@dataclass(frozen=True)
class Outcome:
    reason: CloseReason
    visited_indices: frozenset[int]
    performance: dict[int, float]
    routes: dict[int, list[RoutePoint]]


@dataclass(frozen=True)
class Snapshot:
    index: int
    phase: Phase
    time_left: int
    initial_duration: int
    performance_so_far: dict[int, float] = field(default_factory=dict)
    routes_so_far: dict[int, list[RoutePoint]] = field(default_factory=dict)
    week_number: int | None = None
    day_name: str | None = None

    def to_dict(self) -> dict:
        """Return the JSON wire representation."""

        return {
            "weekNumber": self.week_number,
            "dayName": self.day_name,
            "exerciseIndex": self.index,
            "phase": self.phase.value,
            "timeLeftInSeconds": self.time_left,
            "initialDurationInSeconds": self.initial_duration,
            "accumulatedDurations": {
                str(k): v for k, v in self.performance_so_far.items()
            },
            "accumulatedRoutes": {
                str(k): [p.to_dict() for p in points]
                for k, points in self.routes_so_far.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Snapshot":
        """Reconstruct a :class:`Snapshot` from :meth:`to_dict` output.

        Raises :class:`ValueError` when required fields are missing or have
        the wrong shape.
        """

        try:
            return cls(
                index=int(data["exerciseIndex"]),
                phase=Phase(data["phase"]),
                time_left=int(data["timeLeftInSeconds"]),
                initial_duration=int(data["initialDurationInSeconds"]),
                performance_so_far={
                    int(k): float(v)
                    for k, v in (data.get("accumulatedDurations") or {}).items()
                },
                routes_so_far={
                    int(k): [RoutePoint.from_dict(p) for p in points]
                    for k, points in (data.get("accumulatedRoutes") or {}).items()
                },
                week_number=data.get("weekNumber"),
                day_name=data.get("dayName"),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"Invalid session snapshot: {exc}") from exc


class SnapshotStore:
    """Persist a paused session to two redundant recovery files."""

    def __init__(self, base: Path = DEFAULT_RECOVERY_BASE):
        base = Path(base)
        self.paths = (
            base.with_name(base.name + "_1.json"),
            base.with_name(base.name + "_2.json"),
        )

    def save(self, snapshot: Snapshot) -> None:
        payload = json.dumps(snapshot.to_dict())
        self.paths[0].parent.mkdir(parents=True, exist_ok=True)
        for path in self.paths:
            path.write_text(payload, encoding="utf-8")

    def load(self) -> Snapshot | None:
        """Return the saved snapshot from the first readable file."""

        for path in self.paths:
            if not path.exists():
                continue
            text = path.read_text(encoding="utf-8").strip()
            if not text:
                continue
            try:
                return Snapshot.from_dict(json.loads(text))
            except ValueError:
                logging.warning("Ignoring unreadable recovery file %s", path)
        return None

    def clear(self) -> None:
        for path in self.paths:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
