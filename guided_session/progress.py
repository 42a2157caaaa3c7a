"""Merge session results into the stored progress of a training day."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from guided_session.location import RoutePoint
from guided_session.snapshot import CloseReason, Outcome, Snapshot


def day_key(week_number: int, day_name: str) -> str:
    """Return the key identifying a day, e.g. ``"week1-Día 1"``."""
    return f"week{week_number}-{day_name}"


@dataclass(frozen=True)
class DayProgress:
    day_key: str
    completed_indices: frozenset[int] = frozenset()
    all_completed: bool = False
    completed_at: str | None = None
    durations: dict[int, float] = field(default_factory=dict)
    routes: dict[int, list[RoutePoint]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "dayKey": self.day_key,
            "completedExerciseIndices": sorted(self.completed_indices),
            "allExercisesCompleted": self.all_completed,
            "completedAt": self.completed_at,
            "exerciseActualDurations": {str(k): v for k, v in self.durations.items()},
            "exerciseRoutes": {
                str(k): [p.to_dict() for p in points] for k, points in self.routes.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DayProgress":
        return cls(
            day_key=data["dayKey"],
            completed_indices=frozenset(int(i) for i in data.get("completedExerciseIndices", [])),
            all_completed=bool(data.get("allExercisesCompleted", False)),
            completed_at=data.get("completedAt"),
            durations={
                int(k): float(v) for k, v in (data.get("exerciseActualDurations") or {}).items()
            },
            routes={
                int(k): [RoutePoint.from_dict(p) for p in points]
                for k, points in (data.get("exerciseRoutes") or {}).items()
            },
        )


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _merged(progress: DayProgress, durations, routes) -> tuple[dict, dict]:
    return {**progress.durations, **durations}, {**progress.routes, **routes}


def apply_outcome(
    progress: DayProgress,
    outcome: Outcome,
    total_exercises: int,
    now: str | None = None,
) -> DayProgress:
    """Return ``progress`` updated with the result of a finished session.

    A completed session marks every exercise as done.  A manual close only
    adds the indices visited in that run.  Newer durations and routes replace
    older ones for the same index.
    """

    durations, routes = _merged(progress, outcome.performance, outcome.routes)
    completed = progress.completed_indices
    all_completed = progress.all_completed
    completed_at = progress.completed_at
    if outcome.reason is CloseReason.COMPLETED:
        completed = frozenset(range(total_exercises))
        all_completed = True
    else:
        completed = completed | outcome.visited_indices
        if len(completed) == total_exercises:
            all_completed = True
    if all_completed and completed_at is None:
        completed_at = now or _now_iso()
    return replace(
        progress,
        completed_indices=completed,
        all_completed=all_completed,
        completed_at=completed_at,
        durations=durations,
        routes=routes,
    )


def apply_pause(
    progress: DayProgress,
    snapshot: Snapshot,
    visited_indices: frozenset[int],
    total_exercises: int,
    now: str | None = None,
) -> DayProgress:
    """Return ``progress`` updated with what a paused session has done."""

    durations, routes = _merged(
        progress, snapshot.performance_so_far, snapshot.routes_so_far
    )
    completed = progress.completed_indices | visited_indices
    all_completed = progress.all_completed or len(completed) == total_exercises
    completed_at = progress.completed_at
    if all_completed and completed_at is None:
        completed_at = now or _now_iso()
    return replace(
        progress,
        completed_indices=completed,
        all_completed=all_completed,
        completed_at=completed_at,
        durations=durations,
        routes=routes,
    )
