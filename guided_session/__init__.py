"""Shared constants for the guided session engine."""

from __future__ import annotations

from pathlib import Path

# Cadence of the single tick source driving the countdown, in seconds
TICK_INTERVAL = 1

# Exercises whose route is recorded with GPS while they run
TRACKABLE_EXERCISES = frozenset({"carrera suave", "carrera continua"})

# Timed exercises that get spoken warnings before the countdown ends
COUNTDOWN_CUE_EXERCISES = frozenset(
    {"carrera continua", "carrera suave", "saltos a la comba"}
)
EXERCISE_CUE_THRESHOLDS = (60, 30, 10)

# Rest phases count down aloud for the final seconds
REST_COUNTDOWN_FROM = 10

# Seconds to wait for a first location fix before giving up on the step
LOCATION_TIMEOUT = 15
LOCATION_MIN_TIME_MS = 1000

# Base path for paused-session recovery files
DEFAULT_RECOVERY_BASE = (
    Path(__file__).resolve().parent.parent / "data" / "session_recovery"
)

__all__ = [
    "TICK_INTERVAL",
    "TRACKABLE_EXERCISES",
    "COUNTDOWN_CUE_EXERCISES",
    "EXERCISE_CUE_THRESHOLDS",
    "REST_COUNTDOWN_FROM",
    "LOCATION_TIMEOUT",
    "LOCATION_MIN_TIME_MS",
    "DEFAULT_RECOVERY_BASE",
]
