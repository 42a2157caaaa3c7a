"""Persisted user preferences for guided sessions.

Preferences are kept as an ordered list of ``{"key", "value", "type"}``
entries in ``data/settings.json``.  Keys missing from the file resolve to
the value in :data:`DEFAULT_SETTINGS`, so older files keep working when a
preference is added.
"""

from __future__ import annotations

from pathlib import Path
import json
import logging
from typing import Any, List, Dict

from guided_session import TRACKABLE_EXERCISES

SETTINGS_PATH = Path(__file__).resolve().parents[1] / "data" / "settings.json"

DEFAULT_SETTINGS: List[Dict[str, Any]] = [
    {"key": "voice_on", "value": True, "type": "bool"},
    {"key": "speech_rate", "value": 170, "type": "int"},
    {"key": "location_tracking_on", "value": True, "type": "bool"},
    {
        "key": "trackable_exercises",
        "value": sorted(TRACKABLE_EXERCISES),
        "type": "list",
    },
]

_settings_cache: List[Dict[str, Any]] | None = None


def load_settings() -> List[Dict[str, Any]]:
    """Read preferences from disk, writing the defaults if none are usable."""
    if SETTINGS_PATH.exists():
        try:
            with SETTINGS_PATH.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            if isinstance(data, list):
                return data
        except (OSError, ValueError):
            logging.warning("Settings file %s unreadable, using defaults", SETTINGS_PATH)
    defaults = [dict(item) for item in DEFAULT_SETTINGS]
    save_settings(defaults)
    return defaults


def save_settings(entries: List[Dict[str, Any]]) -> None:
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    with SETTINGS_PATH.open("w", encoding="utf-8") as fh:
        json.dump(entries, fh, ensure_ascii=False)


def get_settings() -> List[Dict[str, Any]]:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def reset_cache() -> None:
    """Forget the cached preferences so the next read goes to disk."""
    global _settings_cache
    _settings_cache = None


def get_value(key: str, default: Any = None) -> Any:
    """Return the stored value for ``key`` or its built-in default."""
    for entry in get_settings():
        if entry.get("key") == key:
            return entry.get("value")
    for entry in DEFAULT_SETTINGS:
        if entry["key"] == key:
            return entry["value"]
    return default


def set_value(key: str, value: Any) -> None:
    """Store ``value`` under ``key`` and write the file."""
    entries = get_settings()
    for entry in entries:
        if entry.get("key") == key:
            entry["value"] = value
            break
    else:
        entries.append({"key": key, "value": value, "type": type(value).__name__})
    save_settings(entries)


def trackable_exercises() -> frozenset[str]:
    """Normalised names of the exercises whose route is recorded."""
    names = get_value("trackable_exercises") or []
    return frozenset(str(name).strip().lower() for name in names)
