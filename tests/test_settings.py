import json

import pytest

from guided_session import settings


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setattr(settings, "SETTINGS_PATH", path)
    settings.reset_cache()
    yield path
    settings.reset_cache()


def test_defaults_written_on_first_run(settings_file):
    assert settings.get_value("voice_on") is True
    assert settings.get_value("speech_rate") == 170
    assert settings.get_value("location_tracking_on") is True
    assert "carrera suave" in settings.get_value("trackable_exercises")
    with settings_file.open() as fh:
        stored = json.load(fh)
    assert [item["key"] for item in stored] == [
        "voice_on",
        "speech_rate",
        "location_tracking_on",
        "trackable_exercises",
    ]


def test_set_value_persists(settings_file):
    settings.set_value("voice_on", False)
    settings.set_value("theme", "dark")
    settings.reset_cache()
    assert settings.get_value("voice_on") is False
    assert settings.get_value("theme") == "dark"
    assert settings.get_value("missing", 5) == 5


def test_missing_key_falls_back_to_default(settings_file):
    settings_file.write_text(json.dumps([{"key": "voice_on", "value": False, "type": "bool"}]))
    assert settings.get_value("voice_on") is False
    assert settings.get_value("speech_rate") == 170


def test_corrupt_file_is_replaced_with_defaults(settings_file):
    settings_file.write_text("{broken")
    assert settings.get_value("location_tracking_on") is True
    with settings_file.open() as fh:
        assert isinstance(json.load(fh), list)


def test_trackable_exercises_are_normalised(settings_file):
    settings.set_value("trackable_exercises", [" Carrera Suave", "Bicicleta"])
    assert settings.trackable_exercises() == {"carrera suave", "bicicleta"}
