import pytest

from guided_session.announcements import (
    AnnouncementChannel,
    countdown_cue,
    entry_cue,
    spoken_exercise_name,
    spoken_repetitions,
)
from guided_session.steps import Phase, Step

from conftest import FakeSpeaker


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Sprint 100 m", "Sprint 100 metros"),
        ("Carrera progresión de menos a más 200 m", "Carrera progresión de menos a más 200 metros"),
        ("Sentadillas", "Sentadillas"),
    ],
)
def test_spoken_exercise_name(name, expected):
    assert spoken_exercise_name(name) == expected


def test_spoken_repetitions():
    assert spoken_repetitions("3 x 10") == "3 series de 10 repeticiones"
    assert spoken_repetitions("12") == "12 repeticiones"
    assert spoken_repetitions("1") == "1 repetición"
    assert spoken_repetitions("2 min") == ""


def test_entry_cue():
    run = Step("Carrera suave", "2:30", "1 min")
    assert entry_cue(run, Phase.EXERCISE, 150) == "Carrera suave, 2 minutos y medio"
    assert entry_cue(run, Phase.REST, 60) == "Descanso de 1 minuto"
    assert entry_cue(run, Phase.REST, 0) == ""
    squats = Step("Sentadillas", "12")
    assert entry_cue(squats, Phase.EXERCISE, 0) == "Sentadillas, 12 repeticiones"
    assert entry_cue(Step("Estiramientos", "libre"), Phase.EXERCISE, 0) == "Estiramientos"


def test_countdown_cue():
    run = Step("Carrera continua", "5 min")
    assert countdown_cue(run, Phase.EXERCISE, 60) == "Quedan 60 segundos"
    assert countdown_cue(run, Phase.EXERCISE, 30) == "30 segundos, ya queda poco"
    assert countdown_cue(run, Phase.EXERCISE, 10) == "10 segundos, ya terminamos. ¡Ánimo!"
    assert countdown_cue(run, Phase.EXERCISE, 45) == ""
    assert countdown_cue(Step("Plancha", "2 min"), Phase.EXERCISE, 60) == ""
    assert countdown_cue(run, Phase.REST, 10) == "10"
    assert countdown_cue(run, Phase.REST, 1) == "1"
    assert countdown_cue(run, Phase.REST, 11) == ""


def test_new_cue_cancels_the_previous_one(speaker):
    channel = AnnouncementChannel(speaker)
    channel.say("uno")
    channel.say("dos")
    assert speaker.log == [("stop", None), ("speak", "uno"), ("stop", None), ("speak", "dos")]
    assert channel.speaking
    assert channel.last_cue == "dos"
    speaker.finish()
    assert not channel.speaking


def test_disabled_or_missing_speaker_is_silent(speaker):
    channel = AnnouncementChannel(speaker, enabled=False)
    channel.say("hola")
    channel.cancel()
    assert speaker.log == []

    silent = AnnouncementChannel()
    assert not silent.available
    silent.say("hola")
    assert silent.last_cue is None


def test_speech_failure_is_swallowed():
    speaker = FakeSpeaker(fail=True)
    channel = AnnouncementChannel(speaker)
    channel.say("hola")
    assert not channel.speaking
    assert channel.last_cue is None


def test_shutdown_releases_speaker_once(speaker):
    channel = AnnouncementChannel(speaker)
    channel.say("hola")
    channel.shutdown()
    channel.shutdown()
    assert speaker.log[-2:] == [("stop", None), ("shutdown", None)]
    assert speaker.log.count(("shutdown", None)) == 1
    assert not channel.available
    channel.say("adiós")
    assert speaker.spoken == ["hola"]
