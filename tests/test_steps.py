from guided_session.steps import Step, steps_from_api_blocks


def test_step_durations():
    step = Step("Carrera suave", "2 min", "30 seg")
    assert step.duration == 120
    assert step.rest_duration == 30
    assert step.is_timed

    reps = Step("Sentadillas", "12")
    assert reps.duration == 0
    assert reps.rest_duration == 0
    assert not reps.is_timed


def test_step_matches_is_case_insensitive():
    names = {"carrera suave"}
    assert Step(" Carrera Suave ", "5 min").matches(names)
    assert not Step("Carrera suave rápida", "5 min").matches(names)


def test_steps_from_api_blocks_orders_and_repeats():
    blocks = [
        {
            "orden": 2,
            "repeticionesBloque": 2,
            "pasos": [
                {"orden": 2, "nombreEjercicio": "Flexiones", "tipoMedida": "REPETICIONES", "cantidad": 10, "descansoDespuesSeg": 0},
                {"orden": 1, "nombreEjercicio": "Saltos a la comba", "tipoMedida": "TIEMPO_SEGUNDOS", "cantidad": 45, "descansoDespuesSeg": 15},
            ],
        },
        {
            "orden": 1,
            "repeticionesBloque": 1,
            "pasos": [
                {"orden": 1, "nombreEjercicio": "Carrera suave", "tipoMedida": "TIEMPO_MINUTOS", "cantidad": 5, "descansoDespuesSeg": 60},
            ],
        },
    ]
    steps = steps_from_api_blocks(blocks)
    assert [s.name for s in steps] == [
        "Carrera suave",
        "Saltos a la comba",
        "Flexiones",
        "Saltos a la comba",
        "Flexiones",
    ]
    assert steps[0] == Step("Carrera suave", "5 min", "60 seg")
    assert steps[1].duration == 45
    assert steps[2].quantity == "10"
    assert steps[2].rest_duration == 0


def test_steps_from_api_blocks_empty():
    assert steps_from_api_blocks(None) == []
    assert steps_from_api_blocks([]) == []
