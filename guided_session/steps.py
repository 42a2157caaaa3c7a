from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from guided_session.durations import parse_duration


class Phase(str, Enum):
    """Part of a step currently being timed."""

    EXERCISE = "EXERCISE"
    REST = "REST"


@dataclass(frozen=True)
class Step:
    """One exercise of the day followed by an optional rest.

    ``quantity`` and ``rest`` keep the original human-readable strings so
    they can be displayed and spoken; the parsed durations are exposed as
    properties.
    """

    name: str
    quantity: str
    rest: str = ""

    @property
    def duration(self) -> int:
        return parse_duration(self.quantity)

    @property
    def rest_duration(self) -> int:
        return parse_duration(self.rest)

    @property
    def is_timed(self) -> bool:
        return self.duration > 0

    def matches(self, names) -> bool:
        """Return ``True`` if the step name is one of ``names``."""
        return self.name.strip().lower() in names


# Measurement types used by the training API
_UNIT_SUFFIX = {
    "TIEMPO_MINUTOS": " min",
    "TIEMPO_SEGUNDOS": " seg",
    "REPETICIONES": "",
}


def steps_from_api_blocks(blocks: list[dict] | None) -> list[Step]:
    """Expand API exercise blocks into the ordered step list of a day.

    Each block repeats its ``pasos`` ``repeticionesBloque`` times.  Blocks
    and their steps are ordered by ``orden`` when present.
    """

    steps: list[Step] = []
    ordered_blocks = sorted(blocks or [], key=lambda b: b.get("orden", 0))
    for block in ordered_blocks:
        pasos = sorted(block.get("pasos") or [], key=lambda p: p.get("orden", 0))
        repeats = max(0, int(block.get("repeticionesBloque") or 1))
        for _ in range(repeats):
            for paso in pasos:
                suffix = _UNIT_SUFFIX.get(paso.get("tipoMedida"), "")
                steps.append(
                    Step(
                        name=paso.get("nombreEjercicio", ""),
                        quantity=f"{paso.get('cantidad', 0)}{suffix}",
                        rest=f"{paso.get('descansoDespuesSeg') or 0} seg",
                    )
                )
    return steps

