"""
Check-in trigger evaluation.

Maps one day's four self-reported scales to named triggers:

    high_overwhelm   overwhelm >= 4
    high_anxiety     anxiety   >= 4
    low_energy       energy    <= 2
    low_clarity      clarity   <= 2
    combined_stress  two or more of the above on the same day

combined_stress is reported alongside the individual triggers, never instead
of them. Triggers come back in the order above so downstream ranking is
deterministic.
"""

from enum import Enum
from typing import List, Optional, Protocol


class TriggerKind(str, Enum):
    HIGH_OVERWHELM = "high_overwhelm"
    HIGH_ANXIETY = "high_anxiety"
    LOW_ENERGY = "low_energy"
    LOW_CLARITY = "low_clarity"
    COMBINED_STRESS = "combined_stress"


class CheckinScales(Protocol):
    overwhelm: int
    anxiety: int
    energy: int
    clarity: int


HIGH_OVERWHELM_THRESHOLD = 4
HIGH_ANXIETY_THRESHOLD = 4
LOW_ENERGY_THRESHOLD = 2
LOW_CLARITY_THRESHOLD = 2

COMBINED_STRESS_MIN_TRIGGERS = 2

SINGLE_TRIGGERS = (
    TriggerKind.HIGH_OVERWHELM,
    TriggerKind.HIGH_ANXIETY,
    TriggerKind.LOW_ENERGY,
    TriggerKind.LOW_CLARITY,
)


def evaluate_triggers(checkin: Optional[CheckinScales]) -> List[TriggerKind]:
    """Active triggers for a check-in; an absent check-in has none."""
    if checkin is None:
        return []

    triggers: List[TriggerKind] = []
    if checkin.overwhelm >= HIGH_OVERWHELM_THRESHOLD:
        triggers.append(TriggerKind.HIGH_OVERWHELM)
    if checkin.anxiety >= HIGH_ANXIETY_THRESHOLD:
        triggers.append(TriggerKind.HIGH_ANXIETY)
    if checkin.energy <= LOW_ENERGY_THRESHOLD:
        triggers.append(TriggerKind.LOW_ENERGY)
    if checkin.clarity <= LOW_CLARITY_THRESHOLD:
        triggers.append(TriggerKind.LOW_CLARITY)

    if len(triggers) >= COMBINED_STRESS_MIN_TRIGGERS:
        triggers.append(TriggerKind.COMBINED_STRESS)

    return triggers
