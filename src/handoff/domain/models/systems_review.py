from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator


class SystemIcon(str, Enum):
    BRAIN = "brain"
    HEART = "heart"
    LUNGS = "lungs"
    STOMACH = "stomach"
    DROPLET = "droplet"
    BANDAGE = "bandage"


class ChecklistItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str


class SystemDefinition(BaseModel):
    """One body system in the head-to-toe review.

    ``default`` is the narrative baseline shown when every check is normal and
    no notes have been written.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    icon: SystemIcon
    default: str
    checklist: Tuple[ChecklistItem, ...]

    @model_validator(mode="after")
    def _unique_keys(self) -> "SystemDefinition":
        keys = [item.key for item in self.checklist]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Duplicate checklist keys in system {self.id!r}")
        return self


def _system(
    system_id: str,
    name: str,
    icon: SystemIcon,
    default: str,
    items: list[tuple[str, str]],
) -> SystemDefinition:
    return SystemDefinition(
        id=system_id,
        name=name,
        icon=icon,
        default=default,
        checklist=tuple(ChecklistItem(key=key, label=label) for key, label in items),
    )


# Fixed per deployment; every client sharing a store must ship the same tuple.
SYSTEMS_REVIEW: Tuple[SystemDefinition, ...] = (
    _system(
        "neuro",
        "Neuro",
        SystemIcon.BRAIN,
        "A&Ox4, follows commands, moves all extremities.",
        [
            ("oriented", "Alert and oriented x4"),
            ("pupils", "PERRLA"),
            ("motor", "Moves all extremities"),
            ("speech", "Speech clear"),
        ],
    ),
    _system(
        "cardio",
        "Cardiovascular",
        SystemIcon.HEART,
        "NSR, S1S2, pulses +2, no edema, cap refill <3s.",
        [
            ("rhythm", "Regular rhythm"),
            ("pulses", "Pulses palpable x4"),
            ("edema", "No edema"),
            ("cap_refill", "Cap refill <3s"),
        ],
    ),
    _system(
        "resp",
        "Respiratory",
        SystemIcon.LUNGS,
        "Lungs clear bilaterally, room air, unlabored.",
        [
            ("lung_sounds", "Lungs clear bilaterally"),
            ("room_air", "Room air"),
            ("effort", "Unlabored breathing"),
            ("cough", "No cough"),
        ],
    ),
    _system(
        "gi",
        "GI",
        SystemIcon.STOMACH,
        "Abdomen soft, non-tender, BS active x4, tolerating diet.",
        [
            ("abdomen", "Abdomen soft, non-tender"),
            ("bowel_sounds", "Bowel sounds active"),
            ("diet", "Tolerating diet"),
            ("nausea", "No nausea or vomiting"),
        ],
    ),
    _system(
        "gu",
        "GU",
        SystemIcon.DROPLET,
        "Voiding freely, clear yellow urine.",
        [
            ("voiding", "Voiding freely"),
            ("urine", "Urine clear yellow"),
            ("catheter", "No catheter"),
        ],
    ),
    _system(
        "skin",
        "Skin",
        SystemIcon.BANDAGE,
        "Skin intact, warm, dry.",
        [
            ("intact", "Skin intact"),
            ("warm_dry", "Warm and dry"),
            ("wounds", "No wounds or pressure injuries"),
        ],
    ),
)

_BY_ID: Dict[str, SystemDefinition] = {system.id: system for system in SYSTEMS_REVIEW}


def get_system(system_id: str) -> Optional[SystemDefinition]:
    return _BY_ID.get(system_id)


def system_ids() -> list[str]:
    return [system.id for system in SYSTEMS_REVIEW]
