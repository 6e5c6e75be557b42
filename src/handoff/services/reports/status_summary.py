from __future__ import annotations

from typing import List, Optional

from src.handoff.domain.models.patient_record import ChartModel, PatientRecord, SystemState
from src.handoff.domain.models.systems_review import SYSTEMS_REVIEW, SystemDefinition, SystemIcon

NOTES_PREVIEW_CHARS = 30


class SystemStatus(ChartModel):
    system_id: str
    name: str
    icon: SystemIcon
    deviation_count: int
    status: str


def deviated_labels(state: Optional[SystemState], definition: SystemDefinition) -> List[str]:
    """Labels of checklist items recorded as explicitly abnormal.

    An item with no stored value counts as normal.
    """

    checks = state.checks if state is not None else {}
    return [item.label for item in definition.checklist if checks.get(item.key, True) is False]


def summarize_system(state: Optional[SystemState], definition: SystemDefinition) -> str:
    """Return the one-line status shown next to a body system.

    All-normal with no notes yields the system's default narrative verbatim.
    Otherwise the line lists deviations by the first word of their label, or
    ``Checks WNL.``, followed by a notes preview. The preview always ends in
    an ellipsis, even when the notes are shorter than the preview length.
    """

    notes = state.notes if state is not None else ""
    deviations = deviated_labels(state, definition)

    if not deviations and not notes:
        return definition.default

    if deviations:
        words = ", ".join(label.split(" ")[0] for label in deviations)
        status = f"{len(deviations)} deviations ({words})"
    else:
        status = "Checks WNL."

    if notes:
        status += f" Notes: {notes[:NOTES_PREVIEW_CHARS]}..."
    return status


def system_statuses(record: PatientRecord) -> List[SystemStatus]:
    statuses: List[SystemStatus] = []
    for definition in SYSTEMS_REVIEW:
        state = record.systems_review.get(definition.id)
        statuses.append(
            SystemStatus(
                system_id=definition.id,
                name=definition.name,
                icon=definition.icon,
                deviation_count=len(deviated_labels(state, definition)),
                status=summarize_system(state, definition),
            )
        )
    return statuses
