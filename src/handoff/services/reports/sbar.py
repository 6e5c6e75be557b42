from __future__ import annotations

from typing import List

from src.handoff.domain.models.patient_record import ChartModel, PatientRecord
from src.handoff.domain.models.systems_review import SYSTEMS_REVIEW


class SbarReport(ChartModel):
    """Situation-Background-Assessment-Recommendation handoff text.

    Transient display text derived from a record on demand; never persisted.
    """

    patient_id: str
    situation: str
    background: str
    assessment: List[str]
    recommendation: str
    text: str


def _background(record: PatientRecord) -> str:
    allergies = ", ".join(record.allergies) if record.allergies else "None"
    return f"{record.age} y/o admitted for {record.diagnosis}. Allergies: {allergies}."


def _assessment(record: PatientRecord) -> List[str]:
    # Raw notes-or-default per system; the deviation-aware status line is a
    # separate view and is not used here.
    lines: List[str] = []
    for system in SYSTEMS_REVIEW:
        state = record.systems_review.get(system.id)
        notes = state.notes if state is not None else ""
        lines.append(f"{system.name}: {notes if notes else system.default}")
    return lines


def _recommendation(record: PatientRecord) -> str:
    outstanding = [todo.task for todo in record.todos if not todo.completed]
    return "; ".join(outstanding) if outstanding else "None outstanding."


def build_sbar_report(record: PatientRecord) -> SbarReport:
    situation = record.quick_one_liner or ""
    background = _background(record)
    assessment = _assessment(record)
    recommendation = _recommendation(record)

    text = "\n".join(
        [
            f"SBAR Handoff: {record.name} (Room {record.room_number})",
            "",
            "SITUATION:",
            situation,
            "",
            "BACKGROUND:",
            background,
            "",
            "ASSESSMENT:",
            *assessment,
            "",
            "RECOMMENDATION:",
            recommendation,
        ]
    )

    return SbarReport(
        patient_id=record.id,
        situation=situation,
        background=background,
        assessment=assessment,
        recommendation=recommendation,
        text=text,
    )
