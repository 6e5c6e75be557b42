from __future__ import annotations

from typing import List, Optional

from src.handoff.domain.errors import DeletionNotConfirmed, RecordNotFound
from src.handoff.domain.models.patient_record import (
    PatientCreate,
    PatientRecord,
    PatientUpdate,
    TimelineEntry,
    TodoItem,
    new_systems_review,
)
from src.handoff.domain.models.systems_review import SystemDefinition, get_system
from src.handoff.services.reports.sbar import SbarReport, build_sbar_report
from src.handoff.services.reports.status_summary import SystemStatus, system_statuses
from src.handoff.services.store.service import RecordStore, record_store


class UnknownSystemItem(KeyError):
    """A system id or checklist key that is not part of the configured schema."""


class PatientChartService:
    """Field- and list-level mutations on patient charts.

    Every write is a partial merge through the record store. List fields
    (hospital course, to-dos, allergies) are rewritten whole from the record
    as last read, so two editors appending at the same moment race and the
    later write wins. This is accepted for one-nurse-per-patient use.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    # Census

    def create_patient(self, collection_path: str, payload: PatientCreate) -> PatientRecord:
        record = PatientRecord(
            id="",
            systems_review=new_systems_review(),
            **payload.model_dump(),
        )
        return self._store.create(collection_path, record)

    def get_patient(self, collection_path: str, patient_id: str) -> Optional[PatientRecord]:
        return self._store.get(collection_path, patient_id)

    def list_patients(self, collection_path: str) -> List[PatientRecord]:
        return self._store.list(collection_path)

    def update_patient(self, collection_path: str, patient_id: str, payload: PatientUpdate) -> PatientRecord:
        return self._store.update(collection_path, patient_id, payload.changed_fields())

    def delete_patient(self, collection_path: str, patient_id: str, *, confirmed: bool = False) -> None:
        if not confirmed:
            raise DeletionNotConfirmed(f"Deleting patient {patient_id} requires confirmation")
        self._store.delete(collection_path, patient_id)

    # Systems review

    def set_system_check(
        self,
        collection_path: str,
        patient_id: str,
        system_id: str,
        key: str,
        value: bool,
    ) -> PatientRecord:
        system = self._system(system_id)
        if key not in {item.key for item in system.checklist}:
            raise UnknownSystemItem(f"Unknown checklist item {key!r} for system {system_id!r}")
        return self._store.update(collection_path, patient_id, {f"systems_review.{system_id}.checks.{key}": value})

    def set_system_notes(self, collection_path: str, patient_id: str, system_id: str, notes: str) -> PatientRecord:
        self._system(system_id)
        return self._store.update(collection_path, patient_id, {f"systems_review.{system_id}.notes": notes})

    # Hospital course

    def add_timeline_entry(self, collection_path: str, patient_id: str, entry: TimelineEntry) -> PatientRecord:
        record = self._require(collection_path, patient_id)
        course = [*record.hospital_course, entry]
        return self._store.update(
            collection_path,
            patient_id,
            {"hospital_course": [item.model_dump(mode="json") for item in course]},
        )

    def remove_timeline_entry(self, collection_path: str, patient_id: str, index: int) -> PatientRecord:
        record = self._require(collection_path, patient_id)
        course = _without(record.hospital_course, index)
        return self._store.update(
            collection_path,
            patient_id,
            {"hospital_course": [item.model_dump(mode="json") for item in course]},
        )

    # To-do list

    def add_todo(self, collection_path: str, patient_id: str, task: str) -> PatientRecord:
        record = self._require(collection_path, patient_id)
        todos = [*record.todos, TodoItem(task=task, completed=False)]
        return self._save_todos(collection_path, patient_id, todos)

    def toggle_todo(self, collection_path: str, patient_id: str, index: int) -> PatientRecord:
        record = self._require(collection_path, patient_id)
        _check_index(record.todos, index)
        todos = [
            todo.model_copy(update={"completed": not todo.completed}) if position == index else todo
            for position, todo in enumerate(record.todos)
        ]
        return self._save_todos(collection_path, patient_id, todos)

    def remove_todo(self, collection_path: str, patient_id: str, index: int) -> PatientRecord:
        record = self._require(collection_path, patient_id)
        return self._save_todos(collection_path, patient_id, _without(record.todos, index))

    # Allergies

    def add_allergy(self, collection_path: str, patient_id: str, allergy: str) -> PatientRecord:
        record = self._require(collection_path, patient_id)
        allergy = allergy.strip()
        if not allergy or allergy in record.allergies:
            return record
        return self._store.update(collection_path, patient_id, {"allergies": [*record.allergies, allergy]})

    def remove_allergy(self, collection_path: str, patient_id: str, allergy: str) -> PatientRecord:
        record = self._require(collection_path, patient_id)
        if allergy not in record.allergies:
            return record
        remaining = [item for item in record.allergies if item != allergy]
        return self._store.update(collection_path, patient_id, {"allergies": remaining})

    # Derived views

    def system_statuses(self, collection_path: str, patient_id: str) -> List[SystemStatus]:
        return system_statuses(self._require(collection_path, patient_id))

    def sbar_report(self, collection_path: str, patient_id: str) -> SbarReport:
        return build_sbar_report(self._require(collection_path, patient_id))

    # Helpers

    def _require(self, collection_path: str, patient_id: str) -> PatientRecord:
        record = self._store.get(collection_path, patient_id)
        if record is None:
            raise RecordNotFound(patient_id)
        return record

    @staticmethod
    def _system(system_id: str) -> SystemDefinition:
        system = get_system(system_id)
        if system is None:
            raise UnknownSystemItem(f"Unknown system {system_id!r}")
        return system

    def _save_todos(self, collection_path: str, patient_id: str, todos: List[TodoItem]) -> PatientRecord:
        return self._store.update(
            collection_path,
            patient_id,
            {"todos": [todo.model_dump(mode="json") for todo in todos]},
        )


def _check_index(items: list, index: int) -> None:
    if index < 0 or index >= len(items):
        raise IndexError(f"No list entry at position {index}")


def _without(items: list, index: int) -> list:
    _check_index(items, index)
    return [item for position, item in enumerate(items) if position != index]


patient_chart_service = PatientChartService(record_store)
