from __future__ import annotations

import datetime as dt
from typing import Callable, List, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from src.handoff.domain.models.patient_record import (
    PatientCreate,
    PatientRecord,
    PatientSnapshot,
    PatientUpdate,
    TimelineEntry,
)
from src.handoff.services.patients.service import UnknownSystemItem, patient_chart_service
from src.handoff.services.reports.sbar import SbarReport
from src.handoff.services.reports.status_summary import SystemStatus
from src.handoff.tenancy import collection_dependency

T = TypeVar("T")


async def ensure_store_ready(request: Request) -> None:
    """Reject store-backed requests when startup could not configure a store."""

    config_error = getattr(request.app.state, "config_error", None)
    if config_error:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Record store unavailable: {config_error}",
        )


router = APIRouter(
    prefix="/patients",
    tags=["patients"],
    dependencies=[Depends(ensure_store_ready)],
)


class TimelineEntryRequest(BaseModel):
    date: dt.date
    event: str = Field(min_length=1)


class TodoRequest(BaseModel):
    task: str = Field(min_length=1)


class AllergyRequest(BaseModel):
    allergy: str = Field(min_length=1)


class SystemCheckRequest(BaseModel):
    value: bool


class SystemNotesRequest(BaseModel):
    notes: str


def _not_found_on(call: Callable[[], T]) -> T:
    """Run ``call`` turning unknown systems and bad list positions into 404s."""

    try:
        return call()
    except UnknownSystemItem as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0])) from exc
    except IndexError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/", response_model=PatientRecord, status_code=status.HTTP_201_CREATED)
async def create_patient(
    payload: PatientCreate,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return patient_chart_service.create_patient(collection_path, payload)


@router.get("/", response_model=PatientSnapshot)
async def list_patients(collection_path: str = Depends(collection_dependency)) -> PatientSnapshot:
    """Current census, ordered by room number."""

    return PatientSnapshot(
        collection_path=collection_path,
        patients=patient_chart_service.list_patients(collection_path),
    )


@router.get("/{patient_id}", response_model=PatientRecord)
async def get_patient(patient_id: str, collection_path: str = Depends(collection_dependency)) -> PatientRecord:
    record = patient_chart_service.get_patient(collection_path, patient_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return record


@router.patch("/{patient_id}", response_model=PatientRecord)
async def update_patient(
    patient_id: str,
    payload: PatientUpdate,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return patient_chart_service.update_patient(collection_path, patient_id, payload)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    patient_id: str,
    confirm: bool = False,
    collection_path: str = Depends(collection_dependency),
) -> None:
    patient_chart_service.delete_patient(collection_path, patient_id, confirmed=confirm)


@router.post("/{patient_id}/timeline", response_model=PatientRecord)
async def add_timeline_entry(
    patient_id: str,
    payload: TimelineEntryRequest,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    entry = TimelineEntry(date=payload.date, event=payload.event)
    return patient_chart_service.add_timeline_entry(collection_path, patient_id, entry)


@router.delete("/{patient_id}/timeline/{index}", response_model=PatientRecord)
async def remove_timeline_entry(
    patient_id: str,
    index: int,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return _not_found_on(lambda: patient_chart_service.remove_timeline_entry(collection_path, patient_id, index))


@router.post("/{patient_id}/todos", response_model=PatientRecord)
async def add_todo(
    patient_id: str,
    payload: TodoRequest,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return patient_chart_service.add_todo(collection_path, patient_id, payload.task)


@router.post("/{patient_id}/todos/{index}/toggle", response_model=PatientRecord)
async def toggle_todo(
    patient_id: str,
    index: int,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return _not_found_on(lambda: patient_chart_service.toggle_todo(collection_path, patient_id, index))


@router.delete("/{patient_id}/todos/{index}", response_model=PatientRecord)
async def remove_todo(
    patient_id: str,
    index: int,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return _not_found_on(lambda: patient_chart_service.remove_todo(collection_path, patient_id, index))


@router.post("/{patient_id}/allergies", response_model=PatientRecord)
async def add_allergy(
    patient_id: str,
    payload: AllergyRequest,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return patient_chart_service.add_allergy(collection_path, patient_id, payload.allergy)


@router.delete("/{patient_id}/allergies/{allergy}", response_model=PatientRecord)
async def remove_allergy(
    patient_id: str,
    allergy: str,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return patient_chart_service.remove_allergy(collection_path, patient_id, allergy)


@router.put("/{patient_id}/systems/{system_id}/checks/{key}", response_model=PatientRecord)
async def set_system_check(
    patient_id: str,
    system_id: str,
    key: str,
    payload: SystemCheckRequest,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return _not_found_on(
        lambda: patient_chart_service.set_system_check(collection_path, patient_id, system_id, key, payload.value)
    )


@router.put("/{patient_id}/systems/{system_id}/notes", response_model=PatientRecord)
async def set_system_notes(
    patient_id: str,
    system_id: str,
    payload: SystemNotesRequest,
    collection_path: str = Depends(collection_dependency),
) -> PatientRecord:
    return _not_found_on(
        lambda: patient_chart_service.set_system_notes(collection_path, patient_id, system_id, payload.notes)
    )


@router.get("/{patient_id}/systems", response_model=List[SystemStatus])
async def get_system_statuses(
    patient_id: str,
    collection_path: str = Depends(collection_dependency),
) -> List[SystemStatus]:
    return patient_chart_service.system_statuses(collection_path, patient_id)


@router.get("/{patient_id}/sbar", response_model=SbarReport)
async def get_sbar_report(
    patient_id: str,
    collection_path: str = Depends(collection_dependency),
) -> SbarReport:
    return patient_chart_service.sbar_report(collection_path, patient_id)


@router.get("/{patient_id}/sbar.txt", response_class=PlainTextResponse)
async def get_sbar_text(
    patient_id: str,
    collection_path: str = Depends(collection_dependency),
) -> str:
    """SBAR handoff as plain text, ready to paste into a handoff note."""

    return patient_chart_service.sbar_report(collection_path, patient_id).text
