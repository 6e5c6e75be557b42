from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from src.handoff.domain.errors import WriteFailed
from src.handoff.domain.models.patient_record import PatientRecord

# Fields owned by the store; callers never write them directly.
RESERVED_FIELDS = frozenset({"id", "last_updated"})


def merge_fields(document: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``document`` with ``fields`` merged in.

    Keys are top-level field names or dotted field paths such as
    ``systems_review.neuro.notes``; intermediate maps are created as needed.
    Values replace whatever was there, lists included.
    """

    merged = copy.deepcopy(document)
    for key, value in fields.items():
        parts = key.split(".")
        if parts[0] in RESERVED_FIELDS:
            raise WriteFailed(f"Field {parts[0]!r} is managed by the record store")
        target = merged
        for part in parts[:-1]:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        target[parts[-1]] = copy.deepcopy(value)
    return merged


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """UTC now, clamped so a record's timestamp never moves backwards."""

    now = datetime.now(timezone.utc)
    if previous is not None and previous.tzinfo is not None and previous > now:
        return previous
    return now


def to_record(document: Dict[str, Any]) -> PatientRecord:
    try:
        return PatientRecord.model_validate(document)
    except ValidationError as exc:
        raise WriteFailed(f"Patient document failed validation: {exc.error_count()} error(s)") from exc


def to_document(record: PatientRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json")


def census_order(records: Iterable[PatientRecord]) -> List[PatientRecord]:
    """Sort by room number as plain strings ("12" < "2" < "305A"), then id."""

    return sorted(records, key=lambda record: (record.room_number, record.id))
