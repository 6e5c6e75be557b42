from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from src.handoff.domain.errors import RecordNotFound, WriteFailed
from src.handoff.domain.models.patient_record import PatientRecord
from src.handoff.infra.db.documents import census_order, merge_fields, next_timestamp, to_document, to_record
from src.handoff.infra.db.repositories import PatientRepository
from src.handoff.tenancy import is_valid_collection_path


class InMemoryPatientRepository(PatientRepository):
    """Dictionary-backed record store used for development and tests.

    Documents are kept per collection path as plain JSON-compatible dicts so
    merges behave the same way they do against the SQL backend.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        if not is_valid_collection_path(collection_path):
            raise WriteFailed(f"Invalid collection path {collection_path!r}")
        return self._collections.setdefault(collection_path, {})

    def create(self, collection_path: str, record: PatientRecord) -> PatientRecord:
        collection = self._collection(collection_path)
        stored = record.model_copy(update={"id": uuid4().hex, "last_updated": next_timestamp(None)})
        collection[stored.id] = to_document(stored)
        return stored

    def get(self, collection_path: str, record_id: str) -> Optional[PatientRecord]:
        if not is_valid_collection_path(collection_path):
            return None
        document = self._collections.get(collection_path, {}).get(record_id)
        return to_record(document) if document is not None else None

    def list(self, collection_path: str) -> List[PatientRecord]:
        if not is_valid_collection_path(collection_path):
            return []
        documents = self._collections.get(collection_path, {}).values()
        return census_order(to_record(document) for document in documents)

    def update(self, collection_path: str, record_id: str, fields: Dict[str, Any]) -> PatientRecord:
        collection = self._collection(collection_path)
        document = collection.get(record_id)
        if document is None:
            raise RecordNotFound(record_id)

        previous = to_record(document)
        merged = merge_fields(document, fields)
        merged["last_updated"] = next_timestamp(previous.last_updated).isoformat()
        record = to_record(merged)
        collection[record_id] = to_document(record)
        return record

    def delete(self, collection_path: str, record_id: str) -> None:
        collection = self._collection(collection_path)
        if collection.pop(record_id, None) is None:
            raise RecordNotFound(record_id)


patient_repository: PatientRepository = InMemoryPatientRepository()
