from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from src.handoff.domain.models.patient_record import PatientRecord


class PatientRepository(ABC):
    """Document-store contract for patient records.

    Every operation is scoped by a collection path derived from the caller's
    identity. Implementations stamp ``last_updated`` on every accepted write
    and raise WriteFailed (or RecordNotFound) when a write is rejected.
    """

    @abstractmethod
    def create(self, collection_path: str, record: PatientRecord) -> PatientRecord:
        raise NotImplementedError

    @abstractmethod
    def get(self, collection_path: str, record_id: str) -> Optional[PatientRecord]:
        raise NotImplementedError

    @abstractmethod
    def list(self, collection_path: str) -> List[PatientRecord]:
        raise NotImplementedError

    @abstractmethod
    def update(self, collection_path: str, record_id: str, fields: Dict[str, Any]) -> PatientRecord:
        raise NotImplementedError

    @abstractmethod
    def delete(self, collection_path: str, record_id: str) -> None:
        raise NotImplementedError
