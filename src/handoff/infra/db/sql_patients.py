from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from src.handoff.domain.errors import RecordNotFound, WriteFailed
from src.handoff.domain.models.patient_record import PatientRecord
from src.handoff.infra.db.documents import census_order, merge_fields, next_timestamp, to_document, to_record
from src.handoff.infra.db.models import PatientDocumentORM
from src.handoff.infra.db.repositories import PatientRepository
from src.handoff.infra.db.session import SessionFactory
from src.handoff.tenancy import is_valid_collection_path


class SqlPatientRepository(PatientRepository):
    """SQL-backed PatientRepository storing each record as a JSON document.

    Every query filters on ``collection_path`` so one identity can never read
    or write another identity's patients, even with a guessed id.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _check_path(collection_path: str) -> None:
        if not is_valid_collection_path(collection_path):
            raise WriteFailed(f"Invalid collection path {collection_path!r}")

    def _load(self, session, collection_path: str, record_id: str) -> Optional[PatientDocumentORM]:
        orm = session.get(PatientDocumentORM, record_id)
        if orm is None or orm.collection_path != collection_path:
            return None
        return orm

    def create(self, collection_path: str, record: PatientRecord) -> PatientRecord:
        self._check_path(collection_path)
        stored = record.model_copy(update={"id": uuid4().hex, "last_updated": next_timestamp(None)})

        session = self._session_factory()
        try:
            session.add(PatientDocumentORM.from_domain(collection_path, stored))
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise WriteFailed("Database rejected patient create") from exc
        finally:
            session.close()
        return stored

    def get(self, collection_path: str, record_id: str) -> Optional[PatientRecord]:
        session = self._session_factory()
        try:
            orm = self._load(session, collection_path, record_id)
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def list(self, collection_path: str) -> List[PatientRecord]:
        session = self._session_factory()
        try:
            query = select(PatientDocumentORM).where(PatientDocumentORM.collection_path == collection_path)
            # Re-sorted in Python: database collations may not compare byte-wise.
            return census_order(orm.to_domain() for orm in session.scalars(query))
        finally:
            session.close()

    def update(self, collection_path: str, record_id: str, fields: Dict[str, Any]) -> PatientRecord:
        self._check_path(collection_path)

        session = self._session_factory()
        try:
            orm = self._load(session, collection_path, record_id)
            if orm is None:
                raise RecordNotFound(record_id)

            previous = orm.to_domain()
            merged = merge_fields(orm.document, fields)
            merged["last_updated"] = next_timestamp(previous.last_updated).isoformat()
            record = to_record(merged)

            # Assign a fresh dict so the JSON column is flagged as modified.
            orm.document = to_document(record)
            orm.room_number = record.room_number
            orm.last_updated = record.last_updated
            session.commit()
            return record
        except SQLAlchemyError as exc:
            session.rollback()
            raise WriteFailed("Database rejected patient update") from exc
        finally:
            session.close()

    def delete(self, collection_path: str, record_id: str) -> None:
        self._check_path(collection_path)

        session = self._session_factory()
        try:
            orm = self._load(session, collection_path, record_id)
            if orm is None:
                raise RecordNotFound(record_id)
            session.delete(orm)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise WriteFailed("Database rejected patient delete") from exc
        finally:
            session.close()
