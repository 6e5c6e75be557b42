from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from src.handoff.domain.errors import WriteFailed
from src.handoff.domain.models.patient_record import PatientRecord, PatientSnapshot
from src.handoff.infra.db.inmemory import patient_repository
from src.handoff.infra.db.repositories import PatientRepository
from src.handoff.services.audit.service import audit_service
from src.handoff.services.store.snapshots import SnapshotHub, SnapshotListener, Subscription

logger = logging.getLogger("handoff.store")


class RecordStore:
    """Record store adapter: repository writes plus live snapshot fan-out.

    Every accepted write is followed by a full, room-ordered snapshot pushed
    to all subscribers of that collection. Rejected writes are logged and
    re-raised as WriteFailed so callers can surface them.
    """

    def __init__(self, repository: PatientRepository, hub: Optional[SnapshotHub] = None) -> None:
        self._repository = repository
        self._hub = hub or SnapshotHub()

    @property
    def repository(self) -> PatientRepository:
        return self._repository

    def use_repository(self, repository: PatientRepository) -> None:
        self._repository = repository

    # Reads

    def get(self, collection_path: str, record_id: str) -> Optional[PatientRecord]:
        return self._repository.get(collection_path, record_id)

    def list(self, collection_path: str) -> List[PatientRecord]:
        return self._repository.list(collection_path)

    def snapshot(self, collection_path: str) -> PatientSnapshot:
        return PatientSnapshot(collection_path=collection_path, patients=self.list(collection_path))

    # Writes

    def create(self, collection_path: str, record: PatientRecord) -> PatientRecord:
        stored = self._write("create", collection_path, None, lambda: self._repository.create(collection_path, record))
        self._publish(collection_path)
        return stored

    def update(self, collection_path: str, record_id: str, fields: Dict[str, Any]) -> PatientRecord:
        stored = self._write(
            "update",
            collection_path,
            record_id,
            lambda: self._repository.update(collection_path, record_id, fields),
            extra={"fields": sorted(fields)},
        )
        self._publish(collection_path)
        return stored

    def delete(self, collection_path: str, record_id: str) -> None:
        self._write("delete", collection_path, record_id, lambda: self._repository.delete(collection_path, record_id))
        self._publish(collection_path)

    # Subscriptions

    def subscribe(self, collection_path: str) -> Subscription:
        """Open a snapshot stream primed with the current collection state."""

        return self._hub.subscribe(collection_path, initial=self.snapshot(collection_path))

    def listen(self, collection_path: str, listener: SnapshotListener) -> Callable[[], None]:
        return self._hub.listen(collection_path, listener)

    def _publish(self, collection_path: str) -> None:
        if self._hub.has_subscribers(collection_path):
            self._hub.publish(self.snapshot(collection_path))

    def _write(
        self,
        action: str,
        collection_path: str,
        record_id: Optional[str],
        operation: Callable[[], Any],
        extra: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            result = operation()
        except WriteFailed as exc:
            logger.warning("Patient %s rejected for %s: %s", action, record_id or "<new>", exc)
            audit_service.log_event(
                action=f"{action}_patient_failed",
                resource_type="patient_record",
                resource_id=record_id,
                extra={"error": type(exc).__name__},
            )
            raise

        if record_id is None and isinstance(result, PatientRecord):
            record_id = result.id
        audit_service.log_event(
            action=f"{action}_patient",
            resource_type="patient_record",
            resource_id=record_id,
            extra=extra,
        )
        return result


record_store = RecordStore(patient_repository)
