from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PatientDocumentORM(Base):
    __tablename__ = "patient_documents"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    collection_path: Mapped[str] = mapped_column(String, nullable=False, index=True)
    # Denormalized from the document so census ordering can happen in SQL.
    room_number: Mapped[str] = mapped_column(String, nullable=False, default="")
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # The full record in its JSON form; the source of truth for reads.
    document: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    @classmethod
    def from_domain(cls, collection_path: str, record: "PatientRecord") -> "PatientDocumentORM":  # type: ignore[name-defined]
        from src.handoff.infra.db.documents import to_document

        return cls(
            id=record.id,
            collection_path=collection_path,
            room_number=record.room_number,
            last_updated=record.last_updated,
            document=to_document(record),
        )

    def to_domain(self) -> "PatientRecord":  # type: ignore[name-defined]
        from src.handoff.infra.db.documents import to_record

        return to_record(self.document)
