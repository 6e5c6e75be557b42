from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.handoff.infra.db.models import Base

SessionFactory = Callable[[], Session]


def create_sqlalchemy_session_factory(database_url: str, *, create_tables: bool = True) -> SessionFactory:
    """Create a SQLAlchemy-backed SessionFactory for the patient document table.

    Tables are created if missing; a real deployment would run migrations
    instead, but this keeps single-node setups and tests self-contained.
    """

    engine = create_engine(database_url, future=True)
    if create_tables:
        Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)

    def _factory() -> Session:
        return SessionLocal()

    return _factory
