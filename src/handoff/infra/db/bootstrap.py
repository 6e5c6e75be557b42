from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from src.handoff.config import BackendConfig
from src.handoff.domain.errors import ConfigMissing
from src.handoff.infra.db.session import create_sqlalchemy_session_factory
from src.handoff.infra.db.sql_patients import SqlPatientRepository
from src.handoff.services.store.service import RecordStore, record_store

logger = logging.getLogger("handoff.bootstrap")


def init_repositories(config: BackendConfig, store: RecordStore = record_store) -> None:
    """Point the record store at the backend named in ``config``.

    Raises ConfigMissing when the configuration cannot back a store; the
    caller decides how to surface that. The in-memory backend needs no setup.
    """

    config.validate()

    if config.store_backend == "memory":
        logger.info("Using in-memory patient record store")
        return

    try:
        session_factory = create_sqlalchemy_session_factory(config.database_url)  # type: ignore[arg-type]
    except SQLAlchemyError as exc:
        logger.error("Could not open patient record database: %s", exc)
        raise ConfigMissing(f"DATABASE_URL is unusable: {type(exc).__name__}") from exc
    store.use_repository(SqlPatientRepository(session_factory))
    logger.info("Using SQL patient record store")
