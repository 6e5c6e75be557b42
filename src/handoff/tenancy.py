from __future__ import annotations

import re

from fastapi import Depends

from src.handoff.config import settings
from src.handoff.domain.models.identity import Identity
from src.handoff.security import get_current_identity

# Each identity owns exactly one patient collection under the app namespace.
_COLLECTION_PATH_RE = re.compile(r"^artifacts/[^/\s]+/users/[^/\s]+/patients$")


def collection_path(app_id: str, uid: str) -> str:
    return f"artifacts/{app_id}/users/{uid}/patients"


def is_valid_collection_path(path: str) -> bool:
    return bool(_COLLECTION_PATH_RE.match(path or ""))


async def collection_dependency(identity: Identity = Depends(get_current_identity)) -> str:
    """FastAPI dependency resolving the caller's patient collection path."""

    return collection_path(settings.app_id, identity.uid)
