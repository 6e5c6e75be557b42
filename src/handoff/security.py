from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from src.handoff.config import settings
from src.handoff.domain.models.identity import Identity
from src.handoff.services.identity.service import identity_service

# Session token issued by POST /auth/anonymous or POST /auth/token.
_auth_token_header = APIKeyHeader(name="X-Auth-Token", auto_error=False)

# Context variable storing the uid of the current caller so downstream
# consumers such as the audit logger can associate events with a subject.
_current_subject: ContextVar[Optional[str]] = ContextVar("current_subject", default=None)


def get_current_subject() -> Optional[str]:
    """Return the current subject identifier, if any.

    This is set by :func:`get_current_identity` for every authenticated
    request; it is ``None`` outside request handling.
    """

    return _current_subject.get()


def identity_for_token(token: Optional[str]) -> Identity:
    """Resolve a session token to an Identity or raise HTTP 401.

    - With a token, it must belong to a live session.
    - Without a token and ENABLE_API_AUTH=false (default for development and
      tests), the caller acts as the shared anonymous identity.
    - Without a token and ENABLE_API_AUTH=true, the request is rejected.
    """

    if token:
        identity = identity_service.resolve(token)
        if identity is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired session token.",
            )
        _current_subject.set(identity.uid)
        return identity

    if settings.enable_api_auth:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign-in required.",
        )

    identity = identity_service.anonymous_identity()
    _current_subject.set(identity.uid)
    return identity


async def get_current_identity(token: Optional[str] = Security(_auth_token_header)) -> Identity:
    """FastAPI dependency gating every store-backed route on an identity."""

    return identity_for_token(token)
