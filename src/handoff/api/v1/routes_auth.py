from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Security, status
from pydantic import BaseModel

from src.handoff.config import settings
from src.handoff.domain.errors import AuthFailure
from src.handoff.domain.models.identity import AuthSession, Identity
from src.handoff.security import _auth_token_header, get_current_identity
from src.handoff.services.audit.service import audit_service
from src.handoff.services.identity.service import identity_service
from src.handoff.tenancy import collection_path

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenSignInRequest(BaseModel):
    token: str


class WhoAmIResponse(BaseModel):
    identity: Identity
    collection_path: str


@router.post("/anonymous", response_model=AuthSession, status_code=status.HTTP_201_CREATED)
async def sign_in_anonymously() -> AuthSession:
    session = identity_service.sign_in_anonymously()

    audit_service.log_event(
        action="sign_in_anonymous",
        resource_type="auth_session",
        subject=session.identity.uid,
    )

    return session


@router.post("/token", response_model=AuthSession, status_code=status.HTTP_201_CREATED)
async def sign_in_with_token(payload: TokenSignInRequest) -> AuthSession:
    try:
        session = identity_service.sign_in_with_token(payload.token)
    except AuthFailure as exc:
        audit_service.log_event(action="sign_in_token_rejected", resource_type="auth_session")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    audit_service.log_event(
        action="sign_in_token",
        resource_type="auth_session",
        subject=session.identity.uid,
    )

    return session


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(token: Optional[str] = Security(_auth_token_header)) -> None:
    if token:
        identity_service.sign_out(token)


@router.get("/me", response_model=WhoAmIResponse)
async def who_am_i(identity: Identity = Depends(get_current_identity)) -> WhoAmIResponse:
    return WhoAmIResponse(identity=identity, collection_path=collection_path(settings.app_id, identity.uid))
