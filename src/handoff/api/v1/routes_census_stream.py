from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status

from src.handoff.config import settings
from src.handoff.domain.models.identity import Identity
from src.handoff.security import identity_for_token
from src.handoff.services.audit.service import audit_service
from src.handoff.services.identity.service import identity_service
from src.handoff.services.store.service import record_store
from src.handoff.tenancy import collection_path

logger = logging.getLogger("handoff.stream")

router = APIRouter(prefix="/patients", tags=["patients"])


@router.websocket("/stream")
async def stream_census(websocket: WebSocket) -> None:
    """Push the caller's full, room-ordered census on every change.

    The first message is the current snapshot. Later messages follow each
    accepted write; a slow client may skip intermediate snapshots but always
    receives the latest. The stream ends when the client disconnects or sends
    "stop", or when the session token is signed out.
    """

    token = websocket.query_params.get("token") or websocket.headers.get("x-auth-token")
    try:
        identity = identity_for_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if getattr(websocket.app.state, "config_error", None):
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    path = collection_path(settings.app_id, identity.uid)
    await websocket.accept()
    subscription = record_store.subscribe(path)

    def _on_auth_state(current: Optional[Identity]) -> None:
        if current is None:
            subscription.close()

    stop_watching_auth = identity_service.on_auth_state_changed(token, _on_auth_state) if token else None

    client_gone = False

    async def _watch_client() -> None:
        nonlocal client_gone
        try:
            while True:
                message = await websocket.receive_text()
                if message.lower() == "stop":
                    break
        except WebSocketDisconnect:
            client_gone = True
        finally:
            subscription.close()

    watcher = asyncio.create_task(_watch_client())
    sent = 0
    try:
        async for snapshot in subscription:
            await websocket.send_json(snapshot.model_dump(mode="json", by_alias=True))
            sent += 1
        if not client_gone:
            await websocket.close(code=status.WS_1000_NORMAL_CLOSURE)
    except WebSocketDisconnect:
        client_gone = True
    except Exception:
        logger.exception("SubscriptionError: census stream for uid %s failed", identity.uid)
        if not client_gone:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    finally:
        subscription.close()
        watcher.cancel()
        if stop_watching_auth is not None:
            stop_watching_auth()

        audit_service.log_event(
            action="census_stream_closed",
            resource_type="patient_collection",
            subject=identity.uid,
            extra={"snapshots_sent": sent},
        )
