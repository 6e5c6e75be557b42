from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from src.handoff.config import settings
from src.handoff.domain.errors import AuthFailure
from src.handoff.domain.models.identity import AuthSession, Identity

logger = logging.getLogger("handoff.identity")

AuthStateListener = Callable[[Optional[Identity]], None]

# Shared identity used when API auth is disabled and no token is supplied.
ANONYMOUS_UID = "anonymous"


def _configured_tokens() -> List[str]:
    """Return the configured custom sign-in tokens as a normalized list.

    AUTH_TOKENS is treated as a comma-separated list. Whitespace is stripped
    and empty entries are ignored.
    """

    if not settings.auth_tokens:
        return []
    return [token.strip() for token in settings.auth_tokens.split(",") if token.strip()]


class InMemoryIdentityService:
    """Issues session tokens and tracks which identity each one belongs to.

    Sessions live only in process memory; a restart signs everybody out.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Identity] = {}
        self._listeners: Dict[str, List[AuthStateListener]] = {}

    def sign_in_anonymously(self) -> AuthSession:
        identity = Identity(uid=uuid4().hex, is_anonymous=True, signed_in_at=datetime.now(timezone.utc))
        return self._open_session(identity)

    def sign_in_with_token(self, token: str) -> AuthSession:
        allowed = _configured_tokens()
        if not token or token not in allowed:
            raise AuthFailure("Sign-in token rejected")

        # Stable, non-reversible uid so the same token always maps to the same
        # patient collection without the raw secret ending up in storage paths.
        uid = "token-" + hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        identity = Identity(uid=uid, is_anonymous=False, signed_in_at=datetime.now(timezone.utc))
        return self._open_session(identity)

    def resolve(self, session_token: str) -> Optional[Identity]:
        return self._sessions.get(session_token)

    def sign_out(self, session_token: str) -> None:
        if self._sessions.pop(session_token, None) is None:
            return
        self._notify(session_token, None)
        self._listeners.pop(session_token, None)

    def on_auth_state_changed(self, session_token: str, listener: AuthStateListener) -> Callable[[], None]:
        """Watch one session; the listener fires now and again on sign-out.

        Returns an unsubscribe handle.
        """

        self._listeners.setdefault(session_token, []).append(listener)
        listener(self.resolve(session_token))

        def _unsubscribe() -> None:
            listeners = self._listeners.get(session_token, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(session_token, None)

        return _unsubscribe

    def anonymous_identity(self) -> Identity:
        return Identity(uid=ANONYMOUS_UID, is_anonymous=True, signed_in_at=datetime.now(timezone.utc))

    def _open_session(self, identity: Identity) -> AuthSession:
        session_token = secrets.token_urlsafe(32)
        self._sessions[session_token] = identity
        logger.info("Opened %s session for uid %s", "anonymous" if identity.is_anonymous else "token", identity.uid)
        return AuthSession(token=session_token, identity=identity)

    def _notify(self, session_token: str, identity: Optional[Identity]) -> None:
        for listener in list(self._listeners.get(session_token, ())):
            try:
                listener(identity)
            except Exception:
                logger.exception("Auth state listener failed")


identity_service = InMemoryIdentityService()
