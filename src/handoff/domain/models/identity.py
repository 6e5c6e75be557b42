from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Identity(BaseModel):
    """Authenticated (or anonymous) caller.

    Only ``uid`` is used downstream, as a component of the collection path.
    """

    uid: str
    is_anonymous: bool = True
    signed_in_at: datetime


class AuthSession(BaseModel):
    token: str
    identity: Identity
