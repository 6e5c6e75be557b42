from __future__ import annotations


class HandoffError(Exception):
    """Base class for errors raised by the handoff charting service."""


class ConfigMissing(HandoffError):
    """Backend configuration is absent or unusable at startup."""


class AuthFailure(HandoffError):
    """A sign-in attempt was rejected or a session token is not recognized."""


class WriteFailed(HandoffError):
    """The record store rejected a create, update or delete."""


class RecordNotFound(WriteFailed):
    def __init__(self, record_id: str) -> None:
        super().__init__(f"Patient {record_id} not found")
        self.record_id = record_id


class SubscriptionError(HandoffError):
    """A live snapshot stream or listener failed."""


class DeletionNotConfirmed(HandoffError):
    """Deleting a patient requires an explicit confirmation."""
