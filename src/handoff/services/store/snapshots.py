from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Set

from src.handoff.domain.errors import SubscriptionError
from src.handoff.domain.models.patient_record import PatientSnapshot

logger = logging.getLogger("handoff.snapshots")

SnapshotListener = Callable[[PatientSnapshot], None]

_CLOSED = object()


class Subscription:
    """Cancellable stream of collection snapshots.

    Only the most recent undelivered snapshot is kept: a slow consumer skips
    intermediate states but always ends up on the latest one.
    """

    def __init__(self, hub: "SnapshotHub", collection_path: str) -> None:
        self._hub = hub
        self.collection_path = collection_path
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, item: object) -> None:
        if self._closed and item is not _CLOSED:
            return
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(item)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._hub._remove(self)
        self.push(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> PatientSnapshot:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


class SnapshotHub:
    """Fan-out of full collection snapshots, keyed by collection path."""

    def __init__(self) -> None:
        self._subscriptions: Dict[str, Set[Subscription]] = {}
        self._listeners: Dict[str, List[SnapshotListener]] = {}

    def has_subscribers(self, collection_path: str) -> bool:
        return bool(self._subscriptions.get(collection_path) or self._listeners.get(collection_path))

    def subscribe(self, collection_path: str, initial: Optional[PatientSnapshot] = None) -> Subscription:
        subscription = Subscription(self, collection_path)
        self._subscriptions.setdefault(collection_path, set()).add(subscription)
        if initial is not None:
            subscription.push(initial)
        return subscription

    def listen(self, collection_path: str, listener: SnapshotListener) -> Callable[[], None]:
        """Register a callback for every snapshot; returns an unsubscribe handle."""

        self._listeners.setdefault(collection_path, []).append(listener)

        def _unsubscribe() -> None:
            listeners = self._listeners.get(collection_path, [])
            if listener in listeners:
                listeners.remove(listener)

        return _unsubscribe

    def publish(self, snapshot: PatientSnapshot) -> None:
        path = snapshot.collection_path
        for subscription in list(self._subscriptions.get(path, ())):
            subscription.push(snapshot)

        for listener in list(self._listeners.get(path, ())):
            try:
                listener(snapshot)
            except Exception:
                # A failing listener stops receiving updates; others are unaffected.
                logger.exception("%s: snapshot listener for %s failed; removing it", SubscriptionError.__name__, path)
                listeners = self._listeners.get(path, [])
                if listener in listeners:
                    listeners.remove(listener)

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.collection_path)
        if subscriptions is not None:
            subscriptions.discard(subscription)
