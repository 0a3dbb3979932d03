# tickets/services/live_sync.py
"""
Client-side ticket cache.

LiveTicketCache owns a single subscription for the lifetime of the view that
mounts it and is the only list of tickets that view should read. Writes go
to the store and come back through the subscription; the cache never edits
its own list. Rapid writes to the same ticket are not queued: the store
applies them in arrival order and the last one wins.
"""

import enum
import logging
import threading
from typing import Callable, List, Optional, Tuple, Union
from uuid import UUID

from django.utils import timezone
from rest_framework.exceptions import APIException

from tickets.exceptions import StreamError
from tickets.services.pending import PendingWriteTracker
from tickets.services.payloads import TicketDraft, TicketPatch
from tickets.services.records import Snapshot, TicketRecord

logger = logging.getLogger(__name__)


class SyncState(str, enum.Enum):
    INITIALIZING = "initializing"
    SYNCED = "synced"
    ERRORED = "errored"


class LiveTicketCache:
    def __init__(self, store, tracker: Optional[PendingWriteTracker] = None):
        self._store = store
        self.tracker = tracker
        self._lock = threading.Lock()
        self._subscription = None
        self._active = False
        self._tickets: Tuple[TicketRecord, ...] = ()
        self._last_sequence = 0
        self._listeners: List[Callable[["LiveTicketCache"], None]] = []
        self.state = SyncState.INITIALIZING
        self.stream_error: Optional[StreamError] = None
        self.operation_error: Optional[Exception] = None

    # ---------- Read side ----------
    @property
    def tickets(self) -> Tuple[TicketRecord, ...]:
        return self._tickets

    @property
    def visible_tickets(self) -> Tuple[TicketRecord, ...]:
        """Tickets with pending local patches applied, when tracking."""
        if self.tracker is None:
            return self._tickets
        return self.tracker.overlay(self._tickets)

    @property
    def is_loading(self) -> bool:
        return self.state == SyncState.INITIALIZING

    @property
    def is_stale(self) -> bool:
        return self.state == SyncState.ERRORED

    @property
    def is_mounted(self) -> bool:
        return self._subscription is not None

    def get(self, key) -> Optional[TicketRecord]:
        key = key if isinstance(key, UUID) else UUID(str(key))
        for ticket in self._tickets:
            if ticket.key == key:
                return ticket
        return None

    def add_listener(self, listener: Callable[["LiveTicketCache"], None]) -> None:
        self._listeners.append(listener)

    # ---------- Lifecycle ----------
    def mount(self) -> "LiveTicketCache":
        if self._subscription is None:
            self._active = True
            try:
                self._subscription = self._store.stream_tickets(
                    self._on_data, self._on_error
                )
            except Exception:
                self._active = False
                raise
        return self

    def unmount(self) -> None:
        self._active = False
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()

    def resubscribe(self) -> "LiveTicketCache":
        """Start a fresh subscription, e.g. after a stream error."""
        self.unmount()
        with self._lock:
            self.state = SyncState.INITIALIZING
            self.stream_error = None
            self._last_sequence = 0
        return self.mount()

    def __enter__(self):
        return self.mount()

    def __exit__(self, exc_type, exc, tb):
        self.unmount()

    # ---------- Subscription callbacks ----------
    def _on_data(self, snapshot: Snapshot) -> None:
        with self._lock:
            if not self._active or self.state == SyncState.ERRORED:
                return
            if snapshot.sequence <= self._last_sequence:
                logger.debug(
                    f"Dropping stale snapshot {snapshot.sequence} "
                    f"(have {self._last_sequence})"
                )
                return
            self._last_sequence = snapshot.sequence
            self._tickets = snapshot.tickets
            self.state = SyncState.SYNCED
        if self.tracker is not None:
            self.tracker.reconcile(snapshot)
        self._notify()

    def _on_error(self, error: StreamError) -> None:
        with self._lock:
            if not self._active:
                return
            self.state = SyncState.ERRORED
            self.stream_error = error
        logger.error(f"Live ticket feed failed: {error}")
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ---------- Write side ----------
    def add_ticket(self, draft: TicketDraft) -> UUID:
        """
        Create a ticket. The new ticket shows up in `tickets` once the
        subscription echoes it back, not when this call returns.
        """
        try:
            return self._store.create_ticket(draft)
        except APIException as exc:
            self._record_operation_error(exc)
            raise

    def update_ticket(self, key, patch: Union[TicketPatch, dict]) -> TicketRecord:
        if not isinstance(patch, TicketPatch):
            patch = TicketPatch.from_payload(patch)
        pending = None
        if self.tracker is not None:
            pending = self.tracker.record(key, patch, issued_at=timezone.now())
            self._notify()
        try:
            return self._store.update_ticket(key, patch)
        except APIException as exc:
            if pending is not None:
                self.tracker.discard(key, pending)
            self._record_operation_error(exc)
            raise

    def dismiss_operation_error(self) -> None:
        self.operation_error = None
        self._notify()

    def _record_operation_error(self, exc: Exception) -> None:
        logger.warning(f"Ticket operation failed: {exc}")
        self.operation_error = exc
        self._notify()
